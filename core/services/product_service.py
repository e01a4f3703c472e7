# =============================================================================
# core/services/product_service.py - Product Catalogue
# =============================================================================
# Products are created from approved sales lists. The public catalogue only
# shows active products with stock; admins can remove products as long as no
# purchase of them has been approved.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import DatabaseError, InvalidStateError, ProductNotFoundError, ValidationFailedError
from core.models import ACTIVE_REQUEST_STATUSES, ProductStatus, PurchaseRequestStatus
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

SELLER_COLUMNS = "id, company_name, email"


def _count(query) -> int:
    response = query.execute()
    if getattr(response, "count", None) is not None:
        return response.count
    return len(response.data or [])


def attach_sellers(products: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Merge each product with its seller's {id, company_name, email}.

    Products whose seller profile is missing get seller None.
    """
    seller_ids = sorted({p["seller_id"] for p in products if p.get("seller_id")})
    if not seller_ids:
        return [{**p, "seller": None} for p in products]

    client = SupabaseClient.get_client()
    try:
        profiles = client.table("profiles").select(SELLER_COLUMNS).in_("id", seller_ids).execute().data or []
    except Exception as e:
        logger.warning(f"Could not load seller profiles for {len(seller_ids)} sellers: {e}")
        profiles = []

    by_id = {profile["id"]: profile for profile in profiles}
    return [{**p, "seller": by_id.get(p.get("seller_id"))} for p in products]


def _requests_for(product_ids: list[str]) -> list[dict[str, Any]]:
    client = SupabaseClient.get_client()
    response = (
        client.table("purchase_requests")
        .select("id, product_id, status")
        .in_("product_id", product_ids)
        .execute()
    )
    return response.data or []


def _cancel_requests(request_ids: list[str]) -> None:
    if not request_ids:
        return
    client = SupabaseClient.get_client()
    try:
        client.table("purchase_requests").update(
            {"status": PurchaseRequestStatus.CANCELLED.value}
        ).in_("id", request_ids).execute()
    except Exception as e:
        logger.error(f"Failed to cancel purchase requests {request_ids}: {e}")
        raise DatabaseError("cancel purchase requests", str(e))


class ProductService:
    """Product catalogue queries and admin removal."""

    @staticmethod
    def list_available() -> dict[str, Any]:
        """
        Active products with quantity > 0, newest first, with sellers.

        Returns:
            Dict with products, count and stats {total, active}
        """
        client = SupabaseClient.get_client()

        total = _count(client.table("products").select("id", count="exact"))
        active = _count(
            client.table("products").select("id", count="exact").eq("status", ProductStatus.ACTIVE.value)
        )

        try:
            products = (
                client.table("products")
                .select("*")
                .eq("status", ProductStatus.ACTIVE.value)
                .gt("quantity", 0)
                .order("created_at", desc=True)
                .execute()
            ).data or []
        except Exception as e:
            logger.error(f"Failed to list products: {e}")
            raise DatabaseError("list products", str(e))

        products = attach_sellers(products)
        return {
            "products": products,
            "count": len(products),
            "stats": {"total": total, "active": active},
        }

    @staticmethod
    def get_product(product_id: str | UUID) -> dict[str, Any]:
        """
        Raises:
            ProductNotFoundError: No product with this id
        """
        product = SupabaseClient.fetch_product(product_id)
        if not product:
            raise ProductNotFoundError(str(product_id))
        return attach_sellers([product])[0]

    @staticmethod
    def delete_product(product_id: str | UUID) -> dict[str, Any]:
        """
        Delete a product, cancelling its open purchase requests.

        Returns:
            Dict with message and cancelledRequestsCount

        Raises:
            ProductNotFoundError: No product with this id
            InvalidStateError: A purchase of the product was approved
        """
        product_id_str = str(product_id)
        product = SupabaseClient.fetch_product(product_id_str)
        if not product:
            raise ProductNotFoundError(product_id_str)

        requests = _requests_for([product_id_str])
        approved = [r for r in requests if r["status"] == PurchaseRequestStatus.APPROVED.value]
        if approved:
            raise InvalidStateError(
                f"This product has {len(approved)} approved purchase requests and can't be deleted",
                {"approvedRequestCount": len(approved)},
            )

        active_ids = [r["id"] for r in requests if r["status"] in ACTIVE_REQUEST_STATUSES]
        _cancel_requests(active_ids)

        client = SupabaseClient.get_client()
        try:
            client.table("products").delete().eq("id", product_id_str).execute()
        except Exception as e:
            logger.error(f"Failed to delete product {product_id_str}: {e}")
            raise DatabaseError("delete product", str(e))

        logger.info(
            f"Deleted product {product_id_str} ({product.get('product_name')}), "
            f"cancelled {len(active_ids)} requests"
        )
        return {"message": "Product deleted", "cancelledRequestsCount": len(active_ids)}

    @staticmethod
    def batch_delete(product_ids: list[str]) -> dict[str, Any]:
        """
        Delete many products, skipping any with an approved purchase request.

        Returns:
            Dict with message, deletedCount, skippedCount and
            cancelledRequestsCount

        Raises:
            ValidationFailedError: No ids given
            InvalidStateError: Every product has an approved request
        """
        if not product_ids:
            raise ValidationFailedError("productIds must contain at least one id")

        ids = [str(i) for i in product_ids]
        requests = _requests_for(ids)

        blocked = {r["product_id"] for r in requests if r["status"] == PurchaseRequestStatus.APPROVED.value}
        deletable = [i for i in ids if i not in blocked]
        if not deletable:
            raise InvalidStateError("Every selected product has approved purchase requests")

        active_ids = [
            r["id"] for r in requests
            if r["status"] in ACTIVE_REQUEST_STATUSES and r["product_id"] in deletable
        ]
        _cancel_requests(active_ids)

        client = SupabaseClient.get_client()
        try:
            client.table("products").delete().in_("id", deletable).execute()
        except Exception as e:
            logger.error(f"Batch product delete failed: {e}")
            raise DatabaseError("delete products", str(e))

        deleted = len(deletable)
        skipped = len(ids) - deleted
        message = f"{deleted} products deleted"
        if active_ids:
            message += f" ({len(active_ids)} purchase requests cancelled)"
        if skipped:
            message += f" ({skipped} skipped with approved purchase requests)"

        logger.info(f"Batch deleted {deleted} products, skipped {skipped}, cancelled {len(active_ids)} requests")
        return {
            "message": message,
            "deletedCount": deleted,
            "skippedCount": skipped,
            "cancelledRequestsCount": len(active_ids),
        }
