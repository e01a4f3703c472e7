# =============================================================================
# core/services/purchase_request_service.py - Purchase Requests
# =============================================================================
# Buyers request a quantity of an active product; the admin brokers the deal.
# Approval reduces stock, records a purchase order and issues a sales
# approval report to the seller. Steps after the status update are not
# transactional: their failures come back as warnings.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    DatabaseError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ProductNotFoundError,
    PurchaseRequestNotFoundError,
    ValidationFailedError,
)
from core.models import (
    ProductStatus,
    PurchaseOrderStatus,
    PurchaseRequestStatus,
)
from core.services.report_service import ReportService
from lib.supabase_client import SupabaseClient
from lib.utils import embedded_row, utc_now_iso

logger = logging.getLogger(__name__)

BUYER_COLUMNS = (
    "*, products:products!purchase_requests_product_id_fkey("
    "id, product_name, selling_price, quantity, expiry_date, "
    "seller:profiles!products_seller_id_fkey(company_name, email))"
)

SELLER_COLUMNS = (
    "*, profiles:profiles!purchase_requests_buyer_id_fkey(email, company_name), "
    "products:products!purchase_requests_product_id_fkey(product_name, selling_price)"
)

ADMIN_COLUMNS = (
    "id, buyer_id, product_id, quantity, unit_price, total_price, shipping_address, status, "
    "requested_at, reviewed_at, reviewed_by, notes, "
    "buyer:profiles!purchase_requests_buyer_id_fkey(id, email, company_name), "
    "product:products!purchase_requests_product_id_fkey("
    "id, product_name, seller_id, seller:profiles!products_seller_id_fkey(id, email, company_name))"
)


def commission_for(total_price: float) -> float:
    """Brokerage commission on a purchase total."""
    return float(total_price) * settings.COMMISSION_RATE


def stock_after_sale(current_quantity: int, sold_quantity: int) -> dict[str, Any]:
    """
    Product update for a sale.

    A product that runs out becomes sold and keeps quantity 1 (the column
    doesn't accept 0).
    """
    remaining = current_quantity - sold_quantity
    if remaining <= 0:
        return {"status": ProductStatus.SOLD.value, "quantity": 1, "updated_at": utc_now_iso()}
    return {"status": ProductStatus.ACTIVE.value, "quantity": remaining, "updated_at": utc_now_iso()}


class PurchaseRequestService:
    """Purchase request lifecycle."""

    @staticmethod
    def create_request(
        buyer_id: str | UUID,
        product_id: str | UUID,
        quantity: int,
        shipping_address: str | None = None,
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """
        Request to buy a quantity of an active product.

        Returns:
            Tuple of (purchase request, product with seller)

        Raises:
            ValidationFailedError: Quantity not positive or above stock
            NotFoundError: Buyer has no profile
            ProductNotFoundError: Product missing or not active
        """
        if quantity <= 0:
            raise ValidationFailedError("Quantity must be greater than 0", {"field": "quantity"})

        buyer_id_str = str(buyer_id)
        if not SupabaseClient.fetch_profile(buyer_id_str, "id"):
            raise NotFoundError("User", buyer_id_str, code="USER_NOT_FOUND")

        product = SupabaseClient.fetch_product(product_id)
        if not product or product.get("status") != ProductStatus.ACTIVE.value:
            raise ProductNotFoundError(str(product_id))

        if quantity > product["quantity"]:
            raise ValidationFailedError(
                f"Quantity can't exceed available stock (max {product['quantity']})",
                {"field": "quantity", "available": product["quantity"]},
            )

        unit_price = float(product["selling_price"])
        client = SupabaseClient.get_client()
        try:
            response = client.table("purchase_requests").insert({
                "buyer_id": buyer_id_str,
                "product_id": str(product_id),
                "quantity": quantity,
                "unit_price": unit_price,
                "total_price": unit_price * quantity,
                "shipping_address": shipping_address or None,
                "status": PurchaseRequestStatus.PENDING.value,
            }).execute()
        except Exception as e:
            logger.error(f"Failed to create purchase request for {buyer_id_str}: {e}")
            raise DatabaseError("create purchase request", str(e))

        if not response.data:
            raise DatabaseError("create purchase request", "insert returned no data")

        purchase_request = response.data[0]
        logger.info(
            f"Purchase request {purchase_request['id']}: {buyer_id_str} wants "
            f"{quantity} x {product['product_name']}"
        )
        return purchase_request, product

    @staticmethod
    def cancel_request(request_id: str | UUID, user_id: str | UUID) -> dict[str, Any]:
        """
        Cancel one of the caller's own requests.

        Raises:
            PurchaseRequestNotFoundError: No such request
            PermissionDeniedError: Caller is not the buyer
            InvalidStateError: Already approved or cancelled
        """
        request = SupabaseClient.fetch_purchase_request(request_id)
        if not request:
            raise PurchaseRequestNotFoundError(str(request_id))
        if str(request["buyer_id"]) != str(user_id):
            raise PermissionDeniedError("You can only cancel your own purchase requests")
        if request["status"] in (PurchaseRequestStatus.APPROVED.value, PurchaseRequestStatus.CANCELLED.value):
            raise InvalidStateError(f"Purchase request is already {request['status']}")

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("purchase_requests")
                .update({"status": PurchaseRequestStatus.CANCELLED.value})
                .eq("id", str(request_id))
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to cancel purchase request {request_id}: {e}")
            raise DatabaseError("cancel purchase request", str(e))

        logger.info(f"Purchase request {request_id} cancelled by buyer {user_id}")
        return response.data[0] if response.data else {**request, "status": PurchaseRequestStatus.CANCELLED.value}

    @staticmethod
    def list_for_buyer(buyer_id: str | UUID) -> list[dict[str, Any]]:
        """The buyer's requests with product_name, selling_price and seller_company."""
        client = SupabaseClient.get_client()
        rows = (
            client.table("purchase_requests")
            .select(BUYER_COLUMNS)
            .eq("buyer_id", str(buyer_id))
            .order("requested_at", desc=True)
            .execute()
        ).data or []

        result = []
        for row in rows:
            product = embedded_row(row.get("products"))
            seller = embedded_row(product.get("seller"))
            result.append({
                **row,
                "product_name": product.get("product_name") or "-",
                "selling_price": product.get("selling_price") or 0,
                "seller_company": seller.get("company_name") or "-",
            })
        return result

    @staticmethod
    def list_for_seller(seller_id: str | UUID) -> list[dict[str, Any]]:
        """Requests for the seller's products, with buyer profiles."""
        client = SupabaseClient.get_client()
        products = (
            client.table("products").select("id").eq("seller_id", str(seller_id)).execute()
        ).data or []
        if not products:
            return []

        rows = (
            client.table("purchase_requests")
            .select(SELLER_COLUMNS)
            .in_("product_id", [p["id"] for p in products])
            .order("requested_at", desc=True)
            .execute()
        ).data or []

        result = []
        for row in rows:
            product = embedded_row(row.get("products"))
            result.append({
                **row,
                "product_name": product.get("product_name") or "-",
                "selling_price": product.get("selling_price") or 0,
            })
        return result

    @staticmethod
    def list_all(status: str | None = None) -> list[dict[str, Any]]:
        """All requests for the admin, optionally by status."""
        client = SupabaseClient.get_client()
        query = client.table("purchase_requests").select(ADMIN_COLUMNS)
        if status and status != "all":
            query = query.eq("status", status)
        rows = query.order("requested_at", desc=True).execute().data or []

        result = []
        for row in rows:
            product = embedded_row(row.get("product"))
            result.append({
                **row,
                "product_name": product.get("product_name") or "-",
                "seller": embedded_row(product.get("seller")) or None,
                "buyer": row.get("buyer") or None,
            })
        return result

    @staticmethod
    def review(
        request_id: str | UUID,
        status: PurchaseRequestStatus,
        admin_user_id: str | UUID,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """
        Set a request's review status; approval completes the sale.

        On approval the stock is checked before anything is written. Then
        the status is updated, stock reduced, a purchase order recorded and
        a sales approval report issued.

        Returns:
            Dict with message, purchaseRequestId and, for approvals,
            commission, purchaseOrderId, reportNumber and warnings

        Raises:
            PurchaseRequestNotFoundError: No such request
            InvalidStateError: Requested quantity exceeds current stock
            DatabaseError: The status update failed
        """
        status = PurchaseRequestStatus(status)
        request_id_str = str(request_id)

        request = SupabaseClient.fetch_purchase_request(request_id_str, with_product=True)
        if not request:
            raise PurchaseRequestNotFoundError(request_id_str)

        product = embedded_row(request.get("product"))
        approving = status is PurchaseRequestStatus.APPROVED

        if approving and product and request["quantity"] > product["quantity"]:
            raise InvalidStateError(
                f"Requested quantity ({request['quantity']}) exceeds current stock ({product['quantity']})",
                {"requested": request["quantity"], "available": product["quantity"]},
            )

        update: dict[str, Any] = {
            "status": status.value,
            "reviewed_at": utc_now_iso(),
            "reviewed_by": str(admin_user_id),
        }
        if notes is not None:
            update["notes"] = notes

        client = SupabaseClient.get_client()
        try:
            client.table("purchase_requests").update(update).eq("id", request_id_str).execute()
        except Exception as e:
            logger.error(f"Failed to update purchase request {request_id_str}: {e}")
            raise DatabaseError("update purchase request status", str(e))

        logger.info(f"Purchase request {request_id_str} set to {status.value} by {admin_user_id}")
        result: dict[str, Any] = {
            "message": f"Purchase request {status.value}",
            "purchaseRequestId": request_id_str,
        }
        if not approving or not product:
            return result

        warnings: list[str] = []
        total_price = float(request["total_price"])
        commission = commission_for(total_price)
        result["commission"] = commission

        try:
            client.table("products").update(
                stock_after_sale(product["quantity"], request["quantity"])
            ).eq("id", product["id"]).execute()
        except Exception as e:
            logger.error(f"Stock update failed for product {product['id']}: {e}")
            warnings.append("Purchase approved but the product stock could not be updated")
            result["warnings"] = warnings
            return result

        try:
            order = client.table("purchase_orders").insert({
                "purchase_request_id": request_id_str,
                "seller_id": product["seller_id"],
                "product_id": product["id"],
                "product_name": product["product_name"],
                "quantity": request["quantity"],
                "purchase_price": total_price - commission,
                "commission": commission,
                "total_amount": total_price,
                "status": PurchaseOrderStatus.APPROVED.value,
            }).execute()
            order_id = order.data[0]["id"] if order.data else None
        except Exception as e:
            logger.error(f"Purchase order insert failed for request {request_id_str}: {e}")
            warnings.append("Purchase approved but the purchase order could not be recorded")
            order_id = None

        result["purchaseOrderId"] = order_id

        try:
            report = ReportService.create_report(request, product, order_id, commission)
            result["reportNumber"] = report.get("report_number")
            result["reportId"] = report.get("id")
        except Exception as e:
            logger.error(f"Report creation failed for request {request_id_str}: {e}")
            warnings.append("Purchase approved but the sales approval report could not be issued")

        if warnings:
            result["warnings"] = warnings
        return result

    @staticmethod
    def delete_request(request_id: str | UUID) -> None:
        """
        Raises:
            PurchaseRequestNotFoundError: No such request
        """
        request_id_str = str(request_id)
        if not SupabaseClient.fetch_purchase_request(request_id_str):
            raise PurchaseRequestNotFoundError(request_id_str)

        client = SupabaseClient.get_client()
        try:
            client.table("purchase_requests").delete().eq("id", request_id_str).execute()
        except Exception as e:
            logger.error(f"Failed to delete purchase request {request_id_str}: {e}")
            raise DatabaseError("delete purchase request", str(e))

        logger.info(f"Deleted purchase request {request_id_str}")
