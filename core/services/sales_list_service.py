# =============================================================================
# core/services/sales_list_service.py - Sales Lists
# =============================================================================
# A sales list is a seller's batch of surplus items. Lists are approved on
# submission and each valid item becomes an active product. Deletion rules
# differ for admins (clean-up of finished lists) and owners (withdrawing
# their own listings).
#
# Products are inserted one by one and lists are deleted without a
# transaction: partial failures are reported as warnings, never rolled back.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from pydantic import ValidationError

from app.exceptions import (
    DatabaseError,
    InvalidStateError,
    PermissionDeniedError,
    SalesListNotFoundError,
    ValidationFailedError,
)
from core.models import ProductStatus, PurchaseRequestStatus, SalesListItem, SalesListStatus
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

# Requests in these states block an owner from withdrawing a product
OWNER_BLOCKING_REQUEST_STATUSES = [
    PurchaseRequestStatus.PENDING.value,
    PurchaseRequestStatus.CONFIRMED.value,
    PurchaseRequestStatus.APPROVED.value,
]


# =============================================================================
# Helpers
# =============================================================================

def validate_items(raw_items: list[dict[str, Any]]) -> tuple[list[SalesListItem], list[dict[str, Any]]]:
    """
    Split raw items into valid SalesListItems and skipped entries.

    An item is valid with a product name, a positive selling price and a
    positive quantity.

    Returns:
        Tuple of (valid items, skipped entries with index and reason)
    """
    valid: list[SalesListItem] = []
    skipped: list[dict[str, Any]] = []

    for index, raw in enumerate(raw_items or []):
        try:
            valid.append(SalesListItem.model_validate(raw))
        except ValidationError as e:
            name = raw.get("product_name") or raw.get("productName") if isinstance(raw, dict) else None
            logger.warning(f"Skipping invalid sales list item #{index} ({name}): {e.error_count()} errors")
            skipped.append({"index": index, "product_name": name, "error": "Missing or invalid required fields"})

    return valid, skipped


def build_product_rows(
    sales_list_id: str,
    seller_id: str,
    items: list[SalesListItem],
) -> list[dict[str, Any]]:
    """Product rows for the items of a sales list."""
    return [
        {
            **item.model_dump(),
            "sales_list_id": sales_list_id,
            "seller_id": seller_id,
            "status": ProductStatus.ACTIVE.value,
        }
        for item in items
    ]


def insert_products(rows: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """
    Insert products one at a time so one bad row doesn't block the rest.

    Returns:
        Tuple of (inserted rows, per-item errors)
    """
    client = SupabaseClient.get_client()
    inserted: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []

    for position, row in enumerate(rows, start=1):
        try:
            response = client.table("products").insert(row).execute()
            if response.data:
                inserted.append(response.data[0])
        except Exception as e:
            logger.error(f"[{position}/{len(rows)}] Product insert failed for {row['product_name']}: {e}")
            errors.append({"product_name": row["product_name"], "error": str(e)})

    return inserted, errors


def _products_of_list(list_id: str) -> list[dict[str, Any]]:
    client = SupabaseClient.get_client()
    response = client.table("products").select("id, status").eq("sales_list_id", list_id).execute()
    return response.data or []


def _delete_rows(table: str, column: str, values: list[str]) -> None:
    if not values:
        return
    client = SupabaseClient.get_client()
    client.table(table).delete().in_(column, values).execute()


# =============================================================================
# Service
# =============================================================================

class SalesListService:
    """Sales list submission, review and deletion."""

    @staticmethod
    def create_sales_list(seller_id: str | UUID, raw_items: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Submit a sales list; it is approved immediately and products are created.

        Returns:
            Dict with salesListId, insertedCount, errors, skipped and an
            optional warning

        Raises:
            ValidationFailedError: No valid item in the list
            DatabaseError: The list itself could not be inserted
        """
        items, skipped = validate_items(raw_items)
        if not items:
            raise ValidationFailedError(
                "At least one item with product name, selling price and quantity is required",
                {"skipped": skipped},
            )

        seller_id_str = str(seller_id)
        client = SupabaseClient.get_client()

        try:
            response = client.table("sales_lists").insert({
                "seller_id": seller_id_str,
                "items": [item.model_dump(mode="json") for item in items],
                "status": SalesListStatus.APPROVED.value,
                "reviewed_at": utc_now_iso(),
            }).execute()
        except Exception as e:
            logger.error(f"Failed to create sales list for {seller_id_str}: {e}")
            raise DatabaseError("create sales list", str(e))

        if not response.data:
            raise DatabaseError("create sales list", "insert returned no data")

        sales_list = response.data[0]
        inserted, errors = insert_products(build_product_rows(sales_list["id"], seller_id_str, items))

        logger.info(
            f"Sales list {sales_list['id']} created by {seller_id_str}: "
            f"{len(inserted)} products, {len(errors)} failed, {len(skipped)} skipped"
        )

        result: dict[str, Any] = {
            "salesListId": sales_list["id"],
            "insertedCount": len(inserted),
            "itemCount": len(items),
        }
        if errors:
            result["errors"] = errors
            result["warning"] = f"{len(errors)} products could not be registered"
        if skipped:
            result["skipped"] = skipped
        return result

    @staticmethod
    def list_sales_lists(
        user_id: str | UUID,
        is_admin: bool,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """Admins see every list (optionally by status); members see their own."""
        client = SupabaseClient.get_client()
        query = client.table("sales_lists").select(
            "*, seller:profiles!sales_lists_seller_id_fkey(id, company_name, email)"
        )
        if not is_admin:
            query = query.eq("seller_id", str(user_id))
        if status and status != "all":
            query = query.eq("status", status)
        return query.order("submitted_at", desc=True).execute().data or []

    @staticmethod
    def get_sales_list(list_id: str | UUID, user_id: str | UUID, is_admin: bool) -> dict[str, Any]:
        """
        A sales list with its products.

        Raises:
            SalesListNotFoundError: List doesn't exist
            PermissionDeniedError: Caller is neither the owner nor an admin
        """
        sales_list = SupabaseClient.fetch_sales_list(list_id)
        if not sales_list:
            raise SalesListNotFoundError(str(list_id))
        if not is_admin and str(sales_list["seller_id"]) != str(user_id):
            raise PermissionDeniedError("You can only view your own sales lists")

        client = SupabaseClient.get_client()
        products = (
            client.table("products")
            .select("*")
            .eq("sales_list_id", str(list_id))
            .order("created_at")
            .execute()
        )
        sales_list["products"] = products.data or []
        return sales_list

    @staticmethod
    def review(
        list_id: str | UUID,
        status: SalesListStatus,
        admin_user_id: str | UUID,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """
        Set a list's review status; approval creates its products.

        Products are not duplicated when the list already has some.

        Returns:
            Dict with message, insertedCount and optional warning/errors

        Raises:
            SalesListNotFoundError: List doesn't exist
        """
        status = SalesListStatus(status)
        list_id_str = str(list_id)

        sales_list = SupabaseClient.fetch_sales_list(list_id_str)
        if not sales_list:
            raise SalesListNotFoundError(list_id_str)

        update: dict[str, Any] = {
            "status": status.value,
            "reviewed_at": utc_now_iso(),
            "reviewed_by": str(admin_user_id),
        }
        if notes is not None:
            update["notes"] = notes

        client = SupabaseClient.get_client()
        try:
            client.table("sales_lists").update(update).eq("id", list_id_str).execute()
        except Exception as e:
            logger.error(f"Failed to update sales list {list_id_str}: {e}")
            raise DatabaseError("update sales list status", str(e))

        logger.info(f"Sales list {list_id_str} set to {status.value} by {admin_user_id}")

        if status is not SalesListStatus.APPROVED:
            return {"message": f"Sales list {status.value}", "insertedCount": 0}

        items, _ = validate_items(sales_list.get("items") or [])
        if not items:
            return {
                "message": "Sales list approved",
                "insertedCount": 0,
                "warning": "Status updated but the list has no valid items to register",
            }

        if _products_of_list(list_id_str):
            return {"message": "Sales list approved (products already registered)", "insertedCount": 0}

        inserted, errors = insert_products(
            build_product_rows(list_id_str, str(sales_list["seller_id"]), items)
        )
        result: dict[str, Any] = {"message": "Sales list approved", "insertedCount": len(inserted)}
        if errors:
            result["errors"] = errors
            result["warning"] = f"{len(errors)} products could not be registered"
        return result

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    @staticmethod
    def check_admin_deletable(sales_list: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Apply the admin deletion policy to one list.

        - rejected: deletable
        - approved without products: deletable
        - approved with any unsold product: blocked
        - approved with an approved purchase request on its products: blocked
        - pending: blocked

        Returns:
            The list's products (to delete with it)

        Raises:
            InvalidStateError: The list can't be deleted
        """
        status = sales_list.get("status")

        if status == SalesListStatus.REJECTED.value:
            return []

        if status != SalesListStatus.APPROVED.value:
            raise InvalidStateError("Pending sales lists can't be deleted; approve or reject first")

        products = _products_of_list(str(sales_list["id"]))
        if not products:
            return []

        unsold = [p for p in products if p.get("status") != ProductStatus.SOLD.value]
        if unsold:
            raise InvalidStateError(
                f"{len(unsold)} products are not sold yet; the list can be deleted once all are sold",
                {"unsoldCount": len(unsold)},
            )

        client = SupabaseClient.get_client()
        requests = (
            client.table("purchase_requests")
            .select("id, status")
            .in_("product_id", [p["id"] for p in products])
            .execute()
        ).data or []
        approved = [r for r in requests if r.get("status") == PurchaseRequestStatus.APPROVED.value]
        if approved:
            raise InvalidStateError(
                f"{len(approved)} approved purchase requests reference this list",
                {"approvedRequestCount": len(approved)},
            )

        return products

    @staticmethod
    def delete_as_admin(list_id: str | UUID) -> dict[str, Any]:
        """
        Delete a finished sales list and its products.

        Raises:
            SalesListNotFoundError: List doesn't exist
            InvalidStateError: The admin policy blocks deletion
        """
        list_id_str = str(list_id)
        sales_list = SupabaseClient.fetch_sales_list(list_id_str)
        if not sales_list:
            raise SalesListNotFoundError(list_id_str)

        products = SalesListService.check_admin_deletable(sales_list)

        try:
            _delete_rows("products", "id", [p["id"] for p in products])
            _delete_rows("sales_lists", "id", [list_id_str])
        except Exception as e:
            logger.error(f"Failed to delete sales list {list_id_str}: {e}")
            raise DatabaseError("delete sales list", str(e))

        logger.info(f"Admin deleted sales list {list_id_str} with {len(products)} products")
        return {"message": "Sales list deleted", "deletedProductsCount": len(products)}

    @staticmethod
    def delete_as_owner(list_id: str | UUID, user_id: str | UUID) -> dict[str, Any]:
        """
        Withdraw one of the caller's sales lists.

        Unsold products are deleted; sold products are kept and detached
        from the list.

        Raises:
            SalesListNotFoundError: List doesn't exist
            PermissionDeniedError: Caller doesn't own the list
            InvalidStateError: Unsold products have open purchase requests
        """
        list_id_str = str(list_id)
        sales_list = SupabaseClient.fetch_sales_list(list_id_str)
        if not sales_list:
            raise SalesListNotFoundError(list_id_str)
        if str(sales_list["seller_id"]) != str(user_id):
            raise PermissionDeniedError("You don't have permission to delete this sales list")

        client = SupabaseClient.get_client()
        deleted_products = 0

        if sales_list.get("status") == SalesListStatus.APPROVED.value:
            products = _products_of_list(list_id_str)
            sold_ids = [p["id"] for p in products if p.get("status") == ProductStatus.SOLD.value]
            active_ids = [p["id"] for p in products if p.get("status") != ProductStatus.SOLD.value]

            if active_ids:
                open_requests = (
                    client.table("purchase_requests")
                    .select("id, status, product_id")
                    .in_("product_id", active_ids)
                    .in_("status", OWNER_BLOCKING_REQUEST_STATUSES)
                    .execute()
                ).data or []
                if open_requests:
                    raise InvalidStateError(
                        f"{len(open_requests)} purchase requests are in progress; "
                        "cancel or complete them before deleting",
                        {"openRequestCount": len(open_requests)},
                    )

                try:
                    _delete_rows("products", "id", active_ids)
                except Exception as e:
                    logger.error(f"Failed to delete products of list {list_id_str}: {e}")
                    raise DatabaseError("delete products", str(e))
                deleted_products = len(active_ids)

            if sold_ids:
                try:
                    client.table("products").update({"sales_list_id": None}).in_("id", sold_ids).execute()
                except Exception as e:
                    logger.warning(f"Could not detach sold products of list {list_id_str}: {e}")

        try:
            _delete_rows("sales_lists", "id", [list_id_str])
        except Exception as e:
            logger.error(f"Failed to delete sales list {list_id_str}: {e}")
            raise DatabaseError("delete sales list", str(e))

        logger.info(f"Owner {user_id} deleted sales list {list_id_str} ({deleted_products} products)")
        return {"message": "Sales list deleted", "deletedProductsCount": deleted_products}

    @staticmethod
    def batch_delete(list_ids: list[str]) -> dict[str, Any]:
        """
        Delete many lists under the admin policy.

        Lists that fail the policy are skipped and reported in errors.

        Returns:
            Dict with message, deletedCount, skippedCount,
            deletedProductsCount and errors

        Raises:
            ValidationFailedError: No ids given
            SalesListNotFoundError: None of the ids exist
            InvalidStateError: No list passes the policy
        """
        if not list_ids:
            raise ValidationFailedError("listIds must contain at least one id")

        client = SupabaseClient.get_client()
        lists = (
            client.table("sales_lists").select("id, status").in_("id", [str(i) for i in list_ids]).execute()
        ).data or []
        if not lists:
            raise SalesListNotFoundError()

        deletable: list[str] = []
        skipped: list[str] = []
        errors: list[str] = []
        product_ids: list[str] = []

        for sales_list in lists:
            try:
                products = SalesListService.check_admin_deletable(sales_list)
            except InvalidStateError as e:
                skipped.append(sales_list["id"])
                errors.append(f"Sales list {sales_list['id']}: {e.message}")
                continue
            deletable.append(sales_list["id"])
            product_ids.extend(p["id"] for p in products)

        if not deletable:
            raise InvalidStateError("No sales list can be deleted", {"errors": errors})

        try:
            _delete_rows("products", "id", product_ids)
        except Exception as e:
            logger.warning(f"Batch delete: product deletion failed, deleting lists anyway: {e}")

        try:
            _delete_rows("sales_lists", "id", deletable)
        except Exception as e:
            logger.error(f"Batch delete of sales lists failed: {e}")
            raise DatabaseError("delete sales lists", str(e))

        message = f"{len(deletable)} sales lists deleted"
        if product_ids:
            message += f" ({len(product_ids)} related products deleted)"
        if skipped:
            message += f" ({len(skipped)} skipped)"

        logger.info(f"Batch deleted {len(deletable)} sales lists, skipped {len(skipped)}")
        return {
            "message": message,
            "deletedCount": len(deletable),
            "skippedCount": len(skipped),
            "deletedProductsCount": len(product_ids),
            "errors": errors,
        }
