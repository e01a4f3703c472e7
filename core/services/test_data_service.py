# =============================================================================
# core/services/test_data_service.py - Test Data Reset
# =============================================================================
# Wipes every non-admin member and everything they own, keeping admin
# accounts. Tables are cleared children-first so foreign keys never block a
# delete. Used on staging between test rounds; disabled in production unless
# ALLOW_TEST_DATA_RESET is set.
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import DatabaseError, InvalidStateError, MarketplaceException
from core.models import UserRole
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)


class TestDataResetDisabledError(MarketplaceException):
    """Raised when a reset is attempted where it's not allowed."""

    def __init__(self):
        super().__init__(
            message="Test data reset is disabled in production",
            code="RESET_DISABLED",
            status_code=403,
            suggestion="Set ALLOW_TEST_DATA_RESET=true to enable it",
        )


def _deleted_count(response) -> int:
    if getattr(response, "count", None) is not None:
        return response.count
    return len(response.data or [])


def _ids(rows: list[dict[str, Any]] | None) -> list[str]:
    return [row["id"] for row in rows or []]


class TestDataService:
    """Bulk deletion of non-admin data."""

    # Not a pytest test class
    __test__ = False

    @staticmethod
    def reset() -> dict[str, Any]:
        """
        Delete all non-admin data.

        Returns:
            Dict with per-table deletion counts, total and admin count

        Raises:
            TestDataResetDisabledError: Running in production without opt-in
            InvalidStateError: No admin account exists
            DatabaseError: A delete failed (earlier deletes are not undone)
        """
        if not settings.test_data_reset_allowed:
            raise TestDataResetDisabledError()

        client = SupabaseClient.get_client()

        admin_ids = _ids(
            client.table("profiles").select("id").eq("role", UserRole.ADMIN.value).execute().data
        )
        if not admin_ids:
            raise InvalidStateError("No admin account found; reset aborted")

        member_ids = _ids(
            client.table("profiles").select("id").neq("role", UserRole.ADMIN.value).execute().data
        )

        results: dict[str, int] = {}
        if not member_ids:
            logger.info("Test data reset: nothing to delete")
            return {
                "deletionResults": results,
                "totalDeleted": 0,
                "adminCount": len(admin_ids),
                "timestamp": utc_now_iso(),
            }

        def delete_where(table: str, column: str, values: list[str]) -> int:
            if not values:
                return 0
            response = client.table(table).delete(count="exact").in_(column, values).execute()
            return _deleted_count(response)

        try:
            results["point_charge_requests"] = delete_where("point_charge_requests", "user_id", member_ids)
            results["point_transactions"] = delete_where("point_transactions", "user_id", member_ids)
            results["points"] = delete_where("points", "user_id", member_ids)
            results["sales_approval_reports"] = (
                delete_where("sales_approval_reports", "seller_id", member_ids)
                + delete_where("sales_approval_reports", "buyer_id", member_ids)
            )
            results["resales"] = delete_where("resales", "buyer_id", member_ids)

            request_ids = _ids(
                client.table("purchase_requests").select("id").in_("buyer_id", member_ids).execute().data
            )
            order_ids = _ids(
                client.table("purchase_orders").select("id").in_("seller_id", member_ids).execute().data
            )
            results["payments"] = (
                delete_where("payments", "purchase_request_id", request_ids)
                + delete_where("payments", "purchase_order_id", order_ids)
            )

            results["purchase_orders"] = delete_where("purchase_orders", "seller_id", member_ids)
            results["purchase_requests"] = delete_where("purchase_requests", "buyer_id", member_ids)
            results["products"] = delete_where("products", "seller_id", member_ids)
            results["sales_lists"] = delete_where("sales_lists", "seller_id", member_ids)
            results["inventory_analyses"] = delete_where("inventory_analyses", "user_id", member_ids)
            results["profiles"] = delete_where("profiles", "id", member_ids)

        except Exception as e:
            logger.error(f"Test data reset failed after {results}: {e}")
            raise DatabaseError("reset test data", str(e))

        total = sum(results.values())
        logger.info(f"Test data reset complete: {total} rows deleted ({results})")

        return {
            "deletionResults": results,
            "totalDeleted": total,
            "adminCount": len(admin_ids),
            "timestamp": utc_now_iso(),
        }
