# =============================================================================
# core/services/point_charge_service.py - Point Charge Requests
# =============================================================================
# Members buy points by bank transfer:
#   1. The member files a charge request (status pending)
#   2. The admin confirms the deposit and approves or rejects it
#   3. approve_point_charge_request credits the balance atomically
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import (
    DatabaseError,
    InvalidStateError,
    PointChargeRequestNotFoundError,
    RpcError,
)
from core.models import ChargeRequestAction, PointChargeRequestStatus
from core.services.points_service import parse_positive_amount, won_to_points
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

TABLE = "point_charge_requests"

ADMIN_LIST_COLUMNS = (
    "*, "
    "user:profiles!point_charge_requests_user_id_fkey(company_name, email, phone_number), "
    "admin:profiles!point_charge_requests_admin_user_id_fkey(company_name, email)"
)

REVIEW_FUNCTIONS = {
    ChargeRequestAction.APPROVE: "approve_point_charge_request",
    ChargeRequestAction.REJECT: "reject_point_charge_request",
}


class PointChargeService:
    """Create, list and review point charge requests."""

    @staticmethod
    def create_request(
        user_id: str | UUID,
        amount: Any,
        description: str | None = None,
    ) -> dict[str, Any]:
        """
        File a pending charge request for the caller.

        Returns:
            Dict with requestId, amount, points and status

        Raises:
            ValidationFailedError: Amount is not a positive integer
            DatabaseError: Insert failed
        """
        charge_amount = parse_positive_amount(amount)
        points = won_to_points(charge_amount)
        client = SupabaseClient.get_client()

        data = {
            "user_id": str(user_id),
            "requested_amount": charge_amount,
            "requested_points": points,
            "description": description or f"Point charge request: {charge_amount:,} KRW = {points:,} P",
            "status": PointChargeRequestStatus.PENDING.value,
        }

        try:
            response = client.table(TABLE).insert(data).execute()
        except Exception as e:
            logger.error(f"Failed to create point charge request for {user_id}: {e}")
            raise DatabaseError("create point charge request", str(e))

        if not response.data:
            raise DatabaseError("create point charge request", "insert returned no data")

        created = response.data[0]
        logger.info(f"Point charge request {created['id']} filed by {user_id}: {charge_amount} KRW")

        return {
            "requestId": created["id"],
            "amount": charge_amount,
            "points": points,
            "status": created.get("status", PointChargeRequestStatus.PENDING.value),
        }

    @staticmethod
    def list_for_user(user_id: str | UUID) -> list[dict[str, Any]]:
        """Caller's charge requests, newest first."""
        client = SupabaseClient.get_client()
        response = (
            client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    @staticmethod
    def list_all(status: str | None = None) -> list[dict[str, Any]]:
        """
        All charge requests with requester and reviewing admin, newest first.

        Args:
            status: Filter by status; None or "all" returns everything
        """
        client = SupabaseClient.get_client()
        query = client.table(TABLE).select(ADMIN_LIST_COLUMNS).order("created_at", desc=True)

        if status and status != "all":
            query = query.eq("status", status)

        return query.execute().data or []

    @staticmethod
    def review(
        request_id: str | UUID,
        action: ChargeRequestAction,
        admin_user_id: str | UUID,
        admin_notes: str | None = None,
    ) -> Any:
        """
        Approve or reject a pending charge request.

        Returns:
            The stored procedure's result object

        Raises:
            PointChargeRequestNotFoundError: Request doesn't exist
            InvalidStateError: Request was already processed
            RpcError: The procedure failed or reported failure
        """
        charge_request = SupabaseClient.fetch_point_charge_request(request_id)
        if not charge_request:
            raise PointChargeRequestNotFoundError(str(request_id))

        current = charge_request.get("status")
        if current != PointChargeRequestStatus.PENDING.value:
            raise InvalidStateError(
                f"Request has already been processed (status: {current})",
                {"status": current},
            )

        action = ChargeRequestAction(action)
        function = REVIEW_FUNCTIONS[action]

        result = SupabaseClient.call_rpc(function, {
            "p_request_id": str(request_id),
            "p_admin_user_id": str(admin_user_id),
            "p_admin_notes": admin_notes or None,
        })

        if not result or not result.get("success"):
            error = (result or {}).get("error") or f"Failed to {action.value} charge request"
            logger.error(f"{function} for {request_id} failed: {error}")
            raise RpcError(function, error)

        logger.info(
            f"Point charge request {request_id} {action.value}d by {admin_user_id} "
            f"(user={charge_request.get('user_id')}, points={charge_request.get('requested_points')})"
        )
        return result
