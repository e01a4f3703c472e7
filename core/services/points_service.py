# =============================================================================
# core/services/points_service.py - Points Balance Operations
# =============================================================================
# Balance reads, admin charges and commission deductions.
#
# Balance mutation happens only inside the stored procedures
# (charge_points, deduct_points_for_buyer_info), which are atomic and
# reject double deductions. This service validates input, checks who may
# act, and shapes the procedure results.
# =============================================================================

import logging
import math
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    InsufficientPointsError,
    PermissionDeniedError,
    ProfileNotFoundError,
    ReportNotFoundError,
    RpcError,
    ValidationFailedError,
)
from lib.supabase_client import SupabaseClient, is_not_found

logger = logging.getLogger(__name__)

CHARGE_FUNCTION = "charge_points"
DEDUCT_FUNCTION = "deduct_points_for_buyer_info"


def parse_positive_amount(value: Any, field: str = "amount") -> int:
    """
    Read a whole-won amount from a request value.

    Accepts ints and numeric strings ("5000", "5000.0"); fractions are
    truncated.

    Raises:
        ValidationFailedError: If the value is missing, non-numeric or <= 0
    """
    if value is None or isinstance(value, bool):
        raise ValidationFailedError(f"{field} is required", {"field": field})
    try:
        number = float(str(value).replace(",", "").strip())
    except ValueError:
        raise ValidationFailedError(f"{field} must be a positive integer", {"field": field})
    if not math.isfinite(number) or int(number) <= 0:
        raise ValidationFailedError(f"{field} must be a positive integer", {"field": field})
    return int(number)


def won_to_points(amount: int) -> int:
    return amount * settings.POINTS_PER_WON


class PointsService:
    """Points balance and ledger-mutating operations."""

    @staticmethod
    def get_balance(user_id: str | UUID) -> int:
        """
        Current balance of a user.

        A missing points row is created with balance 0. Failure to create it
        is logged and the balance is still reported as 0.
        """
        client = SupabaseClient.get_client()
        user_id_str = str(user_id)

        try:
            response = (
                client.table("points")
                .select("*")
                .eq("user_id", user_id_str)
                .single()
                .execute()
            )
            record = response.data
        except Exception as e:
            if not is_not_found(e):
                logger.error(f"Failed to fetch points for {user_id_str}: {e}")
                raise
            record = None

        if record:
            return int(record.get("balance") or 0)

        try:
            client.table("points").insert({"user_id": user_id_str, "balance": 0}).execute()
            logger.info(f"Created empty points record for user {user_id_str}")
        except Exception as e:
            logger.warning(f"Could not create points record for {user_id_str}: {e}")

        return 0

    @staticmethod
    def charge(
        user_id: str | UUID,
        amount: Any,
        admin_user_id: str | UUID,
        description: str | None = None,
    ) -> dict[str, Any]:
        """
        Credit points to a member (admin operation).

        Args:
            user_id: Member to credit
            amount: Amount in won; converted at POINTS_PER_WON
            admin_user_id: Admin performing the charge
            description: Ledger description (a default is generated)

        Returns:
            Charge summary with balances before and after

        Raises:
            ValidationFailedError: Amount is not a positive integer
            ProfileNotFoundError: Target user has no profile
            RpcError: The procedure failed or reported failure
        """
        charge_amount = parse_positive_amount(amount)
        points = won_to_points(charge_amount)

        target = SupabaseClient.fetch_profile(user_id, "id, company_name, email")
        if not target:
            raise ProfileNotFoundError(str(user_id))

        result = SupabaseClient.call_rpc(CHARGE_FUNCTION, {
            "p_user_id": str(user_id),
            "p_amount": points,
            "p_admin_user_id": str(admin_user_id),
            "p_description": description or f"Admin point charge ({charge_amount:,} KRW = {points:,} P)",
        })

        if not result or not result.get("success"):
            error = (result or {}).get("error") or "Point charge failed"
            logger.error(f"Point charge for {user_id} failed: {error}")
            raise RpcError(CHARGE_FUNCTION, error)

        logger.info(
            f"Charged {points} points to {user_id} ({target.get('company_name')}): "
            f"{result.get('balance_before')} -> {result.get('balance_after')}"
        )

        return {
            "transactionId": result.get("transaction_id"),
            "userId": str(user_id),
            "companyName": target.get("company_name"),
            "amount": charge_amount,
            "points": points,
            "balanceBefore": result.get("balance_before"),
            "balanceAfter": result.get("balance_after"),
        }

    @staticmethod
    def deduct_for_buyer_info(
        report_id: str | UUID,
        caller_id: str | UUID,
        caller_is_admin: bool = False,
    ) -> dict[str, Any]:
        """
        Pay a report's commission in points to reveal the buyer.

        The commission (rounded to whole points) is deducted from the
        report's seller. Repeated calls for the same report succeed without
        deducting again.

        Returns:
            Dict with "alreadyDeducted", "message" and "data"

        Raises:
            ReportNotFoundError: Report doesn't exist
            PermissionDeniedError: Caller is neither the seller nor an admin
            ProfileNotFoundError: Seller profile is missing
            InsufficientPointsError: Balance doesn't cover the commission
            RpcError: Any other procedure failure
        """
        report = SupabaseClient.fetch_report(
            report_id,
            "id, seller_id, total_amount, commission, points_deducted, buyer_info_revealed",
        )
        if not report:
            raise ReportNotFoundError(str(report_id))

        seller_id = str(report["seller_id"])
        if not caller_is_admin and seller_id != str(caller_id):
            raise PermissionDeniedError("Only the report's seller can pay for buyer information")

        already = int(report.get("points_deducted") or 0)
        if already > 0:
            return {
                "alreadyDeducted": True,
                "message": "Points were already deducted for this report",
                "data": {"pointsDeducted": already, "balanceAfter": None},
            }

        seller = SupabaseClient.fetch_profile(seller_id, "id, company_name, email")
        if not seller:
            raise ProfileNotFoundError(seller_id)

        commission = float(report.get("commission") or 0)
        points = math.floor(commission + 0.5)

        result = SupabaseClient.call_rpc(DEDUCT_FUNCTION, {
            "p_user_id": seller_id,
            "p_amount": points,
            "p_sales_approval_report_id": str(report_id),
        })

        if not result or not result.get("success"):
            code = (result or {}).get("code")
            if code == "INSUFFICIENT_POINTS":
                raise InsufficientPointsError(
                    int(result.get("balance") or 0),
                    int(result.get("required") or points),
                )
            if code == "ALREADY_DEDUCTED":
                return {
                    "alreadyDeducted": True,
                    "message": result.get("error") or "Points were already deducted for this report",
                    "data": {"pointsDeducted": points},
                }
            error = (result or {}).get("error") or "Point deduction failed"
            logger.error(f"Point deduction for report {report_id} failed: {error}")
            raise RpcError(DEDUCT_FUNCTION, error)

        logger.info(
            f"Deducted {points} points from {seller_id} for report {report_id}: "
            f"{result.get('balance_before')} -> {result.get('balance_after')}"
        )

        return {
            "alreadyDeducted": False,
            "message": "Points deducted",
            "data": {
                "transactionId": result.get("transaction_id"),
                "salesApprovalReportId": str(report_id),
                "sellerId": seller_id,
                "companyName": seller.get("company_name"),
                "commissionAmount": commission,
                "pointsDeducted": points,
                "balanceBefore": result.get("balance_before"),
                "balanceAfter": result.get("balance_after"),
            },
        }
