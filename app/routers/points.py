# =============================================================================
# app/routers/points.py - Points Balance Endpoints
# =============================================================================
# Balance lookups, admin charges and commission deductions that reveal a
# buyer's identity on a sales approval report.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import Field

from app.auth import is_admin_user
from app.dependencies import AdminUser, CurrentUser
from app.exceptions import PermissionDeniedError
from app.responses import success_response
from core.models import RequestModel
from core.services.points_service import PointsService

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================

class ChargePointsRequest(RequestModel):
    """Admin charge of a member's points."""
    user_id: UUID
    amount: int | float | str = Field(..., description="Amount in won, positive integer")
    description: str | None = None


class DeductBuyerInfoRequest(RequestModel):
    sales_approval_report_id: UUID


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/balance")
async def get_balance(
    user: CurrentUser,
    user_id: Annotated[UUID | None, Query(description="Member to query (admin only)")] = None,
):
    """
    Get a points balance.

    Members read their own balance; admins may pass user_id to read anyone's.
    A member without a points record gets one with balance 0.
    """
    target = user_id or user.id
    if target != user.id and not is_admin_user(user):
        raise PermissionDeniedError("You can only view your own points")

    balance = PointsService.get_balance(target)
    return success_response(userId=str(target), balance=balance, points=balance)


@router.post("/charge")
async def charge_points(request: ChargePointsRequest, admin: AdminUser):
    """Credit points to a member after a confirmed deposit."""
    data = PointsService.charge(
        request.user_id,
        request.amount,
        admin_user_id=admin.id,
        description=request.description,
    )
    return success_response(data, f"{data['points']:,} points charged")


@router.post("/deduct-buyer-info")
async def deduct_for_buyer_info(request: DeductBuyerInfoRequest, user: CurrentUser):
    """
    Pay a report's commission in points to reveal the buyer's details.

    Calling again for the same report succeeds with alreadyDeducted: true.
    """
    result = PointsService.deduct_for_buyer_info(
        request.sales_approval_report_id,
        caller_id=user.id,
        caller_is_admin=is_admin_user(user),
    )
    return success_response(
        result["data"],
        result["message"],
        alreadyDeducted=result["alreadyDeducted"],
    )
