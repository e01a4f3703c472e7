# =============================================================================
# app/routers/point_charge_requests.py - Point Charge Request Endpoints
# =============================================================================
# Members ask for points after depositing money; an admin approves or
# rejects each request.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from app.dependencies import AdminUser, CurrentUser
from app.responses import success_response
from core.models import ChargeRequestAction, RequestModel
from core.services.point_charge_service import PointChargeService

router = APIRouter()


class CreateChargeRequest(RequestModel):
    amount: int | float | str
    description: str | None = None


class ReviewChargeRequest(RequestModel):
    action: ChargeRequestAction
    admin_notes: str | None = None


@router.post("")
async def create_charge_request(request: CreateChargeRequest, user: CurrentUser):
    """Submit a point charge request for the caller."""
    data = PointChargeService.create_request(user.id, request.amount, request.description)
    return success_response(data, "Point charge request submitted")


@router.get("/mine")
async def list_my_charge_requests(user: CurrentUser):
    """The caller's charge requests, newest first."""
    return success_response(PointChargeService.list_for_user(user.id))


@router.get("")
async def list_charge_requests(
    admin: AdminUser,
    status: Annotated[str | None, Query(description="pending, approved, rejected or all")] = None,
):
    """All charge requests with requester and processing admin."""
    requests = PointChargeService.list_all(status)
    return success_response(requests, count=len(requests))


@router.post("/{request_id}/review")
async def review_charge_request(
    request_id: Annotated[UUID, Path(description="Charge request UUID")],
    request: ReviewChargeRequest,
    admin: AdminUser,
):
    """Approve (credits the points) or reject a pending charge request."""
    result = PointChargeService.review(request_id, request.action, admin.id, request.admin_notes)
    verb = "approved" if request.action is ChargeRequestAction.APPROVE else "rejected"
    return success_response(result, f"Point charge request {verb}")
