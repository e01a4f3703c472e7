# =============================================================================
# app/routers/purchase_requests.py - Purchase Request Endpoints
# =============================================================================
# Buyers request products, sellers watch requests for their products and
# the admin approves or rejects them.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query
from pydantic import Field

from app.auth import is_admin_user
from app.dependencies import AdminUser, CurrentUser
from app.exceptions import PermissionDeniedError
from app.responses import success_response
from core.models import PurchaseRequestStatus, RequestModel
from core.services.notification_service import NotificationService
from core.services.purchase_request_service import PurchaseRequestService, commission_for
from lib.supabase_client import SupabaseClient

router = APIRouter()


class CreatePurchaseRequest(RequestModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)
    shipping_address: str | None = None


class ReviewPurchaseRequest(RequestModel):
    status: PurchaseRequestStatus
    notes: str | None = None


@router.post("")
async def create_purchase_request(request: CreatePurchaseRequest, user: CurrentUser):
    """Request to buy a quantity of an active product."""
    purchase_request, product = PurchaseRequestService.create_request(
        user.id,
        request.product_id,
        request.quantity,
        request.shipping_address,
    )

    buyer = SupabaseClient.fetch_profile(user.id, "company_name") or {}
    seller = SupabaseClient.fetch_profile(product["seller_id"], "company_name") or {}
    NotificationService.purchase_request(
        purchase_request_id=purchase_request["id"],
        buyer_id=str(user.id),
        product_name=product["product_name"],
        quantity=request.quantity,
        total_price=purchase_request["total_price"],
        commission=commission_for(purchase_request["total_price"]),
        buyer_company_name=buyer.get("company_name"),
        seller_id=product["seller_id"],
        seller_company_name=seller.get("company_name"),
    )
    return success_response(purchase_request, "Purchase request submitted")


@router.get("/mine")
async def list_my_purchase_requests(user: CurrentUser):
    """The caller's purchase requests as a buyer."""
    return success_response(PurchaseRequestService.list_for_buyer(user.id))


@router.get("/incoming")
async def list_incoming_purchase_requests(user: CurrentUser):
    """Requests for the caller's products (sellers only)."""
    if is_admin_user(user):
        raise PermissionDeniedError("Admins use the purchase request admin list instead")
    return success_response(PurchaseRequestService.list_for_seller(user.id))


@router.get("")
async def list_purchase_requests(
    admin: AdminUser,
    status: Annotated[str | None, Query(description="Filter by status or all")] = None,
):
    """All purchase requests with buyer, product and seller (admin)."""
    return success_response(PurchaseRequestService.list_all(status))


@router.post("/{request_id}/cancel")
async def cancel_purchase_request(
    request_id: Annotated[UUID, Path(description="Purchase request UUID")],
    user: CurrentUser,
):
    """Cancel one of the caller's pending or confirmed requests."""
    updated = PurchaseRequestService.cancel_request(request_id, user.id)
    return success_response(updated, "Purchase request cancelled")


@router.post("/{request_id}/review")
async def review_purchase_request(
    request_id: Annotated[UUID, Path(description="Purchase request UUID")],
    request: ReviewPurchaseRequest,
    admin: AdminUser,
):
    """
    Set a request's status.

    Approval reduces the product's stock, records the purchase order and
    issues a sales approval report to the seller.
    """
    result = PurchaseRequestService.review(request_id, request.status, admin.id, request.notes)
    message = result.pop("message")
    return success_response(message=message, **result)


@router.delete("/{request_id}")
async def delete_purchase_request(
    request_id: Annotated[UUID, Path(description="Purchase request UUID")],
    admin: AdminUser,
):
    """Delete a purchase request (admin)."""
    PurchaseRequestService.delete_request(request_id)
    return success_response(message="Purchase request deleted")
