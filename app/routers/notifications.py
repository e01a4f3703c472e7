# =============================================================================
# app/routers/notifications.py - Notification Endpoints
# =============================================================================
# Lets the front end (or another service) trigger admin notification emails
# directly. The API's own flows enqueue the same tasks internally.
# =============================================================================

from typing import Any
from uuid import UUID

from fastapi import APIRouter

from app.dependencies import CurrentUser
from app.responses import success_response
from core.models import RequestModel
from core.services.notification_service import NotificationService

router = APIRouter()


class RegistrationNotification(RequestModel):
    user_id: UUID
    email: str
    company_name: str | None = None
    business_number: str | None = None


class SalesListNotification(RequestModel):
    seller_id: UUID
    sales_list_id: UUID
    item_count: int = 0


class PurchaseRequestNotification(RequestModel):
    purchase_request_id: UUID
    buyer_id: UUID
    product_name: str
    quantity: int
    total_price: float
    commission: float | None = None


class InventoryAnalysisNotification(RequestModel):
    user_id: UUID
    statistics: dict[str, Any]
    period: str | None = None
    expiring_count: int | None = None
    dead_stock_count: int | None = None


def _queued(queued: bool) -> dict[str, Any]:
    if queued:
        return success_response(message="Notification queued", queued=True)
    return success_response(message="Notification could not be queued", queued=False)


@router.post("/registration")
async def notify_registration(request: RegistrationNotification, user: CurrentUser):
    return _queued(NotificationService.registration(
        str(request.user_id), request.email, request.company_name, request.business_number
    ))


@router.post("/sales-list")
async def notify_sales_list(request: SalesListNotification, user: CurrentUser):
    return _queued(NotificationService.sales_list(
        str(request.seller_id), str(request.sales_list_id), request.item_count
    ))


@router.post("/purchase-request")
async def notify_purchase_request(request: PurchaseRequestNotification, user: CurrentUser):
    return _queued(NotificationService.purchase_request(
        str(request.purchase_request_id),
        str(request.buyer_id),
        request.product_name,
        request.quantity,
        request.total_price,
        request.commission,
    ))


@router.post("/inventory-analysis")
async def notify_inventory_analysis(request: InventoryAnalysisNotification, user: CurrentUser):
    return _queued(NotificationService.inventory_analysis(
        str(request.user_id),
        request.statistics,
        request.period,
        request.expiring_count,
        request.dead_stock_count,
    ))
