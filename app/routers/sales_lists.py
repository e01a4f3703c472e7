# =============================================================================
# app/routers/sales_lists.py - Sales List Endpoints
# =============================================================================
# Sellers submit lists of surplus items; each list is approved on submission
# and its items become products.
# =============================================================================

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Path, Query
from pydantic import Field

from app.auth import is_admin_user
from app.dependencies import AdminUser, CurrentUser
from app.responses import success_response
from core.models import RequestModel, SalesListStatus
from core.services.notification_service import NotificationService
from core.services.sales_list_service import SalesListService

router = APIRouter()


class CreateSalesListRequest(RequestModel):
    # Items are validated one by one so invalid rows can be skipped
    items: list[dict[str, Any]] = Field(..., min_length=1)


class ReviewSalesListRequest(RequestModel):
    status: SalesListStatus
    notes: str | None = None


class BatchDeleteSalesListsRequest(RequestModel):
    list_ids: list[UUID] = Field(..., min_length=1)


@router.post("")
async def create_sales_list(request: CreateSalesListRequest, user: CurrentUser):
    """
    Submit a sales list.

    Items need a product name, a positive selling price and a positive
    quantity; others are skipped. The list is approved immediately and
    products are registered for every valid item.
    """
    result = SalesListService.create_sales_list(user.id, request.items)

    NotificationService.sales_list(
        seller_id=str(user.id),
        sales_list_id=result["salesListId"],
        item_count=result["itemCount"],
    )

    data = {key: result[key] for key in ("salesListId", "insertedCount", "itemCount")}
    extra = {key: result[key] for key in ("warning", "errors", "skipped") if key in result}
    return success_response(data, "Sales list submitted", **extra)


@router.get("")
async def list_sales_lists(
    user: CurrentUser,
    status: Annotated[str | None, Query(description="Filter by status (admin)")] = None,
):
    """Admins see every list; members see their own."""
    is_admin = is_admin_user(user)
    lists = SalesListService.list_sales_lists(user.id, is_admin, status if is_admin else None)
    return success_response(lists, count=len(lists))


@router.post("/batch-delete")
async def batch_delete_sales_lists(request: BatchDeleteSalesListsRequest, admin: AdminUser):
    """Delete several finished lists; lists that can't be deleted are skipped."""
    result = SalesListService.batch_delete([str(i) for i in request.list_ids])
    message = result.pop("message")
    return success_response(message=message, **result)


@router.get("/{list_id}")
async def get_sales_list(
    list_id: Annotated[UUID, Path(description="Sales list UUID")],
    user: CurrentUser,
):
    """A sales list with its products (owner or admin)."""
    return success_response(SalesListService.get_sales_list(list_id, user.id, is_admin_user(user)))


@router.post("/{list_id}/review")
async def review_sales_list(
    list_id: Annotated[UUID, Path(description="Sales list UUID")],
    request: ReviewSalesListRequest,
    admin: AdminUser,
):
    """Set a list's review status; approval registers its products."""
    result = SalesListService.review(list_id, request.status, admin.id, request.notes)
    message = result.pop("message")
    return success_response(message=message, **result)


@router.delete("/{list_id}")
async def delete_sales_list(
    list_id: Annotated[UUID, Path(description="Sales list UUID")],
    user: CurrentUser,
):
    """
    Delete a sales list.

    Admins may delete rejected lists and approved lists whose products are
    all sold. Owners may withdraw their own list while none of its unsold
    products has an open purchase request.
    """
    if is_admin_user(user):
        result = SalesListService.delete_as_admin(list_id)
    else:
        result = SalesListService.delete_as_owner(list_id, user.id)
    message = result.pop("message")
    return success_response(message=message, **result)
