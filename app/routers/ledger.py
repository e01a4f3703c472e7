# =============================================================================
# app/routers/ledger.py - Points Ledger Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from app.dependencies import AdminUser, CurrentUser
from app.responses import success_response
from core.services.ledger_service import LedgerService

router = APIRouter()


@router.get("")
async def get_ledger(
    admin: AdminUser,
    user_id: Annotated[UUID | None, Query(alias="userId")] = None,
    start_date: Annotated[str | None, Query(alias="startDate")] = None,
    end_date: Annotated[str | None, Query(alias="endDate")] = None,
):
    """Deposits and point transactions across members (admin)."""
    return success_response(LedgerService.get_ledger(user_id, start_date, end_date))


@router.get("/me")
async def get_my_ledger(
    user: CurrentUser,
    start_date: Annotated[str | None, Query(alias="startDate")] = None,
    end_date: Annotated[str | None, Query(alias="endDate")] = None,
):
    """The caller's deposits and point transactions."""
    return success_response(LedgerService.get_ledger(user.id, start_date, end_date))
