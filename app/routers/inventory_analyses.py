# =============================================================================
# app/routers/inventory_analyses.py - Inventory Analysis Endpoints
# =============================================================================
# Members upload an inventory sheet and a sales history sheet and get back
# the items close to expiry and the items that stopped selling.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, File, Form, Path, UploadFile
from fastapi.responses import Response

from app.auth import is_admin_user
from app.dependencies import CurrentUser
from app.responses import success_response
from core.models import AnalysisPeriod
from core.services.inventory_analysis_service import InventoryAnalysisService

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("")
async def create_analysis(
    user: CurrentUser,
    inventory_file: Annotated[UploadFile, File(alias="inventoryFile", description="Inventory .xlsx/.csv")],
    sales_file: Annotated[UploadFile, File(alias="salesFile", description="Sales history .xlsx/.csv")],
    period: Annotated[AnalysisPeriod, Form()] = AnalysisPeriod.THREE_MONTHS,
):
    """
    Run an inventory analysis and store the result.

    Both files are read from their first sheet. Column headers are matched
    against the usual Korean and English names.
    """
    inventory = (inventory_file.filename or "inventory.xlsx", await inventory_file.read())
    sales = (sales_file.filename or "sales.xlsx", await sales_file.read())

    logger.info(f"Inventory analysis upload from {user.id}: {inventory[0]}, {sales[0]} ({period.value})")

    analysis = InventoryAnalysisService.run_analysis(user.id, inventory, sales, period)
    return success_response(analysis, "Inventory analysis complete")


@router.get("")
async def list_analyses(user: CurrentUser):
    """The caller's past analyses, newest first."""
    return success_response(InventoryAnalysisService.list_analyses(user.id))


@router.get("/{analysis_id}")
async def get_analysis(
    analysis_id: Annotated[UUID, Path(description="Analysis UUID")],
    user: CurrentUser,
):
    """A stored analysis (owner or admin)."""
    return success_response(
        InventoryAnalysisService.get_analysis(analysis_id, user.id, is_admin_user(user))
    )


@router.get("/{analysis_id}/export")
async def export_analysis(
    analysis_id: Annotated[UUID, Path(description="Analysis UUID")],
    user: CurrentUser,
):
    """Download a stored analysis as an Excel workbook."""
    content, filename = InventoryAnalysisService.export_analysis(
        analysis_id, user.id, is_admin_user(user)
    )
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
