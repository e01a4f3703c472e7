# =============================================================================
# core/services/inventory_analysis_service.py - Inventory Analyses
# =============================================================================
# Runs the expiring / dead stock analysis on uploaded spreadsheets, stores the
# result and renders stored analyses back to Excel.
# =============================================================================

import logging
from datetime import date
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    DatabaseError,
    FileReadError,
    InventoryAnalysisNotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from core.models import AnalysisPeriod, InventoryAnalysis, InventoryAnalysisResult
from core.services.notification_service import NotificationService
from core.services.storage_service import check_upload
from lib.inventory_analyzer import analyze_inventory
from lib.spreadsheet import SpreadsheetError, build_analysis_workbook, read_inventory_file, read_sales_file
from lib.supabase_client import SupabaseClient, is_not_found

logger = logging.getLogger(__name__)


def _read(reader, content: bytes, filename: str):
    try:
        return reader(content, filename)
    except SpreadsheetError as e:
        raise FileReadError(filename, e.message)


class InventoryAnalysisService:
    """Inventory analysis runs and exports."""

    @staticmethod
    def run_analysis(
        user_id: str | UUID,
        inventory_file: tuple[str, bytes],
        sales_file: tuple[str, bytes],
        period: AnalysisPeriod,
        today: date | None = None,
    ) -> dict[str, Any]:
        """
        Analyze an inventory file against a sales history file and store it.

        Args:
            user_id: Member running the analysis
            inventory_file: (filename, content) of the inventory sheet
            sales_file: (filename, content) of the sales history sheet
            period: Analysis period
            today: Reference date (defaults to the current date)

        Returns:
            The stored inventory_analyses row

        Raises:
            InvalidFileTypeError, FileTooLargeError: Upload validation failed
            FileReadError: A file could not be parsed
            ValidationFailedError: The inventory has no usable rows
            DatabaseError: The analysis could not be stored
        """
        allowed = settings.allowed_spreadsheet_extensions_list
        for filename, content in (inventory_file, sales_file):
            check_upload(filename, content, allowed)

        inventory = _read(read_inventory_file, inventory_file[1], inventory_file[0])
        if not inventory:
            raise ValidationFailedError(
                "No valid rows found in the inventory file",
                {"filename": inventory_file[0]},
            )
        sales = _read(read_sales_file, sales_file[1], sales_file[0])

        result: InventoryAnalysisResult = analyze_inventory(inventory, sales, period, today)
        statistics = result.statistics.model_dump(mode="json")

        client = SupabaseClient.get_client()
        try:
            response = client.table("inventory_analyses").insert({
                "user_id": str(user_id),
                "analysis_period": result.period.value,
                "expiring_items": [item.model_dump(mode="json") for item in result.expiring_items],
                "dead_stock_items": [item.model_dump(mode="json") for item in result.dead_stock_items],
                "statistics": statistics,
            }).execute()
        except Exception as e:
            logger.error(f"Failed to store inventory analysis for {user_id}: {e}")
            raise DatabaseError("store inventory analysis", str(e))

        if not response.data:
            raise DatabaseError("store inventory analysis", "insert returned no data")

        analysis = response.data[0]
        logger.info(
            f"Stored inventory analysis {analysis.get('id')} for {user_id}: "
            f"{len(result.expiring_items)} expiring, {len(result.dead_stock_items)} dead stock"
        )

        NotificationService.inventory_analysis(
            user_id=str(user_id),
            statistics=statistics,
            period=result.period.value,
            expiring_count=len(result.expiring_items),
            dead_stock_count=len(result.dead_stock_items),
        )
        return analysis

    @staticmethod
    def list_analyses(user_id: str | UUID) -> list[dict[str, Any]]:
        """The member's analyses, newest first."""
        client = SupabaseClient.get_client()
        response = (
            client.table("inventory_analyses")
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    @staticmethod
    def get_analysis(analysis_id: str | UUID, user_id: str | UUID, is_admin: bool) -> dict[str, Any]:
        """
        Raises:
            InventoryAnalysisNotFoundError: No analysis with this id
            PermissionDeniedError: Caller is neither the owner nor an admin
        """
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("inventory_analyses")
                .select("*")
                .eq("id", str(analysis_id))
                .single()
                .execute()
            )
        except Exception as e:
            if is_not_found(e):
                raise InventoryAnalysisNotFoundError(str(analysis_id))
            raise DatabaseError("fetch inventory analysis", str(e))

        analysis = response.data
        if not analysis:
            raise InventoryAnalysisNotFoundError(str(analysis_id))
        if not is_admin and str(analysis.get("user_id")) != str(user_id):
            raise PermissionDeniedError("You can only view your own inventory analyses")
        return analysis

    @staticmethod
    def export_analysis(
        analysis_id: str | UUID,
        user_id: str | UUID,
        is_admin: bool,
    ) -> tuple[bytes, str]:
        """
        Render a stored analysis as an Excel workbook.

        Returns:
            Tuple of (xlsx bytes, download filename)
        """
        row = InventoryAnalysisService.get_analysis(analysis_id, user_id, is_admin)
        analysis = InventoryAnalysis.model_validate(row)

        content = build_analysis_workbook(
            analysis.expiring_items,
            analysis.dead_stock_items,
            analysis.statistics,
        )
        day = analysis.created_at.date() if analysis.created_at else date.today()
        return content, f"inventory_analysis_{day.isoformat()}.xlsx"
