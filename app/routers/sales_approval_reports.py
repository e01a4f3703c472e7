# =============================================================================
# app/routers/sales_approval_reports.py - Sales Approval Report Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from app.auth import is_admin_user
from app.dependencies import AdminUser, CurrentUser
from app.responses import success_response
from core.models import ReportAction, RequestModel
from core.services.report_service import ReportService

router = APIRouter()


class ReportActionRequest(RequestModel):
    action: ReportAction
    tracking_number: str | None = None
    notes: str | None = None


@router.get("")
async def list_reports(
    user: CurrentUser,
    seller_id: Annotated[str | None, Query(description="Filter by seller (admin)")] = None,
    status: Annotated[str | None, Query(description="Filter by status")] = None,
):
    """
    List sales approval reports.

    Admins see all reports; members see the reports for their own sales,
    with buyer details withheld until revealed.
    """
    reports = ReportService.list_reports(user.id, is_admin_user(user), seller_id, status)
    return success_response(reports, count=len(reports))


@router.get("/diagnose")
async def diagnose_reports(
    admin: AdminUser,
    seller_id: Annotated[str | None, Query()] = None,
    purchase_request_id: Annotated[str | None, Query()] = None,
):
    """Find approved purchases whose report is missing or not delivered."""
    return success_response(ReportService.diagnose(seller_id, purchase_request_id))


@router.get("/{report_id}")
async def get_report(
    report_id: Annotated[UUID, Path(description="Report UUID")],
    user: CurrentUser,
):
    """A report with full details (admin, its seller or its buyer)."""
    return success_response(ReportService.get_report(report_id, user.id, is_admin_user(user)))


@router.post("/{report_id}/actions")
async def apply_report_action(
    report_id: Annotated[UUID, Path(description="Report UUID")],
    request: ReportActionRequest,
    admin: AdminUser,
):
    """Advance a report: send, confirm, ship (with tracking number) or complete."""
    report = ReportService.apply_action(report_id, request.action, request.tracking_number, request.notes)
    return success_response(report, "Sales approval report updated")


@router.delete("/{report_id}")
async def delete_report(
    report_id: Annotated[UUID, Path(description="Report UUID")],
    admin: AdminUser,
):
    """Delete a report. Deleting one that is already gone still succeeds."""
    if ReportService.delete_report(report_id):
        return success_response(message="Sales approval report deleted")
    return success_response(message="Sales approval report was already deleted or does not exist")
