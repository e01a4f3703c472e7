# =============================================================================
# core/models/report.py - Sales Approval Report Schemas
# =============================================================================
# A sales approval report is sent to the seller when the admin approves a
# purchase request. It tells the seller what was sold, the commission and
# the amount they will receive. The buyer's identity stays hidden until the
# seller pays the commission in points.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from .base import RecordModel

REPORT_NUMBER_PREFIX = "SAR"


class SalesApprovalReportStatus(str, Enum):
    """
    Flow: draft -> sent -> confirmed -> shipped -> completed
    """
    DRAFT = "draft"
    SENT = "sent"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    COMPLETED = "completed"


class ReportAction(str, Enum):
    SEND = "send"
    CONFIRM = "confirm"
    SHIP = "ship"
    COMPLETE = "complete"


# action -> (new status, timestamp column)
REPORT_ACTION_TRANSITIONS: dict[ReportAction, tuple[SalesApprovalReportStatus, str]] = {
    ReportAction.SEND: (SalesApprovalReportStatus.SENT, "sent_at"),
    ReportAction.CONFIRM: (SalesApprovalReportStatus.CONFIRMED, "confirmed_at"),
    ReportAction.SHIP: (SalesApprovalReportStatus.SHIPPED, "shipped_at"),
    ReportAction.COMPLETE: (SalesApprovalReportStatus.COMPLETED, "completed_at"),
}


def format_report_number(year: int, sequence: int) -> str:
    """SAR-2025-0007 style report number."""
    return f"{REPORT_NUMBER_PREFIX}-{year}-{sequence:04d}"


def parse_report_sequence(report_number: str | None) -> int:
    """Sequence part of a report number; 0 if it can't be read."""
    if not report_number:
        return 0
    parts = report_number.split("-")
    if len(parts) < 3:
        return 0
    try:
        return int(parts[2])
    except ValueError:
        return 0


class SalesApprovalReport(RecordModel):
    id: UUID | None = None
    report_number: str
    purchase_request_id: UUID
    purchase_order_id: UUID | None = None
    seller_id: UUID
    buyer_id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    unit_price: float
    total_amount: float
    commission: float
    seller_amount: float
    shipping_address: str | None = None
    status: SalesApprovalReportStatus = SalesApprovalReportStatus.SENT
    points_deducted: int = 0
    buyer_info_revealed: bool = False
    tracking_number: str | None = None
    notes: str | None = None
    sent_at: datetime | None = None
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
