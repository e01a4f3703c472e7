# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - base.py: Shared request/record base classes
# - profile.py: Member profiles and roles
# - marketplace.py: Sales lists, products, purchase requests/orders
# - points.py: Points balances, transactions and charge requests
# - report.py: Sales approval reports
# - analysis.py: Inventory analysis input/output
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Base Models
# -----------------------------------------------------------------------------
from .base import RecordModel, RequestModel

# -----------------------------------------------------------------------------
# Profile Models
# -----------------------------------------------------------------------------
from .profile import (
    AdminContact,
    LicenseVerificationStatus,
    Profile,
    UserRole,
)

# -----------------------------------------------------------------------------
# Marketplace Models
# -----------------------------------------------------------------------------
from .marketplace import (
    ACTIVE_REQUEST_STATUSES,
    Payment,
    PaymentStatus,
    Product,
    ProductStatus,
    PurchaseOrder,
    PurchaseOrderStatus,
    PurchaseRequest,
    PurchaseRequestStatus,
    Resale,
    ResaleStatus,
    SalesList,
    SalesListItem,
    SalesListStatus,
)

# -----------------------------------------------------------------------------
# Points Models
# -----------------------------------------------------------------------------
from .points import (
    ChargeRequestAction,
    LedgerStatistics,
    PointBalance,
    PointChargeRequest,
    PointChargeRequestStatus,
    PointTransaction,
    PointTransactionType,
)

# -----------------------------------------------------------------------------
# Report Models
# -----------------------------------------------------------------------------
from .report import (
    REPORT_ACTION_TRANSITIONS,
    ReportAction,
    SalesApprovalReport,
    SalesApprovalReportStatus,
    format_report_number,
    parse_report_sequence,
)

# -----------------------------------------------------------------------------
# Analysis Models
# -----------------------------------------------------------------------------
from .analysis import (
    AnalysisPeriod,
    DeadStockItem,
    DeadStockStatus,
    ExpiringItem,
    InventoryAnalysis,
    InventoryAnalysisResult,
    InventoryAnalysisStatistics,
    InventoryItem,
    RiskLevel,
    SalesItem,
)

__all__ = [
    # Base
    "RecordModel",
    "RequestModel",
    # Profile
    "AdminContact",
    "LicenseVerificationStatus",
    "Profile",
    "UserRole",
    # Marketplace
    "ACTIVE_REQUEST_STATUSES",
    "Payment",
    "PaymentStatus",
    "Product",
    "ProductStatus",
    "PurchaseOrder",
    "PurchaseOrderStatus",
    "PurchaseRequest",
    "PurchaseRequestStatus",
    "Resale",
    "ResaleStatus",
    "SalesList",
    "SalesListItem",
    "SalesListStatus",
    # Points
    "ChargeRequestAction",
    "LedgerStatistics",
    "PointBalance",
    "PointChargeRequest",
    "PointChargeRequestStatus",
    "PointTransaction",
    "PointTransactionType",
    # Report
    "REPORT_ACTION_TRANSITIONS",
    "ReportAction",
    "SalesApprovalReport",
    "SalesApprovalReportStatus",
    "format_report_number",
    "parse_report_sequence",
    # Analysis
    "AnalysisPeriod",
    "DeadStockItem",
    "DeadStockStatus",
    "ExpiringItem",
    "InventoryAnalysis",
    "InventoryAnalysisResult",
    "InventoryAnalysisStatistics",
    "InventoryItem",
    "RiskLevel",
    "SalesItem",
]
