# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .admin_service import AdminService
from .inventory_analysis_service import InventoryAnalysisService
from .ledger_service import LedgerService
from .notification_service import NotificationService
from .point_charge_service import PointChargeService
from .points_service import PointsService
from .product_service import ProductService
from .profile_service import ProfileService
from .purchase_request_service import PurchaseRequestService
from .report_service import ReportService
from .sales_list_service import SalesListService
from .storage_service import StorageService
from .test_data_service import TestDataService

__all__ = [
    "AdminService",
    "InventoryAnalysisService",
    "LedgerService",
    "NotificationService",
    "PointChargeService",
    "PointsService",
    "ProductService",
    "ProfileService",
    "PurchaseRequestService",
    "ReportService",
    "SalesListService",
    "StorageService",
    "TestDataService",
]
