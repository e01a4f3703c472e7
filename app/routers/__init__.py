# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - points.py: Points balance, admin charge, buyer-info deduction
# - point_charge_requests.py: Member charge requests and admin review
# - ledger.py: Deposit and transaction history
# - profiles.py: Member profiles and admin member management
# - admin.py: Admin provisioning, Auth maintenance, setup checks
# - sales_lists.py: Seller sales lists
# - products.py: Product catalogue
# - purchase_requests.py: Purchase requests and approval
# - sales_approval_reports.py: Reports issued to sellers
# - inventory_analyses.py: Expiring / dead stock analysis
# - documents.py: License and business registration uploads
# - notifications.py: Admin notification triggers
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import points
from . import point_charge_requests
from . import ledger
from . import profiles
from . import admin
from . import sales_lists
from . import products
from . import purchase_requests
from . import sales_approval_reports
from . import inventory_analyses
from . import documents
from . import notifications

__all__ = [
    "health",
    "points",
    "point_charge_requests",
    "ledger",
    "profiles",
    "admin",
    "sales_lists",
    "products",
    "purchase_requests",
    "sales_approval_reports",
    "inventory_analyses",
    "documents",
    "notifications",
]
