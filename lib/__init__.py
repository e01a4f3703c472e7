# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - utils.py: Shared utilities (formatting, dates, error base class)
# - inventory_analyzer.py: Expiring / dead stock classification
# - spreadsheet.py: Inventory and sales workbook reading, analysis export
#
# inventory_analyzer and spreadsheet depend on core.models and are imported
# from their modules directly.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import (
    ApplicationError,
    format_company_name,
    format_company_name_with_email,
    normalize_date,
    normalize_uuid,
)

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "ApplicationError",
    "format_company_name",
    "format_company_name_with_email",
    "normalize_date",
    "normalize_uuid",
]
