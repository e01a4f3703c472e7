# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the marketplace's business logic:
# - models/: Pydantic schemas for entities and statuses
# - services/: Operations on Supabase tables, RPCs and storage
#
# Services raise app.exceptions errors and enqueue Celery notifications,
# but never touch FastAPI request/response objects.
# =============================================================================
