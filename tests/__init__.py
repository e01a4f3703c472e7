# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Marketplace API:
# - conftest.py: FakeSupabase test double and TestClient fixtures
# - test_models.py / test_utils.py: Schemas and shared helpers
# - test_inventory_analyzer.py / test_spreadsheet.py: Inventory analysis
# - test_*_service.py: Service layer against queued Supabase responses
# - test_notifications.py: Celery tasks, storage uploads, analysis runs
# - test_routers.py: HTTP layer (auth, envelopes, admin-only routes)
#
# Run tests with: pytest
# =============================================================================
