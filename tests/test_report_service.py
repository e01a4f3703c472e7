# =============================================================================
# tests/test_report_service.py - Sales Approval Report Tests
# =============================================================================
# Numbering, buyer redaction, visibility, admin actions and diagnosis.
#
# Run with: pytest tests/test_report_service.py -v
# =============================================================================

import pytest

from app.exceptions import PermissionDeniedError, ReportNotFoundError
from core.services.report_service import ReportService, next_report_number, redact_buyer
from tests.conftest import ADMIN_ID, OTHER_USER_ID, USER_ID

REPORT_ID = "dddddddd-0000-0000-0000-000000000001"


@pytest.fixture
def report_row():
    return {
        "id": REPORT_ID,
        "report_number": "SAR-2025-0001",
        "seller_id": str(USER_ID),
        "buyer_id": str(OTHER_USER_ID),
        "buyer": {"id": str(OTHER_USER_ID), "company_name": "새봄약국"},
        "shipping_address": "부산시 해운대구",
        "product_name": "타이레놀정",
        "status": "sent",
        "buyer_info_revealed": False,
    }


class TestRedactBuyer:
    def test_hides_buyer_until_revealed(self, report_row):
        redacted = redact_buyer(report_row)

        assert redacted["buyer"] is None
        assert redacted["buyer_id"] is None
        assert redacted["shipping_address"] is None
        assert redacted["product_name"] == "타이레놀정"
        assert report_row["buyer_id"] == str(OTHER_USER_ID)

    def test_revealed_report_unchanged(self, report_row):
        report_row["buyer_info_revealed"] = True
        assert redact_buyer(report_row) is report_row


class TestReportNumber:
    def test_first_of_the_year(self, fake_supabase):
        assert next_report_number(2025) == "SAR-2025-0001"

    def test_increments_last_number(self, fake_supabase):
        fake_supabase.queue("sales_approval_reports", [{"report_number": "SAR-2025-0041"}])

        assert next_report_number(2025) == "SAR-2025-0042"
        assert ("like", "report_number", "SAR-2025-%") in fake_supabase.calls[0].filters


# =============================================================================
# Visibility
# =============================================================================

class TestVisibility:
    """Who can see which reports."""

    def test_seller_list_is_redacted(self, fake_supabase, report_row):
        fake_supabase.queue("sales_approval_reports", [report_row])

        reports = ReportService.list_reports(USER_ID, is_admin=False, status="all")

        assert reports[0]["buyer"] is None
        assert ("eq", "seller_id", str(USER_ID)) in fake_supabase.calls[0].filters

    def test_admin_list_filters(self, fake_supabase, report_row):
        fake_supabase.queue("sales_approval_reports", [report_row])

        reports = ReportService.list_reports(ADMIN_ID, is_admin=True, seller_id=str(USER_ID), status="sent")

        assert reports[0]["buyer"] is not None
        filters = fake_supabase.calls[0].filters
        assert ("eq", "seller_id", str(USER_ID)) in filters
        assert ("eq", "status", "sent") in filters

    def test_buyer_sees_full_report(self, fake_supabase, report_row):
        fake_supabase.queue("sales_approval_reports", report_row)

        report = ReportService.get_report(REPORT_ID, OTHER_USER_ID, is_admin=False)

        assert report["buyer"]["company_name"] == "새봄약국"

    def test_seller_sees_redacted_report(self, fake_supabase, report_row):
        fake_supabase.queue("sales_approval_reports", report_row)

        report = ReportService.get_report(REPORT_ID, USER_ID, is_admin=False)

        assert report["buyer"] is None

    def test_stranger_is_denied(self, fake_supabase, report_row):
        fake_supabase.queue("sales_approval_reports", report_row)

        with pytest.raises(PermissionDeniedError):
            ReportService.get_report(REPORT_ID, "33333333-3333-3333-3333-333333333333", is_admin=False)

    def test_missing_report(self, fake_supabase):
        with pytest.raises(ReportNotFoundError):
            ReportService.get_report(REPORT_ID, ADMIN_ID, is_admin=True)


# =============================================================================
# Actions
# =============================================================================

class TestActions:
    """Tests for ReportService.apply_action()."""

    def test_ship_sets_tracking_number(self, fake_supabase, report_row):
        fake_supabase.queue("sales_approval_reports", [{**report_row, "status": "shipped"}])

        result = ReportService.apply_action(REPORT_ID, "ship", tracking_number="1234-5678")

        update = fake_supabase.payloads("sales_approval_reports", "update")[0]
        assert update["status"] == "shipped"
        assert update["tracking_number"] == "1234-5678"
        assert "shipped_at" in update
        assert result["status"] == "shipped"

    def test_confirm_ignores_tracking_number(self, fake_supabase, report_row):
        fake_supabase.queue("sales_approval_reports", [report_row])

        ReportService.apply_action(REPORT_ID, "confirm", tracking_number="ignored")

        update = fake_supabase.payloads("sales_approval_reports", "update")[0]
        assert update["status"] == "confirmed"
        assert "confirmed_at" in update
        assert "tracking_number" not in update

    def test_unknown_report(self, fake_supabase):
        with pytest.raises(ReportNotFoundError):
            ReportService.apply_action(REPORT_ID, "complete")

    def test_invalid_action(self, fake_supabase):
        with pytest.raises(ValueError):
            ReportService.apply_action(REPORT_ID, "archive")

    def test_delete_is_idempotent(self, fake_supabase):
        fake_supabase.queue("sales_approval_reports", [{"id": REPORT_ID}])

        assert ReportService.delete_report(REPORT_ID) is True
        assert ReportService.delete_report(REPORT_ID) is False


# =============================================================================
# Diagnosis
# =============================================================================

class TestDiagnose:
    """Tests for ReportService.diagnose()."""

    def test_healthy_system(self, fake_supabase):
        fake_supabase.queue("purchase_requests", [{"id": "r1"}])
        fake_supabase.queue("sales_approval_reports", [
            {"id": "rep-1", "purchase_request_id": "r1", "seller_id": str(USER_ID), "status": "sent"},
        ])
        fake_supabase.queue("profiles", [{"id": str(USER_ID)}])

        result = ReportService.diagnose()

        assert result["summary"]["status"] == "ok"
        assert result["summary"]["passed"] == result["summary"]["totalChecks"] == 2
        assert result["issues"] == []

    def test_missing_report_is_critical(self, fake_supabase):
        fake_supabase.queue("purchase_requests", [{"id": "r1"}, {"id": "r2"}])
        fake_supabase.queue("sales_approval_reports", [
            {"id": "rep-1", "purchase_request_id": "r1", "seller_id": str(USER_ID), "status": "sent"},
        ])
        fake_supabase.queue("profiles", [{"id": str(USER_ID)}])

        result = ReportService.diagnose()

        assert result["summary"]["status"] == "critical"
        assert result["issues"][0]["purchaseRequestIds"] == ["r2"]
        assert result["recommendations"]

    def test_seller_checks(self, fake_supabase):
        fake_supabase.queue("sales_approval_reports", [
            {"id": "rep-1", "purchase_request_id": "r1", "seller_id": str(USER_ID), "status": "completed"},
        ])
        fake_supabase.queue("profiles", [{"id": str(USER_ID)}], {"id": str(USER_ID), "role": "user"})

        result = ReportService.diagnose(seller_id=str(USER_ID))

        names = [c["name"] for c in result["checks"]]
        assert "Seller profile exists" in names
        assert "Reports exist for seller" in names
        assert result["summary"]["status"] == "warning"

    def test_purchase_request_with_list_embed(self, fake_supabase):
        """The product embed may come back as a one-element list."""
        request_id = "cccccccc-0000-0000-0000-000000000001"
        fake_supabase.queue("purchase_requests", [{"id": request_id}], {
            "id": request_id,
            "product": [{"id": "p1", "seller_id": str(USER_ID)}],
        })
        fake_supabase.queue(
            "sales_approval_reports",
            [{"id": "rep-1", "purchase_request_id": request_id, "seller_id": str(USER_ID), "status": "sent"}],
            [{"id": "rep-1", "report_number": "SAR-2025-0001", "status": "sent", "sent_at": "2025-01-02T00:00:00+00:00"}],
        )
        fake_supabase.queue("profiles", [{"id": str(USER_ID)}])

        result = ReportService.diagnose(purchase_request_id=request_id)

        assert result["issues"] == []
        assert result["summary"]["status"] == "ok"
