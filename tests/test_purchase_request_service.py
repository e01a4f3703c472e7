# =============================================================================
# tests/test_purchase_request_service.py - Purchase Request Tests
# =============================================================================
# Request creation, cancellation, and the admin approval flow that reduces
# stock, records a purchase order and issues a sales approval report.
#
# Run with: pytest tests/test_purchase_request_service.py -v
# =============================================================================

from unittest.mock import patch

import pytest

from app.exceptions import (
    DatabaseError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ProductNotFoundError,
    PurchaseRequestNotFoundError,
    ValidationFailedError,
)
from core.services.purchase_request_service import (
    PurchaseRequestService,
    commission_for,
    stock_after_sale,
)
from tests.conftest import ADMIN_ID, OTHER_USER_ID, USER_ID


class TestHelpers:
    def test_commission_uses_configured_rate(self):
        with patch("core.services.purchase_request_service.settings") as mock_settings:
            mock_settings.COMMISSION_RATE = 0.05
            assert commission_for(20000) == pytest.approx(1000.0)

    def test_partial_sale_keeps_product_active(self):
        update = stock_after_sale(10, 4)
        assert update["status"] == "active"
        assert update["quantity"] == 6

    def test_sold_out_product_keeps_quantity_one(self):
        update = stock_after_sale(4, 4)
        assert update["status"] == "sold"
        assert update["quantity"] == 1


# =============================================================================
# Creation
# =============================================================================

class TestCreateRequest:
    """Tests for PurchaseRequestService.create_request()."""

    def test_creates_pending_request(self, fake_supabase, product_row):
        fake_supabase.queue("profiles", {"id": str(USER_ID)})
        fake_supabase.queue("products", product_row)
        fake_supabase.queue("purchase_requests", [{"id": "req-1", "status": "pending"}])

        request, product = PurchaseRequestService.create_request(
            USER_ID, product_row["id"], 4, "서울시 강남구"
        )

        payload = fake_supabase.payloads("purchase_requests", "insert")[0]
        assert payload["buyer_id"] == str(USER_ID)
        assert payload["unit_price"] == 5000.0
        assert payload["total_price"] == 20000.0
        assert payload["status"] == "pending"
        assert request["id"] == "req-1"
        assert product["product_name"] == product_row["product_name"]

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_quantity_must_be_positive(self, fake_supabase, quantity):
        with pytest.raises(ValidationFailedError):
            PurchaseRequestService.create_request(USER_ID, "p1", quantity)

    def test_quantity_above_stock(self, fake_supabase, product_row):
        fake_supabase.queue("profiles", {"id": str(USER_ID)})
        fake_supabase.queue("products", product_row)

        with pytest.raises(ValidationFailedError) as exc_info:
            PurchaseRequestService.create_request(USER_ID, product_row["id"], 11)

        assert exc_info.value.details["available"] == 10

    def test_buyer_without_profile(self, fake_supabase):
        with pytest.raises(NotFoundError) as exc_info:
            PurchaseRequestService.create_request(USER_ID, "p1", 1)
        assert exc_info.value.code == "USER_NOT_FOUND"

    def test_inactive_product(self, fake_supabase, product_row):
        fake_supabase.queue("profiles", {"id": str(USER_ID)})
        fake_supabase.queue("products", {**product_row, "status": "sold"})

        with pytest.raises(ProductNotFoundError):
            PurchaseRequestService.create_request(USER_ID, product_row["id"], 1)


class TestCancelRequest:
    """Tests for PurchaseRequestService.cancel_request()."""

    def test_buyer_cancels(self, fake_supabase, purchase_request_row):
        fake_supabase.queue("purchase_requests", purchase_request_row, [{"id": "r", "status": "cancelled"}])

        result = PurchaseRequestService.cancel_request(purchase_request_row["id"], USER_ID)

        assert result["status"] == "cancelled"
        assert fake_supabase.payloads("purchase_requests", "update") == [{"status": "cancelled"}]

    def test_other_user_cannot_cancel(self, fake_supabase, purchase_request_row):
        fake_supabase.queue("purchase_requests", purchase_request_row)

        with pytest.raises(PermissionDeniedError):
            PurchaseRequestService.cancel_request(purchase_request_row["id"], OTHER_USER_ID)

    @pytest.mark.parametrize("status", ["approved", "cancelled"])
    def test_finished_request(self, fake_supabase, purchase_request_row, status):
        fake_supabase.queue("purchase_requests", {**purchase_request_row, "status": status})

        with pytest.raises(InvalidStateError):
            PurchaseRequestService.cancel_request(purchase_request_row["id"], USER_ID)

    def test_missing_request(self, fake_supabase):
        with pytest.raises(PurchaseRequestNotFoundError):
            PurchaseRequestService.cancel_request("missing", USER_ID)


class TestListings:
    def test_buyer_listing_flattens_product(self, fake_supabase):
        fake_supabase.queue("purchase_requests", [{
            "id": "r1",
            "products": {"product_name": "게보린", "selling_price": 3000, "seller": {"company_name": "한빛약품"}},
        }])

        rows = PurchaseRequestService.list_for_buyer(USER_ID)

        assert rows[0]["product_name"] == "게보린"
        assert rows[0]["seller_company"] == "한빛약품"

    def test_buyer_listing_defaults(self, fake_supabase):
        fake_supabase.queue("purchase_requests", [{"id": "r1", "products": None}])

        row = PurchaseRequestService.list_for_buyer(USER_ID)[0]

        assert row["product_name"] == "-"
        assert row["selling_price"] == 0
        assert row["seller_company"] == "-"

    def test_seller_without_products(self, fake_supabase):
        assert PurchaseRequestService.list_for_seller(OTHER_USER_ID) == []
        assert not [q for q in fake_supabase.calls if q.table == "purchase_requests"]


# =============================================================================
# Approval
# =============================================================================

class TestReview:
    """Tests for PurchaseRequestService.review()."""

    def test_approve_completes_the_sale(self, fake_supabase, purchase_request_row):
        fake_supabase.queue("purchase_requests", purchase_request_row)
        fake_supabase.queue("purchase_orders", [{"id": "order-1"}])
        fake_supabase.queue("sales_approval_reports", [], [{"id": "rep-1", "report_number": "SAR-2025-0001"}])

        with patch("core.services.purchase_request_service.settings") as mock_settings:
            mock_settings.COMMISSION_RATE = 0.05
            result = PurchaseRequestService.review(purchase_request_row["id"], "approved", ADMIN_ID)

        assert result["commission"] == pytest.approx(1000.0)
        assert result["purchaseOrderId"] == "order-1"
        assert result["reportNumber"] == "SAR-2025-0001"
        assert "warnings" not in result

        status_update = fake_supabase.payloads("purchase_requests", "update")[0]
        assert status_update["status"] == "approved"
        assert status_update["reviewed_by"] == str(ADMIN_ID)

        stock = fake_supabase.payloads("products", "update")[0]
        assert stock["quantity"] == 6
        assert stock["status"] == "active"

        order = fake_supabase.payloads("purchase_orders", "insert")[0]
        assert order["purchase_price"] == pytest.approx(19000.0)
        assert order["total_amount"] == 20000.0
        assert order["seller_id"] == str(OTHER_USER_ID)

        report = fake_supabase.payloads("sales_approval_reports", "insert")[0]
        assert report["status"] == "sent"
        assert report["seller_amount"] == pytest.approx(19000.0)
        assert report["buyer_id"] == str(USER_ID)
        assert report["purchase_order_id"] == "order-1"

    def test_stock_is_checked_before_update(self, fake_supabase, purchase_request_row):
        row = {**purchase_request_row, "quantity": 12}
        fake_supabase.queue("purchase_requests", row)

        with pytest.raises(InvalidStateError):
            PurchaseRequestService.review(row["id"], "approved", ADMIN_ID)

        assert fake_supabase.writes("purchase_requests", "update") == []

    def test_reject_only_updates_status(self, fake_supabase, purchase_request_row):
        fake_supabase.queue("purchase_requests", purchase_request_row)

        result = PurchaseRequestService.review(purchase_request_row["id"], "rejected", ADMIN_ID, notes="재고 없음")

        assert result["message"] == "Purchase request rejected"
        assert fake_supabase.payloads("purchase_requests", "update")[0]["notes"] == "재고 없음"
        assert fake_supabase.writes("products", "update") == []

    def test_order_and_report_failures_become_warnings(self, fake_supabase, purchase_request_row):
        fake_supabase.queue("purchase_requests", purchase_request_row)
        fake_supabase.queue("purchase_orders", RuntimeError("fk"))
        fake_supabase.queue("sales_approval_reports", [], RuntimeError("duplicate report_number"))

        result = PurchaseRequestService.review(purchase_request_row["id"], "approved", ADMIN_ID)

        assert result["purchaseOrderId"] is None
        assert len(result["warnings"]) == 2

    def test_stock_update_failure_stops_the_flow(self, fake_supabase, purchase_request_row):
        fake_supabase.queue("purchase_requests", purchase_request_row)
        fake_supabase.queue("products", RuntimeError("constraint"))

        result = PurchaseRequestService.review(purchase_request_row["id"], "approved", ADMIN_ID)

        assert result["warnings"] == ["Purchase approved but the product stock could not be updated"]
        assert fake_supabase.writes("purchase_orders", "insert") == []

    def test_status_update_failure(self, fake_supabase, purchase_request_row):
        fake_supabase.queue("purchase_requests", purchase_request_row, RuntimeError("down"))

        with pytest.raises(DatabaseError):
            PurchaseRequestService.review(purchase_request_row["id"], "approved", ADMIN_ID)

    def test_missing_request(self, fake_supabase):
        with pytest.raises(PurchaseRequestNotFoundError):
            PurchaseRequestService.review("missing", "approved", ADMIN_ID)
