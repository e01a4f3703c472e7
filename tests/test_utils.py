# =============================================================================
# tests/test_utils.py - Utility Function Tests
# =============================================================================
# Company name formatting, placeholder detection and date normalization.
#
# Run with: pytest tests/test_utils.py -v
# =============================================================================

from datetime import date, datetime
from uuid import UUID

import pytest

from lib.utils import (
    ApplicationError,
    embedded_row,
    format_company_name,
    format_company_name_with_email,
    is_placeholder_business_number,
    is_placeholder_company,
    normalize_business_number,
    normalize_date,
    normalize_uuid,
)


class TestFormatCompanyName:
    """Tests for format_company_name()."""

    def test_removes_parenthesized_segments(self):
        assert format_company_name("조형익팜(buyer)") == "조형익팜"

    def test_removes_several_segments(self):
        assert format_company_name("한빛 (주) 약품 (seller)") == "한빛약품"

    @pytest.mark.parametrize("name", [None, "", "   ", "임시회사명"])
    def test_missing_or_placeholder_uses_fallback(self, name):
        assert format_company_name(name) == "-"

    def test_empty_after_cleaning_uses_fallback(self):
        assert format_company_name("(seller)", fallback="N/A") == "N/A"


class TestFormatCompanyNameWithEmail:
    def test_keeps_real_name(self):
        assert format_company_name_with_email("한빛약품", "a@b.kr") == "한빛약품"

    def test_email_is_not_substituted(self):
        """A placeholder name falls back rather than showing the email."""
        assert format_company_name_with_email("임시회사명", "a@b.kr") == "-"


class TestPlaceholders:
    def test_placeholder_company(self):
        assert is_placeholder_company("임시회사명")
        assert not is_placeholder_company("한빛약품")

    def test_placeholder_business_number(self):
        assert is_placeholder_business_number("TEMP-1234")
        assert is_placeholder_business_number("")
        assert not is_placeholder_business_number("123-45-67890")

    def test_normalize_business_number(self):
        assert normalize_business_number("123-45-67890") == "1234567890"


class TestNormalizeDate:
    """Tests for normalize_date()."""

    @pytest.mark.parametrize("value,expected", [
        ("2025-03-01", "2025-03-01"),
        ("2025-03-01T12:00:00Z", "2025-03-01"),
        ("2025.03.01", "2025-03-01"),
        ("2025/03/01", "2025-03-01"),
        ("20250301", "2025-03-01"),
        (date(2025, 3, 1), "2025-03-01"),
        (datetime(2025, 3, 1, 8, 30), "2025-03-01"),
    ])
    def test_formats(self, value, expected):
        assert normalize_date(value) == expected

    @pytest.mark.parametrize("value", [None, "", "not a date", "2025-13-40"])
    def test_unreadable_is_none(self, value):
        assert normalize_date(value) is None


class TestMisc:
    def test_normalize_uuid(self):
        value = UUID("550e8400-e29b-41d4-a716-446655440000")
        assert normalize_uuid(value) == "550e8400-e29b-41d4-a716-446655440000"
        assert normalize_uuid("abc") == "abc"

    def test_application_error_str_includes_suggestion(self):
        error = ApplicationError("Broken", code="X", suggestion="Fix it")

        assert str(error) == "[X] Broken\n  Suggestion: Fix it"
        assert error.to_dict()["code"] == "X"

    @pytest.mark.parametrize("value,expected", [
        ({"id": "p1"}, {"id": "p1"}),
        ([{"id": "p1"}], {"id": "p1"}),
        ([], {}),
        (None, {}),
    ])
    def test_embedded_row(self, value, expected):
        assert embedded_row(value) == expected
