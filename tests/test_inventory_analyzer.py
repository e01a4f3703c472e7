# =============================================================================
# tests/test_inventory_analyzer.py - Inventory Analysis Tests
# =============================================================================
# Expiring stock, dead stock and statistics over a fixed reference date.
#
# Run with: pytest tests/test_inventory_analyzer.py -v
# =============================================================================

from datetime import date, datetime

import pytest

from core.models import AnalysisPeriod, DeadStockStatus, InventoryItem, RiskLevel, SalesItem
from lib.inventory_analyzer import (
    analyze_inventory,
    classify_dead_stock,
    classify_risk,
    excel_serial_to_date,
    find_dead_stock,
    find_expiring_items,
    parse_date,
)

TODAY = date(2025, 1, 1)


def item(name, expiry=None, quantity=1, spec=""):
    return InventoryItem(product_name=name, specification=spec, expiry_date=expiry, quantity=quantity)


def sale(name, sales_date, spec=""):
    return SalesItem(product_name=name, specification=spec, sales_date=sales_date, quantity=1)


# =============================================================================
# Date Parsing
# =============================================================================

class TestParseDate:
    """Tests for parse_date()."""

    def test_excel_serial(self):
        """Serial 45658 is 2025-01-01."""
        assert excel_serial_to_date(45658) == date(2025, 1, 1)
        assert parse_date(45658.75) == date(2025, 1, 1)

    @pytest.mark.parametrize("value", ["2025-03-01", "2025.03.01", "2025/03/01", "20250301"])
    def test_strings(self, value):
        assert parse_date(value) == date(2025, 3, 1)

    def test_datetime_object(self):
        assert parse_date(datetime(2025, 3, 1, 9, 0)) == date(2025, 3, 1)

    @pytest.mark.parametrize("value", [None, "", "unknown", float("nan")])
    def test_unreadable(self, value):
        assert parse_date(value) is None


class TestClassification:
    @pytest.mark.parametrize("days,expected", [
        (1, (RiskLevel.HIGH, 1)),
        (30, (RiskLevel.HIGH, 1)),
        (31, (RiskLevel.MEDIUM, 2)),
        (60, (RiskLevel.MEDIUM, 2)),
        (61, (RiskLevel.LOW, 3)),
    ])
    def test_risk_cuts(self, days, expected):
        assert classify_risk(days) == expected

    def test_dead_stock_priority(self):
        assert classify_dead_stock(180, 90) == (DeadStockStatus.DEAD_STOCK, 1)
        assert classify_dead_stock(90, 90) == (DeadStockStatus.DEAD_STOCK, 2)
        assert classify_dead_stock(89, 90) == (DeadStockStatus.NORMAL, 3)


# =============================================================================
# Expiring Stock
# =============================================================================

class TestExpiringItems:
    """Tests for find_expiring_items()."""

    def test_window_and_ordering(self):
        """Only items expiring after today and within the period, most urgent first."""
        inventory = [
            item("low", "2025-03-25"),
            item("medium", "2025-02-20"),
            item("high", "2025-01-20"),
            item("too far", "2025-06-01"),
            item("expired", "2024-12-31"),
            item("today", "2025-01-01"),
            item("no date"),
        ]

        result = find_expiring_items(inventory, 90, TODAY)

        assert [i.product_name for i in result] == ["high", "medium", "low"]
        assert [i.risk_level for i in result] == [RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW]
        assert result[0].days_remaining == 19
        assert result[0].expiry_date == "2025-01-20"

    def test_horizon_is_inclusive(self):
        assert len(find_expiring_items([item("edge", "2025-04-01")], 90, TODAY)) == 1

    def test_excel_serial_expiry(self):
        """Serial dates from unformatted Excel cells are understood."""
        result = find_expiring_items([item("serial", 45668)], 90, TODAY)

        assert result[0].expiry_date == "2025-01-11"
        assert result[0].days_remaining == 10

    def test_invalid_date_is_skipped_with_warning(self, caplog):
        result = find_expiring_items([item("bad", "someday")], 90, TODAY)

        assert result == []
        assert "Invalid expiry date" in caplog.text


# =============================================================================
# Dead Stock
# =============================================================================

class TestDeadStock:
    """Tests for find_dead_stock()."""

    def test_recent_sale_is_not_dead(self):
        inventory = [item("A", quantity=5)]
        sales = [sale("A", "2024-12-01")]

        assert find_dead_stock(inventory, sales, 90, TODAY) == []

    def test_old_sale_is_dead_with_priority_one(self):
        """214 days without a sale is more than twice the period."""
        result = find_dead_stock([item("B", quantity=2)], [sale("B", "2024-06-01")], 90, TODAY)

        assert len(result) == 1
        assert result[0].no_sales_period == 214
        assert result[0].last_sales_date == "2024-06-01"
        assert result[0].priority == 1

    def test_never_sold_defaults_to_period(self):
        result = find_dead_stock([item("C")], [], 90, TODAY)

        assert result[0].no_sales_period == 90
        assert result[0].last_sales_date is None
        assert result[0].priority == 2

    def test_quantities_are_summed_per_product_and_spec(self):
        inventory = [item("D", quantity=3, spec="10T"), item("D", quantity=4, spec="10T"), item("D", quantity=1, spec="30T")]

        result = find_dead_stock(inventory, [], 90, TODAY)

        by_spec = {r.specification: r.quantity for r in result}
        assert by_spec == {"10T": 7, "30T": 1}

    def test_sales_match_on_specification(self):
        """A sale of another specification doesn't count."""
        result = find_dead_stock([item("E", spec="10T")], [sale("E", "2024-12-20", spec="30T")], 90, TODAY)

        assert len(result) == 1

    def test_sorted_longest_unsold_first(self):
        inventory = [item("never"), item("old")]
        sales = [sale("old", "2024-01-01")]

        result = find_dead_stock(inventory, sales, 90, TODAY)

        assert [r.product_name for r in result] == ["old", "never"]


# =============================================================================
# Full Analysis
# =============================================================================

class TestAnalyzeInventory:
    """Tests for analyze_inventory()."""

    def test_statistics(self):
        inventory = [
            item("A", "2025-01-10"),
            item("B", "2025-02-15"),
            item("C", "2026-01-01"),
            item("D", "2026-01-01"),
        ]
        sales = [sale("A", "2024-12-30"), sale("B", "2024-12-30"), sale("C", "2024-12-30")]

        result = analyze_inventory(inventory, sales, AnalysisPeriod.THREE_MONTHS, today=TODAY)

        stats = result.statistics
        assert stats.total_items == 4
        assert stats.expiring_count == 2
        assert stats.expiring_percentage == 50.0
        assert stats.dead_stock_count == 1
        assert stats.dead_stock_percentage == 25.0
        assert (stats.risk_level_high, stats.risk_level_medium, stats.risk_level_low) == (1, 1, 0)
        assert result.period is AnalysisPeriod.THREE_MONTHS
        assert result.analysis_date == TODAY

    def test_six_month_period_widens_window(self):
        inventory = [item("A", "2025-05-01")]

        three = analyze_inventory(inventory, [], "3months", today=TODAY)
        six = analyze_inventory(inventory, [], "6months", today=TODAY)

        assert three.statistics.expiring_count == 0
        assert six.statistics.expiring_count == 1

    def test_empty_inventory(self):
        result = analyze_inventory([], [], AnalysisPeriod.THREE_MONTHS, today=TODAY)

        assert result.statistics.total_items == 0
        assert result.statistics.expiring_percentage == 0.0
