# =============================================================================
# lib/inventory_analyzer.py - Inventory Risk Analysis
# =============================================================================
# Classifies a seller's inventory against their sales history:
#
#   - Expiring stock: expiry date falls within the analysis period
#     (risk high <= 30 days, medium <= 60 days, low otherwise)
#   - Dead stock: product/specification pairs with no sales during the
#     analysis period, ranked by how long they have gone unsold
#
# The period (3 or 6 months) is used both as the expiry horizon and as the
# sales look-back window.
#
# Usage:
#   from lib.inventory_analyzer import analyze_inventory
#   result = analyze_inventory(inventory_items, sales_items, AnalysisPeriod.THREE_MONTHS)
# =============================================================================

import logging
import math
import numbers
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

from core.models import (
    AnalysisPeriod,
    DeadStockItem,
    DeadStockStatus,
    ExpiringItem,
    InventoryAnalysisResult,
    InventoryAnalysisStatistics,
    InventoryItem,
    RiskLevel,
    SalesItem,
)

# Set up logging for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

HIGH_RISK_DAYS = 30
MEDIUM_RISK_DAYS = 60

# Excel stores dates as days since 1899-12-30 (serial 1 == 1900-01-01, with
# the phantom 1900-02-29 included). 1900-01-01 + (serial - 2) lands on the
# right day for every serial after February 1900.
EXCEL_EPOCH = date(1900, 1, 1)
EXCEL_SERIAL_OFFSET = 2


# =============================================================================
# Date Parsing
# =============================================================================

def excel_serial_to_date(serial: float) -> date:
    """Convert an Excel serial day number to a date (time of day dropped)."""
    return EXCEL_EPOCH + timedelta(days=math.floor(serial) - EXCEL_SERIAL_OFFSET)


def parse_date(value: Any) -> date | None:
    """
    Interpret a spreadsheet cell as a date.

    Handles date/datetime/Timestamp objects, Excel serial numbers and
    date strings in the usual formats ("2025-03-01", "2025.03.01",
    "2025/03/01", "20250301", ISO timestamps).

    Returns:
        The date, or None if the value is empty or not a date
    """
    if value is None or value is pd.NaT or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, numbers.Real):
        if math.isnan(value):
            return None
        return excel_serial_to_date(value)

    text = str(value).strip()
    if not text:
        return None

    if text.isdigit() and len(text) == 8:
        try:
            return datetime.strptime(text, "%Y%m%d").date()
        except ValueError:
            return None

    parsed = pd.to_datetime(text.replace(".", "-"), errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


# =============================================================================
# Classification
# =============================================================================

def classify_risk(days_remaining: int) -> tuple[RiskLevel, int]:
    """Risk level and priority (1 = most urgent) for days until expiry."""
    if days_remaining <= HIGH_RISK_DAYS:
        return RiskLevel.HIGH, 1
    if days_remaining <= MEDIUM_RISK_DAYS:
        return RiskLevel.MEDIUM, 2
    return RiskLevel.LOW, 3


def classify_dead_stock(no_sales_period: int, period_days: int) -> tuple[DeadStockStatus, int]:
    """Dead stock status and priority for days without a sale."""
    status = DeadStockStatus.DEAD_STOCK if no_sales_period >= period_days else DeadStockStatus.NORMAL
    if no_sales_period >= period_days * 2:
        priority = 1
    elif no_sales_period >= period_days:
        priority = 2
    else:
        priority = 3
    return status, priority


def find_expiring_items(
    inventory: list[InventoryItem],
    period_days: int,
    today: date,
) -> list[ExpiringItem]:
    """
    Inventory rows expiring after today and no later than today + period.

    Rows without a readable expiry date are skipped (a warning is logged
    for values that are present but unparseable).

    Returns:
        Items sorted by days remaining, most urgent first
    """
    horizon = today + timedelta(days=period_days)
    expiring: list[ExpiringItem] = []

    for item in inventory:
        raw = item.expiry_date
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue

        expiry = parse_date(raw)
        if expiry is None:
            logger.warning(f"Invalid expiry date {raw!r} for product {item.product_name!r}")
            continue

        if not (today < expiry <= horizon):
            continue

        days_remaining = (expiry - today).days
        risk_level, priority = classify_risk(days_remaining)

        expiring.append(
            ExpiringItem(
                product_name=item.product_name,
                specification=item.specification,
                manufacturing_number=item.manufacturing_number or "",
                expiry_date=expiry.isoformat(),
                days_remaining=days_remaining,
                quantity=item.quantity,
                risk_level=risk_level,
                priority=priority,
            )
        )

    expiring.sort(key=lambda x: x.days_remaining)
    return expiring


def find_dead_stock(
    inventory: list[InventoryItem],
    sales: list[SalesItem],
    period_days: int,
    today: date,
) -> list[DeadStockItem]:
    """
    Product/specification pairs with no sale in the last period_days.

    Quantities are summed across lots. The no-sales period is counted from
    the most recent sale on record, or defaults to the period when the
    product never sold.

    Returns:
        Dead stock items, longest unsold first
    """
    cutoff = today - timedelta(days=period_days)

    # Aggregate inventory by product + specification
    stock: dict[tuple[str, str], InventoryItem] = {}
    for item in inventory:
        key = (item.product_name, item.specification)
        if key not in stock:
            stock[key] = item.model_copy(update={"quantity": 0})
        stock[key].quantity += item.quantity

    # Most recent sale per key, and whether it falls inside the window
    last_sale: dict[tuple[str, str], date] = {}
    for sale in sales:
        sale_date = parse_date(sale.sales_date)
        if sale_date is None:
            continue
        key = (sale.product_name, sale.specification)
        if key not in last_sale or sale_date > last_sale[key]:
            last_sale[key] = sale_date

    dead: list[DeadStockItem] = []
    for key, item in stock.items():
        latest = last_sale.get(key)
        if latest is not None and latest >= cutoff:
            continue

        no_sales_period = (today - latest).days if latest else period_days
        status, priority = classify_dead_stock(no_sales_period, period_days)
        if status is not DeadStockStatus.DEAD_STOCK:
            continue

        dead.append(
            DeadStockItem(
                product_name=item.product_name,
                specification=item.specification,
                quantity=item.quantity,
                last_sales_date=latest.isoformat() if latest else None,
                no_sales_period=no_sales_period,
                dead_stock_status=status,
                priority=priority,
            )
        )

    dead.sort(key=lambda x: x.no_sales_period, reverse=True)
    return dead


def compute_statistics(
    total_items: int,
    expiring: list[ExpiringItem],
    dead_stock: list[DeadStockItem],
) -> InventoryAnalysisStatistics:
    """Counts and percentages over the analysed inventory rows."""
    def percentage(count: int) -> float:
        return (count / total_items) * 100 if total_items > 0 else 0.0

    return InventoryAnalysisStatistics(
        total_items=total_items,
        expiring_count=len(expiring),
        expiring_percentage=percentage(len(expiring)),
        dead_stock_count=len(dead_stock),
        dead_stock_percentage=percentage(len(dead_stock)),
        risk_level_high=sum(1 for i in expiring if i.risk_level is RiskLevel.HIGH),
        risk_level_medium=sum(1 for i in expiring if i.risk_level is RiskLevel.MEDIUM),
        risk_level_low=sum(1 for i in expiring if i.risk_level is RiskLevel.LOW),
    )


# =============================================================================
# Main Entry Point
# =============================================================================

def analyze_inventory(
    inventory: list[InventoryItem],
    sales: list[SalesItem],
    period: AnalysisPeriod,
    today: date | None = None,
) -> InventoryAnalysisResult:
    """
    Run the expiring and dead stock analysis.

    Args:
        inventory: Inventory rows (one per lot)
        sales: Sales history rows
        period: Analysis period (3 or 6 months)
        today: Reference date (defaults to the current date)

    Returns:
        InventoryAnalysisResult with both item lists and statistics

    Example:
        result = analyze_inventory(items, sales, AnalysisPeriod.SIX_MONTHS)
        print(result.statistics.expiring_count)
    """
    today = today or date.today()
    period = AnalysisPeriod(period)
    period_days = period.days

    logger.info(
        f"Analyzing {len(inventory)} inventory rows against {len(sales)} sales rows "
        f"(period={period.value})"
    )

    expiring = find_expiring_items(inventory, period_days, today)
    dead_stock = find_dead_stock(inventory, sales, period_days, today)
    statistics = compute_statistics(len(inventory), expiring, dead_stock)

    logger.info(
        f"Analysis complete: {statistics.expiring_count} expiring, "
        f"{statistics.dead_stock_count} dead stock"
    )

    return InventoryAnalysisResult(
        analysis_date=today,
        period=period,
        expiring_items=expiring,
        dead_stock_items=dead_stock,
        statistics=statistics,
    )
