# =============================================================================
# core/models/analysis.py - Inventory Analysis Schemas
# =============================================================================
# A seller uploads an inventory sheet and a sales history sheet; the
# analyzer flags stock that expires within the analysis period and stock
# that hasn't sold during it ("dead stock"). Both are candidates for
# listing on the marketplace.
# =============================================================================

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from .base import RecordModel


class AnalysisPeriod(str, Enum):
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"

    @property
    def days(self) -> int:
        """Expiry horizon and sales look-back window, in days."""
        return 90 if self is AnalysisPeriod.THREE_MONTHS else 180


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DeadStockStatus(str, Enum):
    DEAD_STOCK = "dead_stock"
    NORMAL = "normal"


# =============================================================================
# Analyzer Input
# =============================================================================

class InventoryItem(BaseModel):
    """
    One inventory row.

    expiry_date is kept raw: it may be a date string, a date object or an
    Excel serial number, and is interpreted by the analyzer.
    """

    product_name: str
    specification: str = ""
    manufacturing_number: str = ""
    expiry_date: Any = None
    quantity: int = 0


class SalesItem(BaseModel):
    """One sales history row."""

    sales_date: Any
    product_name: str
    specification: str = ""
    quantity: int = 0


# =============================================================================
# Analyzer Output
# =============================================================================

class ExpiringItem(BaseModel):
    product_name: str
    specification: str
    manufacturing_number: str = ""
    expiry_date: str = Field(..., description="YYYY-MM-DD")
    days_remaining: int
    quantity: int
    risk_level: RiskLevel
    priority: int = Field(..., ge=1, le=3)


class DeadStockItem(BaseModel):
    product_name: str
    specification: str
    quantity: int
    last_sales_date: str | None = None
    no_sales_period: int = Field(..., description="Days since the last sale")
    dead_stock_status: DeadStockStatus
    priority: int = Field(..., ge=1, le=3)


class InventoryAnalysisStatistics(BaseModel):
    total_items: int = 0
    expiring_count: int = 0
    expiring_percentage: float = 0.0
    dead_stock_count: int = 0
    dead_stock_percentage: float = 0.0
    risk_level_high: int = 0
    risk_level_medium: int = 0
    risk_level_low: int = 0


class InventoryAnalysisResult(BaseModel):
    """Output of analyze_inventory()."""

    analysis_date: date
    period: AnalysisPeriod
    expiring_items: list[ExpiringItem] = Field(default_factory=list)
    dead_stock_items: list[DeadStockItem] = Field(default_factory=list)
    statistics: InventoryAnalysisStatistics = Field(default_factory=InventoryAnalysisStatistics)


class InventoryAnalysis(RecordModel):
    """Row of the inventory_analyses table."""

    id: UUID
    user_id: UUID
    analysis_period: AnalysisPeriod
    expiring_items: list[ExpiringItem] = Field(default_factory=list)
    dead_stock_items: list[DeadStockItem] = Field(default_factory=list)
    statistics: InventoryAnalysisStatistics = Field(default_factory=InventoryAnalysisStatistics)
    created_at: datetime | None = None
