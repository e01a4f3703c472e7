# =============================================================================
# lib/spreadsheet.py - Inventory / Sales Workbook I/O
# =============================================================================
# Reads the spreadsheets sellers export from their pharmacy ERP systems and
# writes the inventory analysis back out as an Excel workbook.
#
# ERP exports don't agree on column names, so each field is looked up under
# several Korean and English aliases (제품명 / 상품명 / product_name, ...).
# Only the first sheet of a workbook is read.
#
# Usage:
#   from lib.spreadsheet import read_inventory_file, read_sales_file
#   items = read_inventory_file(content, "inventory.xlsx")
# =============================================================================

import io
import logging
import math
import numbers
from typing import Any

import pandas as pd

from core.models import (
    DeadStockItem,
    DeadStockStatus,
    ExpiringItem,
    InventoryAnalysisStatistics,
    InventoryItem,
    SalesItem,
)
from lib.utils import ApplicationError

# Set up logging for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Column Aliases
# =============================================================================

INVENTORY_PRODUCT_ALIASES = ["제품명", "상품명", "제품", "상품", "product_name"]
SALES_PRODUCT_ALIASES = ["상품명", "제품명", "제품", "상품", "product_name"]
SPECIFICATION_ALIASES = ["규격", "포장단위", "포장수량", "specification"]
LOT_ALIASES = ["제조번호", "LOT", "LOT번호", "lot", "lot번호", "manufacturing_number"]
EXPIRY_ALIASES = ["유효기간", "유통기한", "사용기한", "expiry_date"]
QUANTITY_ALIASES = ["수량", "갯수", "수", "quantity"]
SALES_DATE_ALIASES = ["매출일", "출하일", "매출일자", "출하일자", "sales_date"]

# Korean ERP CSV exports are frequently CP949
CSV_ENCODINGS_TO_TRY = ["utf-8-sig", "cp949", "euc-kr"]

# Export sheet names
EXPIRING_SHEET = "유효기간 임박 재고"
DEAD_STOCK_SHEET = "불용 재고"
STATISTICS_SHEET = "통계"


class SpreadsheetError(ApplicationError):
    """Raised when an uploaded spreadsheet cannot be read."""

    def __init__(self, message: str, filename: str | None = None):
        super().__init__(
            message,
            code="SPREADSHEET_READ_FAILED",
            suggestion="Upload the first sheet as .xlsx, or a CSV saved as UTF-8 or CP949",
            details={"filename": filename} if filename else None,
        )


# =============================================================================
# Reading
# =============================================================================

def read_table(content: bytes, filename: str) -> pd.DataFrame:
    """
    Load the first sheet of an .xlsx file, or a .csv file, into a DataFrame.

    Header names are stripped of surrounding whitespace.

    Raises:
        SpreadsheetError: If the file is empty or can't be parsed
    """
    if not content:
        raise SpreadsheetError("File is empty", filename)

    name = (filename or "").lower()

    if name.endswith(".csv"):
        df = None
        for encoding in CSV_ENCODINGS_TO_TRY:
            try:
                df = pd.read_csv(io.BytesIO(content), encoding=encoding)
                break
            except UnicodeDecodeError:
                continue
            except Exception as e:
                raise SpreadsheetError(f"Could not parse CSV: {e}", filename)
        if df is None:
            raise SpreadsheetError("Could not decode CSV with any supported encoding", filename)
    else:
        try:
            df = pd.read_excel(io.BytesIO(content), sheet_name=0, engine="openpyxl")
        except Exception as e:
            raise SpreadsheetError(f"Could not parse workbook: {e}", filename)

    df.columns = [str(col).strip() for col in df.columns]
    logger.debug(f"Read {len(df)} rows from {filename} (columns: {list(df.columns)})")
    return df


def _clean_cell(value: Any) -> Any:
    """Convert pandas/numpy cell values to plain Python; blanks become None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if hasattr(value, "item") and not isinstance(value, pd.Timestamp):
        value = value.item()
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _first_value(row: dict[str, Any], aliases: list[str]) -> Any:
    """First non-blank value among the alias columns present in the row."""
    for alias in aliases:
        value = _clean_cell(row.get(alias))
        if value is not None:
            return value
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _as_quantity(value: Any) -> int:
    """Whole-unit quantity; unreadable values count as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, numbers.Real):
        number = float(value)
    else:
        try:
            number = float(str(value).replace(",", "").strip())
        except ValueError:
            return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def read_inventory_file(content: bytes, filename: str) -> list[InventoryItem]:
    """
    Parse an inventory export.

    Rows are kept when they have a product name and a positive quantity.
    Expiry values are passed through unparsed (strings, dates or Excel
    serial numbers) for the analyzer to interpret.

    Raises:
        SpreadsheetError: If the file can't be read
    """
    df = read_table(content, filename)
    items: list[InventoryItem] = []

    for row in df.to_dict(orient="records"):
        product_name = _as_text(_first_value(row, INVENTORY_PRODUCT_ALIASES))
        quantity = _as_quantity(_first_value(row, QUANTITY_ALIASES))
        if not product_name or quantity <= 0:
            continue

        items.append(
            InventoryItem(
                product_name=product_name,
                specification=_as_text(_first_value(row, SPECIFICATION_ALIASES)),
                manufacturing_number=_as_text(_first_value(row, LOT_ALIASES)),
                expiry_date=_first_value(row, EXPIRY_ALIASES),
                quantity=quantity,
            )
        )

    logger.info(f"Parsed {len(items)} inventory rows from {filename} ({len(df)} raw rows)")
    return items


def read_sales_file(content: bytes, filename: str) -> list[SalesItem]:
    """
    Parse a sales history export.

    Rows are kept when they have a product name and a sales date.

    Raises:
        SpreadsheetError: If the file can't be read
    """
    df = read_table(content, filename)
    items: list[SalesItem] = []

    for row in df.to_dict(orient="records"):
        product_name = _as_text(_first_value(row, SALES_PRODUCT_ALIASES))
        sales_date = _first_value(row, SALES_DATE_ALIASES)
        if not product_name or sales_date is None:
            continue

        items.append(
            SalesItem(
                sales_date=sales_date,
                product_name=product_name,
                specification=_as_text(_first_value(row, SPECIFICATION_ALIASES)),
                quantity=_as_quantity(_first_value(row, QUANTITY_ALIASES)),
            )
        )

    logger.info(f"Parsed {len(items)} sales rows from {filename} ({len(df)} raw rows)")
    return items


# =============================================================================
# Export
# =============================================================================

def build_analysis_workbook(
    expiring_items: list[ExpiringItem],
    dead_stock_items: list[DeadStockItem],
    statistics: InventoryAnalysisStatistics,
) -> bytes:
    """
    Render an analysis as an .xlsx workbook with three sheets:
    expiring stock, dead stock and summary statistics.

    Returns:
        Workbook bytes
    """
    expiring_df = pd.DataFrame(
        [
            {
                "제품명": item.product_name,
                "규격": item.specification,
                "제조번호": item.manufacturing_number,
                "유효기간": item.expiry_date,
                "남은기간": f"{item.days_remaining}일",
                "수량": item.quantity,
                "위험도": item.risk_level.value,
            }
            for item in expiring_items
        ],
        columns=["제품명", "규격", "제조번호", "유효기간", "남은기간", "수량", "위험도"],
    )

    dead_stock_df = pd.DataFrame(
        [
            {
                "제품명": item.product_name,
                "규격": item.specification,
                "수량": item.quantity,
                "마지막매출일": item.last_sales_date or "-",
                "미매출기간": f"{item.no_sales_period}일",
                "상태": "불용 재고" if item.dead_stock_status is DeadStockStatus.DEAD_STOCK else "일반 재고",
            }
            for item in dead_stock_items
        ],
        columns=["제품명", "규격", "수량", "마지막매출일", "미매출기간", "상태"],
    )

    statistics_df = pd.DataFrame(
        [
            {"항목": "총 재고 수", "값": statistics.total_items},
            {"항목": "유효기간 임박 재고 수", "값": statistics.expiring_count},
            {"항목": "유효기간 임박 재고 비율", "값": f"{statistics.expiring_percentage:.2f}%"},
            {"항목": "불용 재고 수", "값": statistics.dead_stock_count},
            {"항목": "불용 재고 비율", "값": f"{statistics.dead_stock_percentage:.2f}%"},
            {"항목": "위험도 높음", "값": statistics.risk_level_high},
            {"항목": "위험도 중간", "값": statistics.risk_level_medium},
            {"항목": "위험도 낮음", "값": statistics.risk_level_low},
        ]
    )

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        expiring_df.to_excel(writer, sheet_name=EXPIRING_SHEET, index=False)
        dead_stock_df.to_excel(writer, sheet_name=DEAD_STOCK_SHEET, index=False)
        statistics_df.to_excel(writer, sheet_name=STATISTICS_SHEET, index=False)

    return buffer.getvalue()
