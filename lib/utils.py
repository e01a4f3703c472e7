# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application:
# - UUID normalization
# - Company name / business number formatting
# - Date normalization for product expiry dates
# - Base error class for library-level errors
# =============================================================================

import re
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

# Written into profiles by the signup trigger until the user fills in real data
PLACEHOLDER_COMPANY_NAME = "임시회사명"
PLACEHOLDER_BUSINESS_NUMBER_PREFIX = "TEMP-"

_PARENTHESIZED = re.compile(r"\s*\([^)]*\)\s*")


# =============================================================================
# UUID / Time Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        normalize_uuid(uuid_obj)  # "550e8400-..."
        normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string (for timestamp columns)."""
    return datetime.now(timezone.utc).isoformat()


def embedded_row(value: Any) -> dict[str, Any]:
    """A to-one PostgREST embed as a dict; embeds sometimes arrive as a list."""
    if isinstance(value, list):
        return value[0] if value else {}
    return value or {}


# =============================================================================
# Company Formatting
# =============================================================================

def is_placeholder_company(name: str | None) -> bool:
    """True if the company name is missing, blank or the signup placeholder."""
    return not name or not name.strip() or name.strip() == PLACEHOLDER_COMPANY_NAME


def is_placeholder_business_number(number: str | None) -> bool:
    """True if the business number is missing, blank or a TEMP- placeholder."""
    return (
        not number
        or not number.strip()
        or number.strip().startswith(PLACEHOLDER_BUSINESS_NUMBER_PREFIX)
    )


def normalize_business_number(number: str) -> str:
    """Strip hyphens: "123-45-67890" -> "1234567890"."""
    return number.replace("-", "").strip()


def format_company_name(name: str | None, fallback: str = "-") -> str:
    """
    Format a company name for display.

    Parenthesized segments such as role tags are removed and the result is
    trimmed. Missing or placeholder names render as the fallback.

    Example:
        format_company_name("조형익팜(buyer)")  # "조형익팜"
        format_company_name("임시회사명")      # "-"
    """
    if is_placeholder_company(name):
        return fallback

    cleaned = _PARENTHESIZED.sub("", name).strip()
    return cleaned or fallback


def format_company_name_with_email(
    name: str | None,
    email: str | None = None,
    fallback: str = "-",
) -> str:
    """
    Company name for lists that also show the email.

    The email is not substituted for a missing name; the fallback is used.
    """
    if is_placeholder_company(name):
        return fallback
    return name


# =============================================================================
# Date Utilities
# =============================================================================

def normalize_date(value: Any) -> str | None:
    """
    Normalize a date-ish value to YYYY-MM-DD.

    Accepts date/datetime objects and strings such as "2025-03-01",
    "2025-03-01T00:00:00Z", "2025.03.01" or "2025/03/01".

    Returns:
        The date string, or None if the value is empty or unparseable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None

    candidate = text[:10].replace(".", "-").replace("/", "-")
    try:
        return datetime.strptime(candidate, "%Y-%m-%d").date().isoformat()
    except ValueError:
        pass

    if len(text) == 8 and text.isdigit():
        try:
            return datetime.strptime(text, "%Y%m%d").date().isoformat()
        except ValueError:
            return None
    return None


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for library-level errors.

    Errors should tell HOW to fix, not just WHAT failed.

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }
