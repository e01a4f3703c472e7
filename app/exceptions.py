# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error leaves the API in the same envelope:
#   {"success": false, "error": "...", "code": "..."}
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lib.supabase_client import SupabaseClientError


class MarketplaceException(Exception):
    """
    Base exception for the marketplace API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "MARKETPLACE_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Request Exceptions
# =============================================================================

class ValidationFailedError(MarketplaceException):
    """Raised when a request body is present but its values are unusable."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="INVALID_BODY",
            status_code=400,
            details=details,
        )


class MissingFieldsError(MarketplaceException):
    """Raised when required request fields are absent."""

    def __init__(self, missing_fields: list[str]):
        super().__init__(
            message=f"Missing required fields: {', '.join(missing_fields)}",
            code="MISSING_FIELDS",
            status_code=400,
            details={"missingFields": missing_fields},
        )


class InvalidStateError(MarketplaceException):
    """Raised when an entity is not in a state that allows the operation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="INVALID_STATE",
            status_code=400,
            details=details,
        )


# =============================================================================
# Auth Exceptions
# =============================================================================

class AuthenticationError(MarketplaceException):
    """Raised when the caller cannot be identified."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
        )


class PermissionDeniedError(MarketplaceException):
    """Raised when the caller is identified but not allowed to act."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
        )


class AdminRequiredError(MarketplaceException):
    """Raised when a non-admin calls an admin-only operation."""

    def __init__(self):
        super().__init__(
            message="Admin privileges are required",
            code="ADMIN_REQUIRED",
            status_code=403,
            suggestion="Sign in with an admin account",
        )


# =============================================================================
# Not Found Exceptions
# =============================================================================

class NotFoundError(MarketplaceException):
    """Raised when a referenced entity doesn't exist."""

    def __init__(self, entity: str, entity_id: str | None = None, code: str = "NOT_FOUND"):
        message = f"{entity} not found" + (f": {entity_id}" if entity_id else "")
        super().__init__(
            message=message,
            code=code,
            status_code=404,
            details={"id": entity_id} if entity_id else None,
        )


class ProfileNotFoundError(NotFoundError):
    def __init__(self, user_id: str | None = None):
        super().__init__("Profile", user_id, code="PROFILE_NOT_FOUND")


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str | None = None):
        super().__init__("Product", product_id, code="PRODUCT_NOT_FOUND")


class SalesListNotFoundError(NotFoundError):
    def __init__(self, list_id: str | None = None):
        super().__init__("Sales list", list_id, code="SALES_LIST_NOT_FOUND")


class PurchaseRequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str | None = None):
        super().__init__("Purchase request", request_id, code="PURCHASE_REQUEST_NOT_FOUND")


class ReportNotFoundError(NotFoundError):
    def __init__(self, report_id: str | None = None):
        super().__init__("Sales approval report", report_id, code="REPORT_NOT_FOUND")


class PointChargeRequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str | None = None):
        super().__init__("Point charge request", request_id, code="CHARGE_REQUEST_NOT_FOUND")


class InventoryAnalysisNotFoundError(NotFoundError):
    def __init__(self, analysis_id: str | None = None):
        super().__init__("Inventory analysis", analysis_id, code="ANALYSIS_NOT_FOUND")


# =============================================================================
# Points Exceptions
# =============================================================================

class InsufficientPointsError(MarketplaceException):
    """Raised when the points balance cannot cover a deduction."""

    def __init__(self, balance: int, required: int):
        super().__init__(
            message=f"Insufficient points: balance {balance}, required {required}",
            code="INSUFFICIENT_POINTS",
            status_code=400,
            suggestion="Submit a point charge request and wait for admin approval",
            details={"balance": balance, "required": required},
        )


class RpcError(MarketplaceException):
    """Raised when a stored procedure call fails or reports failure."""

    def __init__(self, function: str, error: str, code: str = "RPC_FAILED"):
        super().__init__(
            message=f"{function} failed: {error}",
            code=code,
            status_code=500,
            details={"function": function},
        )


# =============================================================================
# Database / Configuration Exceptions
# =============================================================================

class DatabaseError(MarketplaceException):
    """Raised when a table operation fails."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Failed to {operation}: {error}",
            code="DATABASE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
        )


class AuthAdminError(MarketplaceException):
    """Raised when a Supabase Auth admin API call fails."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Failed to {operation}: {error}",
            code="AUTH_ADMIN_ERROR",
            status_code=500,
            suggestion="Check SUPABASE_SERVICE_KEY and the Auth settings of the project",
        )


class ConfigurationError(MarketplaceException):
    """Raised when a required environment setting is missing."""

    def __init__(self, setting: str):
        super().__init__(
            message=f"Environment variable is not configured: {setting}",
            code="ENV_MISSING",
            status_code=500,
            suggestion=f"Set {setting} in the environment or .env file",
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(MarketplaceException):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed}
        )


class FileTooLargeError(MarketplaceException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class FileReadError(MarketplaceException):
    """Raised when an uploaded spreadsheet cannot be parsed."""

    def __init__(self, filename: str, error: str):
        super().__init__(
            message=f"Failed to read file: {error}",
            code="FILE_READ_ERROR",
            status_code=400,
            suggestion="Check that the file is a valid .xlsx or UTF-8 .csv file",
            details={"filename": filename}
        )


class StorageUploadError(MarketplaceException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def marketplace_exception_handler(
    request: Request,
    exc: MarketplaceException
) -> JSONResponse:
    """Convert MarketplaceException to the error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (401 from HTTPBearer, unknown routes) in the envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Missing or malformed body fields are client errors (400), matching the
    rest of the API rather than FastAPI's default 422.
    """
    errors = exc.errors()
    fields = [
        ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        for error in errors
    ]
    first = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": f"Invalid request: {first}",
            "code": "VALIDATION_ERROR",
            "details": {"fields": fields},
        }
    )


async def supabase_exception_handler(
    request: Request,
    exc: SupabaseClientError
) -> JSONResponse:
    """Surface Supabase wrapper failures as 500s."""
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": exc.message, "code": exc.code},
    )
