# =============================================================================
# app/responses.py - Success Envelope
# =============================================================================
# Every successful response leaves the API as:
#   {"success": true, "message": "...", "data": {...}, ...extra}
# Errors use the matching envelope built in app/exceptions.py.
# =============================================================================

from typing import Any


def success_response(
    data: Any = None,
    message: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """
    Build a success envelope.

    Args:
        data: Payload placed under "data" (omitted when None)
        message: Human-readable summary (omitted when None)
        **extra: Additional top-level keys (warnings, counts, ...)

    Example:
        success_response({"balance": 100}, "Balance loaded")
        # {"success": True, "message": "Balance loaded", "data": {"balance": 100}}
    """
    result: dict[str, Any] = {"success": True}
    if message is not None:
        result["message"] = message
    if data is not None:
        result["data"] = data
    result.update(extra)
    return result
