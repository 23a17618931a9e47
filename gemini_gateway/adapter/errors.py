"""
Error Mapper

Classifies any failure into an outward AppError. Mapping never raises and
mapping an AppError returns it unchanged.
"""

from typing import Any

from gemini_gateway.common.errors import AppError, RateLimitError, ServerError, UpstreamError
from gemini_gateway.providers.gemini_client import GeminiAPIError


def map_error(exc: BaseException) -> AppError:
    """
    Map an exception to an outward error

    Order: an AppError passes through; a Gemini vendor error keeps its status
    (429 always becomes a rate limit error); anything else is a 500 server
    error carrying the raw error text.
    """
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, GeminiAPIError):
        if exc.status_code == 429:
            return RateLimitError(details={"upstream_message": exc.message})
        return UpstreamError(
            message=exc.message,
            code=(exc.status or "upstream_error").lower(),
            status_code=exc.status_code,
        )
    return ServerError(message=str(exc) or type(exc).__name__)


def error_response(exc: BaseException, include_details: bool = True) -> tuple[int, dict[str, Any]]:
    """Map an exception to (HTTP status, error body)."""
    error = map_error(exc)
    return error.status_code, error.to_dict(include_details=include_details)
