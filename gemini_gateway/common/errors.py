"""
Error Definitions

Defines the outward error taxonomy. Every error rendered to a client is an
AppError and serializes to the OpenAI error body shape.
"""

from typing import Any, Optional


class AppError(Exception):
    """
    Application Base Exception

    Base class for all custom exceptions, containing error message, type, code and HTTP status.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "server_error",
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            error_type: Error type
            code: Error code
            details: Extra error details
            status_code: HTTP status code
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.code = code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        """
        Convert to dictionary format (for API response)

        Args:
            include_details: Whether extra details are included

        Returns:
            dict: Error information dictionary
        """
        result = {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }
        if include_details and self.details:
            result["error"]["details"] = self.details
        return result


class ValidationError(AppError):
    """
    Request Validation Error

    Raised when the request is malformed: missing fields, unparseable message
    content, unparseable tool arguments or an unreadable image.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        code: str = "invalid_request",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="invalid_request_error",
            code=code,
            details=details,
            status_code=400,
        )


class UnsupportedOperationError(AppError):
    """
    Unsupported Operation Error

    Raised for a chat request against an embedding model or vice versa.
    """

    def __init__(
        self,
        message: str = "Operation not supported",
        code: str = "unsupported_operation",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="invalid_request_error",
            code=code,
            details=details,
            status_code=400,
        )


class AuthenticationError(AppError):
    """
    Authentication Error

    Raised when the request carries no credential to forward.
    """

    def __init__(
        self,
        message: str = "Missing API key",
        code: str = "invalid_api_key",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="authentication_error",
            code=code,
            details=details,
            status_code=401,
        )


class NotFoundError(AppError):
    """
    Resource Not Found Error

    Raised when a requested model does not exist.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        code: str = "not_found",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="not_found_error",
            code=code,
            details=details,
            status_code=404,
        )


class RequestCancelledError(AppError):
    """
    Request Cancelled Error

    Raised when the caller went away while the backend call was in flight.
    """

    def __init__(
        self,
        message: str = "Request was canceled",
        code: str = "request_canceled",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="canceled_error",
            code=code,
            details=details,
            status_code=408,
        )


class RateLimitError(AppError):
    """
    Rate Limit Error

    Raised when the backend answers HTTP 429. Not retried by the gateway.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        code: str = "rate_limit_exceeded",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="rate_limit_error",
            code=code,
            details=details,
            status_code=429,
        )


class UpstreamError(AppError):
    """
    Upstream Service Error

    Raised when the backend returns a non-success status other than 429.
    """

    def __init__(
        self,
        message: str = "Upstream service error",
        code: str = "upstream_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 502,
    ):
        super().__init__(
            message=message,
            error_type="upstream_error",
            code=code,
            details=details,
            status_code=status_code,
        )


class ServerError(AppError):
    """
    Server Error

    Generic internal failure.
    """

    def __init__(
        self,
        message: str = "Internal server error",
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="server_error",
            code=code,
            details=details,
            status_code=500,
        )
