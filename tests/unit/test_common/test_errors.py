"""
Error Taxonomy Unit Tests
"""

import pytest

from gemini_gateway.common.errors import (
    AppError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    RequestCancelledError,
    ServerError,
    UnsupportedOperationError,
    UpstreamError,
    ValidationError,
)
from gemini_gateway.common.utils import generate_response_id


@pytest.mark.parametrize(
    "error,status,error_type",
    [
        (ValidationError(), 400, "invalid_request_error"),
        (UnsupportedOperationError(), 400, "invalid_request_error"),
        (AuthenticationError(), 401, "authentication_error"),
        (NotFoundError(), 404, "not_found_error"),
        (RequestCancelledError(), 408, "canceled_error"),
        (RateLimitError(), 429, "rate_limit_error"),
        (UpstreamError(), 502, "upstream_error"),
        (ServerError(), 500, "server_error"),
    ],
)
def test_error_status_and_type(error, status, error_type):
    assert isinstance(error, AppError)
    assert error.status_code == status
    assert error.error_type == error_type


def test_to_dict_details():
    error = ValidationError("bad", details={"errors": ["x"]})
    assert error.to_dict() == {
        "error": {"message": "bad", "type": "invalid_request_error", "code": "invalid_request", "details": {"errors": ["x"]}}
    }
    assert "details" not in error.to_dict(include_details=False)["error"]


def test_response_id_format():
    response_id = generate_response_id()
    assert response_id.startswith("chatcmpl-")
    assert len(response_id) == len("chatcmpl-") + 32
    assert generate_response_id() != response_id
