"""
Tests for the error taxonomy.
"""

import json

from maximo_client import (
    AuthenticationError, AuthorizationExpiredError, ErrorCode, ErrorHandler, QueryUsageError,
    RequestFailedError, TransportError, error_from_response,
)


class TestErrorFromResponse:
    """Test mapping responses to errors."""

    def test_namespaced_error_body(self):
        body = json.dumps({"oslc:Error": {"oslc:message": "BMXAA4211E - no record",
                                          "spi:reasonCode": "BMXAA4211E",
                                          "oslc:statusCode": "404"}}).encode()
        err = error_from_response(404, body, "fetch")
        assert isinstance(err, RequestFailedError)
        assert err.status_code == 404
        assert err.body == body
        assert err.reason_code == "BMXAA4211E"
        assert "BMXAA4211E - no record" in str(err)

    def test_lean_error_body(self):
        body = json.dumps({"Error": {"message": "bad", "reasonCode": "X1"}})
        err = error_from_response(400, body)
        assert err.details == {"message": "bad", "reasonCode": "X1"}

    def test_unparseable_body(self):
        err = error_from_response(502, b"<html>Bad gateway</html>")
        assert err.message == "request failed: HTTP 502"
        assert err.reason_code is None

    def test_to_dict(self):
        err = error_from_response(500, None)
        assert err.to_dict() == {"code": ErrorCode.REQUEST_FAILED.value, "message": "request failed: HTTP 500"}


class TestHierarchy:
    """Test error relationships."""

    def test_expired_is_authentication_error(self):
        err = AuthorizationExpiredError()
        assert isinstance(err, AuthenticationError)
        assert err.code == ErrorCode.AUTHORIZATION_EXPIRED
        assert err.status_code == 401

    def test_str_includes_code(self):
        assert str(QueryUsageError("bad")).startswith("[INVALID_QUERY] bad")


class TestRetryable:
    """Test retry classification."""

    def test_server_errors_are_retryable(self):
        assert ErrorHandler.is_retryable(RequestFailedError("x", 503))
        assert ErrorHandler.is_retryable(AuthorizationExpiredError())
        assert ErrorHandler.is_retryable(TransportError("reset"))

    def test_client_errors_are_not(self):
        assert not ErrorHandler.is_retryable(RequestFailedError("x", 400))
        assert not ErrorHandler.is_retryable(RequestFailedError("x", 409))
        assert not ErrorHandler.is_retryable(QueryUsageError("x"))
        assert not ErrorHandler.is_retryable(AuthenticationError("x"))
        assert not ErrorHandler.is_retryable(ValueError("x"))
