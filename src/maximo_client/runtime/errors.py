"""
Maximo Error Model

This module provides the error handling framework for the Maximo client,
mapping HTTP status codes and OSLC error payloads onto a small exception
hierarchy.
"""

from __future__ import annotations
import json
from typing import Optional, Dict, Any, Union
from enum import IntEnum


class ErrorCode(IntEnum):
    """Client-side error codes."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INVALID_CONFIGURATION = 2

    # Network errors (200-299)
    NETWORK_ERROR = 200
    CONNECTION_FAILED = 201
    TIMEOUT = 202

    # Authentication errors (300-399)
    UNAUTHENTICATED = 300
    AUTHORIZATION_EXPIRED = 301

    # Query usage errors (400-499)
    INVALID_QUERY = 400
    UNTERMINATED_CLAUSE = 401
    INVALID_PAGE_SIZE = 402
    INVALID_ORDER = 403

    # Request errors (500-599)
    REQUEST_FAILED = 500
    INVALID_RESPONSE = 501


class MaximoError(Exception):
    """
    Base class for all Maximo client errors.

    Carries a code, optional structured details and the underlying cause.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a Maximo error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ConfigurationError(MaximoError):
    """Invalid or missing connection options."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_CONFIGURATION, details, cause)


class TransportError(MaximoError):
    """Network-level failure below HTTP."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.NETWORK_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class AuthenticationError(MaximoError):
    """Login handshake failed or was rejected."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNAUTHENTICATED,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, code, details, cause)
        self.status_code = status_code


class AuthorizationExpiredError(AuthenticationError):
    """Request rejected for a stale session even after re-authenticating."""

    def __init__(self, message: str = "Session rejected after re-authentication",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None,
                 status_code: Optional[int] = 401):
        super().__init__(message, ErrorCode.AUTHORIZATION_EXPIRED, details, cause, status_code)


class QueryUsageError(MaximoError):
    """Query builder misuse: bad clause order, page size or direction."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_QUERY,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code, details)


class RequestFailedError(MaximoError):
    """Non-2xx response on a data operation."""

    def __init__(self, message: str, status_code: int, body: Union[bytes, str, None] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.REQUEST_FAILED, details)
        self.status_code = status_code
        self.body = body

    @property
    def reason_code(self) -> Optional[str]:
        """Maximo message key (e.g. BMXAA4211E) when the server sent one."""
        return self.details.get("reasonCode")


def _decode_error_payload(body: Union[bytes, str, None]) -> Dict[str, Any]:
    """Pull message/reasonCode out of an OSLC error body, lean or not."""
    if not body:
        return {}
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return {}
    if not isinstance(data, dict):
        return {}

    error = data.get("oslc:Error") or data.get("Error")
    if not isinstance(error, dict):
        return {}

    details: Dict[str, Any] = {}
    for key in ("message", "reasonCode", "statusCode"):
        value = error.get(f"oslc:{key}", error.get(f"spi:{key}", error.get(key)))
        if value is not None:
            details[key] = value
    return details


def error_from_response(status_code: int, body: Union[bytes, str, None] = None,
                        operation: str = "request") -> RequestFailedError:
    """
    Create a RequestFailedError from a non-2xx response.

    Args:
        status_code: HTTP status
        body: Raw response body
        operation: Short description of what was attempted, used in the message

    Returns:
        Error instance carrying status, body and parsed server details
    """
    details = _decode_error_payload(body)
    message = details.get("message") or f"HTTP {status_code}"
    return RequestFailedError(f"{operation} failed: {message}", status_code, body, details)


class ErrorHandler:
    """
    Utility class for handling and categorizing errors.
    """

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        """
        Check if an error is worth retrying by the caller.

        Args:
            error: Exception to check

        Returns:
            True for 5xx responses, expired sessions and transport failures
        """
        if isinstance(error, AuthorizationExpiredError):
            return True
        if isinstance(error, TransportError):
            return True
        if isinstance(error, RequestFailedError):
            return error.status_code >= 500
        return False


__all__ = [
    "ErrorCode",
    "MaximoError",
    "ConfigurationError",
    "TransportError",
    "AuthenticationError",
    "AuthorizationExpiredError",
    "QueryUsageError",
    "RequestFailedError",
    "error_from_response",
    "ErrorHandler",
]
