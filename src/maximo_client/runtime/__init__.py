"""
Runtime support for the Maximo client.
"""

from .errors import *

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
