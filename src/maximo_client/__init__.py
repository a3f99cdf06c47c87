"""
Maximo Python Client

Async client for the IBM Maximo Integration Framework REST/OSLC API:
session handling, fluent queries with server-driven pagination, record
updates, actions and attachments.
"""

from .client import Maximo
from .options import MaximoOptions, AttachmentMeta
from .session import Session
from .query import QuerySpec, FilterClause, ClauseState
from .collection import Collection, Member
from .resource_set import ResourceSet
from .resource import Resource, RelationRequest
from .attachment import Attachment
from .transport import Transport, TransportResponse, AiohttpTransport, RequestsTransport
from .compat import with_callback
from .runtime.errors import *

__version__ = "1.0.0"
__all__ = [
    # Client
    "Maximo",
    "MaximoOptions",
    "AttachmentMeta",
    "Session",

    # Queries and results
    "QuerySpec",
    "FilterClause",
    "ClauseState",
    "Collection",
    "Member",
    "ResourceSet",
    "Resource",
    "RelationRequest",
    "Attachment",

    # Transports
    "Transport",
    "TransportResponse",
    "AiohttpTransport",
    "RequestsTransport",

    # Compatibility
    "with_callback",

    # Errors
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
