"""
Record handles.

A Resource wraps one member of a collection: its locator URI, a copy of its
field values and the Session it was read through. Write operations never
touch the handle they are called on; they return a new Resource built from
what the server sent back.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from .collection import LOCATOR_KEYS, decode_json, member_locator
from .options import AttachmentMeta
from .runtime.errors import ConfigurationError, ErrorCode, MaximoError, error_from_response
from .session import CookieInput, Session, build_url

if TYPE_CHECKING:
    from .attachment import Attachment


logger = logging.getLogger(__name__)


@dataclass
class RelationRequest:
    """Pending traversal consumed by the next fetch()."""
    name: Optional[str] = None
    properties: List[str] = field(default_factory=list)

    @property
    def pending(self) -> bool:
        return self.name is not None or bool(self.properties)


class Resource:
    """Handle on a single Maximo record."""

    def __init__(self, session: Session, uri: Optional[str], data: Optional[Mapping[str, Any]] = None):
        self._session = session
        self._uri = uri
        self._data: Dict[str, Any] = dict(data or {})
        self._relation = RelationRequest()

    def __repr__(self) -> str:
        return f"Resource({self._uri!r})"

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    @property
    def uri(self) -> Optional[str]:
        return self._uri

    @property
    def session(self) -> Session:
        return self._session

    @property
    def pending_relation(self) -> RelationRequest:
        return self._relation

    def json(self) -> Dict[str, Any]:
        """Copy of the record's field values."""
        return dict(self._data)

    def set_cookie(self, cookie: CookieInput) -> None:
        """Replace the owning session's cookie."""
        self._session.set_cookie(cookie)

    def _require_uri(self, operation: str) -> str:
        if not self._uri:
            raise MaximoError(f"Cannot {operation}: record has no locator (select href or rdf:about)",
                              ErrorCode.INVALID_RESPONSE, details={"data": self._data})
        return self._uri

    # -- chainable relation request -----------------------------------

    def related_resource(self, relation_name: str) -> Resource:
        """Traverse ``relation_name`` on the next fetch()."""
        self._relation.name = relation_name
        return self

    def properties(self, names: Sequence[str]) -> Resource:
        """Properties to return on the next fetch()."""
        self._relation.properties = list(names)
        return self

    # -- I/O ----------------------------------------------------------

    def _applied(self, data: Mapping[str, Any], properties: Optional[Sequence[str]]) -> Dict[str, Any]:
        values = {**self._data, **dict(data)}
        if not properties:
            return values
        keep = set(properties) | set(LOCATOR_KEYS)
        return {k: v for k, v in values.items() if k in keep}

    def _from_payload(self, payload: Any, fallback: Dict[str, Any], uri: Optional[str] = None) -> Resource:
        if isinstance(payload, dict) and payload:
            return Resource(self._session, member_locator(payload) or uri or self._uri, payload)
        return Resource(self._session, uri or self._uri, fallback)

    async def _post(self, operation: str, override: str, data: Optional[Mapping[str, Any]],
                    properties: Optional[Sequence[str]], extra_headers: Optional[Dict[str, str]] = None) -> Any:
        uri = self._require_uri(operation)
        headers = {"x-method-override": override}
        if extra_headers:
            headers.update(extra_headers)
        if properties:
            headers["properties"] = ",".join(properties)
        body = None
        if data is not None:
            headers["Content-Type"] = "application/json"
            body = json.dumps(dict(data))

        url = build_url(uri, self._session.common_params())
        response = await self._session.request("POST", url, headers, body)
        if not response.ok:
            logger.debug(f"{operation} {uri} failed with HTTP {response.status}")
            raise error_from_response(response.status, response.body, f"{operation} {uri}")
        return decode_json(response.body, f"{operation} response")

    async def update(self, data: Mapping[str, Any], properties: Optional[Sequence[str]] = None) -> Resource:
        """
        Partially update the record.

        Args:
            data: Fields to change
            properties: Fields the server should return

        Returns:
            New Resource with the server's response. When the server sends no
            body, this record's values with ``data`` applied, narrowed to
            ``properties`` and the locator when those were requested

        Raises:
            RequestFailedError: On non-2xx; this handle is left unchanged
        """
        payload = await self._post("update", "PATCH", data, properties)
        return self._from_payload(payload, self._applied(data, properties))

    async def merge(self, data: Mapping[str, Any], properties: Optional[Sequence[str]] = None) -> Resource:
        """Like update(), but child objects are merged rather than replaced."""
        payload = await self._post("merge", "PATCH", data, properties, {"patchtype": "MERGE"})
        return self._from_payload(payload, self._applied(data, properties))

    async def delete(self, data: Optional[Mapping[str, Any]] = None,
                     properties: Optional[Sequence[str]] = None) -> Resource:
        """Delete the record; returns its pre-deletion state unless echoed."""
        payload = await self._post("delete", "DELETE", data, properties)
        return self._from_payload(payload, dict(self._data))

    async def fetch(self) -> Resource:
        """
        Re-read the record, applying any pending relation request.

        With ``related_resource(name)`` set, reads ``{uri}/{name}`` selecting
        the requested properties. The request is cleared afterwards whether
        or not the read succeeded.
        """
        uri = self._require_uri("fetch")
        request, self._relation = self._relation, RelationRequest()

        params = list(self._session.common_params())
        if request.name:
            url = f"{uri.rstrip('/')}/{request.name}"
            if request.properties:
                params.append(("oslc.select", ",".join(request.properties)))
        else:
            url = uri
            if request.properties:
                params.append(("oslc.properties", ",".join(request.properties)))

        response = await self._session.request("GET", build_url(url, params))
        if not response.ok:
            raise error_from_response(response.status, response.body, f"fetch {url}")

        payload = decode_json(response.body, "fetch response")
        if request.name:
            return Resource(self._session, url, payload if isinstance(payload, dict) else {})
        return self._from_payload(payload, dict(self._data))

    def attachment(self, meta: Union[AttachmentMeta, Mapping[str, Any]]) -> Attachment:
        """
        Attachment handle bound to this record; performs no I/O.

        Raises:
            ConfigurationError: If ``meta`` is a mapping that fails validation
        """
        from .attachment import Attachment

        if not isinstance(meta, AttachmentMeta):
            try:
                meta = AttachmentMeta(**dict(meta))
            except ValidationError as e:
                raise ConfigurationError(f"Invalid attachment metadata: {e.error_count()} error(s)",
                                         details={"errors": e.errors(include_url=False)}, cause=e) from e
        return Attachment(self._session, self._require_uri("attach"), meta)
