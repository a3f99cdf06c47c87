"""
Normalization of OSLC collection envelopes.

Maximo answers with namespaced keys (``rdfs:member``, ``rdf:about``,
``oslc:responseInfo``) or, in lean mode, plain ones (``member``, ``href``,
``responseInfo``). Everything past this module sees only Collection and
Member.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .runtime.errors import ErrorCode, MaximoError


MEMBER_KEYS = ("rdfs:member", "member")
LOCATOR_KEYS = ("rdf:about", "href", "rdf:resource", "localref")


def _first(mapping: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in mapping and mapping[key] is not None:
            return mapping[key]
    return None


def member_locator(data: Dict[str, Any]) -> Optional[str]:
    """URI identifying a member, whichever naming convention it uses."""
    value = _first(data, *LOCATOR_KEYS)
    return str(value) if value is not None else None


@dataclass
class Member:
    """One record of a collection: its locator and field values."""
    uri: Optional[str]
    data: Dict[str, Any]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Member:
        return cls(uri=member_locator(data), data=dict(data))


@dataclass
class Collection:
    """A normalized page of results."""
    members: List[Member] = field(default_factory=list)
    total_count: Optional[int] = None
    next_page: Optional[str] = None
    envelope: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.members)

    @classmethod
    def empty(cls) -> Collection:
        return cls()

    @classmethod
    def from_json(cls, envelope: Dict[str, Any]) -> Collection:
        raw_members = _first(envelope, *MEMBER_KEYS) or []
        members = [Member.from_json(m) for m in raw_members if isinstance(m, dict)]
        total = total_count(envelope)
        return cls(
            members=members,
            total_count=total,
            next_page=next_page_link(envelope),
            envelope=envelope,
        )


def _response_info(envelope: Dict[str, Any]) -> Dict[str, Any]:
    info = _first(envelope, "oslc:responseInfo", "responseInfo")
    return info if isinstance(info, dict) else {}


def next_page_link(envelope: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    The server-provided continuation URL, or None on the last page.

    The link is used verbatim; no client-side paging arithmetic.
    """
    if not envelope:
        return None
    next_page = _first(_response_info(envelope), "oslc:nextPage", "nextPage")
    if isinstance(next_page, str):
        return next_page or None
    if isinstance(next_page, dict):
        link = _first(next_page, "rdf:resource", "href")
        return str(link) if link else None
    return None


def total_count(envelope: Dict[str, Any]) -> Optional[int]:
    value = _first(_response_info(envelope), "oslc:totalCount", "totalCount")
    if value is None:
        value = _first(envelope, "oslc:totalCount", "totalCount")
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def decode_json(body: Union[bytes, str, None], what: str = "response") -> Any:
    """
    Decode a JSON body; empty bodies decode to None.

    Raises:
        MaximoError: If the body is not valid JSON
    """
    if body is None or (isinstance(body, (bytes, str)) and not body.strip()):
        return None
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MaximoError(f"Invalid JSON in {what}: {e}", ErrorCode.INVALID_RESPONSE, cause=e) from e
