"""
Query building and pagination over a Maximo object structure.

A ResourceSet starts life as a fluent query builder for one object
structure. ``fetch()`` and ``nextpage()`` never mutate it; they return a new
ResourceSet holding a frozen copy of the query and one page of results.
"""

from __future__ import annotations
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Union

from .collection import Collection, decode_json, member_locator, next_page_link
from .query import Operator, QuerySpec, validate_direction, validate_page_size
from .resource import Resource
from .runtime.errors import ErrorCode, MaximoError, QueryUsageError, error_from_response
from .session import Session, build_url, encode_params


logger = logging.getLogger(__name__)


class ResourceSet:
    """
    Fluent query builder and result page for one object structure.

    Example:
        ```python
        assets = await (
            maximo.resourceobject("MXASSET")
            .select(["assetnum", "status"])
            .where("status").equal("OPERATING")
            .and_("siteid").in_(["BEDFORD", "NASHUA"])
            .orderby("assetnum", "desc")
            .pagesize(50)
            .fetch()
        )
        while assets is not None:
            for member in assets.this_resource_set():
                print(member["assetnum"])
            assets = await assets.nextpage()
        ```
    """

    def __init__(self, session: Session, mbo: str, spec: Optional[QuerySpec] = None,
                 collection: Optional[Collection] = None):
        self._session = session
        self._mbo = mbo
        self._spec = spec or QuerySpec(mbo=mbo)
        self._collection = collection if collection is not None else Collection.empty()
        self._fetched = collection is not None
        self._action: Optional[str] = None

    def __repr__(self) -> str:
        return f"ResourceSet({self._mbo!r}, size={self.size()})"

    def __len__(self) -> int:
        return self.size()

    def __iter__(self):
        return iter(self.resources())

    @property
    def mbo(self) -> str:
        return self._mbo

    @property
    def url(self) -> str:
        """Collection URL of the object structure."""
        return f"{self._session.options.root_url}/oslc/os/{self._mbo.lower()}"

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    @property
    def collection(self) -> Collection:
        return self._collection

    # -- builder ------------------------------------------------------

    def select(self, fields: Union[str, Sequence[str]]) -> ResourceSet:
        """Add fields to the selection, keeping first-seen order; a str is one field."""
        if isinstance(fields, str):
            fields = [fields]
        for name in fields:
            if name not in self._spec.select:
                self._spec.select.append(name)
        return self

    def where(self, field_name: str) -> ResourceSet:
        self._spec.open_clause(field_name, "where")
        return self

    def and_(self, field_name: str) -> ResourceSet:
        self._spec.open_clause(field_name, "and")
        return self

    def equal(self, value: Union[str, int, float]) -> ResourceSet:
        self._spec.close_clause(Operator.EQUAL, value)
        return self

    def in_(self, values: Sequence[Union[str, int]], is_int: bool = False) -> ResourceSet:
        """Membership predicate; ``is_int`` serializes the values unquoted."""
        self._spec.close_clause(Operator.IN, list(values), is_int)
        return self

    def notnull(self) -> ResourceSet:
        self._spec.close_clause(Operator.NOT_NULL)
        return self

    def orderby(self, field_name: str, direction: str = "asc") -> ResourceSet:
        """Order by a single field; replaces any previous ordering."""
        self._spec.order = (field_name, validate_direction(direction))
        return self

    def pagesize(self, size: int) -> ResourceSet:
        """
        Set the page size hint.

        Raises:
            QueryUsageError: Immediately, for anything but a positive int
        """
        self._spec.page_size = validate_page_size(size)
        return self

    def query_params(self) -> List[tuple]:
        return self._spec.to_params(self._session.common_params())

    def query_string(self) -> str:
        """Encoded query string the next fetch() will send."""
        return encode_params(self.query_params())

    # -- execution ----------------------------------------------------

    def _page(self, payload: Any, url: str) -> ResourceSet:
        if not isinstance(payload, dict):
            raise MaximoError(f"Expected a collection envelope from {url}",
                              ErrorCode.INVALID_RESPONSE, details={"url": url})
        collection = Collection.from_json(payload)
        logger.debug(f"{self._mbo}: {len(collection)} members, next page: {collection.next_page}")
        return ResourceSet(self._session, self._mbo, self._spec.frozen(), collection)

    async def _get_page(self, url: str) -> ResourceSet:
        response = await self._session.request("GET", url)
        if not response.ok:
            raise error_from_response(response.status, response.body, f"query {self._mbo}")
        return self._page(decode_json(response.body, f"{self._mbo} collection"), url)

    async def fetch(self) -> ResourceSet:
        """
        Run the query.

        Returns:
            New ResourceSet holding the first page

        Raises:
            QueryUsageError: If the clause sequence is malformed (no request is sent)
            RequestFailedError: On non-2xx responses
        """
        url = build_url(self.url, self.query_params())
        return await self._get_page(url)

    async def nextpage(self, resource_set_json: Optional[Dict[str, Any]] = None) -> Optional[ResourceSet]:
        """
        Follow the server's next-page link.

        Args:
            resource_set_json: Envelope of the previous page; defaults to this set's

        Returns:
            The next page, or None when there are no further pages (no request sent)
        """
        envelope = resource_set_json if resource_set_json is not None else self._collection.envelope
        link = next_page_link(envelope)
        if link is None:
            logger.debug(f"{self._mbo}: no further pages")
            return None
        return await self._get_page(link)

    async def pages(self) -> AsyncIterator[ResourceSet]:
        """Yield this page (fetching it first if needed) and every following one."""
        page: Optional[ResourceSet] = self if self._fetched else await self.fetch()
        while page is not None:
            yield page
            page = await page.nextpage()

    # -- results ------------------------------------------------------

    def size(self) -> int:
        """Members on the current page."""
        return len(self._collection)

    def total_count(self) -> Optional[int]:
        """Server-declared total across all pages, if provided."""
        return self._collection.total_count

    def this_resource_set(self) -> List[Dict[str, Any]]:
        return [dict(m.data) for m in self._collection.members]

    def json(self, resource_set_json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Get the raw envelope, or replace it with ``resource_set_json``."""
        if resource_set_json is not None:
            self._collection = Collection.from_json(resource_set_json)
            self._fetched = True
        return self._collection.envelope

    def resources(self) -> List[Resource]:
        return [Resource(self._session, m.uri, m.data) for m in self._collection.members]

    def resource(self, index: Union[int, str]) -> Resource:
        """
        Handle for a member by position, or for any record by URI.

        Raises:
            IndexError: If ``index`` is out of range for the current page
        """
        if isinstance(index, str):
            for member in self._collection.members:
                if member.uri == index:
                    return Resource(self._session, member.uri, member.data)
            return Resource(self._session, index)
        member = self._collection.members[index]
        return Resource(self._session, member.uri, member.data)

    # -- record creation and actions -----------------------------------

    async def create(self, data: Mapping[str, Any], properties: Optional[Sequence[str]] = None) -> Resource:
        """
        Create a record in this object structure.

        Returns:
            Resource built from the response body, or from the Location
            header when the server sends none
        """
        headers = {"Content-Type": "application/json"}
        if properties:
            headers["properties"] = ",".join(properties)
        url = build_url(self.url, self._session.common_params())

        response = await self._session.request("POST", url, headers, json.dumps(dict(data)))
        if not response.ok:
            raise error_from_response(response.status, response.body, f"create {self._mbo}")

        payload = decode_json(response.body, f"create {self._mbo} response")
        if isinstance(payload, dict) and payload:
            return Resource(self._session, member_locator(payload) or response.header("Location"), payload)
        return Resource(self._session, response.header("Location"), dict(data))

    def action(self, name: str) -> ResourceSet:
        """Name the automation/web method the next invoke() calls."""
        self._action = name
        return self

    async def invoke(self, resource: Mapping[str, Any]) -> Any:
        """
        Invoke an action on one record.

        Args:
            resource: ``url`` of the record, optional ``action`` (overrides
                action()), and any action parameters such as ``status``/``memo``

        Returns:
            Decoded response body, or None when empty
        """
        target = dict(resource)
        url = target.pop("url", None)
        action = target.pop("action", None) or self._action
        if not url or not action:
            raise QueryUsageError("invoke() needs a record url and an action name")

        params = [("action", f"wsmethod:{action}")] + self._session.common_params()
        headers = {"x-method-override": "PATCH", "Content-Type": "application/json"}
        response = await self._session.request("POST", build_url(url, params), headers, json.dumps(target))
        if not response.ok:
            raise error_from_response(response.status, response.body, f"invoke {action}")
        return decode_json(response.body, f"{action} response")

    async def _get_schema(self, params: List[tuple]) -> Any:
        url = build_url(f"{self._session.options.root_url}/oslc/jsonschemas/{self._mbo.lower()}", params)
        response = await self._session.request("GET", url)
        if not response.ok:
            raise error_from_response(response.status, response.body, f"schema {self._mbo}")
        return decode_json(response.body, f"{self._mbo} schema")

    async def schema(self) -> Any:
        """JSON schema of the object structure."""
        return await self._get_schema(self._session.common_params())

    async def schemarelated(self) -> Any:
        """JSON schema including related objects."""
        return await self._get_schema([("oslc.select", "*")] + self._session.common_params())
