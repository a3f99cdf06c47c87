"""
Authenticated session handling.

A Session owns the credentials and the current session cookie for one
Maximo connection. Every request the client makes goes through
``Session.request``, which logs in lazily and re-authenticates once when the
server answers 401.
"""

from __future__ import annotations
import asyncio
import base64
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import quote, urlencode

from .options import MaximoOptions
from .runtime.errors import AuthenticationError, AuthorizationExpiredError
from .transport import Body, Transport, TransportResponse


logger = logging.getLogger(__name__)

CookieInput = Union[str, Sequence[str], Mapping[str, Any], None]


def normalize_cookie(cookie: CookieInput) -> List[str]:
    """
    Accept the cookie shapes callers pass around.

    A single string, a list of Set-Cookie strings, or
    a header mapping such as ``{"set-cookie": [...]}``.
    """
    if not cookie:
        return []
    if isinstance(cookie, str):
        return [cookie]
    if isinstance(cookie, Mapping):
        return normalize_cookie(cookie.get("set-cookie"))
    return [c for c in cookie if c]


def cookie_header(cookies: Iterable[str]) -> str:
    """Build a Cookie request header from Set-Cookie values."""
    pairs = []
    for cookie in cookies:
        pair = cookie.split(";", 1)[0].strip()
        if pair:
            pairs.append(pair)
    return "; ".join(pairs)


def encode_params(params: Sequence[Tuple[str, Any]]) -> str:
    """Percent-encode ordered query parameters, keeping ',' and '*' literal."""
    return urlencode([(k, str(v)) for k, v in params], quote_via=quote, safe=",*")


def build_url(url: str, params: Sequence[Tuple[str, Any]] = ()) -> str:
    """Append already-ordered query parameters to a URL."""
    if not params:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{encode_params(params)}"


class Session:
    """
    Session manager for one Maximo connection.

    The login handshake is a critical section: concurrent callers that find
    the session unauthenticated wait for a single handshake and share its
    cookie.
    """

    def __init__(self, options: MaximoOptions, transport: Transport, cookie: CookieInput = None):
        self.options = options
        self.transport = transport
        self._cookie: List[str] = []
        self._authenticated = False
        self._lock = asyncio.Lock()
        self.handshakes = 0
        self.set_cookie(cookie)

    @property
    def cookie(self) -> List[str]:
        return list(self._cookie)

    def set_cookie(self, cookie: CookieInput) -> None:
        """Adopt a previously obtained cookie; it is trusted until rejected."""
        self._cookie = normalize_cookie(cookie)
        self._authenticated = bool(self._cookie)

    def is_authenticated(self) -> bool:
        return self._authenticated

    def invalidate(self) -> None:
        """Forget the current cookie so the next request logs in again."""
        if self._authenticated:
            logger.debug("Invalidating session cookie")
        self._cookie = []
        self._authenticated = False

    def common_params(self) -> List[Tuple[str, str]]:
        """Query parameters every call carries (lean mode, tenant)."""
        params = []
        if self.options.lean:
            params.append(("lean", "1"))
        if self.options.tenantcode:
            params.append(("_tenantcode", self.options.tenantcode))
        return params

    def _login_request(self) -> Tuple[str, str, Dict[str, str], Body]:
        opts = self.options
        if opts.authtype == "form":
            url = build_url(f"{opts.root_url}/j_security_check", self.common_params())
            body = urlencode({"j_username": opts.user, "j_password": opts.password})
            headers = {"Content-Type": "application/x-www-form-urlencoded"}
            return "POST", url, headers, body

        token = base64.b64encode(f"{opts.user}:{opts.password}".encode("utf-8")).decode("ascii")
        url = build_url(f"{opts.root_url}/oslc/login", self.common_params())
        return "GET", url, {"maxauth": token, "Accept": "application/json"}, None

    async def _handshake(self) -> None:
        method, url, headers, body = self._login_request()
        logger.debug(f"Authenticating {self.options.user} via {self.options.authtype}: {method} {url}")
        self.handshakes += 1

        response = await self.transport.request(method, url, headers, body)
        cookies = response.header_list("Set-Cookie")

        if response.status >= 400:
            logger.error(f"Authentication failed for {self.options.user}: HTTP {response.status}")
            raise AuthenticationError(
                f"Login rejected with HTTP {response.status}",
                details={"url": url},
                status_code=response.status,
            )
        if not cookies:
            logger.error(f"Authentication for {self.options.user} returned no session cookie")
            raise AuthenticationError(
                "Login response carried no session cookie",
                details={"url": url},
                status_code=response.status,
            )

        self._cookie = cookies
        self._authenticated = True
        logger.info(f"Authenticated {self.options.user} on {self.options.hostname}")

    async def authenticate(self) -> List[str]:
        """
        Log in unless already authenticated.

        Returns:
            The session cookie list
        """
        if self._authenticated:
            return self.cookie
        async with self._lock:
            if not self._authenticated:
                await self._handshake()
        return self.cookie

    async def _reauthenticate(self, stale: List[str]) -> None:
        async with self._lock:
            if self._authenticated and self._cookie != stale:
                # Another caller already replaced the rejected cookie
                return
            self.invalidate()
            await self._handshake()

    async def _send(self, method: str, url: str, headers: Optional[Dict[str, str]],
                    body: Body) -> TransportResponse:
        merged = dict(headers or {})
        merged.setdefault("Accept", "application/json")
        if self._cookie:
            merged["Cookie"] = cookie_header(self._cookie)
        logger.debug(f"{method} {url}")
        response = await self.transport.request(method, url, merged, body)
        logger.debug(f"{method} {url} -> {response.status}")
        return response

    async def request(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                      body: Body = None) -> TransportResponse:
        """
        Send an authenticated request.

        A 401 invalidates the session, triggers exactly one re-authentication
        and one retry of the original request. A second 401 raises
        AuthorizationExpiredError.

        Raises:
            AuthenticationError: If (re-)authentication fails
            AuthorizationExpiredError: If the retried request is rejected again
            TransportError: On network failure
        """
        await self.authenticate()
        stale = self.cookie

        response = await self._send(method, url, headers, body)
        if response.status != 401:
            return response

        logger.warning(f"{method} {url} rejected with 401, re-authenticating")
        await self._reauthenticate(stale)

        response = await self._send(method, url, headers, body)
        if response.status == 401:
            self.invalidate()
            raise AuthorizationExpiredError(details={"url": url, "method": method})
        return response
