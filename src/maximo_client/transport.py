"""
HTTP transports for the Maximo client.

The client only needs one primitive: send a request and get back status,
headers and body. Two implementations are provided, an aiohttp one (the
default) and a requests one that runs blocking calls in a worker thread.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

import aiohttp
import requests

from .runtime.errors import ErrorCode, TransportError


logger = logging.getLogger(__name__)

Body = Union[bytes, str, None]


@dataclass
class TransportResponse:
    """Raw HTTP response as seen by the client."""
    status: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        """First value of a header, case-insensitive."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None

    def header_list(self, name: str) -> List[str]:
        """Every value of a repeated header such as Set-Cookie."""
        name = name.lower()
        return [value for key, value in self.headers if key.lower() == name]

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Transport(ABC):
    """Sends a single HTTP request."""

    @abstractmethod
    async def request(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                      body: Body = None) -> TransportResponse:
        """
        Perform one HTTP request.

        Raises:
            TransportError: On network-level failure
        """

    async def close(self) -> None:
        """Release pooled connections."""


class AiohttpTransport(Transport):
    """
    aiohttp-backed transport.

    The underlying ClientSession is created lazily on first use so the
    transport can be constructed outside a running event loop. Cookies are
    not persisted by aiohttp; the session manager owns them.
    """

    def __init__(self, timeout: float = 30.0, verify_ssl: bool = True,
                 session: Optional[aiohttp.ClientSession] = None):
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                ssl=self._verify_ssl,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                cookie_jar=aiohttp.DummyCookieJar(),
                trust_env=True,
            )
            self._owns_session = True
            logger.debug("Created aiohttp session")
        return self._session

    async def request(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                      body: Body = None) -> TransportResponse:
        session = await self._get_session()
        try:
            async with session.request(method, url, headers=headers, data=body,
                                       allow_redirects=False) as response:
                payload = await response.read()
                return TransportResponse(
                    status=response.status,
                    headers=list(response.headers.items()),
                    body=payload,
                )
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} {url} timed out", ErrorCode.TIMEOUT, cause=e) from e
        except aiohttp.ClientConnectionError as e:
            raise TransportError(f"{method} {url} connection failed: {e}",
                                 ErrorCode.CONNECTION_FAILED, cause=e) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}", cause=e) from e

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session")
        self._session = None


class RequestsTransport(Transport):
    """
    requests-backed transport.

    Useful where requests' proxy and certificate handling is already set up.
    Each call runs in the default executor so the event loop is not blocked.
    """

    def __init__(self, timeout: float = 30.0, verify_ssl: bool = True,
                 session: Optional[requests.Session] = None):
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._session = session or requests.Session()
        self._owns_session = session is None

    def _send(self, method: str, url: str, headers: Optional[Dict[str, str]], body: Body) -> TransportResponse:
        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                data=body,
                timeout=self._timeout,
                verify=self._verify_ssl,
                allow_redirects=False,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"{method} {url} timed out", ErrorCode.TIMEOUT, cause=e) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"{method} {url} connection failed: {e}",
                                 ErrorCode.CONNECTION_FAILED, cause=e) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}", cause=e) from e
        finally:
            # Cookies travel in explicit headers only
            self._session.cookies.clear()

        return TransportResponse(
            status=response.status_code,
            headers=list(response.raw.headers.items()),
            body=response.content,
        )

    async def request(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                      body: Body = None) -> TransportResponse:
        return await asyncio.to_thread(self._send, method, url, headers, body)

    async def close(self) -> None:
        if self._owns_session:
            self._session.close()
