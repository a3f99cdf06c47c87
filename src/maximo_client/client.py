"""
Maximo client entry point.
"""

from __future__ import annotations
import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from .options import MaximoOptions
from .resource_set import ResourceSet
from .runtime.errors import ConfigurationError
from .session import CookieInput, Session
from .transport import AiohttpTransport, Transport


logger = logging.getLogger(__name__)


class Maximo:
    """
    Client for one Maximo server and user.

    Each instance owns its own Session; nothing is shared between clients,
    so independent clients can be used concurrently.

    Example:
        ```python
        async with Maximo({
            "protocol": "https", "hostname": "demo.maximo", "port": 443,
            "user": "wilson", "password": "wilson", "auth_scheme": "/maximo",
        }) as maximo:
            await maximo.authenticate()
            assets = await maximo.resourceobject("MXASSET").select(["assetnum"]).fetch()
        ```
    """

    def __init__(self, options: Union[MaximoOptions, Mapping[str, Any]], cookie: CookieInput = None,
                 transport: Optional[Transport] = None):
        """
        Initialize the client.

        Args:
            options: Connection options, as a model or a plain mapping
            cookie: Previously obtained session cookie to reuse
            transport: HTTP transport; defaults to an aiohttp one

        Raises:
            ConfigurationError: If required options are missing or invalid
        """
        if not isinstance(options, MaximoOptions):
            try:
                options = MaximoOptions(**dict(options))
            except ValidationError as e:
                raise ConfigurationError(f"Invalid Maximo options: {e.error_count()} error(s)",
                                         details={"errors": e.errors(include_url=False)}, cause=e) from e

        self.options = options
        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport(timeout=options.timeout, verify_ssl=options.verify_ssl)
        self.session = Session(options, self.transport, cookie)
        logger.debug(f"Maximo client for {options.root_url} as {options.user}")

    async def __aenter__(self) -> Maximo:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self.transport.close()

    @property
    def cookie(self) -> List[str]:
        return self.session.cookie

    async def authenticate(self) -> List[str]:
        """Log in (once) and return the session cookie."""
        return await self.session.authenticate()

    def is_authenticated(self) -> bool:
        return self.session.is_authenticated()

    def resourceobject(self, mbo: str) -> ResourceSet:
        """Query builder for an object structure such as MXASSET."""
        return ResourceSet(self.session, mbo)

    def publicuri(self) -> str:
        return self.options.hostname
