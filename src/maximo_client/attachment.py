"""
Attachment uploads through the doclinks relation.
"""

from __future__ import annotations
import base64
import logging
from typing import Any, Dict

from .options import AttachmentMeta
from .resource import Resource
from .runtime.errors import error_from_response
from .session import Session, build_url


logger = logging.getLogger(__name__)


class Attachment:
    """Uploads one file to a parent record, single shot."""

    def __init__(self, session: Session, parent_uri: str, meta: AttachmentMeta):
        self._session = session
        self._parent_uri = parent_uri
        self._meta = meta

    @property
    def parent_uri(self) -> str:
        return self._parent_uri

    @property
    def meta(self) -> AttachmentMeta:
        return self._meta

    def json(self) -> Dict[str, Any]:
        return self._meta.model_dump()

    async def create(self, payload: bytes) -> Resource:
        """
        Upload ``payload`` as a new attachment.

        Returns:
            The parent record, re-read after the upload

        Raises:
            RequestFailedError: If the server rejects the upload
        """
        url = build_url(f"{self._parent_uri.rstrip('/')}/doclinks", self._session.common_params())
        headers = self._meta.to_headers()
        body = base64.b64encode(payload)

        logger.debug(f"Uploading {self._meta.name} ({len(payload)} bytes) to {self._parent_uri}")
        response = await self._session.request("POST", url, headers, body)
        if not response.ok:
            raise error_from_response(response.status, response.body, f"attach {self._meta.name}")

        return await Resource(self._session, self._parent_uri).fetch()
