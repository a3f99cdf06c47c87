"""
Connection and attachment option models.

Typed, validated inputs for the Maximo client. Validation happens once, at
construction, so the rest of the client can rely on well-formed values.
"""

from __future__ import annotations
import os
from typing import Optional, Dict, Any, Mapping
from pydantic import BaseModel, Field, field_validator


class MaximoOptions(BaseModel):
    """
    Connection options for a Maximo server.

    Field names match the keys of Maximo connection dictionaries, so existing
    configuration can be passed unchanged.
    """
    protocol: str = Field(description="'http' or 'https'")
    hostname: str = Field(min_length=1, description="Maximo server hostname")
    port: int = Field(ge=1, le=65535, description="Maximo server port")
    user: str = Field(min_length=1, description="Maximo username")
    password: str = Field(description="Maximo password")
    auth_scheme: str = Field(description="Context root, e.g. '/maximo'")
    authtype: str = Field(default="maxauth", description="'maxauth' or 'form'")
    islean: int = Field(default=0, description="1 for lean JSON (no namespaces)")
    tenantcode: Optional[str] = Field(default=None, description="Tenant for multi-tenant installs")
    timeout: float = Field(default=30.0, gt=0, description="Transport timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")

    model_config = {"populate_by_name": True}

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        v = v.lower().rstrip(":/")
        if v not in ("http", "https"):
            raise ValueError("protocol must be 'http' or 'https'")
        return v

    @field_validator("auth_scheme")
    @classmethod
    def normalize_auth_scheme(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("auth_scheme must name the context root, e.g. '/maximo'")
        if not v.startswith("/"):
            v = "/" + v
        return v

    @field_validator("authtype")
    @classmethod
    def validate_authtype(cls, v: str) -> str:
        v = v.lower()
        if v not in ("maxauth", "form"):
            raise ValueError("authtype must be 'maxauth' or 'form'")
        return v

    @field_validator("islean", mode="before")
    @classmethod
    def validate_islean(cls, v: Any) -> int:
        if isinstance(v, bool):
            return int(v)
        if v not in (0, 1, "0", "1"):
            raise ValueError("islean must be 0 or 1")
        return int(v)

    @property
    def base_url(self) -> str:
        """Scheme, host and port, without the context root."""
        return f"{self.protocol}://{self.hostname}:{self.port}"

    @property
    def root_url(self) -> str:
        """Base URL including the context root."""
        return self.base_url + self.auth_scheme

    @property
    def lean(self) -> bool:
        return self.islean == 1

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> MaximoOptions:
        """
        Build options from MAXIMO_* environment variables.

        Reads MAXIMO_PROTOCOL, MAXIMO_HOSTNAME, MAXIMO_PORT, MAXIMO_USER,
        MAXIMO_PASSWORD, MAXIMO_AUTH_SCHEME and optionally MAXIMO_AUTHTYPE,
        MAXIMO_ISLEAN, MAXIMO_TENANTCODE. Protocol defaults to https, the
        context root to /maximo and the port to the protocol's default.
        """
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for name in ("protocol", "hostname", "port", "user", "password", "auth_scheme",
                     "authtype", "islean", "tenantcode"):
            value = env.get(f"MAXIMO_{name.upper()}")
            if value is not None:
                data[name] = value
        data.setdefault("protocol", "https")
        data.setdefault("auth_scheme", "/maximo")
        data.setdefault("port", 443 if data["protocol"].lower() == "https" else 80)
        return cls(**data)


class AttachmentMeta(BaseModel):
    """Metadata sent alongside an attachment upload."""
    name: str = Field(min_length=1, description="Attachment file name")
    description: str = Field(default="", description="Attachment description")
    type: str = Field(default="FILE", description="Document type, typically FILE")
    storeas: str = Field(default="Attachment", description="Storage classification")
    contentype: str = Field(default="application/octet-stream", description="MIME type")

    model_config = {"populate_by_name": True}

    def to_headers(self) -> Dict[str, str]:
        """Convert to the doclinks upload headers."""
        return {
            "slug": self.name,
            "encoding": "base64",
            "x-document-meta": f"{self.type}/{self.storeas}",
            "x-document-description": self.description,
            "Content-Type": self.contentype,
        }
