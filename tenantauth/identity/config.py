"""Client configuration. Credentials come from settings/env, never from code."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from tenantauth.settings import Settings

DEFAULT_REGION = "us"
DEFAULT_CACHE_KEY_PREFIX = "tenantauth_"

_REGION_RE = re.compile(r"^[a-z]{2,4}$")


def api_base_url_for_region(region: str) -> str:
    """Platform API host for a data region, e.g. ``eu`` -> ``https://api.eu.frontegg.com``."""
    return f"https://api.{region}.frontegg.com"


DEFAULT_API_BASE_URL = api_base_url_for_region(DEFAULT_REGION)


class KeySource(str, enum.Enum):
    """Where the verification key is published."""

    JWKS = "jwks"
    """``GET /.well-known/jwks.json`` on the custom domain."""

    LEGACY = "legacy"
    """``publicKey`` field of ``GET /identity/resources/configurations/v1``."""


@dataclass(frozen=True)
class ClientConfig:
    """
    Identity platform client configuration.

    Required:
        TENANTAUTH_CLIENT_ID: Vendor client id, sent on credential exchange and as ``x-client-id``.
        TENANTAUTH_API_KEY: Vendor secret for the credential exchange.

    Optional:
        TENANTAUTH_BASE_URL: Custom (login) domain hosting the JWKS document.
        TENANTAUTH_REGION: Data region (default ``us``); selects the platform API host.
        TENANTAUTH_API_BASE_URL: Explicit platform API host; overrides the region.
        TENANTAUTH_KEY_SOURCE: ``jwks`` (default) or ``legacy``.
        TENANTAUTH_CACHE_KEY_PREFIX: Namespace for distributed cache keys.
        TENANTAUTH_HTTP_TIMEOUT_SECONDS: Per-request timeout (default 10).
    """

    client_id: str
    api_key: str
    base_url: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    region: str = DEFAULT_REGION
    key_source: KeySource = KeySource.JWKS
    cache_key_prefix: str = DEFAULT_CACHE_KEY_PREFIX
    http_timeout_seconds: float = 10.0

    @property
    def custom_domain(self) -> str:
        return self.base_url if self.base_url else self.api_base_url

    @property
    def jwks_path(self) -> str:
        return "/.well-known/jwks.json"

    @classmethod
    def from_settings(cls, settings: Settings) -> ClientConfig:
        client_id = _strip_or_none(settings.client_id)
        api_key = _strip_or_none(settings.api_key)
        if not client_id or not api_key:
            raise _config_error("TENANTAUTH_CLIENT_ID and TENANTAUTH_API_KEY must be set")
        try:
            key_source = KeySource(settings.key_source.strip().lower())
        except ValueError as e:
            raise _config_error(f"Unsupported key source: {settings.key_source!r}") from e
        region = settings.region.strip().lower() or DEFAULT_REGION
        if not _REGION_RE.match(region):
            raise _config_error(f"Unsupported region: {settings.region!r}")
        return cls(
            client_id=client_id,
            api_key=api_key,
            base_url=settings.base_url.strip().rstrip("/"),
            api_base_url=(settings.api_base_url.strip() or api_base_url_for_region(region)).rstrip("/"),
            region=region,
            key_source=key_source,
            cache_key_prefix=settings.cache_key_prefix,
            http_timeout_seconds=settings.http_timeout_seconds,
        )

    @classmethod
    def from_environ(cls) -> ClientConfig:
        return cls.from_settings(Settings())


def _strip_or_none(s: str | None) -> str | None:
    if s is None:
        return None
    t = s.strip()
    return t if t else None


def _config_error(msg: str) -> Exception:
    return ValueError(msg)
