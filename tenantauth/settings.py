from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Library settings.

    Notes:
    - Everything can be overridden via ``TENANTAUTH_*`` env vars.
    - Credentials have no defaults; ``ClientConfig.from_settings`` refuses to build without them.
    - An empty ``api_base_url`` is derived from ``region`` (``us`` -> ``https://api.us.frontegg.com``).
    """

    model_config = SettingsConfigDict(env_prefix="TENANTAUTH_", extra="ignore")

    client_id: str | None = None
    api_key: str | None = None
    base_url: str = ""
    api_base_url: str = ""
    region: str = "us"
    key_source: str = "jwks"
    cache_key_prefix: str = "tenantauth_"
    http_timeout_seconds: float = 10.0
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
