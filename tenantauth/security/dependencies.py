from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, FastAPI, HTTPException, Request, status

from tenantauth.client import Client
from tenantauth.errors import UnauthorizedError
from tenantauth.identity.cache import CacheAdapter, InMemoryCache
from tenantauth.identity.claims import UserTokenClaims
from tenantauth.identity.config import ClientConfig
from tenantauth.logging_config import configure_logging
from tenantauth.security.auth import extract_bearer_token
from tenantauth.settings import get_settings

logger = logging.getLogger(__name__)


def init_app(
    app: FastAPI,
    config: ClientConfig | None = None,
    cache: CacheAdapter | None = None,
) -> None:
    """
    Store config and the shared key cache on ``app.state``.

    Without ``config``, settings are read from ``TENANTAUTH_*`` env vars and
    the package log level is applied.

    Every request gets its own ``Client``; only ``cache`` is shared, so the
    verification key is fetched once per process (or once per cluster with Redis).
    """
    if config is None:
        settings = get_settings()
        configure_logging(settings.log_level)
        config = ClientConfig.from_settings(settings)
        logger.info("tenantauth configured from settings key_source=%s", config.key_source.value)
    app.state.tenantauth_config = config
    app.state.tenantauth_cache = cache if cache is not None else InMemoryCache()


def get_client_config(request: Request) -> ClientConfig:
    config = getattr(request.app.state, "tenantauth_config", None)
    if config is None:
        raise RuntimeError("tenantauth config not loaded. Did you call init_app()?")
    return config


def get_identity_client(
    request: Request,
    config: ClientConfig = Depends(get_client_config),
) -> Client:
    """
    Per-request ``Client``, authenticated from the bearer token when one is sent.

    Anonymous requests get an unauthenticated client; a token that fails
    verification is a 401.
    """

    existing = getattr(request.state, "tenantauth", None)
    if existing is not None:
        return existing

    client = Client(config, cache=getattr(request.app.state, "tenantauth_cache", None))
    token = extract_bearer_token(request)
    if token is not None:
        try:
            client.authenticate(token)
        except UnauthorizedError as exc:
            logger.info("Rejected bearer token path=%s method=%s", request.url.path, request.method)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    request.state.tenantauth = client
    return client


def require_user(client: Client = Depends(get_identity_client)) -> UserTokenClaims:
    try:
        return client.get_user_claims()
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required") from exc


def require_permissions(*permissions: str) -> Callable[..., UserTokenClaims]:
    """
    Dependency factory: the user must hold **all** ``permissions`` (wildcards honoured).

    Usage: ``@router.get("/billing", dependencies=[Depends(require_permissions("billing.read"))])``
    """

    def dependency(claims: UserTokenClaims = Depends(require_user)) -> UserTokenClaims:
        missing = [p for p in permissions if not claims.has_permission(p)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission(s): {sorted(missing)}",
            )
        return claims

    return dependency


def require_roles(*roles: str) -> Callable[..., UserTokenClaims]:
    """Dependency factory: the user must hold **any** of ``roles`` (case-sensitive)."""

    def dependency(claims: UserTokenClaims = Depends(require_user)) -> UserTokenClaims:
        if roles and not (set(roles) & set(claims.roles)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient role. Required one of: {sorted(roles)}",
            )
        return claims

    return dependency
