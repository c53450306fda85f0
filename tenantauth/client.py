"""
Facade combining the identity manager, HTTP transport and resource clients.

One ``Client`` corresponds to one authentication context (typically one
incoming request). It is not safe to share between concurrent requests;
share a distributed ``CacheAdapter`` instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import requests

from tenantauth.clients.management import ManagementClients
from tenantauth.clients.self_service import SelfServiceClients
from tenantauth.errors import (
    InvalidTokenError,
    KeyFetchError,
    NoTokenError,
    TokenValidationError,
    UnauthorizedError,
)
from tenantauth.identity.cache import CacheAdapter
from tenantauth.identity.claims import TenantTokenClaims, UserTokenClaims
from tenantauth.identity.config import ClientConfig
from tenantauth.identity.manager import IdentityManager
from tenantauth.transport import HttpTransport

logger = logging.getLogger(__name__)


class Client:
    def __init__(
        self,
        config: ClientConfig,
        cache: CacheAdapter | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.transport = HttpTransport(config, session=session)
        self._identity = IdentityManager(config, self.transport, cache)
        self.transport.attach_identity(self._identity)
        self._selected_tenant_id: str | None = None
        self._management: ManagementClients | None = None
        self._self_service: SelfServiceClients | None = None

    @classmethod
    def from_environ(cls, cache: CacheAdapter | None = None) -> Client:
        return cls(ClientConfig.from_environ(), cache=cache)

    @property
    def identity(self) -> IdentityManager:
        return self._identity

    # ---- Authentication -----------------------------------------------------------------

    def authenticate(self, token: str) -> bool:
        """
        Verify and store an inbound bearer token.

        A user token also selects the user's home tenant. Any verification or
        key-resolution failure is raised as UnauthorizedError.
        """
        try:
            claims = self._identity.set_token(token)
        except (InvalidTokenError, TokenValidationError, KeyFetchError) as e:
            logger.info("Authentication failed: %s", type(e).__name__)
            raise UnauthorizedError("Invalid token provided") from e

        if isinstance(claims, UserTokenClaims) and claims.tenant_id:
            self.select_tenant(claims.tenant_id)
        return True

    def has_valid_user(self) -> bool:
        try:
            self._identity.get_user_token()
        except NoTokenError:
            return False
        return True

    def has_valid_tenant(self) -> bool:
        try:
            self._identity.get_tenant_token()
        except NoTokenError:
            return False
        return True

    def get_user_claims(self) -> UserTokenClaims:
        try:
            return self._identity.get_user_claims()
        except NoTokenError as e:
            raise UnauthorizedError("No authenticated user present") from e

    def get_tenant_claims(self) -> TenantTokenClaims:
        try:
            return self._identity.get_tenant_claims()
        except NoTokenError as e:
            raise UnauthorizedError("No authenticated tenant present") from e

    def get_current_token(self) -> str:
        try:
            return self._identity.get_token()
        except NoTokenError as e:
            raise UnauthorizedError("No valid token present") from e

    def has_permission(self, permission: str) -> bool:
        """Exact or wildcard permission check; False when no user is authenticated."""
        try:
            claims = self.get_user_claims()
        except UnauthorizedError:
            return False
        return claims.has_permission(permission)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        """Case-sensitive intersection with the user's roles; False when no user is authenticated."""
        try:
            claims = self.get_user_claims()
        except UnauthorizedError:
            return False
        return bool(set(roles) & set(claims.roles))

    # ---- Tenant selection ---------------------------------------------------------------

    @property
    def selected_tenant_id(self) -> str | None:
        return self._selected_tenant_id

    def select_tenant(self, tenant_id: str) -> None:
        """Scope management clients to ``tenant_id``. Previously built clients are dropped."""
        self._selected_tenant_id = tenant_id
        self._management = None

    def clear_selected_tenant(self) -> None:
        self._selected_tenant_id = None
        self._management = None

    # ---- Resource clients ---------------------------------------------------------------

    def management(self) -> ManagementClients:
        if self._management is None:
            self._management = ManagementClients(
                self.config,
                self._identity,
                self.transport,
                self._selected_tenant_id,
            )
        return self._management

    def self_service(self) -> SelfServiceClients:
        if self._self_service is None:
            self._self_service = SelfServiceClients(self.config, self._identity, self.transport)
        return self._self_service
