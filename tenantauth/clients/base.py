"""Shared plumbing for resource clients: auth headers and HTTP error mapping."""

from __future__ import annotations

from typing import Any

from tenantauth.errors import HttpError, NotFoundError, UnauthorizedError
from tenantauth.identity.config import ClientConfig
from tenantauth.identity.manager import IdentityManager
from tenantauth.transport import HttpTransport

TENANT_HEADER = "frontegg-tenant-id"
CLIENT_ID_HEADER = "x-client-id"


class BaseClient:
    """
    Base for resource clients.

    ``tenant_id`` is the scope the client was built with (the facade's selected
    tenant at construction time); it is sent as the tenant header when set.
    """

    def __init__(
        self,
        config: ClientConfig,
        identity: IdentityManager,
        transport: HttpTransport,
        tenant_id: str | None = None,
    ) -> None:
        self.config = config
        self.identity = identity
        self.transport = transport
        self.tenant_id = tenant_id

    def _tenant_headers(self, tenant_id: str | None = None) -> dict[str, str]:
        scope = tenant_id or self.tenant_id
        return {TENANT_HEADER: scope} if scope else {}

    def vendor_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """
        Headers for management calls: vendor bearer + client id.

        The vendor token is obtained (or refreshed) on demand; a failed
        credential exchange surfaces as UnauthorizedError.
        """
        try:
            token = self.identity.get_vendor_token()
        except HttpError as e:
            raise UnauthorizedError("This operation requires vendor authentication") from e
        return {
            "Authorization": f"Bearer {token}",
            CLIENT_ID_HEADER: self.config.client_id,
            **(extra or {}),
        }

    def user_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """Headers for self-service calls. Fails before any network call when no user token is set."""
        if not self.identity.has_user_token():
            raise UnauthorizedError("This operation requires user authentication")
        return {
            "Authorization": f"Bearer {self.identity.get_user_token()}",
            CLIENT_ID_HEADER: self.config.client_id,
            **(extra or {}),
        }

    def _call(self, method: str, path: str, *, not_found: str | None = None, **kwargs: Any) -> dict[str, Any]:
        """Send with ``requires_auth=False`` (headers are explicit) and map 404 when asked."""
        try:
            return self.transport.request(method, path, requires_auth=False, **kwargs)
        except HttpError as e:
            if not_found is not None and e.status_code == 404:
                raise NotFoundError(not_found, e.body) from e
            raise
