"""
Management (vendor-token) resource clients.

These are pass-through wrappers: they build the right headers and paths and
return the platform's JSON as-is.
"""

from __future__ import annotations

from typing import Any

from tenantauth.clients.base import BaseClient
from tenantauth.identity.config import ClientConfig
from tenantauth.identity.manager import IdentityManager
from tenantauth.transport import HttpTransport


class UsersClient(BaseClient):
    def list_users(self, **params: Any) -> list[dict[str, Any]]:
        body = self._call(
            "GET",
            "/identity/resources/users/v2",
            headers=self.vendor_headers(self._tenant_headers()),
            params=params or None,
        )
        return list(body.get("items") or body.get("users") or [])

    def get_user(self, user_id: str) -> dict[str, Any]:
        return self._call(
            "GET",
            f"/identity/resources/users/v1/{user_id}",
            headers=self.vendor_headers(self._tenant_headers()),
            not_found=f"User not found with ID: {user_id}",
        )

    def delete_user(self, user_id: str, tenant_id: str | None = None) -> None:
        self._call(
            "DELETE",
            f"/identity/resources/users/v1/{user_id}",
            headers=self.vendor_headers(self._tenant_headers(tenant_id)),
            not_found=f"User not found with ID: {user_id}",
        )


class TenantsClient(BaseClient):
    def list_tenants(self) -> list[dict[str, Any]]:
        body = self._call("GET", "/tenants/resources/tenants/v1", headers=self.vendor_headers())
        return list(body.get("data") or [])

    def get_tenant(self, tenant_id: str | None = None) -> dict[str, Any]:
        tenant_id = tenant_id or self.tenant_id
        if not tenant_id:
            raise ValueError("tenant_id is required when no tenant is selected")
        body = self._call(
            "GET",
            f"/tenants/resources/tenants/v1/{tenant_id}",
            headers=self.vendor_headers(),
            not_found=f"Tenant not found with ID: {tenant_id}",
        )
        data = body.get("data")
        if isinstance(data, list):
            return data[0] if data else {}
        return body


class RolesClient(BaseClient):
    def list_roles(self) -> list[dict[str, Any]]:
        body = self._call(
            "GET",
            "/identity/resources/roles/v1",
            headers=self.vendor_headers(self._tenant_headers()),
        )
        return list(body.get("data") or [])

    def list_permissions(self) -> list[dict[str, Any]]:
        body = self._call(
            "GET",
            "/identity/resources/permissions/v1",
            headers=self.vendor_headers(),
        )
        return list(body.get("data") or [])


class AuditsClient(BaseClient):
    """Vendor-side audit log access, scoped to the selected tenant when one is set."""

    def list_audits(self, tenant_id: str | None = None, **params: Any) -> list[dict[str, Any]]:
        body = self._call(
            "GET",
            "/resources/audits/v1",
            headers=self.vendor_headers(self._tenant_headers(tenant_id)),
            params=params or None,
        )
        return list(body.get("audits") or body.get("data") or [])

    def get_audit(self, audit_id: str) -> dict[str, Any]:
        return self._call(
            "GET",
            f"/resources/audits/v1/{audit_id}",
            headers=self.vendor_headers(self._tenant_headers()),
            not_found=f"Audit not found with ID: {audit_id}",
        )

    def create_audit(self, audit: dict[str, Any], tenant_id: str | None = None) -> dict[str, Any]:
        return self._call(
            "POST",
            "/resources/audits/v1",
            headers=self.vendor_headers(self._tenant_headers(tenant_id)),
            json=audit,
        )


class ManagementClients:
    """Lazily built management clients sharing one tenant scope."""

    def __init__(
        self,
        config: ClientConfig,
        identity: IdentityManager,
        transport: HttpTransport,
        tenant_id: str | None = None,
    ) -> None:
        self._args = (config, identity, transport, tenant_id)
        self.tenant_id = tenant_id
        self._users: UsersClient | None = None
        self._tenants: TenantsClient | None = None
        self._roles: RolesClient | None = None
        self._audits: AuditsClient | None = None

    def users(self) -> UsersClient:
        if self._users is None:
            self._users = UsersClient(*self._args)
        return self._users

    def tenants(self) -> TenantsClient:
        if self._tenants is None:
            self._tenants = TenantsClient(*self._args)
        return self._tenants

    def roles(self) -> RolesClient:
        if self._roles is None:
            self._roles = RolesClient(*self._args)
        return self._roles

    def audits(self) -> AuditsClient:
        if self._audits is None:
            self._audits = AuditsClient(*self._args)
        return self._audits
