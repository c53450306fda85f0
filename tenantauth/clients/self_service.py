"""Self-service (user-token) resource clients."""

from __future__ import annotations

from typing import Any

from tenantauth.clients.base import BaseClient
from tenantauth.errors import HttpError
from tenantauth.identity.config import ClientConfig
from tenantauth.identity.manager import IdentityManager
from tenantauth.transport import HttpTransport

_PROFILE_FIELDS = frozenset({"name", "phoneNumber", "profilePictureUrl", "metadata"})

ENTITLEMENTS_PATH = "/resources/entitlements/v2"
FEATURE_CHECK_PATH = "/v1/data/e10s/features/is_entitled_to_input_feature"


class ProfileClient(BaseClient):
    def get_profile(self) -> dict[str, Any]:
        return self._call("GET", "/identity/resources/users/v3/me", headers=self.user_headers())

    def update_profile(self, **fields: Any) -> dict[str, Any]:
        invalid = set(fields) - _PROFILE_FIELDS
        if invalid:
            raise ValueError(f"Invalid fields provided: {', '.join(sorted(invalid))}")
        return self._call(
            "PUT",
            "/identity/resources/users/v1/me",
            headers=self.user_headers(),
            json={k: v for k, v in fields.items() if v},
        )

    def get_tenants(self) -> list[dict[str, Any]]:
        body = self._call("GET", "/identity/resources/users/v3/me/tenants", headers=self.user_headers())
        return list(body.get("tenants") or body.get("data") or [])


class EntitlementsClient(BaseClient):
    """Feature entitlements of the authenticated user and their tenant."""

    def _list(self, assign_level: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        body = self._call(
            "GET",
            ENTITLEMENTS_PATH,
            headers=self.user_headers(),
            params={**params, "assignLevel": assign_level},
        )
        return list(body.get("items") or [])

    def get_my_entitlements(self, **params: Any) -> list[dict[str, Any]]:
        return self._list("USER", params)

    def get_tenant_entitlements(self, **params: Any) -> list[dict[str, Any]]:
        return self._list("TENANT", params)

    def is_entitled_to_feature(self, feature_key: str) -> bool:
        """
        True when the user or their tenant is entitled to ``feature_key``.

        An unknown feature (404) is not an error; it simply is not entitled.
        """
        headers = self.user_headers()
        try:
            body = self._call("POST", FEATURE_CHECK_PATH, headers=headers, json={"featureKey": feature_key})
        except HttpError as e:
            if e.status_code == 404:
                return False
            raise
        return body.get("result") is True


class SelfServiceAuditsClient(BaseClient):
    """Audit logs visible to the authenticated user."""

    def get_tenant_audits(self, **params: Any) -> list[dict[str, Any]]:
        body = self._call("GET", "/resources/audits/v1", headers=self.user_headers(), params=params or None)
        return list(body.get("audits") or [])

    def get_my_audits(self, **params: Any) -> list[dict[str, Any]]:
        body = self._call("GET", "/resources/audits/v1/me", headers=self.user_headers(), params=params or None)
        return list(body.get("audits") or [])

    def create_audit(self, audit: dict[str, Any]) -> dict[str, Any]:
        return self._call("POST", "/resources/audits/v1", headers=self.user_headers(), json=audit)


class SelfServiceClients:
    """Lazily built self-service clients. Not tenant-scoped: the user token carries the tenant."""

    def __init__(self, config: ClientConfig, identity: IdentityManager, transport: HttpTransport) -> None:
        self._args = (config, identity, transport)
        self._profile: ProfileClient | None = None
        self._entitlements: EntitlementsClient | None = None
        self._audits: SelfServiceAuditsClient | None = None

    def profile(self) -> ProfileClient:
        if self._profile is None:
            self._profile = ProfileClient(*self._args)
        return self._profile

    def entitlements(self) -> EntitlementsClient:
        if self._entitlements is None:
            self._entitlements = EntitlementsClient(*self._args)
        return self._entitlements

    def audits(self) -> SelfServiceAuditsClient:
        if self._audits is None:
            self._audits = SelfServiceAuditsClient(*self._args)
        return self._audits
