"""
Typed, read-only views over verified token claims.

A verified token is one of three variants, discriminated by ``kind``:

* ``UserTokenClaims``   (``type`` = ``userToken`` / ``userApiToken``)
* ``TenantTokenClaims`` (``type`` = ``tenantApiToken``)
* ``TokenClaims``       (anything else; ``kind`` is ``TokenKind.UNKNOWN``)

The user and tenant variants wrap a ``TokenClaims`` (``.base``) instead of
subclassing it, so ``isinstance(claims, TokenClaims)`` is only true for the
unclassified variant and callers can branch on the closed set exhaustively.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Union


class TokenKind(str, enum.Enum):
    VENDOR = "vendor"
    USER = "user"
    TENANT = "tenant"
    UNKNOWN = "unknown"

    @classmethod
    def from_type_claim(cls, value: Any) -> TokenKind:
        """Map the JWT ``type`` claim onto a kind. Vendor tokens are never classified from claims."""
        if value in _USER_TYPES:
            return cls.USER
        if value in _TENANT_TYPES:
            return cls.TENANT
        return cls.UNKNOWN


_USER_TYPES = frozenset({"userToken", "userApiToken"})
_TENANT_TYPES = frozenset({"tenantApiToken"})

_WHITESPACE_RE = re.compile(r"\s+")


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _str_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    if isinstance(value, str):
        return (value,)
    return ()


def _timestamp(value: Any) -> datetime | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _epoch(value: datetime | None) -> int | None:
    return int(value.timestamp()) if value is not None else None


@dataclass(frozen=True)
class TokenClaims:
    """Claims shared by every token kind."""

    type: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)
    tenant_id: str = ""
    application_id: str = ""
    permissions: tuple[str, ...] = ()
    roles: tuple[str, ...] = ()
    issuer: str = ""
    subject: str = ""
    audience: tuple[str, ...] = ()
    expires_at: datetime | None = None
    not_before: datetime | None = None
    issued_at: datetime | None = None
    jwt_id: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def kind(self) -> TokenKind:
        return TokenKind.UNKNOWN

    @property
    def base(self) -> TokenClaims:
        return self

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TokenClaims:
        metadata = payload.get("metadata")
        return cls(
            type=_str(payload.get("type")),
            metadata=MappingProxyType(dict(metadata)) if isinstance(metadata, Mapping) else MappingProxyType({}),
            tenant_id=_str(payload.get("tenantId")),
            application_id=_str(payload.get("applicationId")),
            permissions=_str_tuple(payload.get("permissions")),
            roles=_str_tuple(payload.get("roles")),
            issuer=_str(payload.get("iss")),
            subject=_str(payload.get("sub")),
            audience=_str_tuple(payload.get("aud")),
            expires_at=_timestamp(payload.get("exp")),
            not_before=_timestamp(payload.get("nbf")),
            issued_at=_timestamp(payload.get("iat")),
            jwt_id=_str(payload.get("jti")),
            raw=MappingProxyType(dict(payload)),
        )

    def has_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dict keyed by wire claim names."""
        return {
            "type": self.type,
            "metadata": dict(self.metadata),
            "tenantId": self.tenant_id,
            "applicationId": self.application_id,
            "permissions": list(self.permissions),
            "roles": list(self.roles),
            "iss": self.issuer,
            "sub": self.subject,
            "aud": list(self.audience),
            "exp": _epoch(self.expires_at),
            "nbf": _epoch(self.not_before),
            "iat": _epoch(self.issued_at),
            "jti": self.jwt_id,
        }


class _BaseView:
    """Accessors every variant forwards to its wrapped ``TokenClaims``."""

    base: TokenClaims

    @property
    def type(self) -> str:
        return self.base.type

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self.base.metadata

    @property
    def tenant_id(self) -> str:
        return self.base.tenant_id

    @property
    def application_id(self) -> str:
        return self.base.application_id

    @property
    def permissions(self) -> tuple[str, ...]:
        return self.base.permissions

    @property
    def roles(self) -> tuple[str, ...]:
        return self.base.roles

    @property
    def subject(self) -> str:
        return self.base.subject

    @property
    def expires_at(self) -> datetime | None:
        return self.base.expires_at

    def has_expired(self, now: datetime | None = None) -> bool:
        return self.base.has_expired(now)


@dataclass(frozen=True)
class UserTokenClaims(_BaseView):
    """Claims of an end-user token (``userToken`` or ``userApiToken``)."""

    base: TokenClaims
    name: str = ""
    email: str = ""
    email_verified: bool = False
    tenant_ids: tuple[str, ...] = ()
    profile_picture_url: str = ""

    @property
    def kind(self) -> TokenKind:
        return TokenKind.USER

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], base: TokenClaims | None = None) -> UserTokenClaims:
        return cls(
            base=base or TokenClaims.from_payload(payload),
            name=_str(payload.get("name")),
            email=_str(payload.get("email")),
            email_verified=payload.get("emailVerified") is True,
            tenant_ids=_str_tuple(payload.get("tenantIds")),
            profile_picture_url=_str(payload.get("profilePictureUrl")),
        )

    @property
    def user_id(self) -> str | None:
        """The ``sub`` claim; None when the token has no subject."""
        sub = self.base.raw.get("sub")
        return str(sub) if sub is not None else None

    def _name_parts(self) -> list[str]:
        name = self.name.strip()
        if not name:
            return []
        return _WHITESPACE_RE.split(name, maxsplit=1)

    @property
    def first_name(self) -> str:
        parts = self._name_parts()
        return parts[0] if parts else ""

    @property
    def last_name(self) -> str:
        parts = self._name_parts()
        return parts[1] if len(parts) > 1 else ""

    def has_role(self, role: str) -> bool:
        """Case-insensitive role check."""
        wanted = role.lower()
        return any(r.lower() == wanted for r in self.roles)

    def has_permission(self, permission: str) -> bool:
        """
        Exact match, or a granted ``<prefix>.*`` covering ``<prefix>.<anything>``.

        The prefix is the granted key with trailing ``.`` and ``*`` characters
        stripped, so ``admin.*`` grants ``admin.billing.read`` but not ``adm``
        or ``administrator.x``.
        """
        if permission in self.permissions:
            return True
        for granted in self.permissions:
            if not granted.endswith(".*"):
                continue
            prefix = granted.rstrip(".*")
            if prefix and permission.startswith(prefix + "."):
                return True
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.base.to_dict(),
            "name": self.name,
            "email": self.email,
            "emailVerified": self.email_verified,
            "tenantIds": list(self.tenant_ids),
            "profilePictureUrl": self.profile_picture_url,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class TenantTokenClaims(_BaseView):
    """Claims of a tenant-level API token (``tenantApiToken``)."""

    base: TokenClaims
    created_by_user_id: str = ""

    @property
    def kind(self) -> TokenKind:
        return TokenKind.TENANT

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], base: TokenClaims | None = None) -> TenantTokenClaims:
        return cls(
            base=base or TokenClaims.from_payload(payload),
            created_by_user_id=_str(payload.get("createdByUserId")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {**self.base.to_dict(), "createdByUserId": self.created_by_user_id}


ParsedClaims = Union[TokenClaims, UserTokenClaims, TenantTokenClaims]


def classify(payload: Mapping[str, Any]) -> ParsedClaims:
    """Build the claims variant matching the payload's ``type`` claim."""
    base = TokenClaims.from_payload(payload)
    kind = TokenKind.from_type_claim(base.type)
    if kind is TokenKind.USER:
        return UserTokenClaims.from_payload(payload, base)
    if kind is TokenKind.TENANT:
        return TenantTokenClaims.from_payload(payload, base)
    return base
