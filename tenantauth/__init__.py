"""
Client-side authentication toolkit for a multi-tenant identity platform.

Verifies platform-issued JWTs against the published key set, keeps the
vendor/user/tenant tokens of one authentication context and exposes their
claims. ``Client`` is the usual entry point.
"""

from .client import Client
from .errors import (
    HttpError,
    IdentityError,
    InvalidTokenError,
    KeyFetchError,
    NoTokenError,
    NotFoundError,
    TenantAuthError,
    TokenValidationError,
    UnauthorizedError,
)
from .identity import ClientConfig, IdentityManager, KeySource, TokenKind

__all__ = [
    "Client",
    "ClientConfig",
    "HttpError",
    "IdentityError",
    "IdentityManager",
    "InvalidTokenError",
    "KeyFetchError",
    "KeySource",
    "NoTokenError",
    "NotFoundError",
    "TenantAuthError",
    "TokenKind",
    "TokenValidationError",
    "UnauthorizedError",
]
