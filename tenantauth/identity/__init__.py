"""
Token lifecycle and JWT verification for the identity platform.

``IdentityManager`` is the entry point: it verifies inbound tokens with a
``TokenVerifier`` (keys from a cached ``KeyResolver``) and keeps the current
vendor, user and tenant tokens for one authentication context.
"""

from .cache import CacheAdapter, InMemoryCache
from .claims import ParsedClaims, TenantTokenClaims, TokenClaims, TokenKind, UserTokenClaims
from .config import ClientConfig, KeySource
from .keys import KeyResolver
from .manager import IdentityManager
from .verifier import TokenVerifier

__all__ = [
    "CacheAdapter",
    "ClientConfig",
    "IdentityManager",
    "InMemoryCache",
    "KeyResolver",
    "KeySource",
    "ParsedClaims",
    "TenantTokenClaims",
    "TokenClaims",
    "TokenKind",
    "TokenVerifier",
    "UserTokenClaims",
]
