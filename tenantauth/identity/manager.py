"""
Token store for one authentication context.

Holds at most one token per kind:

* vendor: obtained by exchanging client id + API key at ``POST /auth/vendor``,
  cached until its ``expiresIn`` elapses, then silently re-exchanged;
* user and tenant: set from inbound bearer tokens, only after verification.

``get_token()`` resolves "the" token with precedence user > tenant > vendor:
a user-scoped context always outranks tenant and machine credentials.

Instances are not thread-safe. Use one per request (or serialize access);
only the distributed key cache is meant to be shared.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from tenantauth.errors import HttpError, InvalidTokenError, NoTokenError
from tenantauth.identity.cache import CacheAdapter
from tenantauth.identity.claims import ParsedClaims, TenantTokenClaims, TokenKind, UserTokenClaims
from tenantauth.identity.config import ClientConfig
from tenantauth.identity.keys import KeyResolver
from tenantauth.identity.verifier import TokenVerifier

if TYPE_CHECKING:
    from tenantauth.transport import HttpTransport

logger = logging.getLogger(__name__)

VENDOR_AUTH_PATH = "/auth/vendor"
DEFAULT_VENDOR_TOKEN_TTL = 3600


class _VendorTokenCache:
    """
    In-memory cache for the vendor (client credentials) token.
    Avoids a credential exchange on every management call.
    """

    def __init__(self) -> None:
        self.token: str | None = None
        self.expires_at: float = 0.0

    def current(self, now: float) -> str | None:
        """The cached token, or None when missing or expired."""
        if self.token is not None and now < self.expires_at:
            return self.token
        return None


class IdentityManager:
    def __init__(
        self,
        config: ClientConfig,
        transport: HttpTransport,
        cache: CacheAdapter | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._vendor = _VendorTokenCache()
        self._user_token: str | None = None
        self._user_claims: UserTokenClaims | None = None
        self._tenant_token: str | None = None
        self._tenant_claims: TenantTokenClaims | None = None
        self.keys = KeyResolver(config, transport, cache, vendor_token=self.get_vendor_token)
        self.verifier = TokenVerifier(self.keys)

    # ---- Keys ---------------------------------------------------------------------------

    def set_cache(self, cache: CacheAdapter, prefix: str | None = None) -> None:
        """Use ``cache`` as the distributed tier of the key cache."""
        self.keys.set_cache(cache, prefix)

    def get_public_key(self, ignore_cache: bool = False, kid: str | None = None) -> str:
        return self.keys.get_key(ignore_cache=ignore_cache, kid=kid)

    # ---- Vendor token -------------------------------------------------------------------

    def _exchange_credentials(self) -> str:
        """POST client id + secret to the vendor endpoint; unauthenticated."""
        body = self._transport.post(
            VENDOR_AUTH_PATH,
            json={"clientId": self._config.client_id, "secret": self._config.api_key},
            requires_auth=False,
        )
        token = body.get("token")
        if not token or not isinstance(token, str):
            raise HttpError("Vendor token not found in response")
        expires_in = body.get("expiresIn")
        if not isinstance(expires_in, (int, float)) or isinstance(expires_in, bool):
            expires_in = DEFAULT_VENDOR_TOKEN_TTL
        self._vendor.token = token
        self._vendor.expires_at = time.time() + expires_in
        logger.info("Vendor token acquired expires_in=%s", expires_in)
        return token

    def get_vendor_token(self) -> str:
        """Return the cached vendor token, exchanging credentials when missing or expired."""
        token = self._vendor.current(time.time())
        if token is not None:
            return token
        return self._exchange_credentials()

    def has_vendor_token(self) -> bool:
        return self._vendor.current(time.time()) is not None

    # ---- Inbound tokens -----------------------------------------------------------------

    def parse_token(self, token: str) -> ParsedClaims:
        return self.verifier.parse(token)

    def set_token(self, token: str) -> ParsedClaims:
        """
        Verify ``token`` and store it in the slot matching its kind.

        Tokens of unknown type verify fine but are not stored anywhere; the
        claims are still returned so callers can inspect ``kind``. On any
        verification error the store is left unchanged.
        """
        claims = self.verifier.parse(token)
        if isinstance(claims, UserTokenClaims):
            self._user_token, self._user_claims = token, claims
        elif isinstance(claims, TenantTokenClaims):
            self._tenant_token, self._tenant_claims = token, claims
        else:
            logger.info("Verified token has unrecognised type=%r; not stored", claims.type)
        return claims

    def set_user_token(self, token: str) -> UserTokenClaims:
        claims = self.verifier.parse(token)
        if not isinstance(claims, UserTokenClaims):
            raise InvalidTokenError("Invalid user token")
        self._user_token, self._user_claims = token, claims
        return claims

    def set_tenant_token(self, token: str) -> TenantTokenClaims:
        claims = self.verifier.parse(token)
        if not isinstance(claims, TenantTokenClaims):
            raise InvalidTokenError("Invalid tenant token")
        self._tenant_token, self._tenant_claims = token, claims
        return claims

    def has_user_token(self) -> bool:
        return self._user_token is not None

    def get_user_token(self) -> str:
        if self._user_token is None:
            raise NoTokenError("No user token set")
        return self._user_token

    def get_user_claims(self) -> UserTokenClaims:
        if self._user_claims is None:
            raise NoTokenError("No user token set")
        return self._user_claims

    def clear_user_token(self) -> None:
        self._user_token = None
        self._user_claims = None

    def has_tenant_token(self) -> bool:
        return self._tenant_token is not None

    def get_tenant_token(self) -> str:
        if self._tenant_token is None:
            raise NoTokenError("No tenant token set")
        return self._tenant_token

    def get_tenant_claims(self) -> TenantTokenClaims:
        if self._tenant_claims is None:
            raise NoTokenError("No tenant token set")
        return self._tenant_claims

    def clear_tenant_token(self) -> None:
        self._tenant_token = None
        self._tenant_claims = None

    # ---- Resolution ---------------------------------------------------------------------

    def current_kind(self) -> TokenKind:
        """Kind of the token ``get_token()`` would return."""
        if self.has_user_token():
            return TokenKind.USER
        if self.has_tenant_token():
            return TokenKind.TENANT
        if self.has_vendor_token():
            return TokenKind.VENDOR
        raise NoTokenError("No authentication token available")

    def get_token(self) -> str:
        """
        Return the active token: user, else tenant, else a still-valid vendor token.

        Never triggers a credential exchange.
        """
        kind = self.current_kind()
        if kind is TokenKind.USER:
            return self.get_user_token()
        if kind is TokenKind.TENANT:
            return self.get_tenant_token()
        return self.get_vendor_token()

    # ---- Authorization predicates -------------------------------------------------------

    def has_permission(self, permission: str) -> bool:
        try:
            claims = self.get_user_claims()
        except NoTokenError:
            return False
        return claims.has_permission(permission)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        try:
            claims = self.get_user_claims()
        except NoTokenError:
            return False
        return bool(set(roles) & set(claims.roles))
