"""
Verify platform-signed JWTs and classify their claims.

Background:
    Bearer tokens reaching a host application are RS256 JWTs signed by the
    identity platform. Before trusting anything in them we:

    1. Reject anything over 8192 characters outright.
    2. Parse the header (without trusting it) to learn the ``kid``.
    3. Resolve the public key for that ``kid`` through the ``KeyResolver``.
    4. Verify the RS256 signature. Expiry is not enforced here; it is exposed
       as ``has_expired()`` on the claims.
    5. Classify the payload by its ``type`` claim into a claims variant.

    Parse problems raise ``InvalidTokenError``; signature problems raise
    ``TokenValidationError``. If the signature fails, the key is re-fetched
    once in case the platform rotated it, and verification is retried.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt

from tenantauth.errors import InvalidTokenError, KeyFetchError, TokenValidationError
from tenantauth.identity.claims import ParsedClaims, TenantTokenClaims, UserTokenClaims, classify
from tenantauth.identity.keys import KeyResolver

logger = logging.getLogger(__name__)

MAX_TOKEN_LENGTH = 8192
ALGORITHMS = ["RS256"]

# Signature only. exp/nbf/iat/aud/iss are claims, checked by callers if they care.
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


def _get_header(token: str) -> dict[str, Any]:
    """Read the JWT header **without** verifying the token."""
    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(f"Failed to parse token format: {type(e).__name__}") from e
    if not isinstance(header, dict):
        raise InvalidTokenError("Invalid token format: header is not an object")
    return header


def _decode(token: str, key: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, key, algorithms=ALGORITHMS, options=_DECODE_OPTIONS)
    except jwt.InvalidSignatureError as e:
        raise TokenValidationError("Token signature verification failed") from e
    except jwt.InvalidAlgorithmError as e:
        raise TokenValidationError("Token is not signed with RS256") from e
    except jwt.DecodeError as e:
        raise InvalidTokenError(f"Failed to decode token: {type(e).__name__}") from e
    except jwt.InvalidTokenError as e:
        logger.info("Token validation error: %s", type(e).__name__)
        raise TokenValidationError(f"Token validation error: {type(e).__name__}") from e
    except jwt.InvalidKeyError as e:
        raise InvalidTokenError("Token does not match the verification key type") from e
    except jwt.PyJWTError as e:
        raise TokenValidationError(f"Verification key rejected: {type(e).__name__}") from e


class TokenVerifier:
    """
    Stateless verifier; all caching lives in the ``KeyResolver``.
    """

    def __init__(self, keys: KeyResolver) -> None:
        self._keys = keys

    def parse(self, token: str) -> ParsedClaims:
        """
        Verify ``token`` and return its claims variant.

        Raises InvalidTokenError for malformed/oversized tokens,
        TokenValidationError for signature failures and KeyFetchError when no
        key can be resolved.
        """
        if len(token) > MAX_TOKEN_LENGTH:
            raise InvalidTokenError("Invalid JWT format: token too long")

        kid = _get_header(token).get("kid")
        if kid is not None and not isinstance(kid, str):
            raise InvalidTokenError("Invalid token format: kid is not a string")

        key = self._keys.get_key(kid=kid)
        try:
            payload = _decode(token, key)
        except TokenValidationError as e:
            # Only a signature mismatch can be fixed by a rotated key.
            if not isinstance(e.__cause__, jwt.InvalidSignatureError):
                raise
            try:
                fresh = self._keys.refresh(kid=kid)
            except KeyFetchError:
                logger.warning("Key refresh after signature failure failed kid=%s", kid)
                raise e
            if fresh == key:
                raise
            logger.info("Signature failed with cached key; retrying with refreshed key kid=%s", kid)
            payload = _decode(token, fresh)

        try:
            claims = classify(payload)
        except (ValueError, OverflowError, OSError) as e:
            raise InvalidTokenError(f"Failed to parse token claims: {type(e).__name__}") from e

        logger.debug("Token verified kind=%s kid=%s", claims.kind.value, kid)
        return claims

    def parse_user_token(self, token: str) -> UserTokenClaims:
        claims = self.parse(token)
        if not isinstance(claims, UserTokenClaims):
            raise InvalidTokenError("Token is not a user token")
        return claims

    def parse_tenant_token(self, token: str) -> TenantTokenClaims:
        claims = self.parse(token)
        if not isinstance(claims, TenantTokenClaims):
            raise InvalidTokenError("Token is not a tenant token")
        return claims
