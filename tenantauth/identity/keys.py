"""
Verification key resolution with a two-tier cache.

Background:
    Identity platform tokens are signed with a private RSA key. To verify them
    we need the matching public key, published either as a JWKS document on the
    custom domain (``/.well-known/jwks.json``) or, for older deployments, as a
    single ``publicKey`` in the vendor configuration endpoint.

    Fetching that on every token would be wasteful, so keys are cached twice:

    1. in-process: a single slot holding the last resolved key, and
    2. distributed: a ``CacheAdapter`` (e.g. Redis) shared between processes,
       keyed ``{prefix}public_key`` or ``{prefix}public_key_{kid}``, 12 h TTL.

    When the platform rotates keys, ``refresh()`` bypasses both tiers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cryptography.hazmat.primitives import serialization
from jwt import PyJWK
from jwt.algorithms import RSAAlgorithm
from jwt.exceptions import InvalidKeyError, PyJWKError

from tenantauth.errors import HttpError, KeyFetchError
from tenantauth.identity.cache import CacheAdapter
from tenantauth.identity.config import DEFAULT_CACHE_KEY_PREFIX, ClientConfig, KeySource

if TYPE_CHECKING:
    from tenantauth.transport import HttpTransport

logger = logging.getLogger(__name__)

KEY_CACHE_TTL_SECONDS = 12 * 3600
CONFIGURATIONS_PATH = "/identity/resources/configurations/v1"

_PEM_HEADER = "-----BEGIN PUBLIC KEY-----"
_PEM_FOOTER = "-----END PUBLIC KEY-----"


@dataclass(frozen=True)
class _KeySlot:
    cache_key: str
    pem: str


class KeyResolver:
    """
    Resolves the PEM public key used to verify platform tokens.

    ``vendor_token`` is only needed for ``KeySource.LEGACY``: the configuration
    endpoint requires a vendor bearer token.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: HttpTransport,
        cache: CacheAdapter | None = None,
        vendor_token: Callable[[], str] | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._cache = cache
        self._prefix = config.cache_key_prefix or DEFAULT_CACHE_KEY_PREFIX
        self._vendor_token = vendor_token
        self._slot: _KeySlot | None = None

    def set_cache(self, cache: CacheAdapter | None, prefix: str | None = None) -> None:
        self._cache = cache
        if prefix is not None:
            self._prefix = prefix

    def cache_key(self, kid: str | None = None) -> str:
        return f"{self._prefix}public_key_{kid}" if kid else f"{self._prefix}public_key"

    def invalidate(self) -> None:
        """Drop the in-process key. The distributed tier is left alone."""
        self._slot = None

    def refresh(self, kid: str | None = None) -> str:
        """Fetch the key remotely and overwrite both cache tiers."""
        return self.get_key(ignore_cache=True, kid=kid)

    def get_key(self, ignore_cache: bool = False, kid: str | None = None) -> str:
        """
        Return the PEM public key for ``kid`` (or the default key when None).

        Fetched keys are cached under the ``kid`` of the JWKS entry actually
        used. A ``kid`` missing from the key set falls back to the first entry
        and is cached under the unsuffixed key, so unknown kids never add
        cache entries.

        Raises KeyFetchError if the key endpoint is unreachable or returns no
        usable key.
        """
        if self._config.key_source is KeySource.LEGACY:
            kid = None
        cache_key = self.cache_key(kid)

        if not ignore_cache:
            slot = self._slot
            if slot is not None and (kid is None or slot.cache_key == cache_key):
                return slot.pem

            if self._cache is not None:
                cached = self._cache.get(cache_key)
                if cached:
                    logger.debug("Verification key served from distributed cache key=%s", cache_key)
                    self._slot = _KeySlot(cache_key, cached)
                    return cached

        if self._config.key_source is KeySource.LEGACY:
            resolved_kid, pem = None, self._fetch_legacy_key()
        else:
            resolved_kid, pem = self._fetch_jwks_key(kid)

        resolved_key = self.cache_key(resolved_kid)
        self._slot = _KeySlot(resolved_key, pem)
        if self._cache is not None:
            self._cache.set(resolved_key, pem, KEY_CACHE_TTL_SECONDS)
        logger.debug("Verification key fetched source=%s kid=%s", self._config.key_source.value, resolved_kid)
        return pem

    def _fetch_jwks_key(self, kid: str | None) -> tuple[str | None, str]:
        """Return ``(kid or None when the first entry was used, pem)``."""
        try:
            data = self._transport.get(
                self._config.jwks_path,
                requires_auth=False,
                use_custom_domain=True,
            )
        except HttpError as e:
            raise KeyFetchError(f"JWKS fetch failed: {e}") from e

        keys = data.get("keys")
        if not isinstance(keys, list) or not keys:
            raise KeyFetchError("JWKS document contains no keys")
        entry = select_jwk(keys, kid)
        matched = kid if kid is not None and entry.get("kid") == kid else None
        return matched, jwk_to_pem(entry)

    def _fetch_legacy_key(self) -> str:
        if self._vendor_token is None:
            raise KeyFetchError("Legacy key source requires a vendor token provider")
        try:
            token = self._vendor_token()
            data = self._transport.get(
                CONFIGURATIONS_PATH,
                headers={"Authorization": f"Bearer {token}"},
                requires_auth=False,
            )
        except HttpError as e:
            raise KeyFetchError(f"Public key fetch failed: {e}") from e

        public_key = data.get("publicKey")
        if not public_key or not isinstance(public_key, str):
            raise KeyFetchError("Public key not found in configurations response")
        return format_pem(public_key)


def select_jwk(keys: list[Any], kid: str | None) -> dict[str, Any]:
    """Pick the entry whose ``kid`` matches; otherwise the first entry."""
    entries = [k for k in keys if isinstance(k, dict)]
    if not entries:
        raise KeyFetchError("JWKS document contains no usable keys")
    if kid is not None:
        for entry in entries:
            if entry.get("kid") == kid:
                return entry
        logger.info("kid not found in JWKS; falling back to first key")
    return entries[0]


def jwk_to_pem(jwk: dict[str, Any]) -> str:
    """Convert a public JWK to a PEM ``SubjectPublicKeyInfo`` string."""
    kty = jwk.get("kty")
    try:
        if kty == "RSA":
            if not jwk.get("n") or not jwk.get("e"):
                raise KeyFetchError("RSA JWK is missing modulus or exponent")
            public_key = RSAAlgorithm.from_jwk(jwk)
        else:
            public_key = PyJWK.from_dict(jwk).key
    except (InvalidKeyError, PyJWKError, ValueError, TypeError) as e:
        raise KeyFetchError(f"Unusable JWK (kty={kty}): {type(e).__name__}") from e

    if not hasattr(public_key, "public_bytes"):
        raise KeyFetchError(f"JWK (kty={kty}) is not an asymmetric public key")
    pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return pem.decode("ascii")


def format_pem(public_key: str) -> str:
    """Wrap a bare base64 key in a PEM envelope (64-column lines)."""
    if _PEM_HEADER in public_key:
        return public_key
    body = "".join(public_key.split())
    lines = [body[i : i + 64] for i in range(0, len(body), 64)]
    return _PEM_HEADER + "\n" + "".join(f"{line}\n" for line in lines) + _PEM_FOOTER
