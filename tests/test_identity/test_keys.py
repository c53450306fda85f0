"""Tests for key resolution and the two-tier key cache."""

from dataclasses import replace
from unittest.mock import MagicMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from tenantauth.errors import KeyFetchError
from tenantauth.identity.cache import InMemoryCache
from tenantauth.identity.config import KeySource
from tenantauth.identity.keys import (
    CONFIGURATIONS_PATH,
    KEY_CACHE_TTL_SECONDS,
    KeyResolver,
    format_pem,
    jwk_to_pem,
    select_jwk,
)
from tenantauth.transport import HttpTransport


def _pem(private_key) -> str:
    return (
        private_key.public_key()
        .public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo)
        .decode("ascii")
    )


def _resolver(config, session, cache=None, vendor_token=None) -> KeyResolver:
    return KeyResolver(config, HttpTransport(config, session=session), cache, vendor_token=vendor_token)


def test_get_key_selects_matching_kid(config, session, rsa_key_b):
    resolver = _resolver(config, session)
    assert resolver.get_key(kid="b") == _pem(rsa_key_b)


def test_get_key_falls_back_to_first_entry(config, session, rsa_key_a):
    resolver = _resolver(config, session)
    assert resolver.get_key(kid="missing") == _pem(rsa_key_a)
    resolver.invalidate()
    assert resolver.get_key() == _pem(rsa_key_a)


def test_jwks_is_fetched_unauthenticated_from_custom_domain(config, session, jwks_url):
    _resolver(config, session).get_key(kid="a")
    (call,) = session.calls
    assert call["url"] == jwks_url
    assert "Authorization" not in call["headers"]


def test_in_process_cache_avoids_refetch(config, session, jwks_url):
    resolver = _resolver(config, session)
    first = resolver.get_key(kid="a")
    assert resolver.get_key(kid="a") == first
    assert resolver.get_key() == first  # no kid: last fetched key is reused
    assert session.count("GET", jwks_url) == 1


def test_in_process_slot_misses_for_other_kid(config, session, jwks_url, rsa_key_b):
    resolver = _resolver(config, session)
    resolver.get_key(kid="a")
    assert resolver.get_key(kid="b") == _pem(rsa_key_b)
    assert session.count("GET", jwks_url) == 2


def test_distributed_cache_is_written_with_ttl(config, session):
    cache = MagicMock()
    cache.get.return_value = None
    pem = _resolver(config, session, cache).get_key(kid="a")
    cache.set.assert_called_once_with("tenantauth_public_key_a", pem, KEY_CACHE_TTL_SECONDS)
    assert KEY_CACHE_TTL_SECONDS == 43200


def test_distributed_cache_hit_skips_network(config, session, jwks_url):
    cache = InMemoryCache()
    cache.set("tenantauth_public_key_b", "cached-pem", 60)
    resolver = _resolver(config, session, cache)
    assert resolver.get_key(kid="b") == "cached-pem"
    assert session.count("GET", jwks_url) == 0
    # Populated the in-process tier too.
    cache.clear()
    assert resolver.get_key(kid="b") == "cached-pem"


def test_shared_cache_across_resolvers(config, session, jwks_url):
    cache = InMemoryCache()
    _resolver(config, session, cache).get_key(kid="a")
    _resolver(config, session, cache).get_key(kid="a")
    assert session.count("GET", jwks_url) == 1


def test_ignore_cache_and_refresh_bypass_both_tiers(config, session, jwks_url):
    cache = InMemoryCache()
    resolver = _resolver(config, session, cache)
    resolver.get_key(kid="a")
    resolver.get_key(ignore_cache=True, kid="a")
    resolver.refresh(kid="a")
    assert session.count("GET", jwks_url) == 3


def test_cache_prefix_can_be_changed(config, session):
    cache = InMemoryCache()
    resolver = _resolver(config, session)
    resolver.set_cache(cache, prefix="acme_")
    pem = resolver.get_key()
    assert cache.get("acme_public_key") == pem


def test_jwks_fetch_failure_raises_key_fetch_error(config, empty_session, jwks_url):
    empty_session.add("GET", jwks_url, {"errors": ["down"]}, status_code=503)
    with pytest.raises(KeyFetchError):
        _resolver(config, empty_session).get_key()


def test_empty_jwks_raises_key_fetch_error(config, empty_session, jwks_url):
    empty_session.add("GET", jwks_url, {"keys": []})
    with pytest.raises(KeyFetchError):
        _resolver(config, empty_session).get_key()


def test_rsa_jwk_without_modulus_is_fatal(rsa_key_a, make_jwk):
    jwk = make_jwk(rsa_key_a, "a")
    del jwk["n"]
    with pytest.raises(KeyFetchError):
        jwk_to_pem(jwk)


def test_non_rsa_jwk_uses_generic_parser():
    from jwt.algorithms import ECAlgorithm

    private_key = ec.generate_private_key(ec.SECP256R1())
    jwk = ECAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    jwk["kid"] = "ec-1"
    assert jwk_to_pem(jwk) == _pem(private_key)


def test_symmetric_jwk_is_rejected():
    with pytest.raises(KeyFetchError):
        jwk_to_pem({"kty": "oct", "k": "c2VjcmV0LXNlY3JldC1zZWNyZXQtc2VjcmV0", "alg": "HS256"})


def test_select_jwk_ignores_non_objects():
    assert select_jwk(["junk", {"kid": "x"}], None) == {"kid": "x"}
    with pytest.raises(KeyFetchError):
        select_jwk(["junk"], None)


def test_format_pem_wraps_bare_key():
    body = "A" * 130
    pem = format_pem(body)
    lines = pem.split("\n")
    assert lines[0] == "-----BEGIN PUBLIC KEY-----"
    assert lines[1] == "A" * 64
    assert lines[2] == "A" * 64
    assert lines[3] == "AA"
    assert lines[4] == "-----END PUBLIC KEY-----"


def test_format_pem_leaves_pem_untouched(rsa_key_a):
    pem = _pem(rsa_key_a)
    assert format_pem(pem) == pem


def test_legacy_source_uses_vendor_token(config, empty_session, api_url, rsa_key_a):
    pem = _pem(rsa_key_a)
    bare = "".join(pem.splitlines()[1:-1])
    empty_session.add("GET", api_url(CONFIGURATIONS_PATH), {"publicKey": bare})
    legacy = replace(config, key_source=KeySource.LEGACY)
    resolver = _resolver(legacy, empty_session, vendor_token=lambda: "vendor-xyz")

    resolved = resolver.get_key()

    (call,) = empty_session.calls
    assert call["headers"]["Authorization"] == "Bearer vendor-xyz"
    assert resolved.startswith("-----BEGIN PUBLIC KEY-----\n")
    assert "".join(resolved.splitlines()[1:-1]) == bare


def test_legacy_source_missing_public_key(config, empty_session, api_url):
    empty_session.add("GET", api_url(CONFIGURATIONS_PATH), {})
    legacy = replace(config, key_source=KeySource.LEGACY)
    with pytest.raises(KeyFetchError):
        _resolver(legacy, empty_session, vendor_token=lambda: "v").get_key()


def test_legacy_source_requires_vendor_provider(config, empty_session):
    legacy = replace(config, key_source=KeySource.LEGACY)
    with pytest.raises(KeyFetchError):
        _resolver(legacy, empty_session).get_key()


def test_unknown_kids_do_not_grow_the_cache(config, session, rsa_key_a):
    cache = InMemoryCache()
    for i in range(20):
        assert _resolver(config, session, cache).get_key(kid=f"bogus-{i}") == _pem(rsa_key_a)
    assert len(cache) == 1
    assert cache.get("tenantauth_public_key") == _pem(rsa_key_a)
    assert cache.get("tenantauth_public_key_bogus-0") is None


def test_known_kid_is_cached_under_its_own_key(config, session):
    cache = InMemoryCache()
    resolver = _resolver(config, session, cache)
    resolver.get_key(kid="b")
    resolver.get_key(kid="nope")
    assert len(cache) == 2
    assert cache.get("tenantauth_public_key_b") is not None


def test_legacy_source_ignores_kid_for_caching(config, empty_session, api_url, rsa_key_a):
    bare = "".join(_pem(rsa_key_a).splitlines()[1:-1])
    empty_session.add("GET", api_url(CONFIGURATIONS_PATH), {"publicKey": bare})
    cache = InMemoryCache()
    legacy = replace(config, key_source=KeySource.LEGACY)
    resolver = _resolver(legacy, empty_session, cache, vendor_token=lambda: "v")
    resolver.get_key(kid="x")
    resolver.get_key(kid="y")
    assert len(cache) == 1
    assert len(empty_session.calls) == 1
