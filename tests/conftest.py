"""
Pytest fixtures for the test suite.

Network calls never leave the process: ``FakeSession`` stands in for
``requests.Session`` and answers from a routing table keyed by
``(METHOD, full URL)``. Tokens are real RS256 JWTs signed with throwaway keys.
"""
from __future__ import annotations

import json
import time
from typing import Any, Callable

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from tenantauth.identity.config import ClientConfig

BASE_URL = "https://auth.example.com"
API_BASE_URL = "https://api.example.com"
JWKS_URL = f"{BASE_URL}/.well-known/jwks.json"
VENDOR_URL = f"{API_BASE_URL}/auth/vendor"


def make_response(status_code: int = 200, body: Any = None, reason: str = "") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status_code
    resp.reason = reason or ("OK" if status_code < 400 else "Error")
    resp._content = b"" if body is None else json.dumps(body).encode("utf-8")
    return resp


class FakeSession:
    """Minimal ``requests.Session`` replacement with canned responses and a call log."""

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[dict[str, Any]] = []

    def add(self, method: str, url: str, body: Any = None, status_code: int = 200) -> None:
        self.routes[(method.upper(), url)] = make_response(status_code, body)

    def add_callable(self, method: str, url: str, fn: Callable[..., requests.Response]) -> None:
        self.routes[(method.upper(), url)] = fn

    def count(self, method: str, url: str) -> int:
        return sum(1 for c in self.calls if c["method"] == method.upper() and c["url"] == url)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"method": method.upper(), "url": url, **kwargs})
        route = self.routes.get((method.upper(), url))
        if route is None:
            return make_response(404, {"errors": [{"message": f"no route for {method} {url}"}]})
        if callable(route):
            return route(**kwargs)
        return route


@pytest.fixture(scope="session")
def rsa_key_a():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_key_b():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_jwk():
    def _make(private_key, kid: str) -> dict[str, Any]:
        jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
        jwk["kid"] = kid
        jwk["alg"] = "RS256"
        jwk["use"] = "sig"
        return jwk

    return _make


@pytest.fixture
def make_token():
    def _make(private_key, payload: dict[str, Any], kid: str | None = "a") -> str:
        headers = {"kid": kid} if kid is not None else {}
        return jwt.encode(payload, private_key, algorithm="RS256", headers=headers)

    return _make


@pytest.fixture
def user_payload() -> dict[str, Any]:
    now = int(time.time())
    return {
        "type": "userToken",
        "sub": "user-1",
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "emailVerified": True,
        "tenantId": "tenant-1",
        "tenantIds": ["tenant-1", "tenant-2"],
        "applicationId": "app-1",
        "permissions": ["admin.*", "billing.read", "billing.read"],
        "roles": ["Admin", "Viewer"],
        "metadata": {"plan": "pro"},
        "profilePictureUrl": "https://cdn.example.com/ada.png",
        "iss": "https://auth.example.com",
        "aud": "app-1",
        "iat": now,
        "exp": now + 3600,
    }


@pytest.fixture
def tenant_payload() -> dict[str, Any]:
    now = int(time.time())
    return {
        "type": "tenantApiToken",
        "sub": "api-token-1",
        "tenantId": "tenant-9",
        "createdByUserId": "user-7",
        "permissions": ["reports.read"],
        "roles": [],
        "iat": now,
        "exp": now + 3600,
    }


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(
        client_id="client-1",
        api_key="secret-1",
        base_url=BASE_URL,
        api_base_url=API_BASE_URL,
    )


@pytest.fixture
def session(rsa_key_a, rsa_key_b, make_jwk) -> FakeSession:
    """Session serving a two-key JWKS (kids ``a`` and ``b``) and a vendor token."""
    s = FakeSession()
    s.add("GET", JWKS_URL, {"keys": [make_jwk(rsa_key_a, "a"), make_jwk(rsa_key_b, "b")]})
    s.add("POST", VENDOR_URL, {"token": "vendor-token-1", "expiresIn": 3600})
    return s


@pytest.fixture
def empty_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def response():
    return make_response


@pytest.fixture
def jwks_url() -> str:
    return JWKS_URL


@pytest.fixture
def vendor_url() -> str:
    return VENDOR_URL


@pytest.fixture
def api_url():
    def _url(path: str) -> str:
        return f"{API_BASE_URL}{path}"

    return _url
