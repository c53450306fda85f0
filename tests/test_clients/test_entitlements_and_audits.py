"""Tests for entitlement and audit resource clients (HTTP mocked)."""
from __future__ import annotations

import pytest

from tenantauth import Client
from tenantauth.errors import HttpError, NotFoundError, UnauthorizedError


@pytest.fixture
def client(config, session) -> Client:
    return Client(config, session=session)


@pytest.fixture
def user_client(client, make_token, rsa_key_a, user_payload) -> Client:
    client.authenticate(make_token(rsa_key_a, user_payload))
    return client


def _last_call(session, method, url):
    return [c for c in session.calls if c["method"] == method and c["url"] == url][-1]


# ---- Entitlements -----------------------------------------------------------------------


def test_feature_entitlement_true(user_client, session, api_url):
    url = api_url("/v1/data/e10s/features/is_entitled_to_input_feature")
    session.add("POST", url, {"result": True})
    assert user_client.self_service().entitlements().is_entitled_to_feature("sso") is True
    call = _last_call(session, "POST", url)
    assert call["json"] == {"featureKey": "sso"}
    assert call["headers"]["Authorization"].startswith("Bearer ")


def test_feature_entitlement_unknown_feature_is_false(user_client, session, api_url):
    session.add("POST", api_url("/v1/data/e10s/features/is_entitled_to_input_feature"), {}, status_code=404)
    assert user_client.self_service().entitlements().is_entitled_to_feature("nope") is False


def test_feature_entitlement_missing_result_is_false(user_client, session, api_url):
    session.add("POST", api_url("/v1/data/e10s/features/is_entitled_to_input_feature"), {})
    assert user_client.self_service().entitlements().is_entitled_to_feature("sso") is False


def test_feature_entitlement_server_error_propagates(user_client, session, api_url):
    session.add("POST", api_url("/v1/data/e10s/features/is_entitled_to_input_feature"), {}, status_code=500)
    with pytest.raises(HttpError) as exc_info:
        user_client.self_service().entitlements().is_entitled_to_feature("sso")
    assert exc_info.value.status_code == 500


def test_feature_entitlement_requires_user(client, session):
    with pytest.raises(UnauthorizedError):
        client.self_service().entitlements().is_entitled_to_feature("sso")
    assert session.calls == []


def test_entitlement_lists_by_assign_level(user_client, session, api_url):
    url = api_url("/resources/entitlements/v2")
    session.add("GET", url, {"items": [{"featureKey": "sso"}]})
    entitlements = user_client.self_service().entitlements()

    assert entitlements.get_my_entitlements(limit=5) == [{"featureKey": "sso"}]
    assert _last_call(session, "GET", url)["params"] == {"limit": 5, "assignLevel": "USER"}

    entitlements.get_tenant_entitlements(assignLevel="USER")
    assert _last_call(session, "GET", url)["params"] == {"assignLevel": "TENANT"}


# ---- Audits -----------------------------------------------------------------------------


def test_self_service_audits(user_client, session, api_url):
    session.add("GET", api_url("/resources/audits/v1"), {"audits": [{"action": "login"}]})
    session.add("GET", api_url("/resources/audits/v1/me"), {"audits": []})
    audits = user_client.self_service().audits()
    assert audits.get_tenant_audits() == [{"action": "login"}]
    assert audits.get_my_audits(severity="Info") == []
    assert _last_call(session, "GET", api_url("/resources/audits/v1/me"))["params"] == {"severity": "Info"}


def test_self_service_create_audit(user_client, session, api_url):
    url = api_url("/resources/audits/v1")
    session.add("POST", url, {"id": "a1", "action": "export"})
    assert user_client.self_service().audits().create_audit({"action": "export"})["id"] == "a1"
    assert _last_call(session, "POST", url)["json"] == {"action": "export"}


def test_management_audits_are_tenant_scoped(client, session, api_url):
    url = api_url("/resources/audits/v1")
    session.add("GET", url, {"audits": [{"id": "a1"}]})
    client.select_tenant("t1")
    assert client.management().audits().list_audits(limit=10) == [{"id": "a1"}]
    call = _last_call(session, "GET", url)
    assert call["headers"]["Authorization"] == "Bearer vendor-token-1"
    assert call["headers"]["frontegg-tenant-id"] == "t1"
    assert call["params"] == {"limit": 10}


def test_management_get_audit_not_found(client, session, api_url):
    session.add("GET", api_url("/resources/audits/v1/missing"), {}, status_code=404)
    with pytest.raises(NotFoundError, match="missing"):
        client.management().audits().get_audit("missing")


def test_management_create_audit_for_explicit_tenant(client, session, api_url):
    url = api_url("/resources/audits/v1")
    session.add("POST", url, {"id": "a2"})
    assert client.management().audits().create_audit({"action": "x"}, tenant_id="t9") == {"id": "a2"}
    assert _last_call(session, "POST", url)["headers"]["frontegg-tenant-id"] == "t9"
