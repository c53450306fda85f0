"""
Synchronous HTTP transport for the identity platform.

Two base URLs are configured:

* the platform API host (``api_base_url``), used by default, and
* the custom domain (``base_url``), used when ``use_custom_domain=True``
  (e.g. for the public JWKS document).

Responses are decoded as JSON; any status >= 400 raises ``HttpError`` with the
status code and the decoded error body.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import requests

from tenantauth.errors import HttpError, NoTokenError
from tenantauth.identity.config import ClientConfig

if TYPE_CHECKING:
    from tenantauth.identity.manager import IdentityManager

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class HttpTransport:
    def __init__(self, config: ClientConfig, session: requests.Session | None = None) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._session.headers.update(_DEFAULT_HEADERS)
        self._identity: IdentityManager | None = None

    def attach_identity(self, identity: IdentityManager) -> None:
        """Let ``requires_auth`` requests pick up the identity manager's current token."""
        self._identity = identity

    def _url(self, path: str, use_custom_domain: bool) -> str:
        base = self._config.custom_domain if use_custom_domain else self._config.api_base_url
        return f"{base}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
        requires_auth: bool = True,
        use_custom_domain: bool = False,
    ) -> dict[str, Any]:
        """
        Send a request and return the decoded JSON body (``{}`` when empty).

        With ``requires_auth`` and an attached identity manager, an
        ``Authorization: Bearer`` header is added from ``get_token()`` unless
        the caller already supplied one. If no token is available the request
        is sent without it.
        """
        merged: dict[str, str] = dict(headers or {})
        if requires_auth and self._identity is not None and "Authorization" not in merged:
            try:
                merged["Authorization"] = f"Bearer {self._identity.get_token()}"
            except NoTokenError:
                logger.debug("No token available for %s %s; sending unauthenticated", method, path)

        url = self._url(path, use_custom_domain)
        try:
            resp = self._session.request(
                method,
                url,
                headers=merged,
                params=params,
                json=json,
                timeout=self._config.http_timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning("HTTP %s %s failed: %s", method, path, type(e).__name__)
            raise HttpError(f"Request failed: {type(e).__name__}") from e

        body = _decode(resp)
        if resp.status_code >= 400:
            logger.info("HTTP %s %s returned status=%s", method, path, resp.status_code)
            raise HttpError(_error_message(resp, body), resp.status_code, body)
        return body

    def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("DELETE", path, **kwargs)


def _decode(resp: requests.Response) -> dict[str, Any]:
    if not resp.content:
        return {}
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}


def _error_message(resp: requests.Response, body: dict[str, Any]) -> str:
    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])
        if isinstance(first, str):
            return first
    return resp.reason or f"HTTP {resp.status_code}"
