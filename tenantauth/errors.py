"""
Exception types raised by tenantauth.

Callers branch on these rather than on messages:

    TenantAuthError
    ├── IdentityError
    │   ├── NoTokenError          requested token kind is not set
    │   ├── InvalidTokenError     malformed, oversized or wrong-kind token
    │   └── TokenValidationError  signature did not verify
    ├── KeyFetchError             signing key could not be obtained
    └── HttpError                 non-2xx response or transport failure
        ├── UnauthorizedError
        └── NotFoundError

Messages never include token material.
"""

from __future__ import annotations

from typing import Any


class TenantAuthError(Exception):
    """Base class for every error raised by this package."""


class IdentityError(TenantAuthError):
    """Base class for token handling errors."""


class NoTokenError(IdentityError):
    """Raised when a token of the requested kind has not been set."""


class InvalidTokenError(IdentityError):
    """Raised for tokens that cannot be parsed or are of the wrong kind."""


class TokenValidationError(IdentityError):
    """Raised when a token's signature does not verify against the resolved key."""


class KeyFetchError(TenantAuthError):
    """Raised when the verification key cannot be fetched or converted to PEM."""


class HttpError(TenantAuthError):
    """
    Raised by the HTTP transport for non-2xx responses and network failures.

    ``status_code`` is None when no response was received at all.
    ``body`` holds the decoded JSON error body (empty dict if there was none).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body or {}


class UnauthorizedError(HttpError):
    """Raised when an operation needs a token that is missing or was rejected."""

    def __init__(self, message: str = "Unauthorized", status_code: int = 401) -> None:
        super().__init__(message, status_code)


class NotFoundError(HttpError):
    """Raised by resource clients when the platform answers 404."""

    def __init__(self, message: str, body: dict[str, Any] | None = None) -> None:
        super().__init__(message, 404, body)
