from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"


def extract_bearer_token(
    request: Request,
    header_name: str = AUTHORIZATION_HEADER,
    bearer_prefix: str = BEARER_PREFIX,
) -> str | None:
    """
    Extract the bearer token from the request.

    - Input: `Authorization: Bearer <token>`
    - Missing header: None (anonymous request; routes decide whether that is allowed)
    - Wrong scheme or empty token: 400
    """

    raw = request.headers.get(header_name)
    if not raw:
        logger.debug("No %s header path=%s method=%s", header_name, request.url.path, request.method)
        return None

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Expected '{bearer_prefix} <token>'.",
        )

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Missing token after '{bearer_prefix}'.",
        )

    return token
