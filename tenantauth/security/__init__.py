"""FastAPI integration: per-request ``Client`` dependencies and authorization guards."""

from .auth import extract_bearer_token
from .dependencies import (
    get_client_config,
    get_identity_client,
    init_app,
    require_permissions,
    require_roles,
    require_user,
)

__all__ = [
    "extract_bearer_token",
    "get_client_config",
    "get_identity_client",
    "init_app",
    "require_permissions",
    "require_roles",
    "require_user",
]
