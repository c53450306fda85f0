"""Thin resource clients layered over the identity manager and HTTP transport."""

from .base import BaseClient
from .management import AuditsClient, ManagementClients, RolesClient, TenantsClient, UsersClient
from .self_service import EntitlementsClient, ProfileClient, SelfServiceAuditsClient, SelfServiceClients

__all__ = [
    "AuditsClient",
    "BaseClient",
    "EntitlementsClient",
    "ManagementClients",
    "ProfileClient",
    "RolesClient",
    "SelfServiceAuditsClient",
    "SelfServiceClients",
    "TenantsClient",
    "UsersClient",
]
