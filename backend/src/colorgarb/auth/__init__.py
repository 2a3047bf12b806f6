"""Identity, roles, and the organization-scoped access policy."""

from .roles import UserRole, parse_role
from .context import AuthorizationContext, ClientInfo
from .policy import AccessPolicy, AccessDecision, ResourceDescriptor

__all__ = [
    "UserRole",
    "parse_role",
    "AuthorizationContext",
    "ClientInfo",
    "AccessPolicy",
    "AccessDecision",
    "ResourceDescriptor",
]
