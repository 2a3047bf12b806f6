"""Per-request identity and client metadata."""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from .roles import UserRole


@dataclass(frozen=True)
class AuthorizationContext:
    """Resolved identity of the caller.

    Built per request from verified token claims and never persisted.
    `role` is None when the role claim is missing or unrecognized;
    `claimed_role` keeps the raw claim for the attempt log.
    """
    user_id: Optional[UUID]
    role: Optional[UserRole]
    org_id: Optional[UUID] = None
    claimed_role: Optional[str] = None

    @property
    def role_label(self) -> str:
        return self.role.value if self.role else "unknown"

    @property
    def has_valid_identity(self) -> bool:
        return self.user_id is not None and self.role is not None

    @classmethod
    def anonymous(cls, claimed_role: Optional[str] = None) -> "AuthorizationContext":
        """Context for a request whose identity could not be established."""
        return cls(user_id=None, role=None, org_id=None, claimed_role=claimed_role)


@dataclass(frozen=True)
class ClientInfo:
    """Caller network/client metadata recorded with every access attempt."""
    http_method: str = "INTERNAL"
    path: str = ""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
