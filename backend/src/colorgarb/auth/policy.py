"""Organization-scoped access policy.

AccessPolicy is a pure decision function: the same context, organization
and resource always produce the same decision. It performs no I/O; the
caller is responsible for recording every decision in the access-attempt
log (see audit.recorder.AuditRecorder.record_access_attempt).

Decision order:
1. Missing user id or unrecognized role       → DENY "missing or invalid identity"
2. Role does not meet the resource's roles     → DENY "insufficient role"
   (Director satisfies Finance-only resources)
3. Resource is not organization-scoped         → ALLOW
4. Caller is ColorGarb staff                   → ALLOW (cross-organization)
5. Caller's home organization == requested     → ALLOW
6. Otherwise                                   → DENY "organization boundary"
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional
from uuid import UUID

from .context import AuthorizationContext
from .roles import UserRole, has_cross_organization_access, satisfies

REASON_INVALID_IDENTITY = "missing or invalid identity"
REASON_INSUFFICIENT_ROLE = "insufficient role"
REASON_ORGANIZATION_BOUNDARY = "organization boundary"
REASON_NOT_ORGANIZATION_SCOPED = "not organization scoped"
REASON_STAFF_ACCESS = "staff cross-organization access"
REASON_ORGANIZATION_MATCH = "organization match"
REASON_RESOURCE_NOT_FOUND = "resource not found"

ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)


@dataclass(frozen=True)
class ResourceDescriptor:
    """What is being accessed, for both the decision and the attempt log.

    `required_roles` lists the roles allowed to touch the resource at all;
    mark a resource Finance-only with `required_roles={UserRole.FINANCE}`.
    """
    resource_type: str
    action: str = "read"
    resource_id: Optional[UUID] = None
    required_roles: FrozenSet[UserRole] = field(default=ALL_ROLES)

    def describe(self) -> str:
        if self.resource_id:
            return f"{self.resource_type}:{self.resource_id}:{self.action}"
        return f"{self.resource_type}:{self.action}"


@dataclass(frozen=True)
class AccessDecision:
    """Result of an access check: allow/deny plus the reason for audit and errors."""
    allowed: bool
    reason: str

    @property
    def is_identity_failure(self) -> bool:
        return not self.allowed and self.reason == REASON_INVALID_IDENTITY


class AccessPolicy:
    """Evaluate whether a caller may access an organization's resource."""

    def evaluate(
        self,
        context: AuthorizationContext,
        requested_org_id: Optional[UUID],
        resource: Optional[ResourceDescriptor] = None,
    ) -> AccessDecision:
        """Decide access for one request.

        Args:
            context: Resolved caller identity
            requested_org_id: Owning organization of the resource, or None when
                the endpoint is not organization-scoped (e.g. "list my orders")
            resource: Resource descriptor; defaults to a read open to all roles

        Returns:
            AccessDecision with allowed flag and reason
        """
        if not context.has_valid_identity:
            return AccessDecision(False, REASON_INVALID_IDENTITY)

        required_roles = resource.required_roles if resource else ALL_ROLES
        if not satisfies(context.role, required_roles):
            return AccessDecision(False, REASON_INSUFFICIENT_ROLE)

        if requested_org_id is None:
            return AccessDecision(True, REASON_NOT_ORGANIZATION_SCOPED)

        if has_cross_organization_access(context.role):
            return AccessDecision(True, REASON_STAFF_ACCESS)

        if context.org_id is not None and context.org_id == requested_org_id:
            return AccessDecision(True, REASON_ORGANIZATION_MATCH)

        return AccessDecision(False, REASON_ORGANIZATION_BOUNDARY)
