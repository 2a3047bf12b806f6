"""Evaluate AccessPolicy and record the decision in one step."""

from typing import Optional
from uuid import UUID

from ..auth.context import AuthorizationContext, ClientInfo
from ..auth.policy import REASON_RESOURCE_NOT_FOUND, AccessDecision, AccessPolicy, ResourceDescriptor
from ..domain.errors import AuthenticationError, AuthorizationError, NotFoundError
from ..observability.correlation import bind_caller
from .recorder import AuditRecorder


class AccessGuard:
    """Every check is recorded before its outcome is acted on."""

    def __init__(self, recorder: AuditRecorder, policy: Optional[AccessPolicy] = None):
        self.recorder = recorder
        self.policy = policy or AccessPolicy()

    def check(
        self,
        context: AuthorizationContext,
        organization_id: Optional[UUID],
        resource: ResourceDescriptor,
        client: Optional[ClientInfo] = None,
    ) -> AccessDecision:
        """Evaluate, record, then raise on deny.

        Raises:
            AuthenticationError: Missing or invalid identity
            AuthorizationError: Any other deny
            AuditWriteError: The attempt could not be recorded
        """
        bind_caller(context.user_id, context.org_id, context.role_label)
        decision = self.policy.evaluate(context, organization_id, resource)
        self.recorder.record_access_attempt(context, decision, resource, organization_id, client)
        self._raise_on_deny(decision, resource)
        return decision

    def check_missing(
        self,
        context: AuthorizationContext,
        resource: ResourceDescriptor,
        client: Optional[ClientInfo] = None,
    ) -> None:
        """Record an access to a resource id that does not resolve.

        Identity and role failures are reported as usual. A caller who
        would otherwise pass is recorded as denied with "resource not found"
        and gets NotFoundError.

        Raises:
            AuthenticationError: Missing or invalid identity
            AuthorizationError: Insufficient role
            NotFoundError: Always, once identity and role pass
        """
        bind_caller(context.user_id, context.org_id, context.role_label)
        decision = self.policy.evaluate(context, None, resource)
        if decision.allowed:
            decision = AccessDecision(False, REASON_RESOURCE_NOT_FOUND)
        self.recorder.record_access_attempt(context, decision, resource, None, client)

        if decision.reason == REASON_RESOURCE_NOT_FOUND:
            raise NotFoundError(f"{resource.resource_type} not found", order_id=resource.resource_id)
        self._raise_on_deny(decision, resource)

    @staticmethod
    def _raise_on_deny(decision: AccessDecision, resource: ResourceDescriptor) -> None:
        if decision.allowed:
            return
        if decision.is_identity_failure:
            raise AuthenticationError(decision.reason, order_id=resource.resource_id)
        raise AuthorizationError(decision.reason, order_id=resource.resource_id)
