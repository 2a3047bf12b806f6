"""Audit recorder for applied mutations and access attempts.

Two append-only streams:
- Stage history: one entry per applied order mutation. Written inside the
  mutation's unit of work, so a rejected write fails the mutation.
- Access attempts: one entry per AccessPolicy decision, granted or denied.
  Committed on its own, before any mutation runs, so denied attempts stay
  recorded even though the request fails.

Nothing here updates or deletes an entry.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from ..auth.context import AuthorizationContext, ClientInfo
from ..auth.policy import AccessDecision, ResourceDescriptor
from ..domain.errors import AuditWriteError, ValidationError
from ..domain.orders.models import AccessAttempt, AccessAttemptFilters, Page, StageHistoryEntry
from ..domain.orders.ports import AbstractUnitOfWork
from ..models.base import as_utc
from ..observability.logging_config import get_logger
from ..observability.metrics import access_decisions_total, audit_write_failures_total

logger = get_logger(__name__)


class AuditRecorder:
    """Append to and query the audit streams through a unit of work."""

    def __init__(self, uow: AbstractUnitOfWork):
        self.uow = uow

    def record(self, entry: StageHistoryEntry) -> StageHistoryEntry:
        """Append a stage history entry to the caller's open unit of work.

        Does not commit. The caller commits the order change and the entry
        together.

        Raises:
            AuditWriteError: The store rejected the entry
        """
        try:
            return self.uow.audit.save_stage_history_entry(entry)
        except Exception as e:
            audit_write_failures_total.labels(stream="stage_history").inc()
            logger.error(
                f"Failed to record stage history for order {entry.order_id}: {e}",
                exc_info=True,
                extra={"order_id": entry.order_id},
            )
            raise AuditWriteError(
                "stage history could not be recorded; change not applied",
                order_id=entry.order_id,
            ) from e

    def record_access_attempt(
        self,
        context: AuthorizationContext,
        decision: AccessDecision,
        resource: ResourceDescriptor,
        organization_id: Optional[UUID] = None,
        client: Optional[ClientInfo] = None,
    ) -> AccessAttempt:
        """Record one access decision and commit it.

        Fails closed: if the attempt cannot be stored the request must not
        proceed, whatever the decision was.

        Raises:
            AuditWriteError: The store rejected the attempt
        """
        client = client or ClientInfo()
        attempt = AccessAttempt(
            user_id=context.user_id,
            user_role=context.role_label,
            organization_id=organization_id if organization_id is not None else context.org_id,
            resource=resource.describe(),
            http_method=client.http_method,
            access_granted=decision.allowed,
            details=decision.reason,
            metadata={
                "path": client.path,
                "action": resource.action,
                "requested_organization_id": str(organization_id) if organization_id else None,
                "claimed_role": context.claimed_role,
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            request_id=client.request_id,
        )

        try:
            saved = self.uow.audit.save_access_attempt(attempt)
            self.uow.commit()
        except Exception as e:
            self.uow.rollback()
            audit_write_failures_total.labels(stream="access_attempt").inc()
            logger.error(f"Failed to record access attempt: {e}", exc_info=True)
            raise AuditWriteError("access attempt could not be recorded") from e

        outcome = "granted" if decision.allowed else "denied"
        access_decisions_total.labels(outcome=outcome, reason=decision.reason).inc()

        log_extra = {
            "user_id": context.user_id,
            "role": context.role_label,
            "org_id": organization_id,
            "outcome": outcome,
        }
        if decision.allowed:
            logger.info(f"Access granted to {attempt.resource}: {decision.reason}", extra=log_extra)
        else:
            logger.warning(f"Access denied to {attempt.resource}: {decision.reason}", extra=log_extra)

        return saved

    def query(
        self,
        order_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[StageHistoryEntry]:
        """Stage history entries matching the filters, oldest first.

        Args:
            order_id: Restrict to one order
            date_from: Inclusive lower bound on changed_at
            date_to: Inclusive upper bound on changed_at

        Raises:
            ValidationError: date_from is after date_to
        """
        check_date_range(date_from, date_to)
        entries = self.uow.audit.list_stage_history(
            order_id=order_id, date_from=date_from, date_to=date_to
        )
        return sorted(entries, key=lambda entry: entry.changed_at)

    def query_access_attempts(self, filters: AccessAttemptFilters) -> Page:
        """Page of access attempts, newest first."""
        check_date_range(filters.date_from, filters.date_to)
        return self.uow.audit.list_access_attempts(filters)


def check_date_range(date_from: Optional[datetime], date_to: Optional[datetime]) -> None:
    if date_from is not None and date_to is not None and as_utc(date_from) > as_utc(date_to):
        raise ValidationError("date_from must not be after date_to")
