"""Audit store for stage history and access attempts"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func, and_
from sqlalchemy.orm import Session

from ...domain.orders.models import AccessAttempt, AccessAttemptFilters, Page, StageHistoryEntry
from ...domain.orders.ports import AuditStorePort
from ...domain.orders.stages import parse_stage
from ...models.base import as_utc, utcnow
from ...models.order_stage_history import OrderStageHistoryModel
from ...models.role_access_audit import RoleAccessAuditModel


class SqlAlchemyAuditStore(AuditStorePort):
    """Append-only access to order_stage_history and role_access_audit.

    There are no update or delete methods. Writes are flushed so that a
    rejected insert surfaces immediately, inside the caller's unit of work.
    """

    def __init__(self, db: Session):
        self.db = db

    def save_stage_history_entry(self, entry: StageHistoryEntry) -> StageHistoryEntry:
        row = OrderStageHistoryModel(
            order_id=entry.order_id,
            organization_id=entry.organization_id,
            previous_stage=entry.previous_stage.value,
            new_stage=entry.new_stage.value,
            changed_by_user_id=entry.changed_by_user_id,
            changed_by_role=entry.changed_by_role,
            previous_ship_date=entry.previous_ship_date,
            new_ship_date=entry.new_ship_date,
            reason=entry.reason,
            changed_at=entry.changed_at or utcnow(),
        )
        self.db.add(row)
        self.db.flush()

        return self._history_to_domain(row)

    def save_access_attempt(self, attempt: AccessAttempt) -> AccessAttempt:
        row = RoleAccessAuditModel(
            user_id=attempt.user_id,
            user_role=attempt.user_role,
            organization_id=attempt.organization_id,
            resource=attempt.resource,
            http_method=attempt.http_method,
            access_granted=attempt.access_granted,
            details=attempt.details,
            metadata_json=attempt.metadata or None,
            ip_address=attempt.ip_address,
            user_agent=attempt.user_agent,
            request_id=attempt.request_id,
            timestamp=attempt.timestamp or utcnow(),
        )
        self.db.add(row)
        self.db.flush()

        return self._attempt_to_domain(row)

    def list_stage_history(
        self,
        order_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[StageHistoryEntry]:
        conditions = []
        if order_id is not None:
            conditions.append(OrderStageHistoryModel.order_id == order_id)
        if date_from is not None:
            conditions.append(OrderStageHistoryModel.changed_at >= as_utc(date_from))
        if date_to is not None:
            conditions.append(OrderStageHistoryModel.changed_at <= as_utc(date_to))

        query = select(OrderStageHistoryModel)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(OrderStageHistoryModel.changed_at.asc())

        return [self._history_to_domain(row) for row in self.db.scalars(query).all()]

    def list_access_attempts(self, filters: AccessAttemptFilters) -> Page:
        conditions = []
        if filters.user_id is not None:
            conditions.append(RoleAccessAuditModel.user_id == filters.user_id)
        if filters.organization_id is not None:
            conditions.append(RoleAccessAuditModel.organization_id == filters.organization_id)
        if filters.access_granted is not None:
            conditions.append(RoleAccessAuditModel.access_granted.is_(filters.access_granted))
        if filters.date_from is not None:
            conditions.append(RoleAccessAuditModel.timestamp >= as_utc(filters.date_from))
        if filters.date_to is not None:
            conditions.append(RoleAccessAuditModel.timestamp <= as_utc(filters.date_to))

        query = select(RoleAccessAuditModel)
        if conditions:
            query = query.where(and_(*conditions))

        total = self.db.scalar(select(func.count()).select_from(query.subquery())) or 0

        query = query.order_by(RoleAccessAuditModel.timestamp.desc())
        query = query.offset((filters.page - 1) * filters.page_size).limit(filters.page_size)
        rows = self.db.scalars(query).all()

        return Page(
            items=[self._attempt_to_domain(row) for row in rows],
            total=total,
            page=filters.page,
            page_size=filters.page_size,
        )

    @staticmethod
    def _history_to_domain(row: OrderStageHistoryModel) -> StageHistoryEntry:
        return StageHistoryEntry(
            id=row.id,
            order_id=row.order_id,
            organization_id=row.organization_id,
            previous_stage=parse_stage(row.previous_stage),
            new_stage=parse_stage(row.new_stage),
            changed_by_user_id=row.changed_by_user_id,
            changed_by_role=row.changed_by_role,
            previous_ship_date=as_utc(row.previous_ship_date),
            new_ship_date=as_utc(row.new_ship_date),
            reason=row.reason,
            changed_at=as_utc(row.changed_at),
        )

    @staticmethod
    def _attempt_to_domain(row: RoleAccessAuditModel) -> AccessAttempt:
        return AccessAttempt(
            id=row.id,
            user_id=row.user_id,
            user_role=row.user_role,
            organization_id=row.organization_id,
            resource=row.resource,
            http_method=row.http_method,
            access_granted=row.access_granted,
            details=row.details,
            metadata=row.metadata_json or {},
            ip_address=row.ip_address,
            user_agent=row.user_agent,
            request_id=row.request_id,
            timestamp=as_utc(row.timestamp),
        )
