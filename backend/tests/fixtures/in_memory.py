"""In-memory fakes for the order workflow ports.

InMemoryUnitOfWork keeps a checkpoint of the committed state; rollback()
restores it, so tests can assert that a failed unit left nothing behind.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from colorgarb.domain.errors import ConflictError, NotFoundError
from colorgarb.domain.orders.models import (
    AccessAttempt,
    AccessAttemptFilters,
    Order,
    OrderListFilters,
    OrderStatusFilter,
    Page,
    StageHistoryEntry,
)
from colorgarb.domain.orders.ports import (
    AbstractUnitOfWork,
    AuditStorePort,
    NotificationPort,
    OrderRepositoryPort,
)
from colorgarb.domain.orders.stages import OrderStage

SHIP_DATE = datetime(2026, 11, 15, 12, 0, tzinfo=timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryOrderRepository(OrderRepositoryPort):
    def __init__(self):
        self.orders: dict[UUID, Order] = {}
        self.organizations: set[UUID] = set()

    def load_order(self, order_id: UUID) -> Optional[Order]:
        order = self.orders.get(order_id)
        return replace(order) if order else None

    def save_order(self, order: Order) -> Order:
        stored = self.orders.get(order.id)
        if stored is None:
            raise NotFoundError("order not found", order_id=order.id)
        if stored.version != order.version:
            raise ConflictError("order was modified concurrently", order_id=order.id)
        saved = replace(order, organization_id=stored.organization_id, version=order.version + 1, updated_at=_now())
        self.orders[order.id] = saved
        return replace(saved)

    def add_order(self, order: Order) -> Order:
        now = _now()
        saved = replace(order, id=order.id or uuid4(), version=1, created_at=order.created_at or now, updated_at=now)
        self.orders[saved.id] = saved
        return replace(saved)

    def list_orders(self, filters: OrderListFilters) -> Page:
        items = list(self.orders.values())
        if filters.organization_id is not None:
            items = [o for o in items if o.organization_id == filters.organization_id]
        if filters.status == OrderStatusFilter.ACTIVE:
            items = [o for o in items if o.is_active]
        elif filters.status == OrderStatusFilter.INACTIVE:
            items = [o for o in items if not o.is_active]
        if filters.stage is not None:
            items = [o for o in items if o.current_stage == filters.stage]
        items.sort(key=lambda o: o.created_at, reverse=True)

        start = (filters.page - 1) * filters.page_size
        return Page(
            items=items[start:start + filters.page_size],
            total=len(items),
            page=filters.page,
            page_size=filters.page_size,
        )

    def organization_exists(self, organization_id: UUID) -> bool:
        return organization_id in self.organizations

    def order_number_exists(self, order_number: str) -> bool:
        return any(o.order_number == order_number for o in self.orders.values())


class InMemoryAuditStore(AuditStorePort):
    def __init__(self):
        self.history: list[StageHistoryEntry] = []
        self.attempts: list[AccessAttempt] = []
        self.fail_history_writes = False
        self.fail_attempt_writes = False

    def save_stage_history_entry(self, entry: StageHistoryEntry) -> StageHistoryEntry:
        if self.fail_history_writes:
            raise RuntimeError("audit store unavailable")
        saved = replace(entry, id=uuid4(), changed_at=entry.changed_at or _now())
        self.history.append(saved)
        return saved

    def save_access_attempt(self, attempt: AccessAttempt) -> AccessAttempt:
        if self.fail_attempt_writes:
            raise RuntimeError("audit store unavailable")
        saved = replace(attempt, id=uuid4(), timestamp=attempt.timestamp or _now())
        self.attempts.append(saved)
        return saved

    def list_stage_history(self, order_id=None, date_from=None, date_to=None) -> list[StageHistoryEntry]:
        entries = [
            e for e in self.history
            if (order_id is None or e.order_id == order_id)
            and (date_from is None or e.changed_at >= date_from)
            and (date_to is None or e.changed_at <= date_to)
        ]
        return sorted(entries, key=lambda e: e.changed_at)

    def list_access_attempts(self, filters: AccessAttemptFilters) -> Page:
        items = [
            a for a in self.attempts
            if (filters.user_id is None or a.user_id == filters.user_id)
            and (filters.organization_id is None or a.organization_id == filters.organization_id)
            and (filters.access_granted is None or a.access_granted == filters.access_granted)
        ]
        items.sort(key=lambda a: a.timestamp, reverse=True)
        start = (filters.page - 1) * filters.page_size
        return Page(items=items[start:start + filters.page_size], total=len(items),
                    page=filters.page, page_size=filters.page_size)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self):
        self.orders = InMemoryOrderRepository()
        self.audit = InMemoryAuditStore()
        self.commits = 0
        self.rollbacks = 0
        self._checkpoint()

    def _checkpoint(self) -> None:
        self._orders = dict(self.orders.orders)
        self._history = list(self.audit.history)
        self._attempts = list(self.audit.attempts)

    def commit(self) -> None:
        self.commits += 1
        self._checkpoint()

    def rollback(self) -> None:
        self.rollbacks += 1
        self.orders.orders = dict(self._orders)
        self.audit.history = list(self._history)
        self.audit.attempts = list(self._attempts)

    def seed_organization(self, organization_id: Optional[UUID] = None) -> UUID:
        organization_id = organization_id or uuid4()
        self.orders.organizations.add(organization_id)
        return organization_id

    def seed_order(
        self,
        organization_id: UUID,
        stage: OrderStage = OrderStage.DESIGN_PROPOSAL,
        ship_date: datetime = SHIP_DATE,
        is_active: bool = True,
    ) -> Order:
        """Insert a committed order directly (bypasses the service)."""
        self.orders.organizations.add(organization_id)
        order = self.orders.add_order(
            Order(
                order_number=f"CG-{len(self.orders.orders) + 1:04d}",
                organization_id=organization_id,
                current_stage=stage,
                original_ship_date=ship_date,
                current_ship_date=ship_date,
                is_active=is_active,
            )
        )
        self._checkpoint()
        return order


class RecordingNotifier(NotificationPort):
    """Records notifications; optionally fails like an unreachable broker."""

    def __init__(self, fail: bool = False):
        self.calls: list[tuple] = []
        self.fail = fail

    def notify_stage_changed(self, order_id: UUID, previous_stage: OrderStage, new_stage: OrderStage) -> None:
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.calls.append((order_id, previous_stage, new_stage))
