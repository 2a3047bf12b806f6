"""Storage and notification ports for the order workflow engine.

The engine depends only on these interfaces. SQLAlchemy adapters live in
infrastructure.repositories; tests use in-memory fakes.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from .models import (
    AccessAttempt,
    AccessAttemptFilters,
    Order,
    OrderListFilters,
    Page,
    StageHistoryEntry,
)
from .stages import OrderStage


class OrderRepositoryPort(ABC):
    """Load and persist orders."""

    @abstractmethod
    def load_order(self, order_id: UUID) -> Optional[Order]:
        """Return the order, or None if the id does not resolve."""
        pass

    @abstractmethod
    def save_order(self, order: Order) -> Order:
        """Persist a mutated order and return it with the new version.

        Raises:
            ConflictError: The stored version moved since the order was loaded
        """
        pass

    @abstractmethod
    def add_order(self, order: Order) -> Order:
        """Insert a new order and return it with id and timestamps set."""
        pass

    @abstractmethod
    def list_orders(self, filters: OrderListFilters) -> Page:
        """Page of orders matching filters, newest first."""
        pass

    @abstractmethod
    def organization_exists(self, organization_id: UUID) -> bool:
        pass

    @abstractmethod
    def order_number_exists(self, order_number: str) -> bool:
        pass


class AuditStorePort(ABC):
    """Append-only store for stage history and access attempts."""

    @abstractmethod
    def save_stage_history_entry(self, entry: StageHistoryEntry) -> StageHistoryEntry:
        pass

    @abstractmethod
    def save_access_attempt(self, attempt: AccessAttempt) -> AccessAttempt:
        pass

    @abstractmethod
    def list_stage_history(
        self,
        order_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[StageHistoryEntry]:
        """Entries matching the filters, oldest first. Bounds are inclusive."""
        pass

    @abstractmethod
    def list_access_attempts(self, filters: AccessAttemptFilters) -> Page:
        """Page of access attempts, newest first."""
        pass


class NotificationPort(ABC):
    """Fire-and-forget stage change notifications."""

    @abstractmethod
    def notify_stage_changed(
        self,
        order_id: UUID,
        previous_stage: OrderStage,
        new_stage: OrderStage,
    ) -> None:
        """Enqueue a notification. Must not block on delivery."""
        pass


class AbstractUnitOfWork(ABC):
    """Groups the repositories under one transactional boundary.

    Use as a context manager and commit explicitly:

        with uow:
            uow.orders.save_order(order)
            uow.audit.save_stage_history_entry(entry)
            uow.commit()

    Leaving the block with an exception rolls back anything uncommitted.
    """
    orders: OrderRepositoryPort
    audit: AuditStorePort

    def __enter__(self) -> "AbstractUnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass
