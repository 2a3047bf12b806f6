"""Order workflow domain: stages, transition rules, models and ports."""

from .stages import OrderStage, STAGE_SEQUENCE, INITIAL_STAGE, TERMINAL_STAGE, parse_stage
from .transitions import StageTransitionValidator, TransitionResult
from .models import (
    Order,
    StageHistoryEntry,
    AccessAttempt,
    UpdateOutcome,
    BulkFailure,
    BulkOutcome,
    OrderListFilters,
    AccessAttemptFilters,
    OrderStatusFilter,
    Page,
)
from .ports import OrderRepositoryPort, AuditStorePort, NotificationPort, AbstractUnitOfWork

__all__ = [
    "OrderStage",
    "STAGE_SEQUENCE",
    "INITIAL_STAGE",
    "TERMINAL_STAGE",
    "parse_stage",
    "StageTransitionValidator",
    "TransitionResult",
    "Order",
    "StageHistoryEntry",
    "AccessAttempt",
    "UpdateOutcome",
    "BulkFailure",
    "BulkOutcome",
    "OrderListFilters",
    "AccessAttemptFilters",
    "OrderStatusFilter",
    "Page",
    "OrderRepositoryPort",
    "AuditStorePort",
    "NotificationPort",
    "AbstractUnitOfWork",
]
