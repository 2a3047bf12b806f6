"""FastAPI dependency providers for the order workflow engine.

Each request gets its own unit of work over the request's Session. Tests
replace get_notifier (and get_db) through app.dependency_overrides.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from .audit.guard import AccessGuard
from .audit.recorder import AuditRecorder
from .database import get_db
from .domain.orders.ports import AbstractUnitOfWork, NotificationPort
from .infrastructure.repositories.unit_of_work import SqlAlchemyUnitOfWork
from .notifications.dispatcher import CeleryNotificationDispatcher
from .orders.service import OrderMutationService


def get_unit_of_work(db: Session = Depends(get_db)) -> AbstractUnitOfWork:
    return SqlAlchemyUnitOfWork(db)


def get_notifier() -> NotificationPort:
    return CeleryNotificationDispatcher()


def get_order_service(
    uow: AbstractUnitOfWork = Depends(get_unit_of_work),
    notifier: NotificationPort = Depends(get_notifier),
) -> OrderMutationService:
    return OrderMutationService(uow, notifier)


def get_audit_recorder(uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> AuditRecorder:
    return AuditRecorder(uow)


def get_access_guard(recorder: AuditRecorder = Depends(get_audit_recorder)) -> AccessGuard:
    return AccessGuard(recorder)
