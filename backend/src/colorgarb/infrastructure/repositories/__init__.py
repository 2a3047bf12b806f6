"""SQLAlchemy implementations of the order workflow ports."""

from .order_repository import SqlAlchemyOrderRepository
from .audit_repository import SqlAlchemyAuditStore
from .unit_of_work import SqlAlchemyUnitOfWork

__all__ = ["SqlAlchemyOrderRepository", "SqlAlchemyAuditStore", "SqlAlchemyUnitOfWork"]
