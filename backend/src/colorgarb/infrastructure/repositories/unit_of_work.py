"""SQLAlchemy unit of work over a single Session"""

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ...domain.errors import ConflictError
from ...domain.orders.ports import AbstractUnitOfWork
from .audit_repository import SqlAlchemyAuditStore
from .order_repository import SqlAlchemyOrderRepository


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """Unit of work backed by one request-scoped Session.

    The session is owned by the caller (FastAPI get_db dependency); this
    class only commits and rolls back.
    """

    def __init__(self, session: Session):
        self.session = session
        self.orders = SqlAlchemyOrderRepository(session)
        self.audit = SqlAlchemyAuditStore(session)

    def commit(self) -> None:
        try:
            self.session.commit()
        except StaleDataError as e:
            self.session.rollback()
            raise ConflictError("order was modified concurrently") from e

    def rollback(self) -> None:
        self.session.rollback()
