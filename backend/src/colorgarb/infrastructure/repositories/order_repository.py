"""Order repository for database operations"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ...domain.errors import ConflictError, NotFoundError
from ...domain.orders.models import Order, OrderListFilters, OrderStatusFilter, Page
from ...domain.orders.ports import OrderRepositoryPort
from ...domain.orders.stages import parse_stage
from ...models.base import as_utc
from ...models.order import OrderModel
from ...models.organization import Organization
from ...observability.logging_config import get_logger

logger = get_logger(__name__)


class SqlAlchemyOrderRepository(OrderRepositoryPort):
    """Repository for orders table operations.

    Maps OrderModel rows to domain Order objects. Writes are flushed but
    not committed; the unit of work owns the transaction.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def load_order(self, order_id: UUID) -> Optional[Order]:
        # populate_existing: always read the committed row, not a cached one
        row = self.db.get(OrderModel, order_id, populate_existing=True)
        if row is None:
            return None
        return self._to_domain(row)

    def save_order(self, order: Order) -> Order:
        """Write stage, ship date and active flag back to the row.

        Raises:
            NotFoundError: Row no longer exists
            ConflictError: Version moved since load (optimistic lock)
        """
        row = self.db.get(OrderModel, order.id)
        if row is None:
            raise NotFoundError("order not found", order_id=order.id)

        if row.version != order.version:
            raise ConflictError("order was modified concurrently", order_id=order.id)

        # organization_id is never written after creation
        row.current_stage = order.current_stage.value
        row.current_ship_date = order.current_ship_date
        row.description = order.description
        row.is_active = order.is_active

        try:
            self.db.flush()
        except StaleDataError as e:
            logger.warning(f"Stale write for order {order.id}: {e}", extra={"order_id": order.id})
            raise ConflictError("order was modified concurrently", order_id=order.id) from e

        return self._to_domain(row)

    def add_order(self, order: Order) -> Order:
        row = OrderModel(
            order_number=order.order_number,
            organization_id=order.organization_id,
            description=order.description,
            current_stage=order.current_stage.value,
            original_ship_date=order.original_ship_date,
            current_ship_date=order.current_ship_date,
            is_active=order.is_active,
        )
        if order.id is not None:
            row.id = order.id

        self.db.add(row)
        self.db.flush()

        return self._to_domain(row)

    def list_orders(self, filters: OrderListFilters) -> Page:
        query = select(OrderModel)

        if filters.organization_id is not None:
            query = query.where(OrderModel.organization_id == filters.organization_id)

        if filters.status == OrderStatusFilter.ACTIVE:
            query = query.where(OrderModel.is_active.is_(True))
        elif filters.status == OrderStatusFilter.INACTIVE:
            query = query.where(OrderModel.is_active.is_(False))

        if filters.stage is not None:
            query = query.where(OrderModel.current_stage == filters.stage.value)

        total = self.db.scalar(select(func.count()).select_from(query.subquery())) or 0

        query = query.order_by(OrderModel.created_at.desc(), OrderModel.order_number)
        query = query.offset((filters.page - 1) * filters.page_size).limit(filters.page_size)
        rows = self.db.scalars(query).all()

        return Page(
            items=[self._to_domain(row) for row in rows],
            total=total,
            page=filters.page,
            page_size=filters.page_size,
        )

    def organization_exists(self, organization_id: UUID) -> bool:
        return self.db.get(Organization, organization_id) is not None

    def order_number_exists(self, order_number: str) -> bool:
        query = select(OrderModel.id).where(OrderModel.order_number == order_number)
        return self.db.scalar(query) is not None

    @staticmethod
    def _to_domain(row: OrderModel) -> Order:
        return Order(
            id=row.id,
            order_number=row.order_number,
            organization_id=row.organization_id,
            description=row.description or "",
            current_stage=parse_stage(row.current_stage),
            original_ship_date=as_utc(row.original_ship_date),
            current_ship_date=as_utc(row.current_ship_date),
            is_active=row.is_active,
            version=row.version,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
