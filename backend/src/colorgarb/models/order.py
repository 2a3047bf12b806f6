"""Order SQLAlchemy model"""

import uuid

from sqlalchemy import Column, Text, Boolean, Integer, DateTime, ForeignKey, Index, Uuid

from .base import Base, utcnow


class OrderModel(Base):
    """Costume order moving through the 13-stage manufacturing pipeline.

    organization_id is set at creation and never updated. `version` is the
    optimistic-locking counter; SQLAlchemy increments it on every UPDATE and
    raises StaleDataError when a concurrent writer got there first.
    """
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_organization_id", "organization_id"),
        Index("ix_orders_organization_id_stage", "organization_id", "current_stage"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number = Column(Text, nullable=False, unique=True)
    organization_id = Column(Uuid, ForeignKey("organization.id", ondelete="RESTRICT"), nullable=False)
    description = Column(Text, nullable=False, default="")
    current_stage = Column(Text, nullable=False)
    original_ship_date = Column(DateTime(timezone=True), nullable=False)
    current_ship_date = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<OrderModel(id={self.id}, number='{self.order_number}', stage='{self.current_stage}')>"
