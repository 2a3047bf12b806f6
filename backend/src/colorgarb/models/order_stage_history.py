"""OrderStageHistory SQLAlchemy model"""

import uuid

from sqlalchemy import Column, Text, DateTime, ForeignKey, Index, Uuid

from .base import Base, utcnow


class OrderStageHistoryModel(Base):
    """Append-only record of an applied order mutation.

    One row per accepted stage change or ship-date change. Rows are never
    updated or deleted; previous_stage always equals the order's stage at
    the moment the row was written.
    """
    __tablename__ = "order_stage_history"
    __table_args__ = (
        Index("ix_order_stage_history_order_id_changed_at", "order_id", "changed_at"),
        Index("ix_order_stage_history_changed_at", "changed_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False)
    organization_id = Column(Uuid, nullable=False)
    previous_stage = Column(Text, nullable=False)
    new_stage = Column(Text, nullable=False)
    changed_by_user_id = Column(Uuid, nullable=False)
    changed_by_role = Column(Text, nullable=False)
    previous_ship_date = Column(DateTime(timezone=True), nullable=True)
    new_ship_date = Column(DateTime(timezone=True), nullable=True)
    reason = Column(Text, nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
