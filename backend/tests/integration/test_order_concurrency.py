"""Integration tests for optimistic locking against a real session

Tests cover:
- A version bump committed by another session between load and save is a conflict
- The losing write leaves no stage history entry
- A bulk update keeps going after one item loses the race
"""

from uuid import UUID

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from colorgarb.auth import AuthorizationContext, UserRole
from colorgarb.database import SessionLocal
from colorgarb.domain.errors import ConflictError
from colorgarb.domain.orders.transitions import StageTransitionValidator
from colorgarb.infrastructure.repositories.unit_of_work import SqlAlchemyUnitOfWork
from colorgarb.models import OrderModel, OrderStageHistoryModel
from colorgarb.orders.service import OrderMutationService

from fixtures.in_memory import RecordingNotifier


pytestmark = pytest.mark.integration


def bump_version(order_id: UUID) -> None:
    """Commit a version increment from a separate session."""
    other = SessionLocal()
    try:
        other.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .values(version=OrderModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        other.commit()
    finally:
        other.close()


class RacingValidator(StageTransitionValidator):
    """Lets another writer win the race right after the order is loaded."""

    def __init__(self, racing_order_id: UUID):
        super().__init__()
        self.racing_order_id = racing_order_id
        self.raced = False

    def validate(self, current_stage, requested_stage, role):
        result = super().validate(current_stage, requested_stage, role)
        if not self.raced:
            self.raced = True
            bump_version(self.racing_order_id)
        return result


def history_count(db_session: Session, order_id: UUID) -> int:
    return db_session.query(OrderStageHistoryModel).filter(OrderStageHistoryModel.order_id == order_id).count()


@pytest.fixture
def staff(staff_user):
    return AuthorizationContext(user_id=staff_user.id, role=UserRole.COLORGARB_STAFF)


def make_service(db_session: Session, racing_order_id: UUID) -> OrderMutationService:
    return OrderMutationService(
        SqlAlchemyUnitOfWork(db_session),
        RecordingNotifier(),
        validator=RacingValidator(racing_order_id),
    )


class TestConcurrentWrites:
    def test_stale_write_is_conflict_without_history(self, db_session, staff, make_order):
        order = make_order(stage="Sewing")
        service = make_service(db_session, order.id)

        with pytest.raises(ConflictError, match="modified concurrently"):
            service.update_stage(staff, order.id, "QualityControl", "QC ready")

        assert history_count(db_session, order.id) == 0
        row = db_session.get(OrderModel, order.id)
        db_session.refresh(row)
        assert row.current_stage == "Sewing"
        assert row.version == 2

    def test_conflict_maps_to_409(self, db_session, staff, make_order):
        order = make_order(stage="Sewing")
        service = make_service(db_session, order.id)

        with pytest.raises(ConflictError) as exc_info:
            service.update_stage(staff, order.id, "QualityControl", "QC ready")

        assert exc_info.value.http_status == 409
        assert exc_info.value.to_dict()["error"] == "conflict"

    def test_bulk_continues_after_lost_race(self, db_session, staff, make_order):
        raced = make_order(stage="Sewing")
        other = make_order(stage="Sewing")
        service = make_service(db_session, raced.id)

        outcome = service.bulk_update_stage(staff, [raced.id, other.id], "QualityControl", "batch QC")

        assert outcome.successful == [other.id]
        assert [(f.order_id, f.error_code) for f in outcome.failed] == [(raced.id, "conflict")]
        assert history_count(db_session, raced.id) == 0
        assert history_count(db_session, other.id) == 1
