"""Unit tests for AuditRecorder and AccessGuard"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from colorgarb.audit import AccessGuard, AuditRecorder
from colorgarb.auth import AuthorizationContext, ClientInfo, ResourceDescriptor, UserRole
from colorgarb.auth.policy import AccessDecision
from colorgarb.domain.errors import AuditWriteError, AuthenticationError, AuthorizationError, ValidationError
from colorgarb.domain.orders.models import AccessAttemptFilters, StageHistoryEntry
from colorgarb.domain.orders.stages import OrderStage

from fixtures.in_memory import InMemoryUnitOfWork


pytestmark = pytest.mark.unit

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def entry(order_id, changed_at, previous=OrderStage.CUTTING, new=OrderStage.SEWING):
    return StageHistoryEntry(
        order_id=order_id,
        organization_id=uuid4(),
        previous_stage=previous,
        new_stage=new,
        changed_by_user_id=uuid4(),
        changed_by_role="ColorGarbStaff",
        reason="x",
        changed_at=changed_at,
    )


@pytest.fixture
def uow():
    return InMemoryUnitOfWork()


@pytest.fixture
def recorder(uow):
    return AuditRecorder(uow)


class TestRecord:
    def test_record_appends_without_commit(self, recorder, uow):
        saved = recorder.record(entry(uuid4(), T0))
        assert saved.id is not None
        assert len(uow.audit.history) == 1
        assert uow.commits == 0

    def test_store_rejection_raises_audit_write_error(self, recorder, uow):
        uow.audit.fail_history_writes = True
        with pytest.raises(AuditWriteError):
            recorder.record(entry(uuid4(), T0))


class TestQuery:
    def test_sorted_ascending_regardless_of_insert_order(self, recorder, uow):
        order_id = uuid4()
        for offset in (3, 1, 2):
            recorder.record(entry(order_id, T0 + timedelta(hours=offset)))

        result = recorder.query(order_id=order_id)

        assert [e.changed_at for e in result] == [T0 + timedelta(hours=h) for h in (1, 2, 3)]

    def test_filter_by_order(self, recorder):
        mine, other = uuid4(), uuid4()
        recorder.record(entry(mine, T0))
        recorder.record(entry(other, T0))
        assert {e.order_id for e in recorder.query(order_id=mine)} == {mine}

    def test_filter_by_date_range_inclusive(self, recorder):
        order_id = uuid4()
        for day in range(5):
            recorder.record(entry(order_id, T0 + timedelta(days=day)))

        result = recorder.query(date_from=T0 + timedelta(days=1), date_to=T0 + timedelta(days=3))

        assert len(result) == 3

    def test_inverted_range_rejected(self, recorder):
        with pytest.raises(ValidationError):
            recorder.query(date_from=T0 + timedelta(days=1), date_to=T0)

    def test_query_never_mutates(self, recorder, uow):
        recorder.record(entry(uuid4(), T0))
        before = list(uow.audit.history)
        recorder.query()
        recorder.query()
        assert uow.audit.history == before


class TestAccessAttempts:
    def test_records_and_commits_granted_attempt(self, recorder, uow):
        context = AuthorizationContext(user_id=uuid4(), role=UserRole.FINANCE, org_id=uuid4())
        client = ClientInfo(http_method="GET", path="/api/v1/orders", ip_address="10.0.0.7",
                            user_agent="pytest", request_id="req-1")

        attempt = recorder.record_access_attempt(
            context, AccessDecision(True, "organization match"),
            ResourceDescriptor("order", "list"), context.org_id, client,
        )

        assert uow.commits == 1
        assert attempt.access_granted is True
        assert attempt.user_role == "Finance"
        assert attempt.http_method == "GET"
        assert attempt.ip_address == "10.0.0.7"
        assert attempt.request_id == "req-1"
        assert attempt.metadata["path"] == "/api/v1/orders"

    def test_anonymous_attempt_recorded_as_unknown(self, recorder, uow):
        recorder.record_access_attempt(
            AuthorizationContext.anonymous(), AccessDecision(False, "missing or invalid identity"),
            ResourceDescriptor("order", "read"),
        )
        attempt = uow.audit.attempts[0]
        assert attempt.user_id is None
        assert attempt.user_role == "unknown"
        assert attempt.http_method == "INTERNAL"

    def test_failure_is_fatal_and_rolled_back(self, recorder, uow):
        uow.audit.fail_attempt_writes = True
        with pytest.raises(AuditWriteError):
            recorder.record_access_attempt(
                AuthorizationContext.anonymous(), AccessDecision(False, "missing or invalid identity"),
                ResourceDescriptor("order", "read"),
            )
        assert uow.rollbacks == 1

    def test_query_access_attempts_newest_first(self, recorder, uow):
        context = AuthorizationContext(user_id=uuid4(), role=UserRole.COLORGARB_STAFF)
        for i in range(3):
            recorder.record_access_attempt(context, AccessDecision(True, "staff"), ResourceDescriptor("order", "read"))
        for i, attempt in enumerate(uow.audit.attempts):
            attempt.timestamp = T0 + timedelta(minutes=i)

        page = recorder.query_access_attempts(AccessAttemptFilters())

        assert page.total == 3
        assert [a.timestamp for a in page.items] == sorted((a.timestamp for a in page.items), reverse=True)


class TestAccessGuard:
    def test_deny_for_invalid_identity_raises_authentication_error(self, recorder, uow):
        guard = AccessGuard(recorder)
        with pytest.raises(AuthenticationError):
            guard.check(AuthorizationContext.anonymous(), None, ResourceDescriptor("order", "list"))
        assert uow.audit.attempts[0].access_granted is False

    def test_boundary_deny_raises_authorization_error(self, recorder, uow):
        guard = AccessGuard(recorder)
        context = AuthorizationContext(user_id=uuid4(), role=UserRole.DIRECTOR, org_id=uuid4())
        with pytest.raises(AuthorizationError, match="organization boundary"):
            guard.check(context, uuid4(), ResourceDescriptor("order", "read"))
        assert len(uow.audit.attempts) == 1

    def test_allow_is_recorded_too(self, recorder, uow):
        guard = AccessGuard(recorder)
        context = AuthorizationContext(user_id=uuid4(), role=UserRole.COLORGARB_STAFF)
        decision = guard.check(context, uuid4(), ResourceDescriptor("order", "read"))
        assert decision.allowed
        assert uow.audit.attempts[0].access_granted is True
