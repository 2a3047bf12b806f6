"""Integration tests for the audit query API

Tests cover:
- Stage history queries (staff only, oldest first, order and date filters)
- Access attempt queries (filters, newest first, pagination)
- Audit queries are themselves recorded
"""

import pytest
from fastapi.testclient import TestClient

from colorgarb.models import RoleAccessAuditModel

from fixtures.tokens import auth_headers


pytestmark = pytest.mark.integration


def advance(client: TestClient, user, order, stage: str, reason: str = "progress"):
    response = client.patch(
        f"/api/v1/orders/{order.id}",
        headers=auth_headers(user),
        json={"stage": stage, "reason": reason},
    )
    assert response.status_code == 200
    return response


class TestStageHistoryQuery:
    """GET /api/v1/audit/stage-history"""

    def test_staff_reads_entries_oldest_first(self, client, staff_user, make_order):
        first = make_order(stage="Cutting")
        second = make_order(stage="Sewing")
        advance(client, staff_user, first, "Sewing")
        advance(client, staff_user, second, "QualityControl")
        advance(client, staff_user, first, "QualityControl")

        response = client.get("/api/v1/audit/stage-history", headers=auth_headers(staff_user))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        stamps = [entry["changed_at"] for entry in data["entries"]]
        assert stamps == sorted(stamps)

    def test_filter_by_order(self, client, staff_user, make_order):
        first = make_order(stage="Cutting")
        second = make_order(stage="Cutting")
        advance(client, staff_user, first, "Sewing")
        advance(client, staff_user, second, "Sewing")

        response = client.get(
            "/api/v1/audit/stage-history",
            headers=auth_headers(staff_user),
            params={"order_id": str(second.id)},
        )

        entries = response.json()["entries"]
        assert [e["order_id"] for e in entries] == [str(second.id)]

    def test_date_range_excluding_everything(self, client, staff_user, make_order):
        order = make_order(stage="Cutting")
        advance(client, staff_user, order, "Sewing")

        response = client.get(
            "/api/v1/audit/stage-history",
            headers=auth_headers(staff_user),
            params={"date_from": "2020-01-01T00:00:00Z", "date_to": "2020-12-31T23:59:59Z"},
        )

        assert response.status_code == 200
        assert response.json()["total"] == 0

    def test_inverted_date_range_is_400(self, client, staff_user):
        response = client.get(
            "/api/v1/audit/stage-history",
            headers=auth_headers(staff_user),
            params={"date_from": "2026-02-01T00:00:00Z", "date_to": "2026-01-01T00:00:00Z"},
        )
        assert response.status_code == 400

    def test_director_is_denied(self, client, director_a):
        response = client.get("/api/v1/audit/stage-history", headers=auth_headers(director_a))
        assert response.status_code == 403

    def test_anonymous_is_401(self, client, db_session):
        response = client.get("/api/v1/audit/stage-history")
        assert response.status_code == 401


class TestAccessAttemptQuery:
    """GET /api/v1/audit/access-attempts"""

    def test_denied_cross_organization_read_is_queryable(self, client, staff_user, director_b, make_order):
        order = make_order()
        denied = client.get(f"/api/v1/orders/{order.id}", headers=auth_headers(director_b))
        assert denied.status_code == 403

        response = client.get(
            "/api/v1/audit/access-attempts",
            headers=auth_headers(staff_user),
            params={"access_granted": "false"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        attempt = data["entries"][0]
        assert attempt["user_id"] == str(director_b.id)
        assert attempt["user_role"] == "Director"
        assert attempt["organization_id"] == str(order.organization_id)
        assert attempt["resource"] == f"order:{order.id}:read"
        assert attempt["details"] == "organization boundary"

    def test_filter_by_user(self, client, staff_user, director_a, finance_a, make_order):
        order = make_order()
        client.get(f"/api/v1/orders/{order.id}", headers=auth_headers(director_a))
        client.get(f"/api/v1/orders/{order.id}", headers=auth_headers(finance_a))

        response = client.get(
            "/api/v1/audit/access-attempts",
            headers=auth_headers(staff_user),
            params={"user_id": str(finance_a.id)},
        )

        entries = response.json()["entries"]
        assert len(entries) == 1
        assert entries[0]["user_role"] == "Finance"

    def test_pagination(self, client, staff_user, director_a, make_order):
        order = make_order()
        for _ in range(5):
            client.get(f"/api/v1/orders/{order.id}", headers=auth_headers(director_a))

        response = client.get(
            "/api/v1/audit/access-attempts",
            headers=auth_headers(staff_user),
            params={"user_id": str(director_a.id), "page": 2, "page_size": 2},
        )

        data = response.json()
        assert data["total"] == 5
        assert data["page"] == 2
        assert len(data["entries"]) == 2

    def test_page_size_over_limit_is_422(self, client, staff_user):
        response = client.get(
            "/api/v1/audit/access-attempts",
            headers=auth_headers(staff_user),
            params={"page_size": 500},
        )
        assert response.status_code == 422

    def test_audit_queries_are_recorded(self, client, db_session, staff_user, finance_a):
        client.get("/api/v1/audit/access-attempts", headers=auth_headers(staff_user))
        client.get("/api/v1/audit/access-attempts", headers=auth_headers(finance_a))

        attempts = db_session.query(RoleAccessAuditModel).order_by(RoleAccessAuditModel.timestamp).all()
        assert [(a.resource, a.access_granted) for a in attempts] == [
            ("access_attempts:read", True),
            ("access_attempts:read", False),
        ]
        assert attempts[1].details == "insufficient role"
