"""Unit tests for request correlation, log formatting and health rollup"""

import json
import logging

import pytest

from colorgarb.observability.correlation import (
    NO_REQUEST_ID,
    bind_caller,
    caller_var,
    get_request_id,
    request_id_var,
    start_request,
)
from colorgarb.observability.health import ComponentHealth, HealthStatus, ServiceHealth
from colorgarb.observability.logging_config import CorrelationFilter, JSONFormatter


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def reset_correlation():
    request_token = request_id_var.set(None)
    caller_token = caller_var.set(None)
    yield
    request_id_var.reset(request_token)
    caller_var.reset(caller_token)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("colorgarb.test", logging.INFO, __file__, 1, "order moved", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelation:
    def test_default_request_id(self):
        assert get_request_id() == NO_REQUEST_ID

    def test_incoming_request_id_is_kept(self):
        assert start_request("abc-123") == "abc-123"
        assert get_request_id() == "abc-123"

    def test_blank_header_generates_id(self):
        request_id = start_request("   ")
        assert request_id and request_id != NO_REQUEST_ID

    def test_oversized_header_is_truncated(self):
        assert len(start_request("x" * 1000)) == 128

    def test_new_request_clears_caller(self):
        bind_caller("u-1", "o-1", "Director")
        start_request()
        assert caller_var.get() is None


class TestLogFormatting:
    def test_filter_stamps_request_and_caller(self):
        start_request("req-9")
        bind_caller("u-1", "o-1", "Finance")
        record = make_record()

        CorrelationFilter().filter(record)

        assert record.request_id == "req-9"
        assert record.user_id == "u-1"
        assert record.org_id == "o-1"
        assert record.role == "Finance"

    def test_explicit_extra_wins_over_bound_caller(self):
        bind_caller("u-1", "o-1", "ColorGarbStaff")
        record = make_record(org_id="o-2")

        CorrelationFilter().filter(record)

        assert record.org_id == "o-2"

    def test_json_output(self):
        start_request("req-json")
        record = make_record(order_id="ord-1", outcome="denied")
        CorrelationFilter().filter(record)

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "order moved"
        assert payload["request_id"] == "req-json"
        assert payload["order_id"] == "ord-1"
        assert payload["outcome"] == "denied"
        assert "user_id" not in payload


class TestHealthRollup:
    def test_all_healthy(self):
        health = ServiceHealth({
            "database": ComponentHealth(HealthStatus.HEALTHY),
            "notification_broker": ComponentHealth(HealthStatus.HEALTHY),
        })
        assert health.status == HealthStatus.HEALTHY

    def test_broker_down_degrades(self):
        health = ServiceHealth({
            "database": ComponentHealth(HealthStatus.HEALTHY),
            "notification_broker": ComponentHealth(HealthStatus.UNHEALTHY),
        })
        assert health.status == HealthStatus.DEGRADED

    def test_database_down_is_unhealthy(self):
        health = ServiceHealth({
            "database": ComponentHealth(HealthStatus.UNHEALTHY),
            "notification_broker": ComponentHealth(HealthStatus.HEALTHY),
        })
        assert health.status == HealthStatus.UNHEALTHY
        assert health.to_dict()["components"]["database"]["status"] == "unhealthy"
