"""Prometheus metrics for the order workflow engine."""

from prometheus_client import Counter, Histogram

access_decisions_total = Counter(
    "colorgarb_access_decisions_total",
    "Authorization decisions made by the access policy",
    ["outcome", "reason"]  # outcome: granted|denied
)

stage_transitions_total = Counter(
    "colorgarb_stage_transitions_total",
    "Applied order stage transitions",
    ["new_stage"]
)

bulk_update_items_total = Counter(
    "colorgarb_bulk_update_items_total",
    "Items processed by bulk stage updates",
    ["result"]  # result: success|failed
)

notification_enqueue_failures_total = Counter(
    "colorgarb_notification_enqueue_failures_total",
    "Stage-change notifications that could not be enqueued"
)

audit_write_failures_total = Counter(
    "colorgarb_audit_write_failures_total",
    "Audit store writes that were rejected",
    ["stream"]  # stream: stage_history|access_attempt
)

http_request_duration_seconds = Histogram(
    "colorgarb_http_request_duration_seconds",
    "API request latency by route template",
    ["method", "route", "status"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)
