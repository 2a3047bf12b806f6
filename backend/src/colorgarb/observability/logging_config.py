"""Logging setup for the API and the notification worker.

Two output modes, selected by LOG_JSON:
- JSON, one object per line, for log shipping in deployed environments
- Plain text for local development

Both modes carry the request id. JSON records also carry the bound caller
(user, organization, role) and any order/outcome passed through `extra=`.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from .correlation import get_caller, get_request_id

# Fields callers may pass via `extra=`; they override the bound caller
CORRELATION_FIELDS = ("org_id", "user_id", "order_id", "role", "outcome")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"


class CorrelationFilter(logging.Filter):
    """Stamp records with the request id and the resolved caller."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        caller = get_caller()
        if caller is not None:
            for key, value in (("user_id", caller.user_id), ("org_id", caller.org_id), ("role", caller.role)):
                if value is not None and not hasattr(record, key):
                    setattr(record, key, value)
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for key in CORRELATION_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = str(value)

        if record.exc_info:
            payload["error"] = repr(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Safe to call more than once; existing root handlers are replaced.
    """
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        level_no = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationFilter())
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level_no)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "celery.app.trace"):
        logging.getLogger(noisy).setLevel(max(level_no, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
