"""Component health checks behind GET /health.

The database is required: without it no order can be read or changed and
no access attempt can be recorded, so a failed check makes the service
unhealthy. The notification broker is optional: stage changes still commit
when it is down and only notifications are lost, so a failed broker check
degrades the service without failing it.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


@dataclass
class ServiceHealth:
    components: Dict[str, ComponentHealth] = field(default_factory=dict)

    @property
    def status(self) -> HealthStatus:
        database = self.components.get("database")
        if database is None or database.status != HealthStatus.HEALTHY:
            return HealthStatus.UNHEALTHY
        if any(c.status != HealthStatus.HEALTHY for c in self.components.values()):
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "components": {
                name: {"status": c.status.value, "message": c.message, "latency_ms": c.latency_ms}
                for name, c in self.components.items()
            },
        }


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def check_database_health(db: Session) -> ComponentHealth:
    started = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(HealthStatus.UNHEALTHY, "database unreachable")
    return ComponentHealth(HealthStatus.HEALTHY, "ok", _elapsed_ms(started))


def check_broker_health(celery_app, timeout: float = 2.0) -> ComponentHealth:
    """Open (and release) one connection to the notification broker."""
    started = time.perf_counter()
    try:
        with celery_app.connection_for_write() as connection:
            connection.ensure_connection(max_retries=1, timeout=timeout)
    except Exception as e:
        logger.warning(f"Notification broker health check failed: {e}")
        return ComponentHealth(HealthStatus.UNHEALTHY, "notification broker unreachable")
    return ComponentHealth(HealthStatus.HEALTHY, "ok", _elapsed_ms(started))


def check_service_health(db: Session, celery_app) -> ServiceHealth:
    return ServiceHealth(components={
        "database": check_database_health(db),
        "notification_broker": check_broker_health(celery_app),
    })
