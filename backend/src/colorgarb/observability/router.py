"""Observability API endpoints: Prometheus metrics and health."""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session

from ..database import get_db
from ..notifications.celery_app import celery_app
from .health import HealthStatus, check_service_health

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get(
    "/health",
    summary="Health check endpoint",
    description="200 when healthy or degraded (notification broker down), 503 when the database is unreachable.",
)
def health_check(db: Session = Depends(get_db)):
    health = check_service_health(db, celery_app)
    status_code = 503 if health.status == HealthStatus.UNHEALTHY else 200
    return JSONResponse(status_code=status_code, content=health.to_dict())
