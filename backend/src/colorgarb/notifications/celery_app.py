"""Celery application for background notification delivery.

Start a worker with:
    celery -A colorgarb.notifications.celery_app worker --loglevel=INFO
"""

from celery import Celery

from ..config import get_settings

settings = get_settings()

celery_app = Celery(
    "colorgarb",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["colorgarb.notifications.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # At-most-once delivery is acceptable for notifications
    task_acks_late=False,
    task_ignore_result=True,
)
