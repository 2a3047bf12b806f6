"""Stage-change notifications: Celery dispatcher, task and channel registry."""

from .celery_app import celery_app
from .dispatcher import CeleryNotificationDispatcher
from .tasks import register_channel, unregister_channel, notify_stage_changed

__all__ = [
    "celery_app",
    "CeleryNotificationDispatcher",
    "register_channel",
    "unregister_channel",
    "notify_stage_changed",
]
