"""NotificationPort adapter that enqueues Celery tasks."""

from uuid import UUID

from ..domain.orders.ports import NotificationPort
from ..domain.orders.stages import OrderStage
from ..observability.logging_config import get_logger
from ..observability.metrics import notification_enqueue_failures_total
from .tasks import notify_stage_changed

logger = get_logger(__name__)


class CeleryNotificationDispatcher(NotificationPort):
    """Enqueue stage-change notifications without waiting on delivery.

    Enqueue failures (broker down, serialization error) are logged and
    counted, never raised: the stage change is already committed.
    """

    def notify_stage_changed(
        self,
        order_id: UUID,
        previous_stage: OrderStage,
        new_stage: OrderStage,
    ) -> None:
        try:
            notify_stage_changed.delay(
                order_id=str(order_id),
                previous_stage=previous_stage.value,
                new_stage=new_stage.value,
            )
        except Exception as e:
            notification_enqueue_failures_total.inc()
            logger.warning(
                f"Failed to enqueue stage change notification for order {order_id}: {e}",
                extra={"order_id": order_id},
            )
