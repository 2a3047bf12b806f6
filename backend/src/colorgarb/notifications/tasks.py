"""Stage-change notification task and delivery channel registry.

The web process only enqueues; this task runs in a Celery worker, resolves
the order and fans the event out to every registered delivery channel.
Channel handlers (email, SMS, ...) are supplied by the deployment:

    from colorgarb.notifications.tasks import register_channel
    register_channel("email", send_stage_email)

A failing channel is logged and does not stop the others.
"""

from typing import Any, Callable, Dict
from uuid import UUID

from celery import shared_task

from ..database import get_db_session
from ..domain.orders.stages import parse_stage
from ..models.order import OrderModel
from ..observability.logging_config import get_logger

logger = get_logger(__name__)

ChannelHandler = Callable[[Dict[str, Any]], None]

# Maps channel name -> handler(event)
CHANNEL_REGISTRY: Dict[str, ChannelHandler] = {}


def register_channel(name: str, handler: ChannelHandler) -> None:
    """Register a delivery channel.

    Args:
        name: Channel identifier (e.g., 'email')
        handler: Callable receiving the event dict
    """
    CHANNEL_REGISTRY[name] = handler


def unregister_channel(name: str) -> None:
    CHANNEL_REGISTRY.pop(name, None)


def build_stage_changed_event(order_id: str, previous_stage: str, new_stage: str) -> Dict[str, Any]:
    """Resolve the order and build the event passed to channels.

    Raises:
        ValueError: order_id is malformed or does not resolve
    """
    try:
        order_uuid = UUID(order_id)
    except (ValueError, AttributeError, TypeError) as e:
        raise ValueError(f"Invalid order_id format '{order_id}': {str(e)}")

    with get_db_session() as session:
        order = session.get(OrderModel, order_uuid)
        if not order:
            raise ValueError(f"Order {order_id} does not exist")

        previous = parse_stage(previous_stage)
        new = parse_stage(new_stage)
        return {
            "event": "order.stage_changed",
            "order_id": str(order.id),
            "order_number": order.order_number,
            "organization_id": str(order.organization_id),
            "previous_stage": previous.value if previous else previous_stage,
            "new_stage": new.value if new else new_stage,
            "new_stage_label": new.label if new else new_stage,
        }


def deliver(event: Dict[str, Any]) -> Dict[str, str]:
    """Send an event to every registered channel.

    Returns:
        Dict mapping channel name to "sent" or "failed"
    """
    results: Dict[str, str] = {}
    for name, handler in list(CHANNEL_REGISTRY.items()):
        try:
            handler(event)
            results[name] = "sent"
        except Exception as e:
            logger.error(
                f"Notification channel '{name}' failed for order {event.get('order_id')}: {e}",
                exc_info=True,
                extra={"order_id": event.get("order_id")},
            )
            results[name] = "failed"
    return results


@shared_task(name="colorgarb.notify_stage_changed", ignore_result=True)
def notify_stage_changed(order_id: str, previous_stage: str, new_stage: str) -> Dict[str, Any]:
    """Deliver a stage-changed notification.

    Args:
        order_id: UUID string of the order
        previous_stage: Stage value before the change
        new_stage: Stage value after the change

    Returns:
        Dict with per-channel results
    """
    event = build_stage_changed_event(order_id, previous_stage, new_stage)

    if not CHANNEL_REGISTRY:
        logger.info(f"No notification channels registered; dropping event for order {order_id}")
        return {"status": "skipped", "order_id": order_id, "channels": {}}

    results = deliver(event)
    logger.info(
        f"Stage change {event['previous_stage']} -> {event['new_stage']} delivered to {len(results)} channel(s)",
        extra={"order_id": order_id},
    )
    return {"status": "delivered", "order_id": order_id, "channels": results}
