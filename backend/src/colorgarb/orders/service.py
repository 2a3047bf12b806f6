"""Order mutation service.

Orchestrates every read and write against orders:

    validate input → load → authorize (attempt recorded) →
    validate transition → save order + append history (one unit) →
    notify (fire-and-forget)

Validation errors are raised before AccessPolicy runs and therefore leave
no access-attempt entry. Bulk updates run the single-item sequence per
order; one item's failure never affects the others.
"""

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Union
from uuid import UUID

from ..audit.guard import AccessGuard
from ..audit.recorder import AuditRecorder
from ..auth.context import AuthorizationContext, ClientInfo
from ..auth.policy import AccessPolicy, ResourceDescriptor
from ..auth.roles import MUTATION_ROLES, ORGANIZATION_SCOPED_ROLES
from ..config import Settings, get_settings
from ..domain.errors import ConflictError, NotFoundError, ValidationError, WorkflowError
from ..domain.orders.models import (
    BulkFailure,
    BulkOutcome,
    Order,
    OrderListFilters,
    OrderStatusFilter,
    Page,
    StageHistoryEntry,
    UpdateOutcome,
)
from ..domain.orders.ports import AbstractUnitOfWork, NotificationPort
from ..domain.orders.stages import INITIAL_STAGE, OrderStage, parse_stage
from ..domain.orders.transitions import StageTransitionValidator
from ..models.base import as_utc
from ..observability.logging_config import get_logger
from ..observability.metrics import (
    bulk_update_items_total,
    notification_enqueue_failures_total,
    stage_transitions_total,
)

logger = get_logger(__name__)

INTERNAL_ERROR_CODE = "internal_error"


class OrderMutationService:
    """Read, create and advance orders on behalf of an authorized caller."""

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        notifier: NotificationPort,
        policy: Optional[AccessPolicy] = None,
        validator: Optional[StageTransitionValidator] = None,
        settings: Optional[Settings] = None,
    ):
        self.uow = uow
        self.notifier = notifier
        self.settings = settings or get_settings()
        self.validator = validator or StageTransitionValidator(
            enforce_single_step=self.settings.ENFORCE_SINGLE_STAGE_STEP
        )
        self.recorder = AuditRecorder(uow)
        self.guard = AccessGuard(self.recorder, policy)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_stage(
        self,
        context: AuthorizationContext,
        order_id: UUID,
        requested_stage: Union[OrderStage, str, None],
        reason: Optional[str],
        new_ship_date: Optional[datetime] = None,
        expected_version: Optional[int] = None,
        client: Optional[ClientInfo] = None,
    ) -> UpdateOutcome:
        """Advance one order's stage and/or change its ship date.

        Args:
            context: Resolved caller identity
            order_id: Order to mutate
            requested_stage: Target stage, or None for a ship-date-only update
            reason: Mandatory non-empty justification
            new_ship_date: Optional new current ship date
            expected_version: Reject if the order's version differs
            client: Request metadata for the access-attempt log

        Returns:
            UpdateOutcome with the updated order and its history entry

        Raises:
            ValidationError: Empty reason, unknown stage, no-op update
            AuthenticationError: Missing or invalid identity
            AuthorizationError: Organization boundary or insufficient role
            NotFoundError: Order id does not resolve
            ConflictError: Backward move, stage skip, or concurrent write
            AuditWriteError: Audit store rejected the attempt or the entry
        """
        reason = _require_reason(reason)
        stage = _parse_requested(requested_stage, new_ship_date)
        return self._apply(context, order_id, stage, reason, new_ship_date, expected_version, client)

    def bulk_update_stage(
        self,
        context: AuthorizationContext,
        order_ids: Iterable[UUID],
        requested_stage: Union[OrderStage, str, None],
        reason: Optional[str],
        new_ship_date: Optional[datetime] = None,
        client: Optional[ClientInfo] = None,
    ) -> BulkOutcome:
        """Apply the same update to many orders, each in isolation.

        Request-level validation (reason, ids, stage name) raises before any
        item runs. After that nothing is raised: every item lands in
        `successful` or `failed`, in first-seen order. Duplicate ids are
        processed once.
        """
        reason = _require_reason(reason)
        order_ids = list(order_ids or [])
        if not order_ids:
            raise ValidationError("order_ids must not be empty")
        if len(order_ids) > self.settings.BULK_UPDATE_MAX_ORDERS:
            raise ValidationError(
                f"at most {self.settings.BULK_UPDATE_MAX_ORDERS} orders may be updated at once"
            )
        stage = _parse_requested(requested_stage, new_ship_date)

        outcome = BulkOutcome()
        for order_id in dict.fromkeys(order_ids):
            try:
                self._apply(context, order_id, stage, reason, new_ship_date, None, client)
            except WorkflowError as e:
                outcome.failed.append(BulkFailure(order_id=order_id, error_code=e.error_code, reason=e.message))
                bulk_update_items_total.labels(result="failed").inc()
            except Exception as e:
                logger.error(
                    f"Unexpected error updating order {order_id} in bulk: {e}",
                    exc_info=True,
                    extra={"order_id": order_id},
                )
                self.uow.rollback()
                outcome.failed.append(
                    BulkFailure(order_id=order_id, error_code=INTERNAL_ERROR_CODE, reason="unexpected error")
                )
                bulk_update_items_total.labels(result="failed").inc()
            else:
                outcome.successful.append(order_id)
                bulk_update_items_total.labels(result="success").inc()

        logger.info(
            f"Bulk update finished: {len(outcome.successful)} succeeded, {len(outcome.failed)} failed",
            extra={"user_id": context.user_id},
        )
        return outcome

    def create_order(
        self,
        context: AuthorizationContext,
        organization_id: UUID,
        order_number: str,
        original_ship_date: datetime,
        description: str = "",
        client: Optional[ClientInfo] = None,
    ) -> Order:
        """Create an order at the first stage (staff only).

        Raises:
            ValidationError: Missing order number or ship date
            NotFoundError: Organization does not exist
            ConflictError: Order number already taken
        """
        order_number = (order_number or "").strip()
        if not order_number:
            raise ValidationError("order_number is required")
        if original_ship_date is None:
            raise ValidationError("original_ship_date is required")

        resource = ResourceDescriptor("order", action="create", required_roles=MUTATION_ROLES)
        self.guard.check(context, organization_id, resource, client)

        ship_date = as_utc(original_ship_date)
        with self.uow:
            if not self.uow.orders.organization_exists(organization_id):
                raise NotFoundError("organization not found")
            if self.uow.orders.order_number_exists(order_number):
                raise ConflictError(f"order number {order_number} already exists")

            order = self.uow.orders.add_order(
                Order(
                    order_number=order_number,
                    organization_id=organization_id,
                    description=description or "",
                    current_stage=INITIAL_STAGE,
                    original_ship_date=ship_date,
                    current_ship_date=ship_date,
                )
            )
            self.uow.commit()

        logger.info(
            f"Order {order.order_number} created at {order.current_stage.value}",
            extra={"order_id": order.id, "org_id": organization_id},
        )
        return order

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_order(
        self,
        context: AuthorizationContext,
        order_id: UUID,
        client: Optional[ClientInfo] = None,
    ) -> Order:
        """Return one order if the caller may see it."""
        return self._load_authorized(context, order_id, ResourceDescriptor("order", "read", order_id), client)

    def get_history(
        self,
        context: AuthorizationContext,
        order_id: UUID,
        client: Optional[ClientInfo] = None,
    ) -> list[StageHistoryEntry]:
        """Stage history of one order, oldest first. Same access as reading the order."""
        resource = ResourceDescriptor("order_history", "read", order_id)
        self._load_authorized(context, order_id, resource, client)
        return self.recorder.query(order_id=order_id)

    def list_orders(
        self,
        context: AuthorizationContext,
        filters: OrderListFilters,
        client: Optional[ClientInfo] = None,
    ) -> Page:
        """List orders visible to the caller.

        Organization-scoped roles only ever see their home organization. An
        explicit organization_id filter for another organization is denied.
        """
        if filters.status not in OrderStatusFilter.CHOICES:
            raise ValidationError(f"status must be one of {', '.join(OrderStatusFilter.CHOICES)}")

        filters = replace(
            filters,
            page=max(1, filters.page or 1),
            page_size=self._clamp_page_size(filters.page_size),
        )

        self.guard.check(context, filters.organization_id, ResourceDescriptor("order", "list"), client)

        if context.role in ORGANIZATION_SCOPED_ROLES:
            filters = replace(filters, organization_id=context.org_id)

        return self.uow.orders.list_orders(filters)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(
        self,
        context: AuthorizationContext,
        order_id: UUID,
        stage: Optional[OrderStage],
        reason: str,
        new_ship_date: Optional[datetime],
        expected_version: Optional[int],
        client: Optional[ClientInfo],
    ) -> UpdateOutcome:
        """Single-item mutation sequence. Commits or raises."""
        resource = ResourceDescriptor("order", "update_stage", order_id, required_roles=MUTATION_ROLES)
        order = self._load_authorized(context, order_id, resource, client)

        if expected_version is not None and expected_version != order.version:
            raise ConflictError("order was modified concurrently", order_id=order_id)

        ship_date = as_utc(new_ship_date) if new_ship_date is not None else None
        if stage is not None:
            transition = self.validator.validate(order.current_stage, stage, context.role)
            previous_stage, target_stage = transition.previous_stage, transition.new_stage
        else:
            self.validator.validate_ship_date_change(order.current_ship_date, ship_date, context.role)
            previous_stage = target_stage = order.current_stage

        updated = replace(
            order,
            current_stage=target_stage,
            current_ship_date=ship_date or order.current_ship_date,
        )
        entry = StageHistoryEntry(
            order_id=order.id,
            organization_id=order.organization_id,
            previous_stage=previous_stage,
            new_stage=target_stage,
            changed_by_user_id=context.user_id,
            changed_by_role=context.role_label,
            reason=reason,
            previous_ship_date=order.current_ship_date if ship_date else None,
            new_ship_date=ship_date,
        )

        with self.uow:
            saved = self.uow.orders.save_order(updated)
            recorded = self.recorder.record(entry)
            self.uow.commit()

        log_extra = {"order_id": order.id, "user_id": context.user_id, "org_id": order.organization_id}
        if recorded.is_stage_change:
            stage_transitions_total.labels(new_stage=target_stage.value).inc()
            logger.info(f"Order stage changed {previous_stage.value} -> {target_stage.value}", extra=log_extra)
        else:
            logger.info("Order ship date changed", extra=log_extra)

        enqueued = False
        if recorded.is_stage_change:
            enqueued = self._notify(saved.id, previous_stage, target_stage)

        return UpdateOutcome(order=saved, history_entry=recorded, notification_enqueued=enqueued)

    def _load_authorized(
        self,
        context: AuthorizationContext,
        order_id: UUID,
        resource: ResourceDescriptor,
        client: Optional[ClientInfo],
    ) -> Order:
        order = self.uow.orders.load_order(order_id)
        if order is None:
            # Identity and role failures still take precedence over 404
            self.guard.check_missing(context, resource, client)

        self.guard.check(context, order.organization_id, resource, client)
        return order

    def _notify(self, order_id: UUID, previous_stage: OrderStage, new_stage: OrderStage) -> bool:
        try:
            self.notifier.notify_stage_changed(order_id, previous_stage, new_stage)
            return True
        except Exception as e:
            notification_enqueue_failures_total.inc()
            logger.warning(
                f"Stage change notification failed for order {order_id}: {e}",
                extra={"order_id": order_id},
            )
            return False

    def _clamp_page_size(self, page_size: Optional[int]) -> int:
        if not page_size or page_size < 1:
            return self.settings.ORDERS_PAGE_SIZE_DEFAULT
        return min(page_size, self.settings.ORDERS_PAGE_SIZE_MAX)


def _require_reason(reason: Optional[str]) -> str:
    if reason is None or not str(reason).strip():
        raise ValidationError("reason is required")
    return str(reason).strip()


def _parse_requested(
    requested_stage: Union[OrderStage, str, None],
    new_ship_date: Optional[datetime],
) -> Optional[OrderStage]:
    """Resolve the requested stage before any authorization runs."""
    if requested_stage is None or (isinstance(requested_stage, str) and not requested_stage.strip()):
        if new_ship_date is None:
            raise ValidationError("either stage or ship_date is required")
        return None

    stage = parse_stage(requested_stage)
    if stage is None:
        raise ValidationError(f"unrecognized stage '{requested_stage}'")
    return stage
