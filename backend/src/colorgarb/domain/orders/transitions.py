"""Stage transition rules.

A transition is accepted iff the requested stage is a known stage that
comes strictly after the current one, and the caller holds a mutation
role. With single-step enforcement only the immediately following stage
is accepted.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ...auth.roles import MUTATION_ROLES, UserRole
from ...models.base import as_utc
from ...observability.logging_config import get_logger
from ..errors import AuthorizationError, ConflictError, ValidationError
from .stages import OrderStage, is_forward, parse_stage, stage_distance

logger = get_logger(__name__)

StageInput = Union[OrderStage, str, None]


@dataclass(frozen=True)
class TransitionResult:
    """Accepted transition; the before/after pair for the history entry."""
    previous_stage: OrderStage
    new_stage: OrderStage


class StageTransitionValidator:
    """Decide whether an order may move from one stage to another."""

    def __init__(self, enforce_single_step: bool = False):
        self.enforce_single_step = enforce_single_step

    def validate(
        self,
        current_stage: StageInput,
        requested_stage: StageInput,
        role: Optional[UserRole],
    ) -> TransitionResult:
        """Validate a requested stage change.

        Args:
            current_stage: Order's stage before the change
            requested_stage: Stage the caller asked for (name or enum)
            role: Caller's resolved role

        Returns:
            TransitionResult with previous/new stage

        Raises:
            ValidationError: Unknown stage, or requested == current
            AuthorizationError: Role cannot advance stages
            ConflictError: Backward move, or a skip when single-step is enforced
        """
        new_stage = parse_stage(requested_stage)
        if new_stage is None:
            raise ValidationError(f"unrecognized stage '{requested_stage}'")

        previous_stage = parse_stage(current_stage)
        if previous_stage is None:
            raise ConflictError(f"order has unrecognized current stage '{current_stage}'")

        # Checked here even though AccessPolicy gates writes upstream
        if role not in MUTATION_ROLES:
            raise AuthorizationError("insufficient role")

        if new_stage == previous_stage:
            raise ValidationError(f"order is already at stage {new_stage.value}")

        if not is_forward(previous_stage, new_stage):
            logger.warning(f"Rejected backward transition {previous_stage.value} -> {new_stage.value}")
            raise ConflictError(
                f"cannot move backward from {previous_stage.value} to {new_stage.value}"
            )

        if self.enforce_single_step and stage_distance(previous_stage, new_stage) > 1:
            logger.warning(f"Rejected stage skip {previous_stage.value} -> {new_stage.value}")
            raise ConflictError("stage skipping is not allowed")

        return TransitionResult(previous_stage=previous_stage, new_stage=new_stage)

    def validate_ship_date_change(
        self,
        current_ship_date: Optional[datetime],
        requested_ship_date: Optional[datetime],
        role: Optional[UserRole],
    ) -> None:
        """Validate a ship-date-only update (no stage delta).

        Raises:
            ValidationError: Missing date, or the date is unchanged
            AuthorizationError: Role cannot modify orders
        """
        if requested_ship_date is None:
            raise ValidationError("either stage or ship_date is required")

        if role not in MUTATION_ROLES:
            raise AuthorizationError("insufficient role")

        if current_ship_date is not None and as_utc(current_ship_date) == as_utc(requested_ship_date):
            raise ValidationError("ship date is unchanged")
