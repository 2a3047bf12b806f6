"""Order manufacturing stage sequence.

The 13 stages an order moves through, in canonical order:

    DesignProposal → ProofApproval → Measurements → ProductionPlanning →
    Cutting → Sewing → QualityControl → Finishing → FinalInspection →
    Packaging → ShippingPreparation → ShipOrder → Delivery

Terminal Stage: Delivery
"""

import re
from enum import Enum
from typing import List, Optional


class OrderStage(str, Enum):
    """Manufacturing stage enumeration.

    Values are stored as TEXT in the database and must match exactly.
    """
    DESIGN_PROPOSAL = "DesignProposal"
    PROOF_APPROVAL = "ProofApproval"
    MEASUREMENTS = "Measurements"
    PRODUCTION_PLANNING = "ProductionPlanning"
    CUTTING = "Cutting"
    SEWING = "Sewing"
    QUALITY_CONTROL = "QualityControl"
    FINISHING = "Finishing"
    FINAL_INSPECTION = "FinalInspection"
    PACKAGING = "Packaging"
    SHIPPING_PREPARATION = "ShippingPreparation"
    SHIP_ORDER = "ShipOrder"
    DELIVERY = "Delivery"

    @property
    def label(self) -> str:
        """Display name, e.g. "Quality Control"."""
        return _LABELS[self]


# Canonical order; enum declaration order is the pipeline order
STAGE_SEQUENCE: List[OrderStage] = list(OrderStage)

_LABELS = {
    stage: re.sub(r"(?<!^)(?=[A-Z])", " ", stage.value)
    for stage in OrderStage
}

_LOOKUP = {
    re.sub(r"[\s_\-]", "", stage.value).lower(): stage
    for stage in OrderStage
}

INITIAL_STAGE = STAGE_SEQUENCE[0]
TERMINAL_STAGE = STAGE_SEQUENCE[-1]


def parse_stage(value: Optional[str]) -> Optional[OrderStage]:
    """Resolve a stage name, tolerating display-name spelling.

    "QualityControl", "Quality Control" and "quality_control" all resolve
    to OrderStage.QUALITY_CONTROL.

    Args:
        value: Raw stage name from a request or a database row

    Returns:
        The matching OrderStage, or None if the name is not recognized
    """
    if isinstance(value, OrderStage):
        return value
    if not value or not isinstance(value, str):
        return None
    return _LOOKUP.get(re.sub(r"[\s_\-]", "", value).lower())


def index_of(stage: OrderStage) -> int:
    """Zero-based position of a stage in the pipeline."""
    return STAGE_SEQUENCE.index(stage)


def is_terminal(stage: OrderStage) -> bool:
    """True only for the last stage (Delivery)."""
    return stage == TERMINAL_STAGE


def next_stage(stage: OrderStage) -> Optional[OrderStage]:
    """Stage immediately after `stage`, or None for the terminal stage."""
    if is_terminal(stage):
        return None
    return STAGE_SEQUENCE[index_of(stage) + 1]


def is_forward(from_stage: OrderStage, to_stage: OrderStage) -> bool:
    """True if `to_stage` comes strictly after `from_stage`.

    Example:
        >>> is_forward(OrderStage.SEWING, OrderStage.QUALITY_CONTROL)
        True
        >>> is_forward(OrderStage.DELIVERY, OrderStage.SHIPPING_PREPARATION)
        False
    """
    return index_of(to_stage) > index_of(from_stage)


def stage_distance(from_stage: OrderStage, to_stage: OrderStage) -> int:
    """Number of positions between two stages (negative when backward)."""
    return index_of(to_stage) - index_of(from_stage)
