"""Pydantic schemas for order endpoints.

Request bodies leave `reason` and `stage` loosely typed on purpose: an
empty reason or an unknown stage name must surface as a 400 from the
order service, not as a 422 from request parsing.
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from ..domain.orders.models import BulkOutcome, Order, Page, StageHistoryEntry
from ..domain.orders.stages import OrderStage


# ============================================================================
# Requests
# ============================================================================

class OrderCreateRequest(BaseModel):
    """Create an order (ColorGarb staff only)."""
    organization_id: UUID
    order_number: str = Field(..., min_length=1, max_length=64)
    description: str = ""
    original_ship_date: datetime

    model_config = ConfigDict(extra='forbid')


class OrderUpdateRequest(BaseModel):
    """Advance stage and/or change ship date. Omit stage for a ship-date-only update."""
    stage: Optional[str] = Field(None, description="Target stage, e.g. 'QualityControl'")
    ship_date: Optional[datetime] = None
    reason: Optional[str] = Field(None, description="Mandatory justification")
    expected_version: Optional[int] = Field(None, description="Reject with 409 if the order moved on")

    model_config = ConfigDict(extra='forbid')


class BulkUpdateRequest(BaseModel):
    """Apply one stage change to many orders."""
    order_ids: List[UUID] = Field(default_factory=list)
    stage: Optional[str] = None
    ship_date: Optional[datetime] = None
    reason: Optional[str] = None

    model_config = ConfigDict(extra='forbid')


# ============================================================================
# Responses
# ============================================================================

class OrderResponse(BaseModel):
    id: UUID
    order_number: str
    organization_id: UUID
    description: str
    current_stage: OrderStage
    current_stage_label: str
    original_ship_date: datetime
    current_ship_date: datetime
    is_active: bool
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            organization_id=order.organization_id,
            description=order.description,
            current_stage=order.current_stage,
            current_stage_label=order.current_stage.label,
            original_ship_date=order.original_ship_date,
            current_ship_date=order.current_ship_date,
            is_active=order.is_active,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page) -> "OrderListResponse":
        return cls(
            items=[OrderResponse.from_domain(order) for order in page.items],
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            total_pages=page.total_pages,
        )


class StageHistoryEntryResponse(BaseModel):
    id: Optional[UUID] = None
    order_id: UUID
    organization_id: UUID
    previous_stage: OrderStage
    new_stage: OrderStage
    changed_by_user_id: UUID
    changed_by_role: str
    previous_ship_date: Optional[datetime] = None
    new_ship_date: Optional[datetime] = None
    reason: str
    changed_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, entry: StageHistoryEntry) -> "StageHistoryEntryResponse":
        return cls(
            id=entry.id,
            order_id=entry.order_id,
            organization_id=entry.organization_id,
            previous_stage=entry.previous_stage,
            new_stage=entry.new_stage,
            changed_by_user_id=entry.changed_by_user_id,
            changed_by_role=entry.changed_by_role,
            previous_ship_date=entry.previous_ship_date,
            new_ship_date=entry.new_ship_date,
            reason=entry.reason,
            changed_at=entry.changed_at,
        )


class OrderHistoryResponse(BaseModel):
    order_id: UUID
    entries: List[StageHistoryEntryResponse]


class BulkFailureResponse(BaseModel):
    order_id: UUID
    error_code: str
    reason: str


class BulkUpdateResponse(BaseModel):
    """Always returned with 200; both lists are always present."""
    successful: List[UUID]
    failed: List[BulkFailureResponse]

    @classmethod
    def from_outcome(cls, outcome: BulkOutcome) -> "BulkUpdateResponse":
        return cls(
            successful=list(outcome.successful),
            failed=[
                BulkFailureResponse(order_id=f.order_id, error_code=f.error_code, reason=f.reason)
                for f in outcome.failed
            ],
        )
