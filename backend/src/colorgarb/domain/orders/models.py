"""Order workflow domain models.

These are the domain models (not the database models). Repositories map
them to and from SQLAlchemy rows; the engine never holds a live ORM object.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from .stages import OrderStage


class OrderStatusFilter:
    """Values accepted by the order list `status` filter."""
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ALL = "All"

    CHOICES = (ACTIVE, INACTIVE, ALL)


@dataclass
class Order:
    """Costume order owned by exactly one organization."""
    order_number: str
    organization_id: UUID
    current_stage: OrderStage
    original_ship_date: datetime
    current_ship_date: datetime
    description: str = ""
    is_active: bool = True
    version: int = 1
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class StageHistoryEntry:
    """One applied mutation. Append-only.

    For ship-date-only changes previous_stage == new_stage.
    """
    order_id: UUID
    organization_id: UUID
    previous_stage: OrderStage
    new_stage: OrderStage
    changed_by_user_id: UUID
    changed_by_role: str
    reason: str
    previous_ship_date: Optional[datetime] = None
    new_ship_date: Optional[datetime] = None
    id: Optional[UUID] = None
    changed_at: Optional[datetime] = None

    @property
    def is_stage_change(self) -> bool:
        return self.previous_stage != self.new_stage


@dataclass
class AccessAttempt:
    """One authorization decision, granted or denied."""
    user_role: str
    resource: str
    http_method: str
    access_granted: bool
    user_id: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    details: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    id: Optional[UUID] = None
    timestamp: Optional[datetime] = None


@dataclass
class UpdateOutcome:
    """Result of a successful single-order mutation."""
    order: Order
    history_entry: StageHistoryEntry
    notification_enqueued: bool = False


@dataclass
class BulkFailure:
    """A bulk item that was not applied."""
    order_id: UUID
    error_code: str
    reason: str


@dataclass
class BulkOutcome:
    """Per-item result of a bulk update. Both lists are always present."""
    successful: list[UUID] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)


@dataclass
class OrderListFilters:
    """Filters and paging for order listing (page is 1-based)."""
    organization_id: Optional[UUID] = None
    status: str = OrderStatusFilter.ACTIVE
    stage: Optional[OrderStage] = None
    page: int = 1
    page_size: int = 50


@dataclass
class AccessAttemptFilters:
    """Filters and paging for the access-attempt log."""
    user_id: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    access_granted: Optional[bool] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = 1
    page_size: int = 50


@dataclass
class Page:
    """One page of results plus the total count across all pages."""
    items: list
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)
