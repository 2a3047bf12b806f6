"""Pydantic schemas for audit query endpoints.

Both audit streams are read-only through the API; there are no create,
update or delete operations.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..domain.orders.models import AccessAttempt, Page
from ..orders.schemas import StageHistoryEntryResponse


class StageHistoryListResponse(BaseModel):
    """Stage history entries, oldest first."""
    entries: List[StageHistoryEntryResponse] = Field(..., description="Matching entries sorted by changed_at ascending")
    total: int = Field(..., description="Number of entries returned")


class AccessAttemptResponse(BaseModel):
    """One recorded authorization decision."""
    id: Optional[UUID] = Field(None, description="Attempt entry identifier")
    user_id: Optional[UUID] = Field(None, description="Caller (None when identity could not be established)")
    user_role: str = Field(..., description="Caller role, or 'unknown'")
    organization_id: Optional[UUID] = Field(None, description="Organization the request targeted")
    resource: str = Field(..., description="Resource descriptor, e.g. order:<id>:update_stage")
    http_method: str = Field(..., description="HTTP method of the request")
    access_granted: bool = Field(..., description="Decision outcome")
    details: Optional[str] = Field(None, description="Decision reason")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Path, action and claimed role")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client User-Agent header")
    request_id: Optional[str] = Field(None, description="Request correlation id")
    timestamp: Optional[datetime] = Field(None, description="Decision timestamp")

    @classmethod
    def from_domain(cls, attempt: AccessAttempt) -> "AccessAttemptResponse":
        return cls(
            id=attempt.id,
            user_id=attempt.user_id,
            user_role=attempt.user_role,
            organization_id=attempt.organization_id,
            resource=attempt.resource,
            http_method=attempt.http_method,
            access_granted=attempt.access_granted,
            details=attempt.details,
            metadata=attempt.metadata or None,
            ip_address=attempt.ip_address,
            user_agent=attempt.user_agent,
            request_id=attempt.request_id,
            timestamp=attempt.timestamp,
        )


class AccessAttemptListResponse(BaseModel):
    """Access attempts, newest first, with pagination metadata."""
    entries: List[AccessAttemptResponse] = Field(..., description="List of access attempts")
    total: int = Field(..., description="Total number of attempts matching filters")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Entries per page")

    @classmethod
    def from_page(cls, page: Page) -> "AccessAttemptListResponse":
        return cls(
            entries=[AccessAttemptResponse.from_domain(a) for a in page.items],
            total=page.total,
            page=page.page,
            page_size=page.page_size,
        )
