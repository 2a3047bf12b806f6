"""Audit query endpoints (ColorGarb staff only).

Read-only surface consumed by compliance reporting and export:
- Stage history (listEntries): filter by order and date range, oldest first
- Access attempts: filter by user, organization, outcome and date range,
  newest first, paginated

Querying the audit trail is itself an access decision and is recorded.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ..auth.context import AuthorizationContext, ClientInfo
from ..auth.dependencies import get_authorization_context, get_client_info
from ..auth.policy import ResourceDescriptor
from ..auth.roles import UserRole
from ..dependencies import get_access_guard, get_audit_recorder
from ..domain.orders.models import AccessAttemptFilters
from ..orders.schemas import StageHistoryEntryResponse
from .guard import AccessGuard
from .recorder import AuditRecorder, check_date_range
from .schemas import AccessAttemptListResponse, StageHistoryListResponse


router = APIRouter(prefix="/audit", tags=["Audit"])

STAFF_ONLY = frozenset({UserRole.COLORGARB_STAFF})


@router.get(
    "/stage-history",
    response_model=StageHistoryListResponse,
    summary="Query stage history (ColorGarb staff only)",
)
def query_stage_history(
    order_id: Optional[UUID] = Query(None, description="Restrict to one order"),
    date_from: Optional[datetime] = Query(
        None,
        description="Inclusive lower bound on changed_at (ISO 8601)",
        examples=["2025-01-01T00:00:00Z"],
    ),
    date_to: Optional[datetime] = Query(
        None,
        description="Inclusive upper bound on changed_at (ISO 8601)",
        examples=["2025-01-31T23:59:59Z"],
    ),
    context: AuthorizationContext = Depends(get_authorization_context),
    client: ClientInfo = Depends(get_client_info),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    guard: AccessGuard = Depends(get_access_guard),
) -> StageHistoryListResponse:
    check_date_range(date_from, date_to)
    guard.check(context, None, ResourceDescriptor("stage_history", "read", required_roles=STAFF_ONLY), client)

    entries = recorder.query(order_id=order_id, date_from=date_from, date_to=date_to)
    return StageHistoryListResponse(
        entries=[StageHistoryEntryResponse.from_domain(entry) for entry in entries],
        total=len(entries),
    )


@router.get(
    "/access-attempts",
    response_model=AccessAttemptListResponse,
    summary="Query access attempts (ColorGarb staff only)",
)
def query_access_attempts(
    user_id: Optional[UUID] = Query(None, description="Filter by caller"),
    organization_id: Optional[UUID] = Query(None, description="Filter by targeted organization"),
    access_granted: Optional[bool] = Query(None, description="Filter by outcome"),
    date_from: Optional[datetime] = Query(None, description="Inclusive lower bound (ISO 8601)"),
    date_to: Optional[datetime] = Query(None, description="Inclusive upper bound (ISO 8601)"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(50, ge=1, le=100, description="Entries per page (max 100)"),
    context: AuthorizationContext = Depends(get_authorization_context),
    client: ClientInfo = Depends(get_client_info),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    guard: AccessGuard = Depends(get_access_guard),
) -> AccessAttemptListResponse:
    check_date_range(date_from, date_to)
    guard.check(context, None, ResourceDescriptor("access_attempts", "read", required_roles=STAFF_ONLY), client)

    filters = AccessAttemptFilters(
        user_id=user_id,
        organization_id=organization_id,
        access_granted=access_granted,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
    )
    return AccessAttemptListResponse.from_page(recorder.query_access_attempts(filters))
