"""Orders API Router - list, detail, create, stage updates and history.

Every endpoint goes through OrderMutationService, which records an
access-attempt entry for each authorization decision. WorkflowError
subclasses raised here are rendered by the application exception handler.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ..auth.context import AuthorizationContext, ClientInfo
from ..auth.dependencies import get_authorization_context, get_client_info
from ..dependencies import get_order_service
from ..domain.errors import ValidationError
from ..domain.orders.models import OrderListFilters, OrderStatusFilter
from ..domain.orders.stages import parse_stage
from .schemas import (
    BulkUpdateRequest,
    BulkUpdateResponse,
    OrderCreateRequest,
    OrderHistoryResponse,
    OrderListResponse,
    OrderResponse,
    OrderUpdateRequest,
    StageHistoryEntryResponse,
)
from .service import OrderMutationService


router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List orders",
    description="Directors and Finance users only ever see their own organization's orders; "
                "ColorGarb staff see all organizations unless filtered.",
)
def list_orders(
    organization_id: Optional[UUID] = Query(None, description="Filter by owning organization"),
    status: str = Query(OrderStatusFilter.ACTIVE, description="Active | Inactive | All"),
    stage: Optional[str] = Query(None, description="Filter by current stage"),
    page: int = Query(1, description="Page number (1-indexed, clamped)"),
    page_size: Optional[int] = Query(None, description="Results per page (clamped to the configured maximum)"),
    context: AuthorizationContext = Depends(get_authorization_context),
    client: ClientInfo = Depends(get_client_info),
    service: OrderMutationService = Depends(get_order_service),
) -> OrderListResponse:
    stage_filter = None
    if stage:
        stage_filter = parse_stage(stage)
        if stage_filter is None:
            raise ValidationError(f"unrecognized stage '{stage}'")

    filters = OrderListFilters(
        organization_id=organization_id,
        status=status,
        stage=stage_filter,
        page=page,
        page_size=page_size,
    )
    return OrderListResponse.from_page(service.list_orders(context, filters, client))


@router.post(
    "",
    response_model=OrderResponse,
    status_code=201,
    summary="Create order (ColorGarb staff only)",
)
def create_order(
    body: OrderCreateRequest,
    context: AuthorizationContext = Depends(get_authorization_context),
    client: ClientInfo = Depends(get_client_info),
    service: OrderMutationService = Depends(get_order_service),
) -> OrderResponse:
    order = service.create_order(
        context,
        organization_id=body.organization_id,
        order_number=body.order_number,
        original_ship_date=body.original_ship_date,
        description=body.description,
        client=client,
    )
    return OrderResponse.from_domain(order)


@router.post(
    "/bulk-update",
    response_model=BulkUpdateResponse,
    summary="Bulk stage update",
    description="Each order is processed independently. Returns 200 with per-item results "
                "even when some or all items fail.",
)
def bulk_update_orders(
    body: BulkUpdateRequest,
    context: AuthorizationContext = Depends(get_authorization_context),
    client: ClientInfo = Depends(get_client_info),
    service: OrderMutationService = Depends(get_order_service),
) -> BulkUpdateResponse:
    outcome = service.bulk_update_stage(
        context,
        order_ids=body.order_ids,
        requested_stage=body.stage,
        reason=body.reason,
        new_ship_date=body.ship_date,
        client=client,
    )
    return BulkUpdateResponse.from_outcome(outcome)


@router.get("/{order_id}", response_model=OrderResponse, summary="Get order")
def get_order(
    order_id: UUID,
    context: AuthorizationContext = Depends(get_authorization_context),
    client: ClientInfo = Depends(get_client_info),
    service: OrderMutationService = Depends(get_order_service),
) -> OrderResponse:
    return OrderResponse.from_domain(service.get_order(context, order_id, client))


@router.patch(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Update order stage and/or ship date",
    description="""
    **Status codes:**
    - 200: Updated order
    - 400: Missing reason, unknown stage, or no-op update
    - 401: Missing or invalid identity
    - 403: Organization boundary or insufficient role
    - 404: Order not found
    - 409: Backward transition, stage skip, or concurrent modification
    """,
)
def update_order(
    order_id: UUID,
    body: OrderUpdateRequest,
    context: AuthorizationContext = Depends(get_authorization_context),
    client: ClientInfo = Depends(get_client_info),
    service: OrderMutationService = Depends(get_order_service),
) -> OrderResponse:
    outcome = service.update_stage(
        context,
        order_id,
        requested_stage=body.stage,
        reason=body.reason,
        new_ship_date=body.ship_date,
        expected_version=body.expected_version,
        client=client,
    )
    return OrderResponse.from_domain(outcome.order)


@router.get("/{order_id}/history", response_model=OrderHistoryResponse, summary="Order stage history")
def get_order_history(
    order_id: UUID,
    context: AuthorizationContext = Depends(get_authorization_context),
    client: ClientInfo = Depends(get_client_info),
    service: OrderMutationService = Depends(get_order_service),
) -> OrderHistoryResponse:
    entries = service.get_history(context, order_id, client)
    return OrderHistoryResponse(
        order_id=order_id,
        entries=[StageHistoryEntryResponse.from_domain(entry) for entry in entries],
    )
