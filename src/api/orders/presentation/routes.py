"""HTTP routes for order event ingestion."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from orders.application import OrderEventSource
from orders.dependencies import get_caller_claims, get_order_event_source
from orders.presentation.models import (
    DeliveryData,
    OrderEventRequest,
    OrderEventResponse,
)
from shared_kernel.auth import PrincipalClaims

router = APIRouter(
    prefix="/realtime",
    tags=["realtime"],
)


@router.post("/order-events", status_code=status.HTTP_202_ACCEPTED)
async def publish_order_event(
    request: OrderEventRequest,
    claims: Annotated[PrincipalClaims, Depends(get_caller_claims)],
    source: Annotated[OrderEventSource, Depends(get_order_event_source)],
) -> OrderEventResponse:
    """Relay an order transition to the subscribed realtime clients.

    Callers may only publish for their own tenant (super admins excepted);
    kitchen accounts only for orders of their own kitchen.

    Args:
        request: Event type and order snapshot
        claims: Verified claims of the caller
        source: Order event source

    Returns:
        OrderEventResponse with the number of connections reached

    Raises:
        HTTPException: 401 if the bearer token is missing or invalid
        HTTPException: 403 if the order belongs to another tenant or kitchen
    """
    order = request.order.to_domain()
    if not claims.is_super_admin:
        if order.tenant_id != claims.tenant_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Order belongs to another tenant",
            )
        if claims.is_kitchen and order.kitchen_id != claims.kitchen_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Order belongs to another kitchen",
            )

    try:
        delivered = await source.raise_event(request.type, order)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from e

    return OrderEventResponse(data=DeliveryData(delivered=delivered))
