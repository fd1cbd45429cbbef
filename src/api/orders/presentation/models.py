"""Pydantic models for order event ingestion."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from orders.domain import OrderSnapshot, OrderStatus
from realtime.domain import OrderEventType


class OrderPayload(BaseModel):
    """Order snapshot as posted by the order service.

    Fields beyond the routing ones (items, notes, timestamps, ...) are kept
    and forwarded to clients unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | int = Field(..., description="Order ID")
    tenant_id: str = Field(..., alias="tenantId", min_length=1, max_length=26)
    room_id: str | int = Field(..., alias="roomId")
    kitchen_id: str | int = Field(..., alias="kitchenId")
    status: OrderStatus = Field(..., description="Current order status")

    def to_domain(self) -> OrderSnapshot:
        extra: dict[str, Any] = dict(self.model_extra or {})
        return OrderSnapshot(
            id=str(self.id),
            tenant_id=self.tenant_id,
            room_id=str(self.room_id),
            kitchen_id=str(self.kitchen_id),
            status=self.status,
            data=extra,
        )


class OrderEventRequest(BaseModel):
    """Request model for publishing one order transition."""

    type: OrderEventType = Field(
        ..., description="order-created or order-status-updated"
    )
    order: OrderPayload


class DeliveryData(BaseModel):
    delivered: int = Field(..., description="Connections the event was queued for")


class OrderEventResponse(BaseModel):
    """Response model for an accepted order event."""

    success: bool = True
    data: DeliveryData
