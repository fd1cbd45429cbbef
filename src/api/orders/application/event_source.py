"""Raises realtime events for order transitions."""

from __future__ import annotations

from orders.application.observability import (
    DefaultOrderEventSourceProbe,
    OrderEventSourceProbe,
)
from orders.domain import OrderSnapshot
from orders.ports import OrderEventPublisher
from realtime.domain import ChannelKey, OrderEvent, OrderEventType


class OrderEventSource:
    """Publishes one event per order transition.

    Each event goes to the order's room channel, its kitchen channel and
    the tenant-wide channel, so the ordering room, the preparing kitchen
    and tenant dashboards all see it.
    """

    def __init__(
        self,
        publisher: OrderEventPublisher,
        probe: OrderEventSourceProbe | None = None,
    ):
        self._publisher = publisher
        self._probe = probe or DefaultOrderEventSourceProbe()

    async def order_created(self, order: OrderSnapshot) -> int:
        """Announce a new order.

        Returns:
            Number of connections the event reached
        """
        return self._raise(OrderEventType.ORDER_CREATED, order)

    async def order_status_updated(self, order: OrderSnapshot) -> int:
        """Announce a status change of an existing order.

        Returns:
            Number of connections the event reached
        """
        return self._raise(OrderEventType.ORDER_STATUS_UPDATED, order)

    async def raise_event(
        self, event_type: OrderEventType, order: OrderSnapshot
    ) -> int:
        """Dispatch by event type."""
        if event_type is OrderEventType.ORDER_CREATED:
            return await self.order_created(order)
        return await self.order_status_updated(order)

    @staticmethod
    def channels_for(order: OrderSnapshot) -> list[ChannelKey]:
        return [
            ChannelKey.for_room(order.tenant_id, order.room_id),
            ChannelKey.for_kitchen(order.tenant_id, order.kitchen_id),
            ChannelKey.for_tenant(order.tenant_id),
        ]

    def _raise(self, event_type: OrderEventType, order: OrderSnapshot) -> int:
        try:
            channels = self.channels_for(order)
        except ValueError as e:
            self._probe.order_event_refused(order_id=order.id, reason=str(e))
            raise
        event = OrderEvent.create(
            type=event_type,
            tenant_id=order.tenant_id,
            order=order.to_payload(),
            channels=channels,
        )
        delivered = self._publisher.publish(event)
        self._probe.order_event_raised(
            event_type=event_type.value,
            order_id=order.id,
            tenant_id=order.tenant_id,
            status=order.status.value,
            delivered=delivered,
        )
        return delivered
