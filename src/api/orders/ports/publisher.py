"""Publisher port through which order events leave this context."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from realtime.domain import ChannelKey, OrderEvent


@runtime_checkable
class OrderEventPublisher(Protocol):
    """Fans an order event out to channel subscribers.

    Implemented by the realtime hub.
    """

    def publish(
        self, event: OrderEvent, channel_keys: Iterable[ChannelKey] | None = None
    ) -> int:
        """Deliver the event; returns the number of connections reached."""
        ...
