"""Realtime domain: channel keys and order events."""

from realtime.domain.events import OrderEvent, OrderEventType
from realtime.domain.value_objects import (
    ChannelKey,
    ChannelScope,
    CloseCode,
    OverflowPolicy,
)

__all__ = [
    "ChannelKey",
    "ChannelScope",
    "CloseCode",
    "OrderEvent",
    "OrderEventType",
    "OverflowPolicy",
]
