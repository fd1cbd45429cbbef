"""Order lifecycle events delivered over realtime channels."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from realtime.domain.value_objects import ChannelKey


class OrderEventType(StrEnum):
    """Kinds of order transition pushed to clients."""

    ORDER_CREATED = "order-created"
    ORDER_STATUS_UPDATED = "order-status-updated"


@dataclass(frozen=True)
class OrderEvent:
    """One order transition and the channels that must see it.

    Events are never persisted or replayed. The order snapshot is passed
    through to clients unchanged.
    """

    type: OrderEventType
    tenant_id: str
    order: Mapping[str, Any]
    channels: frozenset[ChannelKey]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        foreign = [key for key in self.channels if key.tenant_id != self.tenant_id]
        if foreign:
            raise ValueError(
                "Order events may only target channels of their own tenant"
            )

    @classmethod
    def create(
        cls,
        type: OrderEventType,
        tenant_id: str,
        order: Mapping[str, Any],
        channels: Iterable[ChannelKey],
    ) -> OrderEvent:
        return cls(
            type=type,
            tenant_id=tenant_id,
            order=dict(order),
            channels=frozenset(channels),
        )

    def to_message(self) -> dict[str, Any]:
        """Server message pushed to subscribers."""
        return {"event": self.type.value, "data": dict(self.order)}
