"""Order snapshot as carried by lifecycle events."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class OrderStatus(StrEnum):
    """Lifecycle states of a room order."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_final(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


@dataclass(frozen=True)
class OrderSnapshot:
    """The state of one order at the moment of a transition.

    Only the routing fields are typed; ``data`` is the full snapshot sent
    to clients as-is.
    """

    id: str
    tenant_id: str
    room_id: str
    kitchen_id: str
    status: OrderStatus
    data: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Snapshot with the routing fields in their wire names."""
        return {
            **self.data,
            "id": self.id,
            "tenantId": self.tenant_id,
            "roomId": self.room_id,
            "kitchenId": self.kitchen_id,
            "status": self.status.value,
        }
