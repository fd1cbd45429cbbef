"""Value objects for the realtime domain.

Channels partition live connections by tenant, room and kitchen. Keys are
explicit (tenant, scope, resource) triples so a channel of one tenant can
never be confused with the same room or kitchen id in another tenant.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum, StrEnum

_RESOURCE_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class ChannelScope(StrEnum):
    """What a channel broadcasts to."""

    ROOM = "room"
    KITCHEN = "kitchen"
    TENANT = "tenant"


@dataclass(frozen=True)
class ChannelKey:
    """Identifies one broadcast channel.

    The wire form omits the tenant, which is implied by the connection:
    ``room:<id>``, ``kitchen:<id>`` or ``tenant``.
    """

    tenant_id: str
    scope: ChannelScope
    resource_id: str | None = None

    def __post_init__(self) -> None:
        if not self.tenant_id:
            raise ValueError("Channel key requires a tenant")
        if self.scope is ChannelScope.TENANT:
            if self.resource_id is not None:
                raise ValueError("The tenant channel has no resource id")
            return
        if self.resource_id is None or not _RESOURCE_ID.match(self.resource_id):
            raise ValueError(f"Invalid {self.scope} id: {self.resource_id!r}")

    def __str__(self) -> str:
        return f"{self.tenant_id}/{self.wire}"

    @property
    def wire(self) -> str:
        """Tenant-relative name used in client messages."""
        if self.scope is ChannelScope.TENANT:
            return ChannelScope.TENANT.value
        return f"{self.scope.value}:{self.resource_id}"

    @classmethod
    def for_room(cls, tenant_id: str, room_id: str | int) -> ChannelKey:
        return cls(
            tenant_id=tenant_id, scope=ChannelScope.ROOM, resource_id=str(room_id)
        )

    @classmethod
    def for_kitchen(cls, tenant_id: str, kitchen_id: str | int) -> ChannelKey:
        return cls(
            tenant_id=tenant_id, scope=ChannelScope.KITCHEN, resource_id=str(kitchen_id)
        )

    @classmethod
    def for_tenant(cls, tenant_id: str) -> ChannelKey:
        return cls(tenant_id=tenant_id, scope=ChannelScope.TENANT)

    @classmethod
    def parse(cls, wire: str, tenant_id: str) -> ChannelKey:
        """Parse a wire-form channel name within a tenant.

        Raises:
            ValueError: If the name is not ``room:<id>``, ``kitchen:<id>``
                or ``tenant``
        """
        scope, _, resource_id = wire.strip().partition(":")
        try:
            channel_scope = ChannelScope(scope)
        except ValueError as e:
            raise ValueError(f"Unknown channel: {wire!r}") from e
        if channel_scope is ChannelScope.TENANT:
            if resource_id:
                raise ValueError("The tenant channel has no resource id")
            return cls.for_tenant(tenant_id)
        return cls(tenant_id=tenant_id, scope=channel_scope, resource_id=resource_id)


class OverflowPolicy(StrEnum):
    """What to do when a connection's delivery queue is full."""

    DROP_OLDEST = "drop_oldest"
    DISCONNECT = "disconnect"


class CloseCode(IntEnum):
    """WebSocket close codes used by the hub."""

    NORMAL = 1000
    GOING_AWAY = 1001
    POLICY_VIOLATION = 1008
    INTERNAL_ERROR = 1011
    TRY_AGAIN_LATER = 1013
    UNAUTHORIZED = 4401
