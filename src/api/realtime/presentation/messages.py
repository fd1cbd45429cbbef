"""Client messages accepted on the realtime socket.

The canonical form is ``{"event": "join" | "leave", "channel": "<wire>"}``.
The aliases ``join-room``, ``join-kitchen`` and ``join-tenant`` (with
``roomId`` / ``kitchenId``) are accepted for older clients. Super admins
add ``tenantId`` to pick the tenant a channel belongs to.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from realtime.ports import InvalidChannelKeyError


class ClientEvent(StrEnum):
    JOIN = "join"
    LEAVE = "leave"
    JOIN_ROOM = "join-room"
    JOIN_KITCHEN = "join-kitchen"
    JOIN_TENANT = "join-tenant"


class ClientMessage(BaseModel):
    """One message received from a client."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event: ClientEvent
    channel: str | None = Field(default=None, max_length=80)
    room_id: str | int | None = Field(default=None, alias="roomId")
    kitchen_id: str | int | None = Field(default=None, alias="kitchenId")
    tenant_id: str | None = Field(default=None, alias="tenantId", max_length=26)

    @property
    def is_leave(self) -> bool:
        return self.event is ClientEvent.LEAVE

    def channel_name(self) -> str:
        """Wire-form channel the message refers to.

        Raises:
            InvalidChannelKeyError: If the message does not name a channel
        """
        match self.event:
            case ClientEvent.JOIN | ClientEvent.LEAVE:
                if not self.channel:
                    raise InvalidChannelKeyError("channel is required")
                return self.channel
            case ClientEvent.JOIN_ROOM:
                if self.room_id is None:
                    raise InvalidChannelKeyError("roomId is required")
                return f"room:{self.room_id}"
            case ClientEvent.JOIN_KITCHEN:
                if self.kitchen_id is None:
                    raise InvalidChannelKeyError("kitchenId is required")
                return f"kitchen:{self.kitchen_id}"
            case ClientEvent.JOIN_TENANT:
                return "tenant"


def parse_client_message(payload: object) -> ClientMessage:
    """Validate a decoded JSON payload.

    Raises:
        InvalidChannelKeyError: If the payload is not a known message
    """
    try:
        return ClientMessage.model_validate(payload)
    except ValidationError as e:
        raise InvalidChannelKeyError("Unrecognised message") from e
