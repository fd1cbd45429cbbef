"""Ports for the realtime bounded context."""

from realtime.ports.exceptions import (
    ChannelAccessDeniedError,
    ConnectionRejectedError,
    InvalidChannelKeyError,
    RealtimeError,
)
from realtime.ports.transport import Transport

__all__ = [
    "ChannelAccessDeniedError",
    "ConnectionRejectedError",
    "InvalidChannelKeyError",
    "RealtimeError",
    "Transport",
]
