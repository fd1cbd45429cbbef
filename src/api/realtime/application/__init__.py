"""Realtime application layer."""

from realtime.application.connection import Connection
from realtime.application.hub import RealtimeHub

__all__ = ["Connection", "RealtimeHub"]
