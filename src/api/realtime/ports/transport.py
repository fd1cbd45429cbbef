"""Transport port: the hub's view of one client socket."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """A bidirectional message channel to one client.

    ``close`` may be called before ``accept`` to refuse the handshake.
    """

    async def accept(self) -> None:
        """Complete the handshake."""
        ...

    async def send_json(self, message: dict[str, Any]) -> None:
        """Send one server message."""
        ...

    async def close(self, code: int, reason: str = "") -> None:
        """Close the socket; closing twice is a no-op."""
        ...
