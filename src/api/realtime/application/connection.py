"""One live client connection and its outbound queue.

Each connection owns a bounded queue drained by a dedicated sender task,
so a slow client only ever delays its own deliveries.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from ulid import ULID

from realtime.application.observability import DefaultHubProbe, HubProbe
from realtime.domain import ChannelKey, OverflowPolicy
from realtime.ports import Transport
from shared_kernel.auth import PrincipalClaims

Message = dict[str, Any]


class Connection:
    """An accepted socket bound to the principal that opened it.

    ``enqueue`` never suspends, which keeps the hub's publish step atomic
    with respect to the event loop. Messages leave in enqueue order.
    """

    def __init__(
        self,
        claims: PrincipalClaims,
        transport: Transport,
        queue_size: int,
        overflow_policy: OverflowPolicy,
        send_timeout_seconds: float,
        on_send_failure: Callable[["Connection", Exception], None],
        probe: HubProbe | None = None,
        connection_id: str | None = None,
    ):
        self.id = connection_id or str(ULID())
        self.claims = claims
        self.channels: set[ChannelKey] = set()
        self._transport = transport
        self._queue: asyncio.Queue[Message] = asyncio.Queue(maxsize=queue_size)
        self._overflow_policy = overflow_policy
        self._send_timeout = send_timeout_seconds
        self._on_send_failure = on_send_failure
        self._probe = probe or DefaultHubProbe()
        self._sender: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def tenant_id(self) -> str | None:
        return self.claims.tenant_id

    @property
    def principal_id(self) -> str:
        return self.claims.principal_id

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Messages queued but not yet sent."""
        return self._queue.qsize()

    def start(self) -> None:
        """Start the sender task. Must run inside the event loop."""
        if self._sender is None:
            self._sender = asyncio.create_task(
                self._drain(), name=f"realtime-sender-{self.id}"
            )

    def enqueue(self, message: Message) -> bool:
        """Queue a message without suspending.

        Returns:
            False if the connection is closed, or if the queue is full under
            the disconnect policy; the caller must then evict the connection
        """
        if self._closed:
            return False
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            self._probe.delivery_dropped(self.id, self._overflow_policy.value)
            if self._overflow_policy is OverflowPolicy.DISCONNECT:
                return False

        self._queue.get_nowait()
        self._queue.task_done()
        self._queue.put_nowait(message)
        return True

    async def close(self, code: int, reason: str = "") -> None:
        """Cancel pending deliveries and close the transport. Idempotent."""
        if self._closed:
            return
        self._closed = True

        pending = self._discard_pending()
        sender = self._sender
        if sender is not None and sender is not asyncio.current_task():
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass

        try:
            await self._transport.close(code, reason)
        except Exception as e:
            self._probe.transport_close_failed(self.id, str(e))
        self._probe.connection_closed(self.id, code, pending)

    async def _drain(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                async with asyncio.timeout(self._send_timeout):
                    await self._transport.send_json(message)
            except Exception as e:
                self._probe.send_failed(self.id, repr(e))
                self._on_send_failure(self, e)
                return
            finally:
                self._queue.task_done()

    def _discard_pending(self) -> int:
        count = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            count += 1
        return count
