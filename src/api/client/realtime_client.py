"""Realtime client for order notifications.

Wraps one websocket connection to ``/realtime/ws`` and keeps it alive:

- the connection moves through explicit states (CONNECTING, OPEN,
  RECONNECTING, CLOSED) and reports every transition
- failed attempts are retried with bounded exponential backoff
- channel memberships do not survive a reconnect on the server, so every
  desired channel is joined again each time the connection opens
- a rejected handshake triggers one session refresh before the next try
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import json
from enum import StrEnum
from typing import Any, Awaitable, Callable, Protocol

import httpx
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException

from client.exceptions import ReconnectExhaustedError
from client.observability import ClientProbe, DefaultClientProbe
from client.session_client import SessionClient

UNAUTHORIZED_CLOSE_CODE = 4401
_REJECTED_STATUSES = frozenset({401, 403})


class ConnectionState(StrEnum):
    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


class ClientSocket(Protocol):
    """The part of a websocket connection the client uses."""

    async def send(self, message: str) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    def __aiter__(self) -> Any: ...


Connector = Callable[[str], Awaitable[ClientSocket]]
EventHandler = Callable[[str, Any], Awaitable[None] | None]
StateHandler = Callable[[ConnectionState], Awaitable[None] | None]

default_connector: Connector = functools.partial(
    connect, ping_interval=30, ping_timeout=10, close_timeout=10
)


class _HandshakeRejected(Exception):
    pass


class RealtimeClient:
    """Keeps a realtime connection open and subscribed.

    Example:
        client = RealtimeClient("wss://api.example.com/realtime/ws", session,
                                on_event=handle)
        await client.join("kitchen:K1")
        await client.run()
    """

    def __init__(
        self,
        url: str,
        session: SessionClient,
        on_event: EventHandler | None = None,
        on_state_change: StateHandler | None = None,
        *,
        base_delay: float = 1.0,
        max_attempts: int = 5,
        max_delay: float = 30.0,
        connector: Connector = default_connector,
        probe: ClientProbe | None = None,
    ):
        """Initialize the client.

        Args:
            url: Websocket URL of the realtime endpoint
            session: Supplies and refreshes the access token
            on_event: Called with (event, data) for every server message
            on_state_change: Called with the new state on each transition
            base_delay: Delay before the first reconnect, in seconds
            max_attempts: Consecutive failed attempts allowed before giving up
            max_delay: Upper bound for a single reconnect delay
            connector: Opens a connection for a URL
            probe: Optional domain probe for observability
        """
        self._url = url
        self._session = session
        self._on_event = on_event
        self._on_state_change = on_state_change
        self._base_delay = base_delay
        self._max_attempts = max_attempts
        self._max_delay = max_delay
        self._connector = connector
        self._probe = probe or DefaultClientProbe()

        self._state = ConnectionState.CLOSED
        self._channels: dict[tuple[str, str | None], None] = {}
        self._socket: ClientSocket | None = None
        self._stop = asyncio.Event()
        self._failures = 0
        self._refreshed = False
        self.connection_id: str | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def channels(self) -> list[tuple[str, str | None]]:
        """Channels joined on every (re)connect, in join order."""
        return list(self._channels)

    async def join(self, channel: str, tenant_id: str | None = None) -> None:
        """Subscribe to a channel now if open, and after every reconnect.

        Args:
            channel: Channel name, e.g. ``kitchen:K1`` or ``room:12``
            tenant_id: Target tenant; only honoured for super admins
        """
        key = (channel, tenant_id)
        self._channels[key] = None
        if self._state is ConnectionState.OPEN:
            await self._send("join", channel, tenant_id)

    async def leave(self, channel: str, tenant_id: str | None = None) -> None:
        """Unsubscribe from a channel and stop re-joining it."""
        self._channels.pop((channel, tenant_id), None)
        if self._state is ConnectionState.OPEN:
            await self._send("leave", channel, tenant_id)

    async def run(self) -> None:
        """Connect and stay connected until ``close()`` is called.

        Raises:
            ReconnectExhaustedError: After ``max_attempts`` consecutive failures
            SessionExpiredError: If a rejected handshake could not be
                recovered by refreshing the session
        """
        self._stop.clear()
        self._failures = 0
        self._refreshed = False
        first = True
        try:
            while not self._stop.is_set():
                await self._set_state(
                    ConnectionState.CONNECTING
                    if first
                    else ConnectionState.RECONNECTING
                )
                first = False
                try:
                    await self._connect_once()
                    error = "connection closed"
                except _HandshakeRejected as e:
                    self._probe.realtime_handshake_rejected(detail=str(e))
                    if not self._refreshed:
                        self._refreshed = True
                        await self._session.refresh()
                        continue
                    error = f"handshake rejected: {e}"
                except (OSError, TimeoutError, WebSocketException) as e:
                    error = f"{type(e).__name__}: {e}"

                if self._stop.is_set():
                    break
                await self._backoff(error)
        finally:
            self._socket = None
            await self._set_state(ConnectionState.CLOSED)

    async def close(self) -> None:
        """Stop reconnecting and close the current connection."""
        self._stop.set()
        socket = self._socket
        if socket is not None:
            await socket.close(1000, "Client closing")
        await self._set_state(ConnectionState.CLOSED)

    async def _connect_once(self) -> None:
        url = str(
            httpx.URL(self._url).copy_merge_params(
                {"token": self._session.current_access_token()}
            )
        )
        try:
            socket = await self._connector(url)
        except InvalidStatus as e:
            if e.response.status_code in _REJECTED_STATUSES:
                raise _HandshakeRejected(f"HTTP {e.response.status_code}") from e
            raise

        self._socket = socket
        try:
            await self._set_state(ConnectionState.OPEN)
            self._failures = 0
            self._refreshed = False
            for channel, tenant_id in list(self._channels):
                await self._send("join", channel, tenant_id)
            async for raw in socket:
                await self._dispatch(raw)
        except ConnectionClosed as e:
            if e.rcvd is not None and e.rcvd.code == UNAUTHORIZED_CLOSE_CODE:
                raise _HandshakeRejected(e.rcvd.reason or "Unauthorized") from e
            raise
        finally:
            self._socket = None
            self.connection_id = None

    async def _backoff(self, error: str) -> None:
        self._failures += 1
        if self._failures > self._max_attempts:
            raise ReconnectExhaustedError(
                f"Gave up after {self._max_attempts} reconnect attempts: {error}"
            )
        delay = min(self._max_delay, self._base_delay * (2 ** (self._failures - 1)))
        self._probe.realtime_reconnect_scheduled(
            attempt=self._failures, delay_seconds=delay, error=error
        )
        try:
            async with asyncio.timeout(delay):
                await self._stop.wait()
        except TimeoutError:
            pass

    async def _send(self, event: str, channel: str, tenant_id: str | None) -> None:
        socket = self._socket
        if socket is None:
            return
        message: dict[str, Any] = {"event": event, "channel": channel}
        if tenant_id is not None:
            message["tenantId"] = tenant_id
        await socket.send(json.dumps(message))

    async def _dispatch(self, raw: str | bytes) -> None:
        try:
            message = json.loads(raw)
        except ValueError:
            self._probe.realtime_message_discarded(reason="invalid json")
            return
        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            self._probe.realtime_message_discarded(reason="missing event")
            return

        event = message["event"]
        data = message.get("data")
        if event == "connected" and isinstance(data, dict):
            self.connection_id = data.get("connectionId")
        if self._on_event is not None:
            await _call(self._on_event, event, data)

    async def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        self._probe.realtime_state_changed(previous=previous.value, current=state.value)
        if self._on_state_change is not None:
            await _call(self._on_state_change, state)


async def _call(handler: Callable[..., Any], *args: Any) -> None:
    result = handler(*args)
    if inspect.isawaitable(result):
        await result
