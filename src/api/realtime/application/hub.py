"""Realtime hub: authenticated connections, channel membership, fan-out.

All membership changes and ``publish`` are synchronous. On a single event
loop each of them is therefore an atomic step, and no lock is needed around
the channel map.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

from realtime.application.connection import Connection
from realtime.application.observability import DefaultHubProbe, HubProbe
from realtime.domain import (
    ChannelKey,
    ChannelScope,
    CloseCode,
    OrderEvent,
    OverflowPolicy,
)
from realtime.ports import (
    ChannelAccessDeniedError,
    ConnectionRejectedError,
    InvalidChannelKeyError,
    Transport,
)
from shared_kernel.auth import AccessTokenCodec, ExpiredTokenError, InvalidTokenError


class RealtimeHub:
    """Manages live connections and pushes order events to channels.

    Membership is never persisted: a client that reconnects gets a new
    Connection with no channels and must join again.
    """

    def __init__(
        self,
        access_token_codec: AccessTokenCodec,
        queue_size: int = 256,
        overflow_policy: OverflowPolicy = OverflowPolicy.DROP_OLDEST,
        send_timeout_seconds: float = 10.0,
        probe: HubProbe | None = None,
    ):
        """Initialize the hub.

        Args:
            access_token_codec: Verifies access tokens at the handshake
            queue_size: Outbound queue bound per connection
            overflow_policy: Behaviour when a connection's queue is full
            send_timeout_seconds: Time allowed for one send before the
                connection is considered dead
            probe: Optional domain probe for observability
        """
        self._codec = access_token_codec
        self._queue_size = queue_size
        self._overflow_policy = overflow_policy
        self._send_timeout = send_timeout_seconds
        self._probe = probe or DefaultHubProbe()
        self._connections: dict[str, Connection] = {}
        self._channels: dict[ChannelKey, dict[str, Connection]] = {}
        self._closing: set[asyncio.Task[None]] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def subscribers(self, key: ChannelKey) -> list[Connection]:
        """Connections currently joined to a channel."""
        return list(self._channels.get(key, {}).values())

    async def connect(
        self, access_token: str | None, transport: Transport
    ) -> Connection:
        """Verify the access token, then accept the transport.

        An invalid token closes the transport without accepting it, so the
        client sees a handshake rejection rather than an open socket.

        Raises:
            ConnectionRejectedError: If the token is missing, invalid or expired
        """
        try:
            if not access_token:
                raise InvalidTokenError("Missing access token")
            claims = self._codec.verify(access_token)
        except InvalidTokenError as e:
            expired = isinstance(e, ExpiredTokenError)
            reason = "Token expired" if expired else "Unauthorized"
            self._probe.connection_rejected(reason=str(e))
            await transport.close(CloseCode.UNAUTHORIZED, reason)
            raise ConnectionRejectedError(reason) from e

        await transport.accept()
        connection = Connection(
            claims=claims,
            transport=transport,
            queue_size=self._queue_size,
            overflow_policy=self._overflow_policy,
            send_timeout_seconds=self._send_timeout,
            on_send_failure=self._handle_send_failure,
            probe=self._probe,
        )
        self._connections[connection.id] = connection
        connection.start()
        self._probe.connection_opened(
            connection.id, claims.principal_id, claims.tenant_id
        )
        self.notify(
            connection,
            "connected",
            {
                "connectionId": connection.id,
                "principalId": claims.principal_id,
                "tenantId": claims.tenant_id,
                "role": claims.role.value,
            },
        )
        return connection

    def resolve_channel(
        self, connection: Connection, wire: str, tenant_id: str | None = None
    ) -> ChannelKey:
        """Turn a client channel name into a key within the right tenant.

        Tenant principals always resolve within their own tenant. Super
        admins, which have none, must name one.

        Raises:
            InvalidChannelKeyError: Malformed name, or no tenant to resolve in
        """
        claims = connection.claims
        scope_tenant = tenant_id if claims.is_super_admin else claims.tenant_id
        if not scope_tenant:
            raise InvalidChannelKeyError("tenantId is required")
        try:
            return ChannelKey.parse(wire, scope_tenant)
        except ValueError as e:
            raise InvalidChannelKeyError(str(e)) from e

    def join(self, connection: Connection, key: ChannelKey) -> bool:
        """Subscribe a connection to a channel. Idempotent.

        Returns:
            True if the connection was not already a member

        Raises:
            ChannelAccessDeniedError: If the principal may not see the channel
        """
        try:
            self._authorize(connection, key)
        except ChannelAccessDeniedError as e:
            self._probe.channel_join_denied(connection.id, str(key), str(e))
            raise
        if connection.is_closed or connection.id not in self._connections:
            raise ChannelAccessDeniedError("Connection is closed")

        members = self._channels.setdefault(key, {})
        if connection.id in members:
            return False
        members[connection.id] = connection
        connection.channels.add(key)
        self._probe.channel_joined(connection.id, str(key))
        return True

    def leave(self, connection: Connection, key: ChannelKey) -> bool:
        """Unsubscribe a connection from a channel.

        Returns:
            True if the connection was a member
        """
        members = self._channels.get(key)
        if members is None or members.pop(connection.id, None) is None:
            return False
        if not members:
            del self._channels[key]
        connection.channels.discard(key)
        self._probe.channel_left(connection.id, str(key))
        return True

    def publish(
        self, event: OrderEvent, channel_keys: Iterable[ChannelKey] | None = None
    ) -> int:
        """Enqueue an event for every subscriber of the given channels.

        A connection subscribed to several of the channels receives the
        event once. Nothing here suspends, so two publishes reach every
        connection in the order they were made.

        Args:
            event: The order event
            channel_keys: Target channels; defaults to the event's own

        Returns:
            Number of connections the event was queued for
        """
        keys = frozenset(channel_keys) if channel_keys is not None else event.channels
        if any(key.tenant_id != event.tenant_id for key in keys):
            raise ValueError(
                "Order events may only target channels of their own tenant"
            )

        targets: dict[str, Connection] = {}
        for key in keys:
            targets.update(self._channels.get(key, {}))

        message = event.to_message()
        delivered = 0
        for connection in targets.values():
            if connection.enqueue(message):
                delivered += 1
            else:
                self._evict(connection, CloseCode.TRY_AGAIN_LATER, "Too slow")

        self._probe.event_published(
            event.type.value, event.tenant_id, len(keys), delivered
        )
        return delivered

    def notify(self, connection: Connection, event: str, data: Any) -> bool:
        """Queue a control message for one connection, behind its events."""
        if connection.enqueue({"event": event, "data": data}):
            return True
        if not connection.is_closed:
            self._evict(connection, CloseCode.TRY_AGAIN_LATER, "Too slow")
        return False

    async def disconnect(
        self,
        connection: Connection,
        code: int = CloseCode.NORMAL,
        reason: str = "",
    ) -> None:
        """Remove a connection from every channel and close it."""
        self._forget(connection)
        await connection.close(code, reason)

    async def close_all(self, code: int = CloseCode.GOING_AWAY) -> None:
        """Close every connection; used at shutdown."""
        connections = list(self._connections.values())
        for connection in connections:
            self._forget(connection)
        await asyncio.gather(
            *(connection.close(code, "Shutting down") for connection in connections),
            *self._closing,
            return_exceptions=True,
        )

    def _authorize(self, connection: Connection, key: ChannelKey) -> None:
        claims = connection.claims
        if claims.is_super_admin:
            return
        if key.tenant_id != claims.tenant_id:
            raise ChannelAccessDeniedError("Channel belongs to another tenant")
        if (
            claims.is_kitchen
            and key.scope is ChannelScope.KITCHEN
            and key.resource_id != claims.kitchen_id
        ):
            raise ChannelAccessDeniedError(
                "Kitchen accounts may only join their own kitchen"
            )

    def _forget(self, connection: Connection) -> None:
        self._connections.pop(connection.id, None)
        for key in list(connection.channels):
            self.leave(connection, key)

    def _evict(self, connection: Connection, code: int, reason: str) -> None:
        """Drop membership now and close in the background."""
        self._forget(connection)
        task = asyncio.create_task(connection.close(code, reason))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    def _handle_send_failure(self, connection: Connection, error: Exception) -> None:
        self._evict(connection, CloseCode.INTERNAL_ERROR, "Send failed")
