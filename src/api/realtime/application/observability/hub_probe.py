"""Domain probe for the realtime hub.

Following Domain-Oriented Observability patterns, this probe captures the
connection lifecycle, channel membership changes and event fan-out.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class HubProbe(Protocol):
    """Domain probe for realtime hub operations."""

    def connection_rejected(self, reason: str) -> None:
        """Record that a handshake was refused."""
        ...

    def connection_opened(
        self, connection_id: str, principal_id: str, tenant_id: str | None
    ) -> None:
        """Record that a connection was accepted."""
        ...

    def connection_closed(self, connection_id: str, code: int, pending: int) -> None:
        """Record that a connection was closed, with undelivered messages."""
        ...

    def channel_joined(self, connection_id: str, channel: str) -> None:
        """Record that a connection joined a channel."""
        ...

    def channel_join_denied(
        self, connection_id: str, channel: str, reason: str
    ) -> None:
        """Record that a join was refused."""
        ...

    def channel_left(self, connection_id: str, channel: str) -> None:
        """Record that a connection left a channel."""
        ...

    def event_published(
        self, event_type: str, tenant_id: str, channel_count: int, delivered: int
    ) -> None:
        """Record that an event was fanned out."""
        ...

    def delivery_dropped(self, connection_id: str, policy: str) -> None:
        """Record that a full queue dropped or refused a message."""
        ...

    def send_failed(self, connection_id: str, error: str) -> None:
        """Record that a transport send failed."""
        ...

    def transport_close_failed(self, connection_id: str, error: str) -> None:
        """Record that closing a transport raised."""
        ...

    def with_context(self, context: ObservationContext) -> HubProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultHubProbe:
    """Default implementation of HubProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultHubProbe:
        """Create a new probe with observation context bound."""
        return DefaultHubProbe(logger=self._logger, context=context)

    def connection_rejected(self, reason: str) -> None:
        self._logger.warning(
            "realtime_connection_rejected",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def connection_opened(
        self, connection_id: str, principal_id: str, tenant_id: str | None
    ) -> None:
        self._logger.info(
            "realtime_connection_opened",
            connection_id=connection_id,
            principal_id=principal_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def connection_closed(self, connection_id: str, code: int, pending: int) -> None:
        self._logger.info(
            "realtime_connection_closed",
            connection_id=connection_id,
            code=code,
            pending=pending,
            **self._get_context_kwargs(),
        )

    def channel_joined(self, connection_id: str, channel: str) -> None:
        self._logger.debug(
            "realtime_channel_joined",
            connection_id=connection_id,
            channel=channel,
            **self._get_context_kwargs(),
        )

    def channel_join_denied(
        self, connection_id: str, channel: str, reason: str
    ) -> None:
        self._logger.warning(
            "realtime_channel_join_denied",
            connection_id=connection_id,
            channel=channel,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def channel_left(self, connection_id: str, channel: str) -> None:
        self._logger.debug(
            "realtime_channel_left",
            connection_id=connection_id,
            channel=channel,
            **self._get_context_kwargs(),
        )

    def event_published(
        self, event_type: str, tenant_id: str, channel_count: int, delivered: int
    ) -> None:
        self._logger.info(
            "realtime_event_published",
            event_type=event_type,
            tenant_id=tenant_id,
            channel_count=channel_count,
            delivered=delivered,
            **self._get_context_kwargs(),
        )

    def delivery_dropped(self, connection_id: str, policy: str) -> None:
        self._logger.warning(
            "realtime_delivery_dropped",
            connection_id=connection_id,
            policy=policy,
            **self._get_context_kwargs(),
        )

    def send_failed(self, connection_id: str, error: str) -> None:
        self._logger.warning(
            "realtime_send_failed",
            connection_id=connection_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def transport_close_failed(self, connection_id: str, error: str) -> None:
        self._logger.debug(
            "realtime_transport_close_failed",
            connection_id=connection_id,
            error=error,
            **self._get_context_kwargs(),
        )
