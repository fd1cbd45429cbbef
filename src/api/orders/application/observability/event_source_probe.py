"""Domain probe for order event publication."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class OrderEventSourceProbe(Protocol):
    """Domain probe for the order event source."""

    def order_event_raised(
        self,
        event_type: str,
        order_id: str,
        tenant_id: str,
        status: str,
        delivered: int,
    ) -> None:
        """Record that an order transition was published."""
        ...

    def order_event_refused(self, order_id: str, reason: str) -> None:
        """Record that a submitted order event was refused."""
        ...

    def with_context(self, context: ObservationContext) -> OrderEventSourceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultOrderEventSourceProbe:
    """Default implementation of OrderEventSourceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultOrderEventSourceProbe:
        """Create a new probe with observation context bound."""
        return DefaultOrderEventSourceProbe(logger=self._logger, context=context)

    def order_event_raised(
        self,
        event_type: str,
        order_id: str,
        tenant_id: str,
        status: str,
        delivered: int,
    ) -> None:
        self._logger.info(
            "order_event_raised",
            event_type=event_type,
            order_id=order_id,
            tenant_id=tenant_id,
            status=status,
            delivered=delivered,
            **self._get_context_kwargs(),
        )

    def order_event_refused(self, order_id: str, reason: str) -> None:
        self._logger.warning(
            "order_event_refused",
            order_id=order_id,
            reason=reason,
            **self._get_context_kwargs(),
        )
