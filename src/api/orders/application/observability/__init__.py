"""Domain-Oriented Observability for the orders context."""

from orders.application.observability.event_source_probe import (
    DefaultOrderEventSourceProbe,
    OrderEventSourceProbe,
)

__all__ = ["DefaultOrderEventSourceProbe", "OrderEventSourceProbe"]
