"""Orders application layer."""

from orders.application.event_source import OrderEventSource

__all__ = ["OrderEventSource"]
