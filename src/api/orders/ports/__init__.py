"""Ports for the orders bounded context."""

from orders.ports.publisher import OrderEventPublisher

__all__ = ["OrderEventPublisher"]
