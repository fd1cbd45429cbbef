"""Orders domain: the order snapshot relayed to realtime clients."""

from orders.domain.order import OrderSnapshot, OrderStatus

__all__ = ["OrderSnapshot", "OrderStatus"]
