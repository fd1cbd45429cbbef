"""Orders presentation layer."""

from orders.presentation.routes import router

__all__ = ["router"]
