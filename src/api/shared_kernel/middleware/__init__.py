"""Shared middleware for cross-cutting concerns.

Exception handlers that render every HTTP error in the API's
``{"success": false, "message": ...}`` envelope.
"""

from shared_kernel.middleware.error_envelope import (
    error_body,
    register_exception_handlers,
)

__all__ = ["error_body", "register_exception_handlers"]
