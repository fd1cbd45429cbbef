"""Identity presentation layer.

Session endpoints under ``/auth``.
"""

from identity.presentation.routes import router

__all__ = ["router"]
