"""Application services for the identity bounded context."""

from identity.application.services.session_service import SessionService
from identity.application.services.token_service import TokenService

__all__ = [
    "SessionService",
    "TokenService",
]
