"""Ports (interfaces) for the identity bounded context.

Ports define the contracts for repositories and domain errors without
specifying implementation details. This allows for dependency inversion
and makes the domain layer independent of infrastructure.
"""

from identity.ports.exceptions import (
    AccountInactiveError,
    InvalidCredentialsError,
    RefreshTokenExpiredError,
    RefreshTokenInvalidError,
    RefreshTokenRevokedError,
    SessionError,
    TenantNotFoundError,
    TransientFailureError,
    UnauthorizedError,
)
from identity.ports.repositories import (
    IPrincipalRepository,
    IRefreshTokenRepository,
    ITenantRepository,
)

__all__ = [
    "AccountInactiveError",
    "IPrincipalRepository",
    "IRefreshTokenRepository",
    "ITenantRepository",
    "InvalidCredentialsError",
    "RefreshTokenExpiredError",
    "RefreshTokenInvalidError",
    "RefreshTokenRevokedError",
    "SessionError",
    "TenantNotFoundError",
    "TransientFailureError",
    "UnauthorizedError",
]
