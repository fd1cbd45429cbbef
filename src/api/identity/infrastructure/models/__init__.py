"""SQLAlchemy ORM models for the identity bounded context.

These models map to database tables and are used by repository implementations.
"""

from identity.infrastructure.models.principal import PrincipalModel
from identity.infrastructure.models.refresh_token import RefreshTokenModel
from identity.infrastructure.models.tenant import TenantModel

__all__ = [
    "PrincipalModel",
    "RefreshTokenModel",
    "TenantModel",
]
