"""Domain aggregates for the identity context.

Aggregates are the core business objects containing state and business logic.
They enforce invariants and business rules without depending on infrastructure.
"""

from identity.domain.aggregates.principal import Principal
from identity.domain.aggregates.refresh_token import RefreshToken
from identity.domain.aggregates.tenant import Tenant

__all__ = [
    "Principal",
    "RefreshToken",
    "Tenant",
]
