"""Domain-Oriented Observability for identity infrastructure.

Probes for repository operations following Domain-Oriented Observability patterns.
"""

from identity.infrastructure.observability.repository_probe import (
    DefaultPrincipalRepositoryProbe,
    DefaultRefreshTokenRepositoryProbe,
    DefaultTenantRepositoryProbe,
    PrincipalRepositoryProbe,
    RefreshTokenRepositoryProbe,
    TenantRepositoryProbe,
)

__all__ = [
    "TenantRepositoryProbe",
    "DefaultTenantRepositoryProbe",
    "PrincipalRepositoryProbe",
    "DefaultPrincipalRepositoryProbe",
    "RefreshTokenRepositoryProbe",
    "DefaultRefreshTokenRepositoryProbe",
]
