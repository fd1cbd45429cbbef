"""Principal claims shared by every bounded context that authenticates requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class PrincipalRole(StrEnum):
    """Roles a principal can hold.

    SUPER_ADMIN is the only tenant-less role. KITCHEN principals are bound
    to exactly one kitchen within their tenant.
    """

    SUPER_ADMIN = "super_admin"
    TENANT_ADMIN = "tenant_admin"
    TENANT_USER = "tenant_user"
    KITCHEN = "kitchen"

    @property
    def is_tenant_scoped(self) -> bool:
        """Whether principals holding this role must belong to a tenant."""
        return self is not PrincipalRole.SUPER_ADMIN


@dataclass(frozen=True)
class PrincipalClaims:
    """Verified claims carried by an access token."""

    principal_id: str
    tenant_id: str | None
    role: PrincipalRole
    token_id: str
    issued_at: datetime
    expires_at: datetime
    kitchen_id: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role is PrincipalRole.SUPER_ADMIN

    @property
    def is_kitchen(self) -> bool:
        return self.role is PrincipalRole.KITCHEN
