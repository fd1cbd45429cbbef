"""Principal aggregate for the identity context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from identity.domain.value_objects import PrincipalId, PrincipalRole, TenantId


@dataclass
class Principal:
    """An authenticable identity: tenant user, kitchen, or super admin.

    Business rules:
    - Every principal belongs to exactly one tenant, except super admins,
      which belong to none
    - Kitchen principals are bound to a kitchen; no other role is
    - Emails are stored lower-cased; (tenant, email) is unique
    - The password is only ever held as a bcrypt hash
    """

    id: PrincipalId
    tenant_id: TenantId | None
    email: str
    name: str
    role: PrincipalRole
    password_hash: str
    is_active: bool = True
    email_verified: bool = False
    kitchen_id: str | None = None
    last_login_at: datetime | None = None

    def __post_init__(self) -> None:
        """Reject role/tenant combinations that cannot exist."""
        if self.role.is_tenant_scoped and self.tenant_id is None:
            raise ValueError(f"Role {self.role} requires a tenant")
        if not self.role.is_tenant_scoped and self.tenant_id is not None:
            raise ValueError("Super admins cannot belong to a tenant")
        if self.role is PrincipalRole.KITCHEN and not self.kitchen_id:
            raise ValueError("Kitchen principals require a kitchen_id")
        if self.role is not PrincipalRole.KITCHEN and self.kitchen_id is not None:
            raise ValueError("Only kitchen principals carry a kitchen_id")

    @classmethod
    def create(
        cls,
        email: str,
        name: str,
        role: PrincipalRole,
        password_hash: str,
        tenant_id: TenantId | None = None,
        kitchen_id: str | None = None,
        email_verified: bool = False,
    ) -> "Principal":
        """Factory method for creating a new principal.

        Args:
            email: Login identifier; normalized to lower case
            name: Display name
            role: The principal's role
            password_hash: bcrypt hash of the secret (never plaintext)
            tenant_id: Owning tenant, None only for super admins
            kitchen_id: Bound kitchen, required for kitchen principals
            email_verified: Whether the address has already been verified

        Returns:
            A new active Principal

        Raises:
            ValueError: If the role/tenant/kitchen combination is invalid
        """
        return cls(
            id=PrincipalId.generate(),
            tenant_id=tenant_id,
            email=normalize_email(email),
            name=name,
            role=role,
            password_hash=password_hash,
            kitchen_id=kitchen_id,
            email_verified=email_verified,
        )

    @property
    def is_super_admin(self) -> bool:
        return self.role is PrincipalRole.SUPER_ADMIN

    def can_sign_in(self, require_email_verified: bool = True) -> bool:
        """Whether account flags allow starting or extending a session."""
        if not self.is_active:
            return False
        if require_email_verified and not self.email_verified:
            return False
        return True

    def record_login(self) -> None:
        self.last_login_at = datetime.now(UTC)


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup."""
    return email.strip().lower()
