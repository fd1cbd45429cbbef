"""Repository protocols (ports) for the identity bounded context.

Repository protocols define the interface for persisting and retrieving
aggregates. Implementations never commit: transaction boundaries belong
to the application services.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from identity.domain.aggregates import Principal, RefreshToken, Tenant
from identity.domain.value_objects import (
    PrincipalId,
    RefreshTokenId,
    RevocationReason,
    TenantId,
)


@runtime_checkable
class ITenantRepository(Protocol):
    """Repository for Tenant aggregate persistence."""

    async def save(self, tenant: Tenant) -> None:
        """Create or update a tenant.

        Raises:
            DuplicateTenantSlugError: If the slug is already used
        """
        ...

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Retrieve a tenant by its ID."""
        ...

    async def get_by_slug(self, slug: str) -> Tenant | None:
        """Retrieve a tenant by its (case-insensitive) slug."""
        ...


@runtime_checkable
class IPrincipalRepository(Protocol):
    """Repository for Principal aggregate persistence.

    Lookups by email are always exact on the normalized (lower-cased) form.
    """

    async def save(self, principal: Principal) -> None:
        """Create or update a principal.

        Raises:
            DuplicatePrincipalError: If (tenant, email) is already taken
        """
        ...

    async def get_by_id(self, principal_id: PrincipalId) -> Principal | None:
        """Retrieve a principal by its ID."""
        ...

    async def get_by_email(self, email: str, tenant_id: TenantId) -> Principal | None:
        """Retrieve the principal with this email inside one tenant."""
        ...

    async def list_tenant_principals_by_email(self, email: str) -> list[Principal]:
        """Every tenant-scoped principal with this email, across all tenants."""
        ...

    async def get_super_admin_by_email(self, email: str) -> Principal | None:
        """Retrieve the tenant-less super admin with this email."""
        ...

    async def record_login(self, principal_id: PrincipalId, at: datetime) -> None:
        """Set last_login_at in a single write."""
        ...

    async def set_active(self, principal_id: PrincipalId, is_active: bool) -> bool:
        """Set the active flag in a single write.

        Returns:
            False if no such principal exists
        """
        ...

    async def set_email_verified(
        self, principal_id: PrincipalId, email_verified: bool
    ) -> bool:
        """Set the email verification flag in a single write.

        Returns:
            False if no such principal exists
        """
        ...


@runtime_checkable
class IRefreshTokenRepository(Protocol):
    """Repository for refresh token records.

    Revocations are conditional single-statement updates keyed on
    ``revoked_at IS NULL`` so concurrent writers cannot both win.
    """

    async def add(self, token: RefreshToken) -> None:
        """Insert a new record."""
        ...

    async def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        """Look up a record by the digest of its secret.

        Raises:
            TransientFailureError: If the store is unreachable
        """
        ...

    async def claim_for_rotation(
        self,
        token_id: RefreshTokenId,
        successor_id: RefreshTokenId,
        at: datetime,
    ) -> bool:
        """Revoke a still-active record in favour of its successor.

        Returns:
            True if this call revoked the record, False if it had already
            been revoked by someone else
        """
        ...

    async def revoke_by_hash(
        self, token_hash: str, reason: RevocationReason, at: datetime
    ) -> bool:
        """Revoke the active record with this digest.

        Returns:
            True if a record was revoked by this call
        """
        ...

    async def revoke(
        self, token_id: RefreshTokenId, reason: RevocationReason, at: datetime
    ) -> bool:
        """Revoke an active record by id.

        Returns:
            True if a record was revoked by this call
        """
        ...

    async def revoke_lineage(
        self, lineage_id: RefreshTokenId, reason: RevocationReason, at: datetime
    ) -> int:
        """Revoke every active record of a rotation chain.

        Returns:
            Number of records revoked
        """
        ...

    async def revoke_all_for_principal(
        self, principal_id: PrincipalId, reason: RevocationReason, at: datetime
    ) -> int:
        """Revoke every active record belonging to a principal.

        Returns:
            Number of records revoked
        """
        ...

    async def delete_expired(self, before: datetime) -> int:
        """Delete records that expired before the cutoff.

        Returns:
            Number of records deleted
        """
        ...
