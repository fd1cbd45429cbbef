"""RefreshToken aggregate for the identity context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from identity.domain.value_objects import (
    ClientInfo,
    PrincipalId,
    RefreshTokenId,
    RevocationReason,
    TenantId,
)


@dataclass
class RefreshToken:
    """Stored record of an issued refresh token.

    The opaque secret handed to the client is never stored; only its
    SHA-256 digest is. Records produced by successive rotations from one
    login share a lineage id, which is the id of the first record.

    Business rules:
    - A record is usable only while not revoked and not expired
    - Revocation is one-way
    - Rotation revokes the record and points replaced_by at the successor
    - At most one record per lineage is usable at any time
    """

    id: RefreshTokenId
    token_hash: str
    principal_id: PrincipalId
    tenant_id: TenantId | None
    lineage_id: RefreshTokenId
    issued_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None
    revocation_reason: RevocationReason | None = None
    replaced_by: RefreshTokenId | None = None
    user_agent: str | None = None
    ip_address: str | None = None

    @classmethod
    def issue(
        cls,
        token_hash: str,
        principal_id: PrincipalId,
        tenant_id: TenantId | None,
        ttl: timedelta,
        client: ClientInfo | None = None,
        now: datetime | None = None,
    ) -> "RefreshToken":
        """Create the first record of a new lineage (a fresh login)."""
        issued_at = now or datetime.now(UTC)
        token_id = RefreshTokenId.generate()
        client = client or ClientInfo()
        return cls(
            id=token_id,
            token_hash=token_hash,
            principal_id=principal_id,
            tenant_id=tenant_id,
            lineage_id=token_id,
            issued_at=issued_at,
            expires_at=issued_at + ttl,
            user_agent=client.user_agent,
            ip_address=client.ip_address,
        )

    def successor(
        self,
        token_hash: str,
        ttl: timedelta,
        client: ClientInfo | None = None,
        now: datetime | None = None,
    ) -> "RefreshToken":
        """Create the next record in this lineage.

        The successor's expiry is measured from the rotation time, so an
        active session slides forward by one full ttl on every refresh.
        """
        issued_at = now or datetime.now(UTC)
        client = client or ClientInfo(
            user_agent=self.user_agent, ip_address=self.ip_address
        )
        return RefreshToken(
            id=RefreshTokenId.generate(),
            token_hash=token_hash,
            principal_id=self.principal_id,
            tenant_id=self.tenant_id,
            lineage_id=self.lineage_id,
            issued_at=issued_at,
            expires_at=issued_at + ttl,
            user_agent=client.user_agent,
            ip_address=client.ip_address,
        )

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(UTC)) >= self.expires_at

    def revoke(
        self,
        reason: RevocationReason,
        replaced_by: RefreshTokenId | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Mark this record revoked.

        Returns:
            False if it was already revoked (the original revocation stands)
        """
        if self.is_revoked:
            return False
        self.revoked_at = now or datetime.now(UTC)
        self.revocation_reason = reason
        self.replaced_by = replaced_by
        return True
