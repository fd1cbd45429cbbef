"""PostgreSQL implementation of IRefreshTokenRepository.

Every revocation is a single conditional UPDATE guarded by
``revoked_at IS NULL``. PostgreSQL re-checks the predicate after waiting
on a concurrent writer's row lock, so of two transactions racing to
revoke the same row only one sees a non-zero rowcount.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from identity.domain.aggregates import RefreshToken
from identity.domain.value_objects import (
    PrincipalId,
    RefreshTokenId,
    RevocationReason,
    TenantId,
)
from identity.infrastructure.models import RefreshTokenModel
from identity.infrastructure.observability import (
    DefaultRefreshTokenRepositoryProbe,
    RefreshTokenRepositoryProbe,
)
from identity.ports.exceptions import TransientFailureError
from identity.ports.repositories import IRefreshTokenRepository


class RefreshTokenRepository(IRefreshTokenRepository):
    """PostgreSQL-backed repository for refresh token records."""

    def __init__(
        self,
        session: AsyncSession,
        probe: RefreshTokenRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with database session and probe.

        Args:
            session: AsyncSession from FastAPI dependency injection
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultRefreshTokenRepositoryProbe()

    async def add(self, token: RefreshToken) -> None:
        """Insert a new record and flush it."""
        model = RefreshTokenModel(
            id=token.id.value,
            token_hash=token.token_hash,
            principal_id=token.principal_id.value,
            tenant_id=token.tenant_id.value if token.tenant_id else None,
            lineage_id=token.lineage_id.value,
            issued_at=token.issued_at,
            expires_at=token.expires_at,
            revoked_at=token.revoked_at,
            revocation_reason=(
                token.revocation_reason.value if token.revocation_reason else None
            ),
            replaced_by=token.replaced_by.value if token.replaced_by else None,
            user_agent=token.user_agent,
            ip_address=token.ip_address,
        )
        self._session.add(model)
        await self._session.flush()
        self._probe.refresh_token_added(token.id.value, token.lineage_id.value)

    async def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        """Look up a record by the digest of its secret.

        Raises:
            TransientFailureError: If the connection to the database failed
        """
        stmt = select(RefreshTokenModel).where(
            RefreshTokenModel.token_hash == token_hash
        )
        try:
            result = await self._session.execute(stmt)
        except (OperationalError, InterfaceError, OSError) as e:
            self._probe.store_unreachable("get_by_hash", type(e).__name__)
            raise TransientFailureError("Refresh token store unreachable") from e
        except DBAPIError as e:
            if not e.connection_invalidated:
                raise
            self._probe.store_unreachable("get_by_hash", type(e).__name__)
            raise TransientFailureError("Refresh token store unreachable") from e

        model = result.scalar_one_or_none()
        if model is None:
            self._probe.refresh_token_not_found()
            return None
        return self._to_aggregate(model)

    async def claim_for_rotation(
        self,
        token_id: RefreshTokenId,
        successor_id: RefreshTokenId,
        at: datetime,
    ) -> bool:
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.id == token_id.value,
                RefreshTokenModel.revoked_at.is_(None),
            )
            .values(
                revoked_at=at,
                revocation_reason=RevocationReason.ROTATED.value,
                replaced_by=successor_id.value,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def revoke_by_hash(
        self, token_hash: str, reason: RevocationReason, at: datetime
    ) -> bool:
        count = await self._revoke_where(
            RefreshTokenModel.token_hash == token_hash, reason=reason, at=at
        )
        self._probe.refresh_tokens_revoked("token", count, reason.value)
        return count > 0

    async def revoke(
        self, token_id: RefreshTokenId, reason: RevocationReason, at: datetime
    ) -> bool:
        count = await self._revoke_where(
            RefreshTokenModel.id == token_id.value, reason=reason, at=at
        )
        self._probe.refresh_tokens_revoked("token", count, reason.value)
        return count > 0

    async def revoke_lineage(
        self, lineage_id: RefreshTokenId, reason: RevocationReason, at: datetime
    ) -> int:
        count = await self._revoke_where(
            RefreshTokenModel.lineage_id == lineage_id.value, reason=reason, at=at
        )
        self._probe.refresh_tokens_revoked("lineage", count, reason.value)
        return count

    async def revoke_all_for_principal(
        self, principal_id: PrincipalId, reason: RevocationReason, at: datetime
    ) -> int:
        count = await self._revoke_where(
            RefreshTokenModel.principal_id == principal_id.value, reason=reason, at=at
        )
        self._probe.refresh_tokens_revoked("principal", count, reason.value)
        return count

    async def delete_expired(self, before: datetime) -> int:
        stmt = delete(RefreshTokenModel).where(RefreshTokenModel.expires_at < before)
        result = await self._session.execute(stmt)
        return result.rowcount

    async def _revoke_where(
        self, criterion, reason: RevocationReason, at: datetime
    ) -> int:
        stmt = (
            update(RefreshTokenModel)
            .where(criterion, RefreshTokenModel.revoked_at.is_(None))
            .values(revoked_at=at, revocation_reason=reason.value)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    def _to_aggregate(self, model: RefreshTokenModel) -> RefreshToken:
        return RefreshToken(
            id=RefreshTokenId(value=model.id),
            token_hash=model.token_hash,
            principal_id=PrincipalId(value=model.principal_id),
            tenant_id=TenantId(value=model.tenant_id) if model.tenant_id else None,
            lineage_id=RefreshTokenId(value=model.lineage_id),
            issued_at=model.issued_at,
            expires_at=model.expires_at,
            revoked_at=model.revoked_at,
            revocation_reason=(
                RevocationReason(model.revocation_reason)
                if model.revocation_reason
                else None
            ),
            replaced_by=(
                RefreshTokenId(value=model.replaced_by) if model.replaced_by else None
            ),
            user_agent=model.user_agent,
            ip_address=model.ip_address,
        )
