"""Unit tests for TokenService."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.exc import InterfaceError

from identity.application.security import hash_refresh_token
from identity.domain.value_objects import PrincipalRole, RevocationReason
from identity.ports.exceptions import (
    RefreshTokenExpiredError,
    RefreshTokenInvalidError,
    RefreshTokenRevokedError,
    TransientFailureError,
)


@pytest_asyncio.fixture
async def tenant_admin(make_tenant, make_principal):
    tenant = await make_tenant()
    return await make_principal(tenant)


class TestIssuePair:
    """Tests for TokenService.issue_pair()."""

    @pytest.mark.asyncio
    async def test_access_claims_match_stored_principal(
        self, token_service, make_tenant, make_principal, access_token_codec
    ):
        """Tenant, role and kitchen in the token equal the stored principal's."""
        tenant = await make_tenant()
        kitchen = await make_principal(
            tenant,
            email="k1@kitchen7.example",
            role=PrincipalRole.KITCHEN,
            kitchen_id="K1",
        )

        pair = await token_service.issue_pair(kitchen)
        claims = access_token_codec.verify(pair.access_token)

        assert claims.principal_id == kitchen.id.value
        assert claims.tenant_id == tenant.id.value
        assert claims.role is PrincipalRole.KITCHEN
        assert claims.kitchen_id == "K1"
        assert pair.expires_in == 15 * 60

    @pytest.mark.asyncio
    async def test_stores_only_the_digest(
        self, token_service, tenant_admin, refresh_token_repo
    ):
        """The refresh secret itself is never persisted."""
        pair = await token_service.issue_pair(tenant_admin)

        (record,) = refresh_token_repo.records.values()
        assert record.token_hash == hash_refresh_token(pair.refresh_token)
        assert pair.refresh_token not in {record.token_hash, record.id.value}
        assert record.lineage_id == record.id

    @pytest.mark.asyncio
    async def test_each_login_starts_a_new_lineage(
        self, token_service, tenant_admin, refresh_token_repo
    ):
        await token_service.issue_pair(tenant_admin)
        await token_service.issue_pair(tenant_admin)

        lineages = {r.lineage_id for r in refresh_token_repo.records.values()}
        assert len(lineages) == 2


class TestRotate:
    """Tests for TokenService.rotate()."""

    @pytest.mark.asyncio
    async def test_rotation_revokes_predecessor(
        self, token_service, tenant_admin, refresh_token_repo
    ):
        """Rotation hands out a new secret and retires the old record."""
        pair = await token_service.issue_pair(tenant_admin)

        result = await token_service.rotate(pair.refresh_token)

        assert result.tokens.refresh_token != pair.refresh_token
        assert result.principal.id == tenant_admin.id
        old = next(
            r
            for r in refresh_token_repo.records.values()
            if r.token_hash == hash_refresh_token(pair.refresh_token)
        )
        assert old.revocation_reason is RevocationReason.ROTATED
        assert old.replaced_by is not None
        assert len(refresh_token_repo.active_in_lineage(old.lineage_id)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_rotations_have_one_winner(
        self, token_service, tenant_admin, refresh_token_repo, token_service_probe
    ):
        """Of two concurrent rotations of one token exactly one succeeds."""
        pair = await token_service.issue_pair(tenant_admin)

        outcomes = await asyncio.gather(
            token_service.rotate(pair.refresh_token),
            token_service.rotate(pair.refresh_token),
            return_exceptions=True,
        )

        errors = [o for o in outcomes if isinstance(o, Exception)]
        successes = [o for o in outcomes if not isinstance(o, Exception)]
        assert len(successes) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], RefreshTokenRevokedError)
        assert errors[0].concurrent is True
        token_service_probe.rotation_race_lost.assert_called_once()

        lineage = next(iter(refresh_token_repo.records.values())).lineage_id
        active = refresh_token_repo.active_in_lineage(lineage)
        assert [r.token_hash for r in active] == [
            hash_refresh_token(successes[0].tokens.refresh_token)
        ]

    @pytest.mark.asyncio
    async def test_replay_is_not_concurrent(self, token_service, tenant_admin):
        """Presenting an already rotated token is a plain revocation failure."""
        pair = await token_service.issue_pair(tenant_admin)
        await token_service.rotate(pair.refresh_token)

        with pytest.raises(RefreshTokenRevokedError) as exc_info:
            await token_service.rotate(pair.refresh_token)

        assert exc_info.value.concurrent is False
        assert exc_info.value.principal_id == tenant_admin.id.value

    @pytest.mark.asyncio
    async def test_unknown_token_is_invalid(self, token_service):
        with pytest.raises(RefreshTokenInvalidError):
            await token_service.rotate("trt_never_issued")

    @pytest.mark.asyncio
    async def test_expired_token_fails(
        self,
        db_session,
        refresh_token_repo,
        principal_repo,
        tenant_repo,
        access_token_codec,
        tenant_admin,
    ):
        """A refresh token past its expiry cannot be rotated."""
        from identity.application.services import TokenService

        start = datetime.now(UTC)
        clock = {"now": start}
        service = TokenService(
            session=db_session,
            refresh_token_repository=refresh_token_repo,
            principal_repository=principal_repo,
            tenant_repository=tenant_repo,
            access_token_codec=access_token_codec,
            refresh_token_ttl=timedelta(days=1),
            clock=lambda: clock["now"],
        )
        pair = await service.issue_pair(tenant_admin)

        clock["now"] = start + timedelta(days=1, seconds=1)

        with pytest.raises(RefreshTokenExpiredError):
            await service.rotate(pair.refresh_token)

    @pytest.mark.asyncio
    async def test_deactivated_principal_loses_session(
        self, token_service, tenant_admin, principal_repo, refresh_token_repo
    ):
        """Refresh re-checks the account and revokes the record when barred."""
        pair = await token_service.issue_pair(tenant_admin)
        await principal_repo.set_active(tenant_admin.id, False)

        with pytest.raises(RefreshTokenInvalidError):
            await token_service.rotate(pair.refresh_token)

        (record,) = refresh_token_repo.records.values()
        assert record.revocation_reason is RevocationReason.ACCOUNT_INACTIVE

    @pytest.mark.asyncio
    async def test_deactivated_tenant_loses_session(
        self, token_service, tenant_admin, tenant_repo
    ):
        pair = await token_service.issue_pair(tenant_admin)
        tenant = await tenant_repo.get_by_id(tenant_admin.tenant_id)
        tenant.deactivate()
        await tenant_repo.save(tenant)

        with pytest.raises(RefreshTokenInvalidError):
            await token_service.rotate(pair.refresh_token)

    @pytest.mark.asyncio
    async def test_lookup_timeout_is_transient(
        self, token_service, tenant_admin, refresh_token_repo, token_service_probe
    ):
        """A slow store surfaces as a transient failure and revokes nothing."""
        pair = await token_service.issue_pair(tenant_admin)

        async def slow_lookup(token_hash):
            await asyncio.sleep(5)

        refresh_token_repo.get_by_hash = slow_lookup
        token_service._store_timeout = 0.01

        with pytest.raises(TransientFailureError):
            await token_service.rotate(pair.refresh_token)

        token_service_probe.store_unavailable.assert_called_once_with(
            operation="get_refresh_token", error="timeout"
        )
        (record,) = refresh_token_repo.records.values()
        assert not record.is_revoked

    @pytest.mark.asyncio
    async def test_unreachable_store_is_transient(
        self, token_service, tenant_admin, refresh_token_repo
    ):
        pair = await token_service.issue_pair(tenant_admin)
        refresh_token_repo.get_by_hash = AsyncMock(
            side_effect=TransientFailureError("connection refused")
        )

        with pytest.raises(TransientFailureError):
            await token_service.rotate(pair.refresh_token)

    @pytest.mark.asyncio
    async def test_dropped_connection_during_claim_is_transient(
        self, token_service, tenant_admin, refresh_token_repo, token_service_probe
    ):
        pair = await token_service.issue_pair(tenant_admin)
        refresh_token_repo.claim_for_rotation = AsyncMock(
            side_effect=InterfaceError("UPDATE", {}, Exception("connection closed"))
        )

        with pytest.raises(TransientFailureError):
            await token_service.rotate(pair.refresh_token)

        token_service_probe.store_unavailable.assert_called_once()
        assert (
            token_service_probe.store_unavailable.call_args.kwargs["operation"]
            == "claim_refresh_token"
        )


class TestRevoke:
    """Tests for revocation operations."""

    @pytest.mark.asyncio
    async def test_revoke_is_idempotent(self, token_service, tenant_admin):
        pair = await token_service.issue_pair(tenant_admin)

        assert await token_service.revoke(pair.refresh_token) is True
        assert await token_service.revoke(pair.refresh_token) is False
        assert await token_service.revoke("trt_unknown") is False

    @pytest.mark.asyncio
    async def test_revoked_token_cannot_rotate(self, token_service, tenant_admin):
        pair = await token_service.issue_pair(tenant_admin)
        await token_service.revoke(pair.refresh_token)

        with pytest.raises(RefreshTokenRevokedError):
            await token_service.rotate(pair.refresh_token)

    @pytest.mark.asyncio
    async def test_revoke_all_for_principal(
        self, token_service, tenant_admin, refresh_token_repo
    ):
        await token_service.issue_pair(tenant_admin)
        await token_service.issue_pair(tenant_admin)

        count = await token_service.revoke_all_for_principal(tenant_admin.id)

        assert count == 2
        assert all(r.is_revoked for r in refresh_token_repo.records.values())

    @pytest.mark.asyncio
    async def test_purge_expired(
        self, token_service, tenant_admin, refresh_token_repo, token_service_probe
    ):
        await token_service.issue_pair(tenant_admin)
        (record,) = refresh_token_repo.records.values()
        record.expires_at = datetime.now(UTC) - timedelta(days=10)

        count = await token_service.purge_expired(older_than=timedelta(days=7))

        assert count == 1
        assert refresh_token_repo.records == {}
        token_service_probe.expired_tokens_purged.assert_called_once_with(count=1)
