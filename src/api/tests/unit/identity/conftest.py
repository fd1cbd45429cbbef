"""Fixtures for identity unit tests.

The in-memory repositories honour the same contracts as the PostgreSQL
ones: lookups hand out copies, and revocations are conditional on the
record still being active, so two rotations racing on one record cannot
both claim it.
"""

from __future__ import annotations

import asyncio
import copy
from datetime import datetime, timedelta
from unittest.mock import create_autospec

import pytest

from identity.application.observability import (
    SessionServiceProbe,
    TokenServiceProbe,
)
from identity.application.security import hash_password
from identity.application.services import SessionService, TokenService
from identity.domain.aggregates import Principal, RefreshToken, Tenant
from identity.domain.value_objects import (
    PrincipalId,
    PrincipalRole,
    RefreshTokenId,
    RevocationReason,
    TenantId,
)

PASSWORD = "steeped-oolong-42"


class FakeTransaction:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """Stands in for AsyncSession; only ``begin()`` is used by services."""

    def __init__(self):
        self.transactions = 0

    def begin(self) -> FakeTransaction:
        self.transactions += 1
        return FakeTransaction()


class InMemoryTenantRepository:
    def __init__(self):
        self.tenants: dict[str, Tenant] = {}

    async def save(self, tenant: Tenant) -> None:
        self.tenants[tenant.id.value] = copy.deepcopy(tenant)

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        tenant = self.tenants.get(tenant_id.value)
        return copy.deepcopy(tenant) if tenant else None

    async def get_by_slug(self, slug: str) -> Tenant | None:
        for tenant in self.tenants.values():
            if tenant.slug == slug.strip().lower():
                return copy.deepcopy(tenant)
        return None


class InMemoryPrincipalRepository:
    def __init__(self):
        self.principals: dict[str, Principal] = {}

    async def save(self, principal: Principal) -> None:
        self.principals[principal.id.value] = copy.deepcopy(principal)

    async def get_by_id(self, principal_id: PrincipalId) -> Principal | None:
        principal = self.principals.get(principal_id.value)
        return copy.deepcopy(principal) if principal else None

    async def get_by_email(self, email: str, tenant_id: TenantId) -> Principal | None:
        for principal in self.principals.values():
            if principal.email == email and principal.tenant_id == tenant_id:
                return copy.deepcopy(principal)
        return None

    async def list_tenant_principals_by_email(self, email: str) -> list[Principal]:
        return [
            copy.deepcopy(p)
            for p in self.principals.values()
            if p.email == email and p.tenant_id is not None
        ]

    async def get_super_admin_by_email(self, email: str) -> Principal | None:
        for principal in self.principals.values():
            if principal.email == email and principal.is_super_admin:
                return copy.deepcopy(principal)
        return None

    async def record_login(self, principal_id: PrincipalId, at: datetime) -> None:
        self.principals[principal_id.value].last_login_at = at

    async def set_active(self, principal_id: PrincipalId, is_active: bool) -> bool:
        if principal_id.value not in self.principals:
            return False
        self.principals[principal_id.value].is_active = is_active
        return True

    async def set_email_verified(
        self, principal_id: PrincipalId, email_verified: bool
    ) -> bool:
        if principal_id.value not in self.principals:
            return False
        self.principals[principal_id.value].email_verified = email_verified
        return True


class InMemoryRefreshTokenRepository:
    def __init__(self):
        self.records: dict[str, RefreshToken] = {}

    async def add(self, token: RefreshToken) -> None:
        self.records[token.id.value] = copy.deepcopy(token)

    async def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        found = None
        for record in self.records.values():
            if record.token_hash == token_hash:
                found = copy.deepcopy(record)
        # Yield so concurrent callers interleave between lookup and claim
        await asyncio.sleep(0)
        return found

    async def claim_for_rotation(
        self, token_id: RefreshTokenId, successor_id: RefreshTokenId, at: datetime
    ) -> bool:
        record = self.records[token_id.value]
        return record.revoke(RevocationReason.ROTATED, replaced_by=successor_id, now=at)

    async def revoke_by_hash(
        self, token_hash: str, reason: RevocationReason, at: datetime
    ) -> bool:
        return (
            self._revoke_matching(lambda r: r.token_hash == token_hash, reason, at) > 0
        )

    async def revoke(
        self, token_id: RefreshTokenId, reason: RevocationReason, at: datetime
    ) -> bool:
        return self._revoke_matching(lambda r: r.id == token_id, reason, at) > 0

    async def revoke_lineage(
        self, lineage_id: RefreshTokenId, reason: RevocationReason, at: datetime
    ) -> int:
        return self._revoke_matching(lambda r: r.lineage_id == lineage_id, reason, at)

    async def revoke_all_for_principal(
        self, principal_id: PrincipalId, reason: RevocationReason, at: datetime
    ) -> int:
        return self._revoke_matching(
            lambda r: r.principal_id == principal_id, reason, at
        )

    async def delete_expired(self, before: datetime) -> int:
        expired = [k for k, r in self.records.items() if r.expires_at < before]
        for key in expired:
            del self.records[key]
        return len(expired)

    def active_in_lineage(self, lineage_id: RefreshTokenId) -> list[RefreshToken]:
        return [
            r
            for r in self.records.values()
            if r.lineage_id == lineage_id and not r.is_revoked
        ]

    def _revoke_matching(self, predicate, reason: RevocationReason, at) -> int:
        return sum(
            1
            for record in self.records.values()
            if predicate(record) and record.revoke(reason, now=at)
        )


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt hash of PASSWORD, computed once."""
    return hash_password(PASSWORD)


@pytest.fixture
def db_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def tenant_repo() -> InMemoryTenantRepository:
    return InMemoryTenantRepository()


@pytest.fixture
def principal_repo() -> InMemoryPrincipalRepository:
    return InMemoryPrincipalRepository()


@pytest.fixture
def refresh_token_repo() -> InMemoryRefreshTokenRepository:
    return InMemoryRefreshTokenRepository()


@pytest.fixture
def token_service_probe():
    return create_autospec(TokenServiceProbe, instance=True)


@pytest.fixture
def session_service_probe():
    return create_autospec(SessionServiceProbe, instance=True)


@pytest.fixture
def token_service(
    db_session,
    refresh_token_repo,
    principal_repo,
    tenant_repo,
    access_token_codec,
    token_service_probe,
) -> TokenService:
    return TokenService(
        session=db_session,
        refresh_token_repository=refresh_token_repo,
        principal_repository=principal_repo,
        tenant_repository=tenant_repo,
        access_token_codec=access_token_codec,
        refresh_token_ttl=timedelta(days=30),
        store_timeout_seconds=1.0,
        probe=token_service_probe,
    )


@pytest.fixture
def session_service(
    db_session, token_service, principal_repo, tenant_repo, session_service_probe
) -> SessionService:
    return SessionService(
        session=db_session,
        token_service=token_service,
        principal_repository=principal_repo,
        tenant_repository=tenant_repo,
        probe=session_service_probe,
        retry_attempts=3,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def make_tenant(tenant_repo):
    """Create and store an active tenant."""

    async def _make(slug: str = "kitchen-7", name: str = "Kitchen Seven") -> Tenant:
        tenant = Tenant.create(slug=slug, name=name)
        await tenant_repo.save(tenant)
        return tenant

    return _make


@pytest.fixture
def make_principal(principal_repo, password_hash):
    """Create and store a verified principal whose password is PASSWORD."""

    async def _make(
        tenant: Tenant | None,
        email: str = "manager@kitchen7.example",
        role: PrincipalRole = PrincipalRole.TENANT_ADMIN,
        kitchen_id: str | None = None,
        email_verified: bool = True,
    ) -> Principal:
        principal = Principal.create(
            email=email,
            name="Test Principal",
            role=role,
            password_hash=password_hash,
            tenant_id=tenant.id if tenant else None,
            kitchen_id=kitchen_id,
            email_verified=email_verified,
        )
        await principal_repo.save(principal)
        return principal

    return _make
