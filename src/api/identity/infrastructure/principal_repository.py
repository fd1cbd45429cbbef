"""PostgreSQL implementation of IPrincipalRepository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from identity.domain.aggregates import Principal
from identity.domain.aggregates.principal import normalize_email
from identity.domain.value_objects import PrincipalId, PrincipalRole, TenantId
from identity.infrastructure.models import PrincipalModel
from identity.infrastructure.observability import (
    DefaultPrincipalRepositoryProbe,
    PrincipalRepositoryProbe,
)
from identity.ports.exceptions import DuplicatePrincipalError
from identity.ports.repositories import IPrincipalRepository


class PrincipalRepository(IPrincipalRepository):
    """PostgreSQL-backed repository for Principal aggregates.

    Account flag changes are issued as single UPDATE statements so they
    take effect for the next refresh without a read-modify-write cycle.
    """

    def __init__(
        self, session: AsyncSession, probe: PrincipalRepositoryProbe | None = None
    ) -> None:
        """Initialize repository with database session and probe.

        Args:
            session: AsyncSession from FastAPI dependency injection
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultPrincipalRepositoryProbe()

    async def save(self, principal: Principal) -> None:
        """Create a new principal or update an existing one.

        Raises:
            DuplicatePrincipalError: If the email is already taken in the tenant
        """
        tenant_id = principal.tenant_id.value if principal.tenant_id else None
        try:
            stmt = select(PrincipalModel).where(PrincipalModel.id == principal.id.value)
            result = await self._session.execute(stmt)
            model = result.scalar_one_or_none()

            if model:
                model.email = principal.email
                model.name = principal.name
                model.role = principal.role.value
                model.password_hash = principal.password_hash
                model.is_active = principal.is_active
                model.email_verified = principal.email_verified
                model.kitchen_id = principal.kitchen_id
                model.last_login_at = principal.last_login_at
            else:
                model = PrincipalModel(
                    id=principal.id.value,
                    tenant_id=tenant_id,
                    email=principal.email,
                    name=principal.name,
                    role=principal.role.value,
                    password_hash=principal.password_hash,
                    is_active=principal.is_active,
                    email_verified=principal.email_verified,
                    kitchen_id=principal.kitchen_id,
                    last_login_at=principal.last_login_at,
                )
                self._session.add(model)

            await self._session.flush()
            self._probe.principal_saved(principal.id.value, tenant_id)

        except IntegrityError as e:
            message = str(e)
            if "uq_principals_tenant_email" in message or (
                "uq_principals_super_admin_email" in message
            ):
                self._probe.duplicate_principal(principal.email, tenant_id)
                raise DuplicatePrincipalError(
                    f"Principal '{principal.email}' already exists"
                ) from e
            raise

    async def get_by_id(self, principal_id: PrincipalId) -> Principal | None:
        """Retrieve a principal by id.

        Returns:
            The Principal aggregate, or None if not found
        """
        stmt = select(PrincipalModel).where(PrincipalModel.id == principal_id.value)
        return await self._fetch_one(stmt, lookup="id")

    async def get_by_email(self, email: str, tenant_id: TenantId) -> Principal | None:
        """Retrieve the principal with this email inside one tenant."""
        stmt = select(PrincipalModel).where(
            PrincipalModel.tenant_id == tenant_id.value,
            PrincipalModel.email == normalize_email(email),
        )
        return await self._fetch_one(stmt, lookup="tenant_email")

    async def list_tenant_principals_by_email(self, email: str) -> list[Principal]:
        """Every tenant-scoped principal with this email, ordered by tenant."""
        stmt = (
            select(PrincipalModel)
            .where(
                PrincipalModel.tenant_id.is_not(None),
                PrincipalModel.email == normalize_email(email),
            )
            .order_by(PrincipalModel.tenant_id)
        )
        result = await self._session.execute(stmt)
        return [self._to_aggregate(model) for model in result.scalars().all()]

    async def get_super_admin_by_email(self, email: str) -> Principal | None:
        """Retrieve the tenant-less super admin with this email."""
        stmt = select(PrincipalModel).where(
            PrincipalModel.tenant_id.is_(None),
            PrincipalModel.role == PrincipalRole.SUPER_ADMIN.value,
            PrincipalModel.email == normalize_email(email),
        )
        return await self._fetch_one(stmt, lookup="super_admin_email")

    async def record_login(self, principal_id: PrincipalId, at: datetime) -> None:
        stmt = (
            update(PrincipalModel)
            .where(PrincipalModel.id == principal_id.value)
            .values(last_login_at=at)
        )
        await self._session.execute(stmt)

    async def set_active(self, principal_id: PrincipalId, is_active: bool) -> bool:
        return await self._set_flag(principal_id, "is_active", is_active)

    async def set_email_verified(
        self, principal_id: PrincipalId, email_verified: bool
    ) -> bool:
        return await self._set_flag(principal_id, "email_verified", email_verified)

    async def _set_flag(
        self, principal_id: PrincipalId, flag: str, value: bool
    ) -> bool:
        stmt = (
            update(PrincipalModel)
            .where(PrincipalModel.id == principal_id.value)
            .values({flag: value})
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            self._probe.principal_not_found("id")
            return False
        self._probe.principal_flag_changed(principal_id.value, flag, value)
        return True

    async def _fetch_one(self, stmt, lookup: str) -> Principal | None:
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            self._probe.principal_not_found(lookup)
            return None
        self._probe.principal_retrieved(model.id)
        return self._to_aggregate(model)

    def _to_aggregate(self, model: PrincipalModel) -> Principal:
        return Principal(
            id=PrincipalId(value=model.id),
            tenant_id=TenantId(value=model.tenant_id) if model.tenant_id else None,
            email=model.email,
            name=model.name,
            role=PrincipalRole(model.role),
            password_hash=model.password_hash,
            is_active=model.is_active,
            email_verified=model.email_verified,
            kitchen_id=model.kitchen_id,
            last_login_at=model.last_login_at,
        )
