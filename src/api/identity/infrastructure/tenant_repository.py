"""PostgreSQL implementation of ITenantRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from identity.domain.aggregates import Tenant
from identity.domain.value_objects import TenantId
from identity.infrastructure.models import TenantModel
from identity.infrastructure.observability import (
    DefaultTenantRepositoryProbe,
    TenantRepositoryProbe,
)
from identity.ports.exceptions import DuplicateTenantSlugError
from identity.ports.repositories import ITenantRepository


class TenantRepository(ITenantRepository):
    """Repository managing PostgreSQL storage for Tenant aggregates.

    Callers own the transaction; writes are flushed so integrity errors
    surface here rather than at commit time.
    """

    def __init__(
        self,
        session: AsyncSession,
        probe: TenantRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: AsyncSession from FastAPI dependency injection
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultTenantRepositoryProbe()

    async def save(self, tenant: Tenant) -> None:
        """Persist tenant metadata to PostgreSQL.

        Raises:
            DuplicateTenantSlugError: If the slug already belongs to another tenant
        """
        existing = await self.get_by_slug(tenant.slug)
        if existing and existing.id.value != tenant.id.value:
            self._probe.duplicate_tenant_slug(tenant.slug)
            raise DuplicateTenantSlugError(f"Tenant '{tenant.slug}' already exists")

        try:
            stmt = select(TenantModel).where(TenantModel.id == tenant.id.value)
            result = await self._session.execute(stmt)
            model = result.scalar_one_or_none()

            if model:
                model.slug = tenant.slug
                model.name = tenant.name
                model.is_active = tenant.is_active
            else:
                model = TenantModel(
                    id=tenant.id.value,
                    slug=tenant.slug,
                    name=tenant.name,
                    is_active=tenant.is_active,
                )
                self._session.add(model)

            await self._session.flush()
            self._probe.tenant_saved(tenant.id.value, tenant.slug)

        except IntegrityError as e:
            if "uq_tenants_slug" in str(e):
                self._probe.duplicate_tenant_slug(tenant.slug)
                raise DuplicateTenantSlugError(
                    f"Tenant '{tenant.slug}' already exists"
                ) from e
            raise

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Fetch a tenant by id.

        Args:
            tenant_id: The unique identifier of the tenant

        Returns:
            The Tenant aggregate, or None if not found
        """
        stmt = select(TenantModel).where(TenantModel.id == tenant_id.value)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            self._probe.tenant_not_found("id")
            return None

        self._probe.tenant_retrieved(model.id)
        return self._to_aggregate(model)

    async def get_by_slug(self, slug: str) -> Tenant | None:
        """Fetch a tenant by slug, ignoring case.

        Args:
            slug: The tenant slug supplied as a login hint

        Returns:
            The Tenant aggregate, or None if not found
        """
        stmt = select(TenantModel).where(TenantModel.slug == slug.strip().lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            self._probe.tenant_not_found("slug")
            return None

        self._probe.tenant_retrieved(model.id)
        return self._to_aggregate(model)

    def _to_aggregate(self, model: TenantModel) -> Tenant:
        return Tenant(
            id=TenantId(value=model.id),
            slug=model.slug,
            name=model.name,
            is_active=model.is_active,
        )
