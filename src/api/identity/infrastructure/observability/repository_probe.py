"""Domain probe for identity repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to tenant, principal and refresh token
persistence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantRepositoryProbe(Protocol):
    """Domain probe for tenant repository operations."""

    def tenant_saved(self, tenant_id: str, slug: str) -> None:
        """Record that a tenant was successfully saved."""
        ...

    def tenant_retrieved(self, tenant_id: str) -> None:
        """Record that a tenant was retrieved."""
        ...

    def tenant_not_found(self, lookup: str) -> None:
        """Record that a tenant lookup found nothing."""
        ...

    def duplicate_tenant_slug(self, slug: str) -> None:
        """Record that a duplicate tenant slug was detected."""
        ...

    def with_context(self, context: ObservationContext) -> TenantRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class PrincipalRepositoryProbe(Protocol):
    """Domain probe for principal repository operations."""

    def principal_saved(self, principal_id: str, tenant_id: str | None) -> None:
        """Record that a principal was successfully saved."""
        ...

    def principal_retrieved(self, principal_id: str) -> None:
        """Record that a principal was retrieved."""
        ...

    def principal_not_found(self, lookup: str) -> None:
        """Record that a principal lookup found nothing."""
        ...

    def duplicate_principal(self, email: str, tenant_id: str | None) -> None:
        """Record that a duplicate (tenant, email) pair was detected."""
        ...

    def principal_flag_changed(
        self, principal_id: str, flag: str, value: bool
    ) -> None:
        """Record that an account flag was changed."""
        ...

    def with_context(self, context: ObservationContext) -> PrincipalRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class RefreshTokenRepositoryProbe(Protocol):
    """Domain probe for refresh token repository operations."""

    def refresh_token_added(self, token_id: str, lineage_id: str) -> None:
        """Record that a refresh token record was inserted."""
        ...

    def refresh_token_not_found(self) -> None:
        """Record that no record matched a presented digest."""
        ...

    def refresh_tokens_revoked(self, scope: str, count: int, reason: str) -> None:
        """Record that records were revoked."""
        ...

    def store_unreachable(self, operation: str, error: str) -> None:
        """Record that the database could not be reached."""
        ...

    def with_context(
        self, context: ObservationContext
    ) -> RefreshTokenRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class _BaseProbe:
    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()


class DefaultTenantRepositoryProbe(_BaseProbe):
    """Default implementation of TenantRepositoryProbe using structlog."""

    def with_context(self, context: ObservationContext) -> DefaultTenantRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantRepositoryProbe(logger=self._logger, context=context)

    def tenant_saved(self, tenant_id: str, slug: str) -> None:
        self._logger.info(
            "tenant_saved",
            tenant_id=tenant_id,
            slug=slug,
            **self._get_context_kwargs(),
        )

    def tenant_retrieved(self, tenant_id: str) -> None:
        self._logger.debug(
            "tenant_retrieved",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_not_found(self, lookup: str) -> None:
        self._logger.debug(
            "tenant_not_found",
            lookup=lookup,
            **self._get_context_kwargs(),
        )

    def duplicate_tenant_slug(self, slug: str) -> None:
        self._logger.warning(
            "duplicate_tenant_slug",
            slug=slug,
            **self._get_context_kwargs(),
        )


class DefaultPrincipalRepositoryProbe(_BaseProbe):
    """Default implementation of PrincipalRepositoryProbe using structlog.

    Emails are never logged; lookups are identified by kind only.
    """

    def with_context(
        self, context: ObservationContext
    ) -> DefaultPrincipalRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultPrincipalRepositoryProbe(logger=self._logger, context=context)

    def principal_saved(self, principal_id: str, tenant_id: str | None) -> None:
        self._logger.info(
            "principal_saved",
            principal_id=principal_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def principal_retrieved(self, principal_id: str) -> None:
        self._logger.debug(
            "principal_retrieved",
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )

    def principal_not_found(self, lookup: str) -> None:
        self._logger.debug(
            "principal_not_found",
            lookup=lookup,
            **self._get_context_kwargs(),
        )

    def duplicate_principal(self, email: str, tenant_id: str | None) -> None:
        self._logger.warning(
            "duplicate_principal",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def principal_flag_changed(
        self, principal_id: str, flag: str, value: bool
    ) -> None:
        self._logger.info(
            "principal_flag_changed",
            principal_id=principal_id,
            flag=flag,
            value=value,
            **self._get_context_kwargs(),
        )


class DefaultRefreshTokenRepositoryProbe(_BaseProbe):
    """Default implementation of RefreshTokenRepositoryProbe using structlog."""

    def with_context(
        self, context: ObservationContext
    ) -> DefaultRefreshTokenRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultRefreshTokenRepositoryProbe(logger=self._logger, context=context)

    def refresh_token_added(self, token_id: str, lineage_id: str) -> None:
        self._logger.debug(
            "refresh_token_added",
            token_id=token_id,
            lineage_id=lineage_id,
            **self._get_context_kwargs(),
        )

    def refresh_token_not_found(self) -> None:
        self._logger.debug("refresh_token_not_found", **self._get_context_kwargs())

    def refresh_tokens_revoked(self, scope: str, count: int, reason: str) -> None:
        self._logger.info(
            "refresh_tokens_revoked",
            scope=scope,
            count=count,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def store_unreachable(self, operation: str, error: str) -> None:
        self._logger.error(
            "refresh_token_store_unreachable",
            operation=operation,
            error=error,
            **self._get_context_kwargs(),
        )
