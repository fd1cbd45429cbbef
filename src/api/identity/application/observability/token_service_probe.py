"""Domain probe for token service operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to refresh token issuance, rotation
and revocation. Secrets and digests are never logged; only record ids.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TokenServiceProbe(Protocol):
    """Domain probe for token service operations."""

    def pair_issued(
        self, principal_id: str, tenant_id: str | None, lineage_id: str
    ) -> None:
        """Record that a new session (lineage) started."""
        ...

    def token_rotated(
        self, principal_id: str, lineage_id: str, old_token_id: str, new_token_id: str
    ) -> None:
        """Record that a refresh token was rotated."""
        ...

    def rotation_failed(self, reason: str, principal_id: str | None = None) -> None:
        """Record that a rotation was refused."""
        ...

    def rotation_race_lost(self, principal_id: str, lineage_id: str) -> None:
        """Record that a concurrent rotation of the same token won."""
        ...

    def token_revoked(self, revoked: bool, reason: str) -> None:
        """Record the outcome of a single-token revocation."""
        ...

    def lineage_revoked(self, lineage_id: str, count: int, reason: str) -> None:
        """Record that a whole rotation chain was revoked."""
        ...

    def principal_tokens_revoked(self, principal_id: str, count: int) -> None:
        """Record that every session of a principal was revoked."""
        ...

    def store_unavailable(self, operation: str, error: str) -> None:
        """Record that a store lookup timed out or failed transiently."""
        ...

    def expired_tokens_purged(self, count: int) -> None:
        """Record that expired refresh records were deleted."""
        ...

    def with_context(self, context: ObservationContext) -> TokenServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTokenServiceProbe:
    """Default implementation of TokenServiceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTokenServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultTokenServiceProbe(logger=self._logger, context=context)

    def pair_issued(
        self, principal_id: str, tenant_id: str | None, lineage_id: str
    ) -> None:
        """Record that a new session (lineage) started."""
        self._logger.info(
            "token_pair_issued",
            principal_id=principal_id,
            tenant_id=tenant_id,
            lineage_id=lineage_id,
            **self._get_context_kwargs(),
        )

    def token_rotated(
        self, principal_id: str, lineage_id: str, old_token_id: str, new_token_id: str
    ) -> None:
        """Record that a refresh token was rotated."""
        self._logger.info(
            "refresh_token_rotated",
            principal_id=principal_id,
            lineage_id=lineage_id,
            old_token_id=old_token_id,
            new_token_id=new_token_id,
            **self._get_context_kwargs(),
        )

    def rotation_failed(self, reason: str, principal_id: str | None = None) -> None:
        """Record that a rotation was refused."""
        self._logger.info(
            "refresh_token_rotation_failed",
            reason=reason,
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )

    def rotation_race_lost(self, principal_id: str, lineage_id: str) -> None:
        """Record that a concurrent rotation of the same token won."""
        self._logger.info(
            "refresh_token_rotation_race_lost",
            principal_id=principal_id,
            lineage_id=lineage_id,
            **self._get_context_kwargs(),
        )

    def token_revoked(self, revoked: bool, reason: str) -> None:
        """Record the outcome of a single-token revocation."""
        self._logger.info(
            "refresh_token_revoked",
            revoked=revoked,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def lineage_revoked(self, lineage_id: str, count: int, reason: str) -> None:
        """Record that a whole rotation chain was revoked."""
        self._logger.info(
            "refresh_token_lineage_revoked",
            lineage_id=lineage_id,
            count=count,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def principal_tokens_revoked(self, principal_id: str, count: int) -> None:
        """Record that every session of a principal was revoked."""
        self._logger.info(
            "principal_refresh_tokens_revoked",
            principal_id=principal_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def store_unavailable(self, operation: str, error: str) -> None:
        """Record that a store lookup timed out or failed transiently."""
        self._logger.warning(
            "credential_store_unavailable",
            operation=operation,
            error=error,
            **self._get_context_kwargs(),
        )

    def expired_tokens_purged(self, count: int) -> None:
        """Record that expired refresh records were deleted."""
        self._logger.info(
            "expired_refresh_tokens_purged",
            count=count,
            **self._get_context_kwargs(),
        )
