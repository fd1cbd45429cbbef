"""Domain probe for session manager operations.

Captures login, logout, refresh and authentication outcomes. Reuse of a
revoked refresh token is reported as a security event.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class SessionServiceProbe(Protocol):
    """Domain probe for session manager operations."""

    def login_succeeded(
        self, principal_id: str, tenant_id: str | None, role: str
    ) -> None:
        """Record a successful login."""
        ...

    def login_failed(self, reason: str, tenant_slug: str | None = None) -> None:
        """Record a refused login. Never includes the identifier."""
        ...

    def logout_completed(self, revoked: bool) -> None:
        """Record a logout and whether it revoked anything."""
        ...

    def logout_failed(self, error: str) -> None:
        """Record a logout whose revocation could not be stored."""
        ...

    def logout_all_completed(self, principal_id: str, count: int) -> None:
        """Record that a principal signed out everywhere."""
        ...

    def refresh_succeeded(self, principal_id: str) -> None:
        """Record a successful refresh."""
        ...

    def refresh_failed(self, reason: str) -> None:
        """Record a refused refresh."""
        ...

    def refresh_token_reuse_detected(
        self, principal_id: str | None, lineage_id: str | None, revoked_count: int
    ) -> None:
        """Record a replay of a revoked refresh token (security event)."""
        ...

    def transient_failure_retry(self, operation: str, attempt: int) -> None:
        """Record that a store operation is being retried."""
        ...

    def authentication_failed(self, reason: str) -> None:
        """Record that an access token was refused."""
        ...

    def with_context(self, context: ObservationContext) -> SessionServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultSessionServiceProbe:
    """Default implementation of SessionServiceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultSessionServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultSessionServiceProbe(logger=self._logger, context=context)

    def login_succeeded(
        self, principal_id: str, tenant_id: str | None, role: str
    ) -> None:
        self._logger.info(
            "login_succeeded",
            principal_id=principal_id,
            tenant_id=tenant_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def login_failed(self, reason: str, tenant_slug: str | None = None) -> None:
        self._logger.info(
            "login_failed",
            reason=reason,
            tenant_slug=tenant_slug,
            **self._get_context_kwargs(),
        )

    def logout_completed(self, revoked: bool) -> None:
        self._logger.info(
            "logout_completed",
            revoked=revoked,
            **self._get_context_kwargs(),
        )

    def logout_failed(self, error: str) -> None:
        self._logger.error(
            "logout_revocation_failed",
            error=error,
            **self._get_context_kwargs(),
        )

    def logout_all_completed(self, principal_id: str, count: int) -> None:
        self._logger.info(
            "logout_all_completed",
            principal_id=principal_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def refresh_succeeded(self, principal_id: str) -> None:
        self._logger.info(
            "session_refreshed",
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )

    def refresh_failed(self, reason: str) -> None:
        self._logger.info(
            "session_refresh_failed",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def refresh_token_reuse_detected(
        self, principal_id: str | None, lineage_id: str | None, revoked_count: int
    ) -> None:
        self._logger.warning(
            "refresh_token_reuse_detected",
            security_event=True,
            principal_id=principal_id,
            lineage_id=lineage_id,
            revoked_count=revoked_count,
            **self._get_context_kwargs(),
        )

    def transient_failure_retry(self, operation: str, attempt: int) -> None:
        self._logger.warning(
            "credential_store_retry",
            operation=operation,
            attempt=attempt,
            **self._get_context_kwargs(),
        )

    def authentication_failed(self, reason: str) -> None:
        self._logger.info(
            "access_token_authentication_failed",
            reason=reason,
            **self._get_context_kwargs(),
        )
