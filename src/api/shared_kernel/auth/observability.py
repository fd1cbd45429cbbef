"""Domain probe for access token operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to issuing and verifying access tokens.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AccessTokenProbe(Protocol):
    """Domain probe for access token operations."""

    def token_issued(self, principal_id: str, tenant_id: str | None, role: str) -> None:
        """Record that an access token was minted."""
        ...

    def token_verified(self, principal_id: str) -> None:
        """Record that a token was successfully verified."""
        ...

    def token_rejected(self, reason: str) -> None:
        """Record that token verification failed."""
        ...

    def with_context(self, context: ObservationContext) -> AccessTokenProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAccessTokenProbe:
    """Default implementation of AccessTokenProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultAccessTokenProbe:
        """Create a new probe with observation context bound."""
        return DefaultAccessTokenProbe(logger=self._logger, context=context)

    def token_issued(self, principal_id: str, tenant_id: str | None, role: str) -> None:
        """Record that an access token was minted."""
        self._logger.debug(
            "access_token_issued",
            principal_id=principal_id,
            tenant_id=tenant_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def token_verified(self, principal_id: str) -> None:
        """Record that a token was successfully verified."""
        self._logger.debug(
            "access_token_verified",
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )

    def token_rejected(self, reason: str) -> None:
        """Record that token verification failed."""
        self._logger.warning(
            "access_token_rejected",
            reason=reason,
            **self._get_context_kwargs(),
        )
