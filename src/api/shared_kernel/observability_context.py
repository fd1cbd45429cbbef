"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped and domain-relevant metadata that should be
    included with all instrumentation events.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        principal_id: Identifier of the authenticated principal (if any).
        tenant_id: Multi-tenant identifier (if applicable).
        connection_id: Realtime connection identifier (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(
            request_id="req-123",
            principal_id="01HXYZ...",
            tenant_id="01HABC...",
        )
        probe = DefaultSessionServiceProbe().with_context(context)
    """

    request_id: str | None = None
    principal_id: str | None = None
    tenant_id: str | None = None
    connection_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.principal_id is not None:
            result["principal_id"] = self.principal_id
        if self.tenant_id is not None:
            result["tenant_id"] = self.tenant_id
        if self.connection_id is not None:
            result["connection_id"] = self.connection_id
        result.update(self.extra)
        return result

    def with_connection(self, connection_id: str) -> ObservationContext:
        """Create a new context with the connection id set."""
        return replace(self, connection_id=connection_id)

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return replace(self, extra={**self.extra, **kwargs})
