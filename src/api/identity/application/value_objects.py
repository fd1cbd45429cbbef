"""Application-layer value objects for the identity bounded context.

These represent the results handed from the session services to the
presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from identity.domain.aggregates import Principal, Tenant


@dataclass(frozen=True)
class TokenPair:
    """An access token and the refresh token issued alongside it.

    The refresh token is the plaintext secret; it exists only here and in
    the response sent to the client.
    """

    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime
    issued_at: datetime

    @property
    def expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int((self.access_expires_at - self.issued_at).total_seconds())


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a login or refresh."""

    tokens: TokenPair
    principal: Principal
    tenant: Tenant | None


@dataclass(frozen=True)
class CurrentPrincipal:
    """The principal behind an authenticated request, with its tenant.

    Application-layer concept: it represents the request's authentication
    context rather than a business entity.
    """

    principal: Principal
    tenant: Tenant | None
