"""Value objects for the identity domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ulid import ULID

from shared_kernel.auth import PrincipalRole

__all__ = [
    "ClientInfo",
    "PrincipalId",
    "PrincipalRole",
    "RefreshTokenId",
    "RevocationReason",
    "TenantId",
]


@dataclass(frozen=True)
class TenantId:
    """Identifier for a Tenant aggregate.

    Uses ULID for sortability and distribution-friendly generation.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> TenantId:
        """Generate a new TenantId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> TenantId:
        """Create TenantId from string value.

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid TenantId: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class PrincipalId:
    """Identifier for a Principal aggregate."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> PrincipalId:
        """Generate a new PrincipalId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> PrincipalId:
        """Create PrincipalId from string value.

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid PrincipalId: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class RefreshTokenId:
    """Identifier for a RefreshToken record.

    The first record of a rotation chain also names the lineage.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> RefreshTokenId:
        """Generate a new RefreshTokenId using ULID."""
        return cls(value=str(ULID()))


class RevocationReason(StrEnum):
    """Why a refresh token stopped being usable."""

    ROTATED = "rotated"
    LOGOUT = "logout"
    LOGOUT_ALL = "logout_all"
    REUSE_DETECTED = "reuse_detected"
    ACCOUNT_INACTIVE = "account_inactive"


@dataclass(frozen=True)
class ClientInfo:
    """Request metadata recorded alongside a refresh token."""

    user_agent: str | None = None
    ip_address: str | None = None
