"""Pydantic models for session API requests and responses.

Field names are camelCase on the wire; every body is wrapped in the
``{success, data}`` envelope shared by the whole API.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from identity.application.value_objects import (
    CurrentPrincipal,
    SessionResult,
    TokenPair,
)
from identity.domain.aggregates import Principal, Tenant


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    """Request model for tenant login."""

    email: str = Field(..., description="Login email", min_length=3, max_length=320)
    password: str = Field(
        ..., description="Account password", min_length=1, max_length=1024
    )
    tenant_slug: str | None = Field(
        default=None,
        description="Tenant slug; required when the email exists in several tenants",
        max_length=100,
    )


class SuperAdminLoginRequest(CamelModel):
    """Request model for platform super admin login."""

    email: str = Field(..., description="Login email", min_length=3, max_length=320)
    password: str = Field(
        ..., description="Account password", min_length=1, max_length=1024
    )


class RefreshRequest(CamelModel):
    """Request model for exchanging a refresh token."""

    refresh_token: str = Field(..., description="Refresh token", min_length=1)


class LogoutRequest(CamelModel):
    """Request model for logout; a missing token is accepted."""

    refresh_token: str | None = Field(default=None, description="Refresh token")


class UserResponse(CamelModel):
    """Public view of a principal."""

    id: str
    email: str
    name: str
    role: str
    tenant_id: str | None = None
    tenant_name: str | None = None
    tenant_slug: str | None = None
    kitchen_id: str | None = None
    email_verified: bool

    @classmethod
    def from_domain(cls, principal: Principal, tenant: Tenant | None) -> UserResponse:
        """Convert a principal and its tenant to the API representation."""
        return cls(
            id=principal.id.value,
            email=principal.email,
            name=principal.name,
            role=principal.role.value,
            tenant_id=principal.tenant_id.value if principal.tenant_id else None,
            tenant_name=tenant.name if tenant else None,
            tenant_slug=tenant.slug if tenant else None,
            kitchen_id=principal.kitchen_id,
            email_verified=principal.email_verified,
        )


class TokenData(CamelModel):
    """A freshly issued token pair."""

    access_token: str
    refresh_token: str
    expires_in: int = Field(..., description="Access token lifetime in seconds")

    @classmethod
    def from_pair(cls, tokens: TokenPair) -> TokenData:
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_in=tokens.expires_in,
        )


class SessionData(TokenData):
    """A token pair with the signed-in user."""

    user: UserResponse


class SessionResponse(CamelModel):
    """Response model for login."""

    success: bool = True
    data: SessionData

    @classmethod
    def from_result(cls, result: SessionResult) -> SessionResponse:
        tokens = result.tokens
        return cls(
            data=SessionData(
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                expires_in=tokens.expires_in,
                user=UserResponse.from_domain(result.principal, result.tenant),
            )
        )


class RefreshResponse(CamelModel):
    """Response model for refresh."""

    success: bool = True
    data: TokenData

    @classmethod
    def from_result(cls, result: SessionResult) -> RefreshResponse:
        return cls(data=TokenData.from_pair(result.tokens))


class CurrentUserResponse(CamelModel):
    """Response model for the current user."""

    success: bool = True
    data: UserResponse

    @classmethod
    def from_current(cls, current: CurrentPrincipal) -> CurrentUserResponse:
        return cls(data=UserResponse.from_domain(current.principal, current.tenant))


class SuccessResponse(CamelModel):
    """Bare acknowledgement."""

    success: bool = True
    message: str | None = None
