"""Dependency injection for identity services.

Composes infrastructure resources (database sessions, the access token
codec, settings) with identity components (repositories, services).
"""

from datetime import timedelta
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from identity.application.observability import (
    DefaultSessionServiceProbe,
    DefaultTokenServiceProbe,
    SessionServiceProbe,
    TokenServiceProbe,
)
from identity.application.services import SessionService, TokenService
from identity.infrastructure.principal_repository import PrincipalRepository
from identity.infrastructure.refresh_token_repository import RefreshTokenRepository
from identity.infrastructure.tenant_repository import TenantRepository
from infrastructure.database.dependencies import get_write_session
from infrastructure.dependencies import get_access_token_codec
from infrastructure.settings import AuthSettings, get_auth_settings
from shared_kernel.auth import AccessTokenCodec


def get_token_service_probe() -> TokenServiceProbe:
    """Get TokenServiceProbe instance."""
    return DefaultTokenServiceProbe()


def get_session_service_probe() -> SessionServiceProbe:
    """Get SessionServiceProbe instance."""
    return DefaultSessionServiceProbe()


def get_tenant_repository(
    session: Annotated[AsyncSession, Depends(get_write_session)],
) -> TenantRepository:
    """Get TenantRepository instance bound to the request session."""
    return TenantRepository(session=session)


def get_principal_repository(
    session: Annotated[AsyncSession, Depends(get_write_session)],
) -> PrincipalRepository:
    """Get PrincipalRepository instance bound to the request session."""
    return PrincipalRepository(session=session)


def get_refresh_token_repository(
    session: Annotated[AsyncSession, Depends(get_write_session)],
) -> RefreshTokenRepository:
    """Get RefreshTokenRepository instance bound to the request session."""
    return RefreshTokenRepository(session=session)


def get_token_service(
    session: Annotated[AsyncSession, Depends(get_write_session)],
    refresh_tokens: Annotated[
        RefreshTokenRepository, Depends(get_refresh_token_repository)
    ],
    principals: Annotated[PrincipalRepository, Depends(get_principal_repository)],
    tenants: Annotated[TenantRepository, Depends(get_tenant_repository)],
    codec: Annotated[AccessTokenCodec, Depends(get_access_token_codec)],
    settings: Annotated[AuthSettings, Depends(get_auth_settings)],
    probe: Annotated[TokenServiceProbe, Depends(get_token_service_probe)],
) -> TokenService:
    """Get TokenService instance.

    Repositories share the request session via FastAPI dependency caching.
    """
    return TokenService(
        session=session,
        refresh_token_repository=refresh_tokens,
        principal_repository=principals,
        tenant_repository=tenants,
        access_token_codec=codec,
        refresh_token_ttl=timedelta(days=settings.refresh_token_ttl_days),
        store_timeout_seconds=settings.store_timeout_seconds,
        require_email_verified=settings.require_email_verified,
        probe=probe,
    )


def get_session_service(
    session: Annotated[AsyncSession, Depends(get_write_session)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    principals: Annotated[PrincipalRepository, Depends(get_principal_repository)],
    tenants: Annotated[TenantRepository, Depends(get_tenant_repository)],
    settings: Annotated[AuthSettings, Depends(get_auth_settings)],
    probe: Annotated[SessionServiceProbe, Depends(get_session_service_probe)],
) -> SessionService:
    """Get SessionService instance.

    Args:
        session: Database session for transaction management
        token_service: Token service sharing the same session
        principals: Principal repository
        tenants: Tenant repository
        settings: Auth settings (retry policy, verification, reuse detection)
        probe: Session service probe for observability

    Returns:
        SessionService instance
    """
    return SessionService(
        session=session,
        token_service=token_service,
        principal_repository=principals,
        tenant_repository=tenants,
        probe=probe,
        require_email_verified=settings.require_email_verified,
        reuse_detection_enabled=settings.reuse_detection_enabled,
        retry_attempts=settings.store_retry_attempts,
        retry_backoff_seconds=settings.store_retry_backoff_seconds,
    )
