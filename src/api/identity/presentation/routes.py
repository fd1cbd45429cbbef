"""HTTP routes for session management.

Every failure below is turned into an HTTPException; the application's
exception handler renders it as ``{"success": false, "message": ...}``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from identity.application.services import SessionService
from identity.application.value_objects import CurrentPrincipal
from identity.dependencies.authentication import (
    get_client_info,
    get_current_claims,
    get_current_principal,
    unauthorized,
)
from identity.dependencies.services import get_session_service
from identity.domain.value_objects import ClientInfo
from identity.ports.exceptions import (
    AccountInactiveError,
    InvalidCredentialsError,
    RefreshTokenExpiredError,
    RefreshTokenInvalidError,
    RefreshTokenRevokedError,
    TenantNotFoundError,
    TransientFailureError,
)
from identity.presentation.models import (
    CurrentUserResponse,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RefreshResponse,
    SessionResponse,
    SuccessResponse,
    SuperAdminLoginRequest,
)
from shared_kernel.auth import PrincipalClaims

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)

SERVICE_UNAVAILABLE = "Authentication service temporarily unavailable"


def _unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=SERVICE_UNAVAILABLE,
        headers={"Retry-After": "1"},
    )


@router.post("/login")
async def login(
    request: LoginRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
    client: Annotated[ClientInfo, Depends(get_client_info)],
) -> SessionResponse:
    """Authenticate with email and password and start a session.

    Args:
        request: Credentials and optional tenant slug
        service: Session service
        client: User agent and address recorded with the refresh token

    Returns:
        SessionResponse with the token pair and user

    Raises:
        HTTPException: 401 for invalid credentials
        HTTPException: 403 if the account or its tenant is inactive
        HTTPException: 404 if the tenant slug is unknown
        HTTPException: 503 if the credential store is unavailable
    """
    try:
        result = await service.login(
            email=request.email,
            password=request.password,
            tenant_slug=request.tenant_slug,
            client=client,
        )
        return SessionResponse.from_result(result)

    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)
        ) from e
    except AccountInactiveError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except TenantNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Company not found"
        ) from e
    except TransientFailureError as e:
        raise _unavailable() from e


@router.post("/super-admin/login")
async def login_super_admin(
    request: SuperAdminLoginRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
    client: Annotated[ClientInfo, Depends(get_client_info)],
) -> SessionResponse:
    """Authenticate a platform super admin (no tenant).

    Raises:
        HTTPException: 401 for invalid credentials
        HTTPException: 403 if the account is inactive
        HTTPException: 503 if the credential store is unavailable
    """
    try:
        result = await service.login_super_admin(
            email=request.email, password=request.password, client=client
        )
        return SessionResponse.from_result(result)

    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)
        ) from e
    except AccountInactiveError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except TransientFailureError as e:
        raise _unavailable() from e


@router.post("/refresh")
async def refresh(
    request: RefreshRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
    client: Annotated[ClientInfo, Depends(get_client_info)],
) -> RefreshResponse:
    """Exchange a refresh token for a new pair.

    The presented token is revoked; the returned refresh token replaces it.
    Any refusal is a 401 so the client discards its stored credentials.

    Raises:
        HTTPException: 401 if the token is unknown, expired or revoked
        HTTPException: 503 if the credential store is unavailable
    """
    try:
        result = await service.refresh(request.refresh_token, client=client)
        return RefreshResponse.from_result(result)

    except (
        RefreshTokenInvalidError,
        RefreshTokenExpiredError,
        RefreshTokenRevokedError,
    ) as e:
        raise unauthorized("Invalid or expired refresh token") from e
    except TransientFailureError as e:
        raise _unavailable() from e


@router.post("/logout")
async def logout(
    request: LogoutRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> SuccessResponse:
    """Revoke a refresh token. Always succeeds."""
    await service.logout(request.refresh_token)
    return SuccessResponse(message="Logged out")


@router.post("/logout-all")
async def logout_all(
    claims: Annotated[PrincipalClaims, Depends(get_current_claims)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> SuccessResponse:
    """Revoke every refresh token of the current principal.

    Access tokens already issued stay valid until they expire.
    """
    await service.logout_all(claims.principal_id)
    return SuccessResponse(message="Logged out of all sessions")


@router.get("/me")
async def me(
    current: Annotated[CurrentPrincipal, Depends(get_current_principal)],
) -> CurrentUserResponse:
    """Return the principal behind the bearer token."""
    return CurrentUserResponse.from_current(current)
