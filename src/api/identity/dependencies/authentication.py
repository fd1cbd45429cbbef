"""Authentication dependencies for identity endpoints.

Bearer tokens are verified locally by the session service; the store is
only consulted when an endpoint needs the full principal.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from identity.application.services import SessionService
from identity.application.value_objects import CurrentPrincipal
from identity.dependencies.services import get_session_service
from identity.domain.value_objects import ClientInfo
from identity.ports.exceptions import UnauthorizedError
from shared_kernel.auth import PrincipalClaims

bearer_scheme = HTTPBearer(auto_error=False)

INVALID_TOKEN_CHALLENGE = 'Bearer error="invalid_token"'


def unauthorized(message: str) -> HTTPException:
    """Build the 401 raised for every missing or rejected access token."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": INVALID_TOKEN_CHALLENGE},
    )


def get_current_claims(
    session_service: Annotated[SessionService, Depends(get_session_service)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> PrincipalClaims:
    """Verify the bearer access token of the current request.

    Raises:
        HTTPException 401: Missing, malformed, tampered or expired token
    """
    token = credentials.credentials if credentials else None
    try:
        return session_service.authenticate(token)
    except UnauthorizedError as e:
        raise unauthorized(str(e)) from e


async def get_current_principal(
    claims: Annotated[PrincipalClaims, Depends(get_current_claims)],
    session_service: Annotated[SessionService, Depends(get_session_service)],
) -> CurrentPrincipal:
    """Load the principal behind the current request.

    Raises:
        HTTPException 401: If the principal was removed or deactivated
    """
    try:
        return await session_service.current_principal(claims)
    except UnauthorizedError as e:
        raise unauthorized(str(e)) from e


def get_client_info(request: Request) -> ClientInfo:
    """User agent and remote address recorded with issued refresh tokens."""
    user_agent = request.headers.get("user-agent")
    return ClientInfo(
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=request.client.host if request.client else None,
    )
