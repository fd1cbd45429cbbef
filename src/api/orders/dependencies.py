"""Dependency injection for the orders bounded context.

Orders authenticate callers with the shared access token codec rather than
through the identity context, which they must not import.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from infrastructure.dependencies import get_access_token_codec
from orders.application import OrderEventSource
from orders.application.observability import (
    DefaultOrderEventSourceProbe,
    OrderEventSourceProbe,
)
from realtime.application import RealtimeHub
from realtime.dependencies import get_realtime_hub
from shared_kernel.auth import AccessTokenCodec, InvalidTokenError, PrincipalClaims

bearer_scheme = HTTPBearer(auto_error=False)


def get_order_event_source_probe() -> OrderEventSourceProbe:
    """Get OrderEventSourceProbe instance."""
    return DefaultOrderEventSourceProbe()


def get_order_event_source(
    hub: Annotated[RealtimeHub, Depends(get_realtime_hub)],
    probe: Annotated[OrderEventSourceProbe, Depends(get_order_event_source_probe)],
) -> OrderEventSource:
    """Get OrderEventSource publishing through the realtime hub."""
    return OrderEventSource(publisher=hub, probe=probe)


def get_caller_claims(
    codec: Annotated[AccessTokenCodec, Depends(get_access_token_codec)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> PrincipalClaims:
    """Verify the bearer access token of the caller.

    Raises:
        HTTPException 401: Missing, malformed, tampered or expired token
    """
    challenge = {"WWW-Authenticate": 'Bearer error="invalid_token"'}
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers=challenge,
        )
    try:
        return codec.verify(credentials.credentials)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers=challenge,
        ) from e
