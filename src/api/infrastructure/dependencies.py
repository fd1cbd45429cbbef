"""Shared infrastructure dependencies.

Provides cross-cutting resources that several bounded contexts need.
Does NOT import from bounded contexts to maintain DDD boundaries.
"""

from datetime import timedelta
from functools import lru_cache

from infrastructure.settings import get_auth_settings
from shared_kernel.auth import AccessTokenCodec, DefaultAccessTokenProbe


@lru_cache
def get_access_token_codec() -> AccessTokenCodec:
    """Get the application-scoped access token codec (singleton).

    The codec is stateless, so a single instance is shared by the session
    endpoints, the realtime handshake and the event ingestion endpoint.

    Raises:
        ValueError: If no signing key is configured.
    """
    settings = get_auth_settings()
    return AccessTokenCodec(
        secret_key=settings.secret_key.get_secret_value(),
        issuer=settings.issuer,
        audience=settings.audience,
        algorithm=settings.algorithm,
        ttl=timedelta(minutes=settings.access_token_ttl_minutes),
        probe=DefaultAccessTokenProbe(),
    )
