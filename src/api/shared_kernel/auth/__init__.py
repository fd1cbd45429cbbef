"""Authentication shared kernel module."""

from shared_kernel.auth.access_token import (
    AccessTokenCodec,
    ExpiredTokenError,
    InvalidTokenError,
)
from shared_kernel.auth.claims import PrincipalClaims, PrincipalRole
from shared_kernel.auth.observability import (
    AccessTokenProbe,
    DefaultAccessTokenProbe,
)

__all__ = [
    "AccessTokenCodec",
    "AccessTokenProbe",
    "DefaultAccessTokenProbe",
    "ExpiredTokenError",
    "InvalidTokenError",
    "PrincipalClaims",
    "PrincipalRole",
]
