"""Access token issuing and verification.

Access tokens are short-lived HS256 JWTs. Verification is purely local
(signature, expiry, issuer, audience) and never consults the credential
store, so revoking a session does not invalidate access tokens that were
already issued for it.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError
from ulid import ULID

from shared_kernel.auth.claims import PrincipalClaims, PrincipalRole

if TYPE_CHECKING:
    from shared_kernel.auth.observability import AccessTokenProbe

ACCESS_TOKEN_TYPE = "access"


class InvalidTokenError(Exception):
    """Raised when an access token fails verification."""

    pass


class ExpiredTokenError(InvalidTokenError):
    """Raised when an access token is past its expiry."""

    pass


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AccessTokenCodec:
    """Issues and verifies signed access tokens.

    A single codec instance is shared across requests; it holds no mutable
    state beyond its configuration.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        audience: str,
        probe: AccessTokenProbe,
        ttl: timedelta = timedelta(minutes=15),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize the codec.

        Args:
            secret_key: Symmetric signing key.
            issuer: Value for the ``iss`` claim.
            audience: Value for the ``aud`` claim.
            probe: Observability probe for logging events.
            ttl: Lifetime of issued tokens (default: 15 minutes).
            algorithm: JWS algorithm (default: HS256).
            clock: Source of the current time, used when issuing.
        """
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._issuer = issuer
        self._audience = audience
        self._probe = probe
        self._ttl = ttl
        self._algorithm = algorithm
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(
        self,
        principal_id: str,
        tenant_id: str | None,
        role: PrincipalRole,
        kitchen_id: str | None = None,
    ) -> tuple[str, PrincipalClaims]:
        """Mint a signed access token for a principal.

        Returns:
            Tuple of (encoded token, the claims it carries)
        """
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + self._ttl
        claims = PrincipalClaims(
            principal_id=principal_id,
            tenant_id=tenant_id,
            role=role,
            kitchen_id=kitchen_id,
            token_id=str(ULID()),
            issued_at=issued_at,
            expires_at=expires_at,
        )
        payload: dict[str, Any] = {
            "sub": principal_id,
            "tenant_id": tenant_id,
            "role": role.value,
            "kitchen_id": kitchen_id,
            "type": ACCESS_TOKEN_TYPE,
            "jti": claims.token_id,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "iss": self._issuer,
            "aud": self._audience,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        self._probe.token_issued(
            principal_id=principal_id, tenant_id=tenant_id, role=role.value
        )
        return token, claims

    def verify(self, token: str) -> PrincipalClaims:
        """Verify an access token and return its claims.

        Raises:
            ExpiredTokenError: If the token is past its expiry.
            InvalidTokenError: If the token is malformed, tampered with, or
                carries unexpected claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={
                    "verify_signature": True,
                    "verify_aud": True,
                    "verify_iss": True,
                    "verify_exp": True,
                    "verify_iat": True,
                    "require_exp": True,
                    "require_sub": True,
                },
            )
        except ExpiredSignatureError as e:
            self._probe.token_rejected(reason="Token expired")
            raise ExpiredTokenError("Token has expired") from e
        except JWTClaimsError as e:
            self._probe.token_rejected(reason=f"Claims error: {e}")
            raise InvalidTokenError(f"Invalid token claims: {e}") from e
        except JWTError as e:
            error_msg = str(e).lower()
            if "signature" in error_msg:
                self._probe.token_rejected(reason="Invalid signature")
                raise InvalidTokenError("Invalid token signature") from e
            self._probe.token_rejected(reason=f"JWT error: {e}")
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            self._probe.token_rejected(reason="Wrong token type")
            raise InvalidTokenError("Not an access token")

        try:
            role = PrincipalRole(payload["role"])
        except (KeyError, ValueError) as e:
            self._probe.token_rejected(reason="Unknown role")
            raise InvalidTokenError("Invalid role claim") from e

        tenant_id = payload.get("tenant_id")
        if role.is_tenant_scoped and not tenant_id:
            self._probe.token_rejected(reason="Missing tenant_id claim")
            raise InvalidTokenError("Missing required claim: tenant_id")

        claims = PrincipalClaims(
            principal_id=str(payload["sub"]),
            tenant_id=tenant_id,
            role=role,
            kitchen_id=payload.get("kitchen_id"),
            token_id=str(payload.get("jti", "")),
            issued_at=datetime.fromtimestamp(payload.get("iat", 0), tz=UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        )
        self._probe.token_verified(principal_id=claims.principal_id)
        return claims
