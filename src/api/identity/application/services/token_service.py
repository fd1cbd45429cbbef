"""Token application service for the identity bounded context.

Issues access/refresh token pairs, rotates refresh tokens and revokes
them. Rotation is the only operation that needs a transactional
guarantee: revoking a refresh token and inserting its successor commit
together or not at all.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from identity.application.observability import (
    DefaultTokenServiceProbe,
    TokenServiceProbe,
)
from identity.application.security import (
    generate_refresh_token_secret,
    hash_refresh_token,
)
from identity.application.store_failures import store_failures_as_transient
from identity.application.value_objects import SessionResult, TokenPair
from identity.domain.aggregates import Principal, RefreshToken, Tenant
from identity.domain.value_objects import (
    ClientInfo,
    PrincipalId,
    RefreshTokenId,
    RevocationReason,
)
from identity.ports.exceptions import (
    RefreshTokenExpiredError,
    RefreshTokenInvalidError,
    RefreshTokenRevokedError,
    SessionError,
    TransientFailureError,
)
from identity.ports.repositories import (
    IPrincipalRepository,
    IRefreshTokenRepository,
    ITenantRepository,
)
from shared_kernel.auth import AccessTokenCodec, PrincipalClaims

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """Application service for token pair lifecycle.

    Access tokens are stateless; refresh tokens are opaque secrets whose
    digests are stored as RefreshToken records grouped into lineages.
    """

    def __init__(
        self,
        session: AsyncSession,
        refresh_token_repository: IRefreshTokenRepository,
        principal_repository: IPrincipalRepository,
        tenant_repository: ITenantRepository,
        access_token_codec: AccessTokenCodec,
        refresh_token_ttl: timedelta = timedelta(days=30),
        store_timeout_seconds: float = 2.0,
        require_email_verified: bool = True,
        probe: TokenServiceProbe | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize TokenService with dependencies.

        Args:
            session: Database session for transaction management
            refresh_token_repository: Repository for refresh token records
            principal_repository: Repository used to re-hydrate principals
            tenant_repository: Repository used to check tenant status
            access_token_codec: Signs and verifies access tokens
            refresh_token_ttl: Lifetime of each refresh token
            store_timeout_seconds: Timeout for store lookups on the refresh path
            require_email_verified: Whether unverified principals may refresh
            probe: Optional domain probe for observability
            clock: Source of the current time
        """
        self._session = session
        self._refresh_tokens = refresh_token_repository
        self._principals = principal_repository
        self._tenants = tenant_repository
        self._codec = access_token_codec
        self._refresh_token_ttl = refresh_token_ttl
        self._store_timeout = store_timeout_seconds
        self._require_email_verified = require_email_verified
        self._probe = probe or DefaultTokenServiceProbe()
        self._clock = clock

    def verify_access(self, access_token: str) -> PrincipalClaims:
        """Verify an access token offline.

        Raises:
            InvalidTokenError: If the token is malformed or tampered with
            ExpiredTokenError: If the token is past its expiry
        """
        return self._codec.verify(access_token)

    async def issue_pair(
        self, principal: Principal, client: ClientInfo | None = None
    ) -> TokenPair:
        """Start a new session lineage for a principal.

        Args:
            principal: The authenticated principal
            client: Optional user agent / address to record

        Returns:
            The new token pair; the refresh secret is only available here
        """
        now = self._clock()
        secret = generate_refresh_token_secret()
        record = RefreshToken.issue(
            token_hash=hash_refresh_token(secret),
            principal_id=principal.id,
            tenant_id=principal.tenant_id,
            ttl=self._refresh_token_ttl,
            client=client,
            now=now,
        )

        async with store_failures_as_transient("issue_pair"), self._session.begin():
            await self._guarded("add_refresh_token", self._refresh_tokens.add(record))

        self._probe.pair_issued(
            principal_id=principal.id.value,
            tenant_id=principal.tenant_id.value if principal.tenant_id else None,
            lineage_id=record.lineage_id.value,
        )
        return self._build_pair(principal, secret, record)

    async def rotate(
        self, refresh_token: str, client: ClientInfo | None = None
    ) -> SessionResult:
        """Exchange a refresh token for a fresh pair.

        The predecessor is revoked with a conditional update and the
        successor inserted inside one transaction. Of several concurrent
        rotations of one token exactly one commits; the others roll back
        and fail with RefreshTokenRevokedError(concurrent=True).

        Args:
            refresh_token: The refresh token secret presented by the client
            client: Optional user agent / address for the successor record

        Returns:
            SessionResult with the new pair and the re-hydrated principal

        Raises:
            RefreshTokenInvalidError: Unknown token, or the account can no
                longer sign in (the record is revoked in that case)
            RefreshTokenExpiredError: The token is past its expiry
            RefreshTokenRevokedError: The token was already revoked
            TransientFailureError: The store timed out or could not be reached
        """
        token_hash = hash_refresh_token(refresh_token)
        refused: SessionError | None = None

        try:
            async with (
                store_failures_as_transient("rotate"),
                self._session.begin(),
            ):
                record = await self._guarded(
                    "get_refresh_token", self._refresh_tokens.get_by_hash(token_hash)
                )
                if record is None:
                    raise RefreshTokenInvalidError("Refresh token not recognised")

                if record.is_revoked:
                    raise RefreshTokenRevokedError(
                        principal_id=record.principal_id.value,
                        lineage_id=record.lineage_id.value,
                        concurrent=False,
                    )

                now = self._clock()
                if record.is_expired(now):
                    raise RefreshTokenExpiredError("Refresh token has expired")

                principal, tenant = await self._load_principal(record.principal_id)
                if principal is None or not self._may_continue(principal, tenant):
                    # Revocation must commit, so leave the block normally
                    await self._guarded(
                        "revoke_refresh_token",
                        self._refresh_tokens.revoke(
                            record.id, RevocationReason.ACCOUNT_INACTIVE, now
                        ),
                    )
                    refused = RefreshTokenInvalidError(
                        "Account is no longer allowed to sign in"
                    )
                else:
                    secret = generate_refresh_token_secret()
                    successor = record.successor(
                        token_hash=hash_refresh_token(secret),
                        ttl=self._refresh_token_ttl,
                        client=client,
                        now=now,
                    )
                    # Claim before insert: the lineage may hold one active record
                    claimed = await self._guarded(
                        "claim_refresh_token",
                        self._refresh_tokens.claim_for_rotation(
                            record.id, successor.id, now
                        ),
                    )
                    if not claimed:
                        self._probe.rotation_race_lost(
                            principal_id=record.principal_id.value,
                            lineage_id=record.lineage_id.value,
                        )
                        raise RefreshTokenRevokedError(
                            principal_id=record.principal_id.value,
                            lineage_id=record.lineage_id.value,
                            concurrent=True,
                        )
                    await self._guarded(
                        "add_refresh_token", self._refresh_tokens.add(successor)
                    )

            if refused is not None:
                raise refused

        except SessionError as e:
            self._probe.rotation_failed(
                reason=type(e).__name__,
                principal_id=getattr(e, "principal_id", None),
            )
            raise

        self._probe.token_rotated(
            principal_id=principal.id.value,
            lineage_id=record.lineage_id.value,
            old_token_id=record.id.value,
            new_token_id=successor.id.value,
        )
        return SessionResult(
            tokens=self._build_pair(principal, secret, successor),
            principal=principal,
            tenant=tenant,
        )

    async def revoke(
        self,
        refresh_token: str,
        reason: RevocationReason = RevocationReason.LOGOUT,
    ) -> bool:
        """Revoke a refresh token. Idempotent; unknown tokens are a no-op.

        Returns:
            True if this call revoked an active record

        Raises:
            TransientFailureError: If the store could not be reached
        """
        now = self._clock()
        async with store_failures_as_transient("revoke"), self._session.begin():
            revoked = await self._guarded(
                "revoke_refresh_token",
                self._refresh_tokens.revoke_by_hash(
                    hash_refresh_token(refresh_token), reason, now
                ),
            )
        self._probe.token_revoked(revoked=revoked, reason=reason.value)
        return revoked

    async def revoke_lineage(
        self,
        lineage_id: str,
        reason: RevocationReason = RevocationReason.REUSE_DETECTED,
    ) -> int:
        """Revoke every active record of a rotation chain.

        Returns:
            Number of records revoked
        """
        now = self._clock()
        async with (
            store_failures_as_transient("revoke_lineage"),
            self._session.begin(),
        ):
            count = await self._guarded(
                "revoke_lineage",
                self._refresh_tokens.revoke_lineage(
                    RefreshTokenId(value=lineage_id), reason, now
                ),
            )
        self._probe.lineage_revoked(
            lineage_id=lineage_id, count=count, reason=reason.value
        )
        return count

    async def revoke_all_for_principal(
        self,
        principal_id: PrincipalId,
        reason: RevocationReason = RevocationReason.LOGOUT_ALL,
    ) -> int:
        """Revoke every active record of a principal.

        Returns:
            Number of records revoked
        """
        now = self._clock()
        async with (
            store_failures_as_transient("revoke_all_for_principal"),
            self._session.begin(),
        ):
            count = await self._guarded(
                "revoke_all_for_principal",
                self._refresh_tokens.revoke_all_for_principal(
                    principal_id, reason, now
                ),
            )
        self._probe.principal_tokens_revoked(
            principal_id=principal_id.value, count=count
        )
        return count

    async def purge_expired(self, older_than: timedelta = timedelta(0)) -> int:
        """Delete records that expired more than ``older_than`` ago.

        Returns:
            Number of records deleted
        """
        cutoff = self._clock() - older_than
        async with self._session.begin():
            count = await self._refresh_tokens.delete_expired(cutoff)
        self._probe.expired_tokens_purged(count=count)
        return count

    async def _load_principal(
        self, principal_id: PrincipalId
    ) -> tuple[Principal | None, Tenant | None]:
        principal = await self._guarded(
            "get_principal", self._principals.get_by_id(principal_id)
        )
        if principal is None or principal.tenant_id is None:
            return principal, None
        tenant = await self._guarded(
            "get_tenant", self._tenants.get_by_id(principal.tenant_id)
        )
        return principal, tenant

    def _may_continue(self, principal: Principal | None, tenant: Tenant | None) -> bool:
        if principal is None:
            return False
        if not principal.can_sign_in(self._require_email_verified):
            return False
        if principal.tenant_id is not None and (tenant is None or not tenant.is_active):
            return False
        return True

    async def _guarded(self, operation: str, lookup: Awaitable[T]) -> T:
        """Await a store call under the lookup timeout.

        Raises:
            TransientFailureError: On timeout, or when the store cannot be
                reached
        """
        try:
            async with asyncio.timeout(self._store_timeout):
                async with store_failures_as_transient(operation):
                    return await lookup
        except TimeoutError as e:
            self._probe.store_unavailable(operation=operation, error="timeout")
            raise TransientFailureError(f"{operation} timed out") from e
        except TransientFailureError as e:
            self._probe.store_unavailable(operation=operation, error=str(e))
            raise

    def _build_pair(
        self, principal: Principal, secret: str, record: RefreshToken
    ) -> TokenPair:
        access_token, claims = self._codec.issue(
            principal_id=principal.id.value,
            tenant_id=principal.tenant_id.value if principal.tenant_id else None,
            role=principal.role,
            kitchen_id=principal.kitchen_id,
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=secret,
            access_expires_at=claims.expires_at,
            refresh_expires_at=record.expires_at,
            issued_at=claims.issued_at,
        )
