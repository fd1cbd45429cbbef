"""Session manager application service for the identity bounded context.

Orchestrates login, logout, refresh and access-token authentication on
top of the token service. Credential failures are reported generically
so callers cannot tell whether the identifier or the secret was wrong.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from identity.application.observability import (
    DefaultSessionServiceProbe,
    SessionServiceProbe,
)
from identity.application.security import verify_password
from identity.application.services.token_service import TokenService
from identity.application.store_failures import store_failures_as_transient
from identity.application.value_objects import CurrentPrincipal, SessionResult
from identity.domain.aggregates import Principal, Tenant
from identity.domain.aggregates.principal import normalize_email
from identity.domain.value_objects import ClientInfo, PrincipalId, RevocationReason
from identity.ports.exceptions import (
    AccountInactiveError,
    InvalidCredentialsError,
    RefreshTokenRevokedError,
    SessionError,
    TenantNotFoundError,
    TransientFailureError,
    UnauthorizedError,
)
from identity.ports.repositories import IPrincipalRepository, ITenantRepository
from shared_kernel.auth import ExpiredTokenError, InvalidTokenError, PrincipalClaims

T = TypeVar("T")


class SessionService:
    """Application service implementing the session state machine.

    Anonymous -> Authenticated(pair A) -> Authenticated(pair B) -> Revoked.
    Revoked is terminal; only a fresh login starts a new session.
    """

    def __init__(
        self,
        session: AsyncSession,
        token_service: TokenService,
        principal_repository: IPrincipalRepository,
        tenant_repository: ITenantRepository,
        probe: SessionServiceProbe | None = None,
        require_email_verified: bool = True,
        reuse_detection_enabled: bool = True,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 0.05,
    ):
        """Initialize SessionService with dependencies.

        Args:
            session: Database session for transaction management
            token_service: Issues, rotates and revokes token pairs
            principal_repository: Repository for principal lookups
            tenant_repository: Repository for tenant lookups
            probe: Optional domain probe for observability
            require_email_verified: Reject principals with unverified email
            reuse_detection_enabled: Revoke the lineage when a revoked refresh
                token is replayed
            retry_attempts: Attempts for operations failing transiently
            retry_backoff_seconds: Base delay between attempts (doubles each time)
        """
        self._session = session
        self._token_service = token_service
        self._principals = principal_repository
        self._tenants = tenant_repository
        self._probe = probe or DefaultSessionServiceProbe()
        self._require_email_verified = require_email_verified
        self._reuse_detection_enabled = reuse_detection_enabled
        self._retry_attempts = max(1, retry_attempts)
        self._retry_backoff = retry_backoff_seconds

    async def login(
        self,
        email: str,
        password: str,
        tenant_slug: str | None = None,
        client: ClientInfo | None = None,
    ) -> SessionResult:
        """Authenticate a tenant principal and start a session.

        With a tenant slug the principal is looked up in that tenant only.
        Without one the email must identify exactly one tenant principal.

        Args:
            email: Login identifier
            password: Plaintext secret
            tenant_slug: Optional tenant hint
            client: Optional user agent / address to record

        Returns:
            SessionResult with the new token pair

        Raises:
            TenantNotFoundError: The tenant slug names no tenant
            InvalidCredentialsError: Unknown identifier, wrong secret, or an
                identifier that matches principals in several tenants
            AccountInactiveError: Principal or tenant is inactive, or the
                email is unverified
        """
        try:
            principal, tenant = await self._resolve_tenant_principal(
                normalize_email(email), tenant_slug
            )
            return await self._complete_login(principal, tenant, password, client)
        except SessionError as e:
            self._probe.login_failed(reason=type(e).__name__, tenant_slug=tenant_slug)
            raise

    async def login_super_admin(
        self,
        email: str,
        password: str,
        client: ClientInfo | None = None,
    ) -> SessionResult:
        """Authenticate a tenant-less super admin and start a session.

        Raises:
            InvalidCredentialsError: Unknown identifier or wrong secret
            AccountInactiveError: The account is inactive or unverified
        """
        try:
            async with (
                store_failures_as_transient("login_super_admin"),
                self._session.begin(),
            ):
                principal = await self._principals.get_super_admin_by_email(
                    normalize_email(email)
                )
            return await self._complete_login(principal, None, password, client)
        except SessionError as e:
            self._probe.login_failed(reason=type(e).__name__)
            raise

    async def logout(self, refresh_token: str | None) -> None:
        """Revoke a refresh token. Always succeeds.

        Unknown, expired and already-revoked tokens are accepted silently so
        the response reveals nothing about token validity. A store that stays
        unreachable after the retries is logged, not raised.
        """
        if not refresh_token:
            self._probe.logout_completed(revoked=False)
            return

        try:
            revoked = await self._with_retry(
                "logout",
                lambda: self._token_service.revoke(
                    refresh_token, RevocationReason.LOGOUT
                ),
            )
        except TransientFailureError as e:
            self._probe.logout_failed(error=str(e))
            return

        self._probe.logout_completed(revoked=revoked)

    async def logout_all(self, principal_id: str) -> int:
        """Revoke every active refresh token of a principal.

        Returns:
            Number of sessions ended
        """
        count = await self._token_service.revoke_all_for_principal(
            PrincipalId(value=principal_id)
        )
        self._probe.logout_all_completed(principal_id=principal_id, count=count)
        return count

    async def refresh(
        self, refresh_token: str, client: ClientInfo | None = None
    ) -> SessionResult:
        """Rotate a refresh token into a fresh pair.

        Transient store failures are retried. Replaying a token that was
        already revoked (as opposed to losing a concurrent rotation race)
        revokes the token's whole lineage when reuse detection is enabled,
        forcing every holder of that session to log in again.

        Raises:
            RefreshTokenInvalidError: Unknown token or account now inactive
            RefreshTokenExpiredError: Token past its expiry
            RefreshTokenRevokedError: Token already revoked
            TransientFailureError: Store still unreachable after retries
        """
        try:
            result = await self._with_retry(
                "refresh", lambda: self._token_service.rotate(refresh_token, client)
            )
        except RefreshTokenRevokedError as e:
            if self._reuse_detection_enabled and not e.concurrent and e.lineage_id:
                await self._respond_to_reuse(e, e.lineage_id)
            self._probe.refresh_failed(reason=type(e).__name__)
            raise
        except SessionError as e:
            self._probe.refresh_failed(reason=type(e).__name__)
            raise

        self._probe.refresh_succeeded(principal_id=result.principal.id.value)
        return result

    def authenticate(self, access_token: str | None) -> PrincipalClaims:
        """Verify an access token for a protected endpoint.

        Purely local: the store is never consulted.

        Raises:
            UnauthorizedError: Missing, malformed, tampered or expired token
        """
        if not access_token:
            self._probe.authentication_failed(reason="missing")
            raise UnauthorizedError("Not authenticated")
        try:
            return self._token_service.verify_access(access_token)
        except ExpiredTokenError as e:
            self._probe.authentication_failed(reason="expired")
            raise UnauthorizedError("Token has expired", expired=True) from e
        except InvalidTokenError as e:
            self._probe.authentication_failed(reason="invalid")
            raise UnauthorizedError("Invalid token") from e

    async def current_principal(self, claims: PrincipalClaims) -> CurrentPrincipal:
        """Load the principal (and tenant) an access token was issued to.

        Raises:
            UnauthorizedError: The principal no longer exists or is inactive
        """
        async with self._session.begin():
            principal = await self._principals.get_by_id(
                PrincipalId(value=claims.principal_id)
            )
            tenant = None
            if principal is not None and principal.tenant_id is not None:
                tenant = await self._tenants.get_by_id(principal.tenant_id)

        if principal is None or not principal.is_active:
            self._probe.authentication_failed(reason="principal_unavailable")
            raise UnauthorizedError("Principal is no longer available")
        return CurrentPrincipal(principal=principal, tenant=tenant)

    async def _resolve_tenant_principal(
        self, email: str, tenant_slug: str | None
    ) -> tuple[Principal | None, Tenant | None]:
        async with store_failures_as_transient("login"), self._session.begin():
            if tenant_slug:
                tenant = await self._tenants.get_by_slug(tenant_slug.strip().lower())
                if tenant is None:
                    raise TenantNotFoundError(f"Tenant '{tenant_slug}' not found")
                principal = await self._principals.get_by_email(email, tenant.id)
                return principal, tenant

            candidates = await self._principals.list_tenant_principals_by_email(email)
            if len(candidates) != 1:
                # Unknown, or the same email in several tenants: needs a hint
                return None, None
            principal = candidates[0]
            if principal.tenant_id is None:
                return None, None
            tenant = await self._tenants.get_by_id(principal.tenant_id)
            return principal, tenant

    async def _complete_login(
        self,
        principal: Principal | None,
        tenant: Tenant | None,
        password: str,
        client: ClientInfo | None,
    ) -> SessionResult:
        password_hash = principal.password_hash if principal is not None else None
        verified = await asyncio.to_thread(verify_password, password, password_hash)
        if principal is None or not verified:
            raise InvalidCredentialsError()

        if not principal.is_active:
            raise AccountInactiveError("Account is deactivated")
        if self._require_email_verified and not principal.email_verified:
            raise AccountInactiveError("Email address has not been verified")
        if principal.tenant_id is not None and (tenant is None or not tenant.is_active):
            raise AccountInactiveError("Company account is deactivated")

        tokens = await self._token_service.issue_pair(principal, client)

        principal.record_login()
        async with store_failures_as_transient("record_login"), self._session.begin():
            await self._principals.record_login(
                principal.id, principal.last_login_at or datetime.now(UTC)
            )

        self._probe.login_succeeded(
            principal_id=principal.id.value,
            tenant_id=principal.tenant_id.value if principal.tenant_id else None,
            role=principal.role.value,
        )
        return SessionResult(tokens=tokens, principal=principal, tenant=tenant)

    async def _respond_to_reuse(
        self, error: RefreshTokenRevokedError, lineage_id: str
    ) -> None:
        try:
            count = await self._with_retry(
                "revoke_lineage",
                lambda: self._token_service.revoke_lineage(
                    lineage_id, RevocationReason.REUSE_DETECTED
                ),
            )
        except TransientFailureError as e:
            self._probe.logout_failed(error=str(e))
            count = 0
        self._probe.refresh_token_reuse_detected(
            principal_id=error.principal_id,
            lineage_id=lineage_id,
            revoked_count=count,
        )

    async def _with_retry(
        self, operation: str, call: Callable[[], Awaitable[T]]
    ) -> T:
        attempt = 1
        while True:
            try:
                return await call()
            except TransientFailureError:
                if attempt >= self._retry_attempts:
                    raise
                self._probe.transient_failure_retry(
                    operation=operation, attempt=attempt
                )
                await asyncio.sleep(self._retry_backoff * 2 ** (attempt - 1))
                attempt += 1
