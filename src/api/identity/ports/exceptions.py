"""Domain exceptions for the identity bounded context.

These exceptions are raised by the session and token services and are
translated to HTTP responses by the presentation layer. Messages for
credential failures are deliberately generic.
"""


class SessionError(Exception):
    """Base class for every session and token failure."""

    pass


class InvalidCredentialsError(SessionError):
    """Raised when the identifier/secret pair does not authenticate.

    Covers unknown identifiers, wrong secrets and ambiguous identifiers
    alike, so callers cannot tell which part was wrong.
    """

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class AccountInactiveError(SessionError):
    """Raised when a principal (or its tenant) is deactivated or unverified.

    Only raised after the secret matched, so it never reveals whether an
    account exists.
    """

    pass


class TenantNotFoundError(SessionError):
    """Raised when the tenant hint given at login names no tenant."""

    pass


class RefreshTokenInvalidError(SessionError):
    """Raised when a refresh token is unknown or can no longer be honoured."""

    pass


class RefreshTokenExpiredError(SessionError):
    """Raised when a refresh token is past its expiry."""

    pass


class RefreshTokenRevokedError(SessionError):
    """Raised when a refresh token was already revoked.

    Attributes:
        principal_id: Owner of the revoked record, when known.
        lineage_id: Rotation chain the record belongs to, when known.
        concurrent: True when the token was still active at lookup time and
            lost a race against a concurrent rotation. Replays of an
            already-revoked token have concurrent=False.
    """

    def __init__(
        self,
        message: str = "Refresh token has been revoked",
        principal_id: str | None = None,
        lineage_id: str | None = None,
        concurrent: bool = False,
    ):
        super().__init__(message)
        self.principal_id = principal_id
        self.lineage_id = lineage_id
        self.concurrent = concurrent


class UnauthorizedError(SessionError):
    """Raised when an access token is missing, malformed, tampered or expired."""

    def __init__(self, message: str = "Not authenticated", expired: bool = False):
        super().__init__(message)
        self.expired = expired


class TransientFailureError(SessionError):
    """Raised when the credential store timed out or was unreachable.

    A transient failure is not proof that a token is invalid. It is retried
    by the caller and never triggers destructive revocation.
    """

    pass


class DuplicatePrincipalError(Exception):
    """Raised when (tenant, email) is already taken by another principal."""

    pass


class DuplicateTenantSlugError(Exception):
    """Raised when a tenant slug is already in use."""

    pass
