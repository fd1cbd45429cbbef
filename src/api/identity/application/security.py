"""Security utilities for passwords and refresh token secrets.

Passwords are hashed with bcrypt. Refresh tokens are high-entropy random
secrets, so a fast SHA-256 digest is enough to store them and lets the
store look records up by digest directly.
"""

import hashlib
import secrets
from functools import lru_cache

import bcrypt

REFRESH_TOKEN_PREFIX = "trt_"


@lru_cache(maxsize=1)
def _dummy_password_hash() -> bytes:
    """Hash checked when the principal does not exist.

    Unknown and known identifiers then take the same time to reject.
    """
    return bcrypt.hashpw(b"tearoom-dummy-password", bcrypt.gensalt())


def hash_password(password: str) -> str:
    """Hash a password using bcrypt with a generated salt.

    Args:
        password: The plaintext password

    Returns:
        The bcrypt hash as a string
    """
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a password against its hash using constant-time comparison.

    When ``password_hash`` is None a dummy hash is checked instead and the
    result is always False. Passwords bcrypt refuses to check (longer than
    72 bytes) never match, whichever branch is taken.

    Args:
        password: The plaintext password to verify
        password_hash: The stored bcrypt hash, or None for unknown principals

    Returns:
        True if the password matches the hash, False otherwise
    """
    candidate = password.encode()
    if password_hash is None:
        _checkpw(candidate, _dummy_password_hash())
        return False
    return _checkpw(candidate, password_hash.encode())


def _checkpw(candidate: bytes, hashed: bytes) -> bool:
    try:
        return bcrypt.checkpw(candidate, hashed)
    except ValueError:
        # Over-long password, or a malformed hash in the store
        return False


def generate_refresh_token_secret() -> str:
    """Generate an opaque refresh token with the trt_ prefix.

    Returns:
        A URL-safe secret carrying 48 bytes of randomness
    """
    # replace - with _ so the whole token selects as one word
    random_part = secrets.token_urlsafe(48).replace("-", "_")
    return f"{REFRESH_TOKEN_PREFIX}{random_part}"


def hash_refresh_token(secret: str) -> str:
    """Digest a refresh token secret for storage and lookup."""
    return hashlib.sha256(secret.encode()).hexdigest()
