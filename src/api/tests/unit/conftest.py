"""Unit test fixtures shared across bounded contexts."""

from datetime import UTC, datetime, timedelta
from unittest.mock import create_autospec

import pytest

from shared_kernel.auth import (
    AccessTokenCodec,
    AccessTokenProbe,
    PrincipalClaims,
    PrincipalRole,
)

TEST_SECRET_KEY = "unit-test-signing-key"
TEST_ISSUER = "tea-management-system"
TEST_AUDIENCE = "tea-management-api"


@pytest.fixture
def access_token_probe():
    """Mock access token probe."""
    return create_autospec(AccessTokenProbe, instance=True)


@pytest.fixture
def access_token_codec(access_token_probe) -> AccessTokenCodec:
    """Codec signing with the unit test key."""
    return AccessTokenCodec(
        secret_key=TEST_SECRET_KEY,
        issuer=TEST_ISSUER,
        audience=TEST_AUDIENCE,
        probe=access_token_probe,
        ttl=timedelta(minutes=15),
    )


@pytest.fixture
def make_claims():
    """Build verified claims without signing a token."""

    def _make(
        role: PrincipalRole = PrincipalRole.TENANT_USER,
        tenant_id: str | None = "01J9TENANT0000000000000001",
        principal_id: str = "01J9PRINCIPAL000000000000A",
        kitchen_id: str | None = None,
    ) -> PrincipalClaims:
        now = datetime.now(UTC)
        return PrincipalClaims(
            principal_id=principal_id,
            tenant_id=tenant_id,
            role=role,
            kitchen_id=kitchen_id,
            token_id="01J9TOKEN00000000000000000",
            issued_at=now,
            expires_at=now + timedelta(minutes=15),
        )

    return _make
