"""Unit tests for password and refresh token helpers."""

from identity.application.security import (
    REFRESH_TOKEN_PREFIX,
    generate_refresh_token_secret,
    hash_password,
    hash_refresh_token,
    verify_password,
)


class TestPasswords:
    def test_round_trip(self, password_hash):
        """The stored hash verifies its own password only."""
        assert verify_password("steeped-oolong-42", password_hash)
        assert not verify_password("steeped-oolong-43", password_hash)

    def test_hash_is_salted(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_unknown_principal_never_verifies(self):
        """A missing hash is checked against a dummy and always fails."""
        assert not verify_password("anything", None)

    def test_malformed_hash_does_not_raise(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")

    def test_over_long_password_never_verifies(self, password_hash):
        """bcrypt refuses passwords over 72 bytes; both branches reject them."""
        long_password = "x" * 100

        assert not verify_password(long_password, password_hash)
        assert not verify_password(long_password, None)


class TestRefreshTokenSecrets:
    def test_secret_has_prefix_and_entropy(self):
        secret = generate_refresh_token_secret()

        assert secret.startswith(REFRESH_TOKEN_PREFIX)
        assert len(secret) > 60
        assert "-" not in secret

    def test_secrets_are_unique(self):
        assert len({generate_refresh_token_secret() for _ in range(50)}) == 50

    def test_hash_is_stable_sha256(self):
        digest = hash_refresh_token("trt_example")

        assert digest == hash_refresh_token("trt_example")
        assert len(digest) == 64
