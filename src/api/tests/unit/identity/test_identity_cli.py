"""Unit tests for the identity operator commands."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from identity import cli
from identity.domain.aggregates import Principal, Tenant
from identity.domain.value_objects import PrincipalRole
from identity.ports.exceptions import DuplicateTenantSlugError


@pytest.fixture
def run_inline(monkeypatch):
    """Run commands without configuring logging or touching the engine."""
    monkeypatch.setattr(cli, "_run", lambda command: asyncio.run(command()))


@pytest.fixture
def fixed_password(monkeypatch):
    monkeypatch.setattr(cli, "_prompt_password", lambda: "long-enough-secret")


class TestPromptPassword:
    def test_returns_confirmed_password(self):
        answers = iter(["long-enough-secret", "long-enough-secret"])

        assert cli._prompt_password(lambda _: next(answers)) == "long-enough-secret"

    def test_rejects_short_password(self):
        with pytest.raises(cli.CommandError, match="at least"):
            cli._prompt_password(lambda _: "short")

    def test_rejects_mismatch(self):
        answers = iter(["long-enough-secret", "something-else"])

        with pytest.raises(cli.CommandError, match="do not match"):
            cli._prompt_password(lambda _: next(answers))


class TestCreateSuperAdmin:
    def test_creates(self, monkeypatch, run_inline, fixed_password, capsys):
        upsert = AsyncMock(return_value=True)
        monkeypatch.setattr(cli, "_upsert_super_admin", upsert)

        code = cli.create_super_admin(["--email", "root@platform.example"])

        assert code == 0
        upsert.assert_awaited_once_with(
            "root@platform.example", "Super Administrator", "long-enough-secret"
        )
        assert "Created super admin" in capsys.readouterr().out

    def test_reactivates(self, monkeypatch, run_inline, fixed_password, capsys):
        monkeypatch.setattr(cli, "_upsert_super_admin", AsyncMock(return_value=False))

        assert cli.create_super_admin(["--email", "root@platform.example"]) == 0
        assert "Re-activated" in capsys.readouterr().out

    def test_bad_password_exits_nonzero(self, monkeypatch, run_inline):
        def refuse():
            raise cli.CommandError("Passwords do not match")

        monkeypatch.setattr(cli, "_prompt_password", refuse)

        assert cli.create_super_admin(["--email", "root@platform.example"]) == 1


class TestCreateTenant:
    def test_creates(self, monkeypatch, run_inline, capsys):
        tenant = Tenant.create(slug="kitchen-7", name="Kitchen Seven")
        create = AsyncMock(return_value=tenant)
        monkeypatch.setattr(cli, "_create_tenant", create)

        code = cli.create_tenant(["--slug", "kitchen-7", "--name", "Kitchen Seven"])

        assert code == 0
        create.assert_awaited_once_with("kitchen-7", "Kitchen Seven")
        assert tenant.id.value in capsys.readouterr().out

    def test_duplicate_slug(self, monkeypatch, run_inline, capsys):
        monkeypatch.setattr(
            cli,
            "_create_tenant",
            AsyncMock(side_effect=DuplicateTenantSlugError("taken")),
        )

        assert cli.create_tenant(["--slug", "kitchen-7", "--name", "K7"]) == 1
        assert "taken" in capsys.readouterr().out


class TestCreatePrincipal:
    def test_creates_kitchen(self, monkeypatch, run_inline, fixed_password):
        tenant = Tenant.create(slug="kitchen-7", name="Kitchen Seven")
        principal = Principal.create(
            email="k1@kitchen7.example",
            name="Kitchen One",
            role=PrincipalRole.KITCHEN,
            password_hash="hash",
            tenant_id=tenant.id,
            kitchen_id="K1",
        )
        create = AsyncMock(return_value=principal)
        monkeypatch.setattr(cli, "_create_principal", create)

        code = cli.create_principal(
            [
                "--tenant-slug",
                "kitchen-7",
                "--email",
                "k1@kitchen7.example",
                "--name",
                "Kitchen One",
                "--role",
                "kitchen",
                "--kitchen-id",
                "K1",
                "--verified",
            ]
        )

        assert code == 0
        kwargs = create.await_args.kwargs
        assert kwargs["role"] is PrincipalRole.KITCHEN
        assert kwargs["kitchen_id"] == "K1"
        assert kwargs["verified"] is True

    def test_super_admin_role_not_offered(self, run_inline, fixed_password):
        with pytest.raises(SystemExit):
            cli.create_principal(
                [
                    "--tenant-slug",
                    "kitchen-7",
                    "--email",
                    "x@kitchen7.example",
                    "--name",
                    "X",
                    "--role",
                    "super_admin",
                ]
            )

    def test_unknown_tenant(self, monkeypatch, run_inline, fixed_password):
        monkeypatch.setattr(
            cli,
            "_create_principal",
            AsyncMock(side_effect=cli.CommandError("Tenant 'nope' not found")),
        )

        code = cli.create_principal(
            [
                "--tenant-slug",
                "nope",
                "--email",
                "x@nope.example",
                "--name",
                "X",
                "--role",
                "tenant_user",
            ]
        )

        assert code == 1


class TestPurgeExpiredSessions:
    def test_default_retention(self, monkeypatch, run_inline, capsys):
        purge = AsyncMock(return_value=3)
        monkeypatch.setattr(cli, "_purge_expired", purge)

        assert cli.purge_expired_sessions([]) == 0
        purge.assert_awaited_once_with(timedelta(days=7))
        assert "Purged 3" in capsys.readouterr().out

    def test_negative_retention_rejected(self, run_inline):
        with pytest.raises(SystemExit):
            cli.purge_expired_sessions(["--older-than-days", "-1"])
