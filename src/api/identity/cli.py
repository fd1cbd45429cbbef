"""Operator commands for the identity context.

Installed as console scripts:

    tearoom-create-super-admin --email admin@example.com --name "Platform Admin"
    tearoom-create-tenant --slug acme --name "Acme Ltd"
    tearoom-create-principal --tenant-slug acme --email k7@acme.test \\
        --name "Kitchen 7" --role kitchen --kitchen-id 7 --verified
    tearoom-purge-sessions --older-than-days 7

Passwords are always prompted for, never taken from the command line.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import timedelta
from getpass import getpass
from typing import Awaitable, Callable, TypeVar

from rich.console import Console

from identity.application.security import hash_password
from identity.application.services import TokenService
from identity.domain.aggregates import Principal, Tenant
from identity.domain.value_objects import PrincipalRole
from identity.infrastructure.principal_repository import PrincipalRepository
from identity.infrastructure.refresh_token_repository import RefreshTokenRepository
from identity.infrastructure.tenant_repository import TenantRepository
from identity.ports.exceptions import DuplicatePrincipalError, DuplicateTenantSlugError
from infrastructure.database.dependencies import (
    close_database_connections,
    session_scope,
)
from infrastructure.dependencies import get_access_token_codec
from infrastructure.logging import configure_logging
from infrastructure.settings import get_auth_settings, get_settings

console = Console()

T = TypeVar("T")

MIN_PASSWORD_LENGTH = 8


class CommandError(Exception):
    """Raised for operator mistakes; printed without a traceback."""

    pass


def _run(command: Callable[[], Awaitable[T]]) -> T:
    """Run one async command and dispose the engine afterwards."""
    configure_logging(get_settings().log_level)

    async def _main() -> T:
        try:
            return await command()
        finally:
            await close_database_connections()

    return asyncio.run(_main())


def _prompt_password(prompt: Callable[[str], str] = getpass) -> str:
    password = prompt("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise CommandError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if prompt("Confirm password: ") != password:
        raise CommandError("Passwords do not match")
    return password


async def _upsert_super_admin(email: str, name: str, password: str) -> bool:
    """Create the super admin, or re-activate an existing one.

    Returns:
        True if a new account was created
    """
    async with session_scope() as session:
        async with session.begin():
            principals = PrincipalRepository(session=session)
            principal = await principals.get_super_admin_by_email(email)
            created = principal is None
            if principal is None:
                principal = Principal.create(
                    email=email,
                    name=name,
                    role=PrincipalRole.SUPER_ADMIN,
                    password_hash=hash_password(password),
                    email_verified=True,
                )
            else:
                principal.is_active = True
                principal.email_verified = True
                principal.password_hash = hash_password(password)
            await principals.save(principal)
    return created


async def _create_tenant(slug: str, name: str) -> Tenant:
    tenant = Tenant.create(slug=slug, name=name)
    async with session_scope() as session:
        async with session.begin():
            await TenantRepository(session=session).save(tenant)
    return tenant


async def _create_principal(
    tenant_slug: str,
    email: str,
    name: str,
    role: PrincipalRole,
    password: str,
    kitchen_id: str | None,
    verified: bool,
) -> Principal:
    async with session_scope() as session:
        async with session.begin():
            tenant = await TenantRepository(session=session).get_by_slug(tenant_slug)
            if tenant is None:
                raise CommandError(f"Tenant '{tenant_slug}' not found")
            try:
                principal = Principal.create(
                    email=email,
                    name=name,
                    role=role,
                    password_hash=hash_password(password),
                    tenant_id=tenant.id,
                    kitchen_id=kitchen_id,
                    email_verified=verified,
                )
            except ValueError as e:
                raise CommandError(str(e)) from e
            await PrincipalRepository(session=session).save(principal)
    return principal


async def _purge_expired(older_than: timedelta) -> int:
    settings = get_auth_settings()
    async with session_scope() as session:
        service = TokenService(
            session=session,
            refresh_token_repository=RefreshTokenRepository(session=session),
            principal_repository=PrincipalRepository(session=session),
            tenant_repository=TenantRepository(session=session),
            access_token_codec=get_access_token_codec(),
            refresh_token_ttl=timedelta(days=settings.refresh_token_ttl_days),
        )
        return await service.purge_expired(older_than)


def create_super_admin(argv: list[str] | None = None) -> int:
    """Console entry point: create or re-activate a super admin."""
    parser = argparse.ArgumentParser(
        description="Create (or re-activate) a platform super admin",
    )
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--name", default="Super Administrator", help="Display name")
    args = parser.parse_args(argv)

    try:
        password = _prompt_password()
        created = _run(lambda: _upsert_super_admin(args.email, args.name, password))
    except (CommandError, DuplicatePrincipalError) as e:
        console.print(f"[red]Error:[/red] {e}", highlight=False)
        return 1

    verb = "Created" if created else "Re-activated"
    console.print(f"[green]{verb} super admin[/green] {args.email}", highlight=False)
    return 0


def create_tenant(argv: list[str] | None = None) -> int:
    """Console entry point: create a tenant."""
    parser = argparse.ArgumentParser(description="Create a tenant")
    parser.add_argument("--slug", required=True, help="Login hint, e.g. acme")
    parser.add_argument("--name", required=True, help="Company name")
    args = parser.parse_args(argv)

    try:
        tenant = _run(lambda: _create_tenant(args.slug, args.name))
    except (ValueError, DuplicateTenantSlugError) as e:
        console.print(f"[red]Error:[/red] {e}", highlight=False)
        return 1

    console.print(
        f"[green]Created tenant[/green] {tenant.slug} ({tenant.id})", highlight=False
    )
    return 0


def create_principal(argv: list[str] | None = None) -> int:
    """Console entry point: create a tenant user or kitchen account."""
    parser = argparse.ArgumentParser(description="Create a principal in a tenant")
    parser.add_argument("--tenant-slug", required=True, help="Owning tenant")
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument(
        "--role",
        required=True,
        choices=[role.value for role in PrincipalRole if role.is_tenant_scoped],
        help="Principal role",
    )
    parser.add_argument("--kitchen-id", default=None, help="Kitchen for kitchen role")
    parser.add_argument(
        "--verified",
        action="store_true",
        help="Mark the email address as already verified",
    )
    args = parser.parse_args(argv)

    try:
        password = _prompt_password()
        principal = _run(
            lambda: _create_principal(
                tenant_slug=args.tenant_slug,
                email=args.email,
                name=args.name,
                role=PrincipalRole(args.role),
                password=password,
                kitchen_id=args.kitchen_id,
                verified=args.verified,
            )
        )
    except (CommandError, DuplicatePrincipalError) as e:
        console.print(f"[red]Error:[/red] {e}", highlight=False)
        return 1

    console.print(
        f"[green]Created {principal.role.value}[/green] {principal.email} "
        f"({principal.id})",
        highlight=False,
    )
    return 0


def purge_expired_sessions(argv: list[str] | None = None) -> int:
    """Console entry point: delete long-expired refresh token records."""
    parser = argparse.ArgumentParser(
        description="Delete refresh token records that expired long ago",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--older-than-days",
        type=int,
        default=7,
        help="Keep records that expired less than this many days ago",
    )
    args = parser.parse_args(argv)
    if args.older_than_days < 0:
        parser.error("--older-than-days must not be negative")

    count = _run(lambda: _purge_expired(timedelta(days=args.older_than_days)))
    console.print(f"Purged {count} expired refresh token(s)")
    return 0


if __name__ == "__main__":
    sys.exit(purge_expired_sessions())
