"""Tenant aggregate for the identity context."""

from __future__ import annotations

from dataclasses import dataclass

from identity.domain.value_objects import TenantId


@dataclass
class Tenant:
    """Tenant aggregate representing one company using the platform.

    Business rules:
    - Slugs are globally unique and used as the login tenant hint
    - An inactive tenant blocks sign-in and refresh for all its principals
    """

    id: TenantId
    slug: str
    name: str
    is_active: bool = True

    @classmethod
    def create(cls, slug: str, name: str) -> "Tenant":
        """Factory method for creating a new tenant.

        Raises:
            ValueError: If the slug is blank
        """
        normalized = slug.strip().lower()
        if not normalized:
            raise ValueError("Tenant slug must not be blank")
        return cls(id=TenantId.generate(), slug=normalized, name=name)

    def deactivate(self) -> None:
        self.is_active = False

    def activate(self) -> None:
        self.is_active = True
