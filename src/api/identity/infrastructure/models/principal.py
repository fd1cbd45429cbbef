"""SQLAlchemy ORM model for the principals table.

Stores tenant users, kitchen accounts and super admins. The password is
stored only as a bcrypt hash.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class PrincipalModel(Base, TimestampMixin):
    """ORM model for principals table.

    Notes:
    - tenant_id is NULL only for super admins (enforced by a check constraint)
    - (tenant_id, email) is unique for tenant principals
    - email is unique among super admins (partial index on tenant_id IS NULL)
    - tenant_id references tenants.id with RESTRICT delete
    """

    __tablename__ = "principals"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    tenant_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    kitchen_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index(
            "uq_principals_tenant_email",
            "tenant_id",
            "email",
            unique=True,
            postgresql_where=text("tenant_id IS NOT NULL"),
        ),
        Index(
            "uq_principals_super_admin_email",
            "email",
            unique=True,
            postgresql_where=text("tenant_id IS NULL"),
        ),
        CheckConstraint(
            "(role = 'super_admin') = (tenant_id IS NULL)",
            name="tenant_matches_role",
        ),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<PrincipalModel(id={self.id}, tenant_id={self.tenant_id}, "
            f"role={self.role})>"
        )
