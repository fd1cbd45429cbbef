"""create principals table

Revision ID: 8d42e0c5a3f7
Revises: 3f1c9a7be201
Create Date: 2026-09-28 10:40:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "8d42e0c5a3f7"
down_revision: Union[str, Sequence[str], None] = "3f1c9a7be201"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "principals",
        sa.Column("id", sa.String(length=26), nullable=False),  # ULID
        sa.Column("tenant_id", sa.String(length=26), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        sa.Column("kitchen_id", sa.String(length=64), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_principals"),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name="fk_principals_tenant_id_tenants",
            ondelete="RESTRICT",
        ),
        # Only super admins live outside a tenant
        sa.CheckConstraint(
            "(role = 'super_admin') = (tenant_id IS NULL)",
            name="ck_principals_tenant_matches_role",
        ),
    )
    op.create_index("ix_principals_tenant_id", "principals", ["tenant_id"])
    op.create_index("ix_principals_email", "principals", ["email"])
    op.create_index(
        "uq_principals_tenant_email",
        "principals",
        ["tenant_id", "email"],
        unique=True,
        postgresql_where=sa.text("tenant_id IS NOT NULL"),
    )
    op.create_index(
        "uq_principals_super_admin_email",
        "principals",
        ["email"],
        unique=True,
        postgresql_where=sa.text("tenant_id IS NULL"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_principals_super_admin_email", table_name="principals")
    op.drop_index("uq_principals_tenant_email", table_name="principals")
    op.drop_index("ix_principals_email", table_name="principals")
    op.drop_index("ix_principals_tenant_id", table_name="principals")
    op.drop_table("principals")
