"""create refresh tokens table

Revision ID: c5e97b1d0a64
Revises: 8d42e0c5a3f7
Create Date: 2026-09-29 09:05:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "c5e97b1d0a64"
down_revision: Union[str, Sequence[str], None] = "8d42e0c5a3f7"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.String(length=26), nullable=False),  # ULID
        sa.Column("token_hash", sa.String(length=64), nullable=False),  # SHA-256
        sa.Column("principal_id", sa.String(length=26), nullable=False),
        sa.Column("tenant_id", sa.String(length=26), nullable=True),
        sa.Column("lineage_id", sa.String(length=26), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revocation_reason", sa.String(length=32), nullable=True),
        sa.Column("replaced_by", sa.String(length=26), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_refresh_tokens"),
        sa.ForeignKeyConstraint(
            ["principal_id"],
            ["principals.id"],
            name="fk_refresh_tokens_principal_id_principals",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
    )
    op.create_index(
        "ix_refresh_tokens_principal_id", "refresh_tokens", ["principal_id"]
    )
    op.create_index("ix_refresh_tokens_lineage_id", "refresh_tokens", ["lineage_id"])
    op.create_index("ix_refresh_tokens_expires_at", "refresh_tokens", ["expires_at"])
    # At most one active record per rotation chain
    op.create_index(
        "uq_refresh_tokens_active_lineage",
        "refresh_tokens",
        ["lineage_id"],
        unique=True,
        postgresql_where=sa.text("revoked_at IS NULL"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_refresh_tokens_active_lineage", table_name="refresh_tokens")
    op.drop_index("ix_refresh_tokens_expires_at", table_name="refresh_tokens")
    op.drop_index("ix_refresh_tokens_lineage_id", table_name="refresh_tokens")
    op.drop_index("ix_refresh_tokens_principal_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")
