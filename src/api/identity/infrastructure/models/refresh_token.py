"""SQLAlchemy ORM model for the refresh_tokens table.

Only the SHA-256 digest of each refresh token secret is stored.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base


class RefreshTokenModel(Base):
    """ORM model for refresh_tokens table.

    Notes:
    - token_hash is unique and is the lookup key
    - lineage_id is the id of the first record of the rotation chain
    - replaced_by points at the successor created by rotation; it has no
      foreign key because the successor is inserted in the same transaction
    - a partial unique index keeps at most one active record per lineage
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    principal_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("principals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    lineage_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    revocation_reason: Mapped[str | None] = mapped_column(String(32), nullable=True)
    replaced_by: Mapped[str | None] = mapped_column(String(26), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        Index(
            "uq_refresh_tokens_active_lineage",
            "lineage_id",
            unique=True,
            postgresql_where=text("revoked_at IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<RefreshTokenModel(id={self.id}, principal_id={self.principal_id}, "
            f"lineage_id={self.lineage_id}, revoked={self.revoked_at is not None})>"
        )
