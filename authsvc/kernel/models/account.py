"""
Account model: one row per registered account and its credential.
"""

import uuid

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from authsvc.kernel.models.base import Base, CreatedAtMixin, generate_uuid


class AccountRecord(Base, CreatedAtMixin):
    """Persisted account. Rows are inserted once and never updated."""

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    # The unique index is the only guard against duplicate registrations
    username: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AccountRecord {self.username}>"
