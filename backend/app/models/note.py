"""
Notes API Backend — Note SQLAlchemy Model
===========================================

What:  ORM model representing the `notes` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteRepository for CRUD and by Alembic for schema management.

Table Design:
    - Integer primary key assigned by the store (SERIAL / AUTOINCREMENT)
    - user_id: opaque identity-provider user id (string, never parsed)
    - deleted_at: soft-delete marker; NULL means active. Written once, never cleared.

    Index on (user_id, created_at DESC):
        Serves the only list query: "this user's notes, newest first".
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 5000
# Largest value the Integer primary key can hold (32-bit signed)
ID_MAX = 2**31 - 1


class Note(Base):
    """
    A single user-owned note.

    Lifecycle:
        1. Created by its owner (deleted_at = NULL)
        2. Updated zero or more times while active
        3. Soft-deleted at most once; afterwards immutable and hidden from listings
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
    )

    content: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    # Identity-provider user id of the owner; assigned at creation, immutable
    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        Index("idx_notes_user_created_at", user_id, created_at.desc()),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, user_id='{self.user_id}', "
            f"deleted={self.is_deleted})>"
        )
