"""
Notes API Backend — Note Repository
=====================================

What:  CRUD operations against the `notes` table.
Why:   Keeps SQL out of the pipeline. The repository has no business rules:
       ownership and deletion-state checks happen in the pipeline before any
       mutation is requested.
How:   Each operation opens its own session from the shared Database, runs
       one unit of work and commits. Store errors are NOT wrapped; they reach
       the error mapper unmodified.

Query plan (list_active):
    SELECT * FROM notes
    WHERE user_id = :uid AND deleted_at IS NULL
    ORDER BY created_at DESC OFFSET :offset LIMIT :limit
    → idx_notes_user_created_at
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, select, update

from app.database import Database
from app.models.note import Note

logger = logging.getLogger(__name__)


class NoteRepository:
    """Thin translation layer between the pipeline and the store."""

    def __init__(self, database: Database):
        self.database = database

    async def create(self, user_id: str, title: str, content: Optional[str]) -> Note:
        """Insert a note owned by `user_id`; the store assigns id and created_at."""
        async with self.database.session() as session:
            note = Note(title=title, content=content, user_id=user_id)
            session.add(note)
            await session.flush()
            await session.refresh(note)
        logger.info("Note %s created for user %s", note.id, user_id)
        return note

    async def list_active(self, user_id: str, limit: int, offset: int) -> List[Note]:
        """
        One page of the user's active notes, newest first.

        Offset pagination: concurrent inserts can shift page boundaries.
        `limit` and `offset` are expected to be clamped already.
        """
        query = (
            select(Note)
            .where(Note.user_id == user_id, Note.deleted_at.is_(None))
            .order_by(desc(Note.created_at), desc(Note.id))
            .offset(offset)
            .limit(limit)
        )
        async with self.database.session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def find_by_id(self, note_id: int) -> Optional[Note]:
        """Unscoped lookup by id. The caller enforces ownership."""
        async with self.database.session() as session:
            return await session.get(Note, note_id)

    async def soft_delete(self, note_id: int) -> bool:
        """
        Stamp `deleted_at` with the current time.

        Only active notes are stamped, so the first deletion time is kept.
        Returns False when no active note matched.
        """
        async with self.database.session() as session:
            result = await session.execute(
                update(Note)
                .where(Note.id == note_id, Note.deleted_at.is_(None))
                .values(deleted_at=datetime.now(timezone.utc))
            )
        if result.rowcount == 0:
            return False
        logger.info("Note %s soft-deleted", note_id)
        return True

    async def update(
        self, note_id: int, title: str, content: Optional[str] = None
    ) -> Optional[Note]:
        """
        Overwrite the note's title, and its content when `content` is given.

        An omitted content leaves the stored content as it is. Deleted notes
        are never written; None is returned when no active note matched.
        """
        values = {"title": title}
        if content is not None:
            values["content"] = content
        async with self.database.session() as session:
            result = await session.execute(
                update(Note)
                .where(Note.id == note_id, Note.deleted_at.is_(None))
                .values(**values)
            )
            if result.rowcount == 0:
                return None
            note = await session.get(Note, note_id, populate_existing=True)
        logger.info("Note %s updated", note_id)
        return note
