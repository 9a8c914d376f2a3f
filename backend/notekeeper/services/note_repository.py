"""
NoteKeeper Backend: Note Repository
====================================

What:  The data-access façade over the `notes` table.
How:   Wraps an AsyncSession handed in by the caller. Every method is a
       single query (update is a write followed by a re-read). Write
       methods only flush; the write handlers call commit() before they
       build their response, and the session dependency rolls back on error.
Who:   Route handlers (through the `get_note_repository` dependency) and
       tests.

Error Handling:
    The repository does not catch anything. SQLAlchemy errors (lost
    connections, constraint violations) propagate to the exception
    handlers in main.py, which answer 500 and log the cause.
    A missing row is not an error here: find_by_id() returns None and
    delete() of an unknown id is a no-op.

Known race:
    update() is UPDATE followed by SELECT without a surrounding lock. A
    concurrent delete between the two makes update() return None.
"""

import logging
from typing import Dict, List, Optional

from fastapi import Depends
from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.database import get_db_session
from notekeeper.models.note import Note, utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "content")


class NoteRepository:
    """
    CRUD operations on notes for one database session.

    Methods:
        find_all()              All notes, newest first
        find_by_id(id)          Note or None
        exists(id)              bool
        create(title, content)  New note with id and timestamps
        update(id, fields)      Partially updated note (or None)
        delete(id)              Removes the row if present
        commit()                Commits pending writes
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> List[Note]:
        """
        Return every note ordered by created_at descending.

        id DESC breaks ties between notes created in the same instant, so a
        freshly inserted note is always first.
        """
        result = await self.session.execute(
            select(Note).order_by(desc(Note.created_at), desc(Note.id))
        )
        return list(result.scalars().all())

    async def find_by_id(self, note_id: int) -> Optional[Note]:
        """Return the note with the given id, or None when there is none."""
        # populate_existing: reload even if the row is already in the identity map
        result = await self.session.execute(
            select(Note)
            .where(Note.id == note_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def exists(self, note_id: int) -> bool:
        return await self.find_by_id(note_id) is not None

    async def create(self, title: str, content: str) -> Note:
        """
        Insert a note and return it with its store-assigned id.

        Both timestamps come from a single clock reading, so a new note has
        created_at == updated_at.
        """
        now = utcnow()
        note = Note(title=title, content=content, created_at=now, updated_at=now)
        self.session.add(note)
        await self.session.flush()
        logger.info("Note %s created", note.id)
        return note

    async def update(self, note_id: int, fields: Dict[str, str]) -> Optional[Note]:
        """
        Apply the supplied fields, refresh updated_at, and re-read the row.

        Keys other than title/content are ignored. An empty `fields` still
        refreshes updated_at.
        """
        values = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
        values["updated_at"] = utcnow()

        await self.session.execute(
            update(Note).where(Note.id == note_id).values(**values)
        )
        await self.session.flush()
        logger.info("Note %s updated (fields=%s)", note_id, sorted(values.keys()))

        return await self.find_by_id(note_id)

    async def delete(self, note_id: int) -> None:
        """Delete the row. Deleting an id that does not exist is a no-op."""
        await self.session.execute(delete(Note).where(Note.id == note_id))
        await self.session.flush()
        logger.info("Note %s deleted", note_id)

    async def commit(self) -> None:
        """Commit pending writes. Must run before the response is built."""
        await self.session.commit()


def get_note_repository(
    db: AsyncSession = Depends(get_db_session),
) -> NoteRepository:
    """FastAPI dependency: a repository bound to the request's session."""
    return NoteRepository(db)
