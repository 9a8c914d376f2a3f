"""
NoteKeeper Backend: Note SQLAlchemy Model
==========================================

What:  ORM model for the `notes` table, the only table in the system.
Who:   Used by NoteRepository for CRUD operations and by Alembic.

Table Design:
    - id:          Integer surrogate key assigned by the store, never reused
    - title:       VARCHAR(255); the API trims it and rejects empty values
    - content:     TEXT, no upper bound
    - created_at:  Set once on insert
    - updated_at:  Equal to created_at on insert, refreshed on every update

    Index on created_at DESC serves the only list query (newest first).
"""

from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from notekeeper.database import Base


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A single plain-text note.

    Lifecycle:
        1. Inserted by NoteRepository.create() (id and timestamps assigned)
        2. Mutated only by NoteRepository.update() (updated_at refreshed)
        3. Hard-deleted by NoteRepository.delete()
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    # Stored in UTC; the Python-side defaults keep sub-second precision on
    # every backend, the server defaults cover rows inserted outside the ORM.
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_notes_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r}, updated_at='{self.updated_at}')>"
