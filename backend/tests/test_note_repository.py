"""
NoteKeeper Backend: Note Repository Tests
==========================================

What:  Tests for NoteRepository against a real (SQLite) database.
How:   Each test gets a fresh database file via the db_session fixture;
       failure propagation uses the mocked session.

What we test:
    ✅ create assigns an id and equal timestamps
    ✅ find_by_id returns the stored row, None for unknown ids
    ✅ find_all is newest first
    ✅ update changes only supplied fields and refreshes updated_at
    ✅ delete removes the row and is a no-op for unknown ids
    ✅ Storage errors propagate unchanged
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from notekeeper.models.note import Note, utcnow
from notekeeper.services.note_repository import NoteRepository


class TestCreateAndFind:

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, db_session):
        repo = NoteRepository(db_session)

        note = await repo.create(title="Buy milk", content="2 liters")

        assert isinstance(note.id, int)
        assert note.title == "Buy milk"
        assert note.content == "2 liters"
        assert note.created_at == note.updated_at

    @pytest.mark.asyncio
    async def test_find_by_id_after_create(self, db_session):
        repo = NoteRepository(db_session)
        created = await repo.create(title="Title", content="Body")

        found = await repo.find_by_id(created.id)

        assert found is not None
        assert found.id == created.id
        assert found.title == "Title"
        assert found.content == "Body"
        assert found.created_at == found.updated_at

    @pytest.mark.asyncio
    async def test_find_by_id_unknown_returns_none(self, db_session):
        repo = NoteRepository(db_session)
        assert await repo.find_by_id(12345) is None
        assert await repo.exists(12345) is False

    @pytest.mark.asyncio
    async def test_ids_are_distinct(self, db_session):
        repo = NoteRepository(db_session)
        first = await repo.create(title="a", content="a")
        second = await repo.create(title="b", content="b")
        assert first.id != second.id


class TestFindAll:

    @pytest.mark.asyncio
    async def test_empty_store(self, db_session):
        assert await NoteRepository(db_session).find_all() == []

    @pytest.mark.asyncio
    async def test_newest_first(self, db_session):
        repo = NoteRepository(db_session)
        base = utcnow()
        for offset, title in enumerate(["oldest", "middle", "newest"]):
            stamp = base + timedelta(seconds=offset)
            db_session.add(Note(title=title, content="x", created_at=stamp, updated_at=stamp))
        await db_session.flush()

        titles = [note.title for note in await repo.find_all()]

        assert titles == ["newest", "middle", "oldest"]

    @pytest.mark.asyncio
    async def test_same_timestamp_breaks_ties_by_id(self, db_session):
        stamp = utcnow()
        db_session.add_all([
            Note(title="first", content="x", created_at=stamp, updated_at=stamp),
            Note(title="second", content="x", created_at=stamp, updated_at=stamp),
        ])
        await db_session.flush()

        notes = await NoteRepository(db_session).find_all()

        assert [n.title for n in notes] == ["second", "first"]


class TestUpdate:

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session):
        repo = NoteRepository(db_session)
        created = await repo.create(title="Old title", content="Body")
        created_at = created.created_at

        updated = await repo.update(created.id, {"title": "New title"})

        assert updated.title == "New title"
        assert updated.content == "Body"
        assert updated.updated_at > updated.created_at
        assert updated.created_at.replace(tzinfo=None) == created_at.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_empty_update_still_refreshes_updated_at(self, db_session):
        repo = NoteRepository(db_session)
        created = await repo.create(title="t", content="c")

        updated = await repo.update(created.id, {})

        assert updated.title == "t"
        assert updated.updated_at > updated.created_at

    @pytest.mark.asyncio
    async def test_unknown_fields_are_ignored(self, db_session):
        repo = NoteRepository(db_session)
        created = await repo.create(title="t", content="c")

        updated = await repo.update(created.id, {"id": 999, "content": "new"})

        assert updated.id == created.id
        assert updated.content == "new"

    @pytest.mark.asyncio
    async def test_update_of_missing_row_returns_none(self, db_session):
        assert await NoteRepository(db_session).update(424242, {"title": "x"}) is None


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_row(self, db_session):
        repo = NoteRepository(db_session)
        created = await repo.create(title="t", content="c")

        await repo.delete(created.id)

        assert await repo.find_by_id(created.id) is None
        assert await repo.exists(created.id) is False

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_noop(self, db_session):
        repo = NoteRepository(db_session)
        kept = await repo.create(title="t", content="c")

        await repo.delete(kept.id + 100)

        assert await repo.exists(kept.id)


class TestStorageErrors:

    @pytest.mark.asyncio
    async def test_errors_propagate(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError(
            "SELECT", {}, Exception("connection refused")
        )

        with pytest.raises(OperationalError):
            await NoteRepository(mock_db_session).find_all()

    @pytest.mark.asyncio
    async def test_find_by_id_uses_scalar_result(self, mock_db_session):
        note = Note(id=7, title="t", content="c")
        result = MagicMock()
        result.scalar_one_or_none.return_value = note
        mock_db_session.execute.return_value = result

        assert await NoteRepository(mock_db_session).find_by_id(7) is note
        mock_db_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_adds_and_flushes(self, mock_db_session):
        note = await NoteRepository(mock_db_session).create(title="t", content="c")

        mock_db_session.add.assert_called_once_with(note)
        mock_db_session.flush.assert_awaited_once()
        assert note.created_at == note.updated_at
