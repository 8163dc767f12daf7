"""
NoteVault Backend — Note Service Unit Tests
=============================================

What:  Tests for NoteService orchestration (builder → store → response).
How:   Uses the in-memory fake_store fixture; no MongoDB.

What we test:
    ✅ Created notes list attachment metadata, never bytes
    ✅ Invalid payloads never reach the store
    ✅ Update replaces attachments with freshly identified entries
    ✅ Version checks on update
    ✅ Timestamps are normalized to UTC
"""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from notevault.exceptions import (
    ConflictError,
    DecodeError,
    InvalidAttachmentFormatError,
    InvalidIdentifierError,
    NotFoundError,
)
from notevault.schemas.note import NoteInput
from notevault.services.note_service import NoteService, to_note_response, to_utc


def _input(**overrides):
    data = {
        "title": "Title",
        "content": "<p>Body</p>",
        "priority": "medium",
        "createdAt": "2024-05-01T10:00:00Z",
        "attachments": [{"name": "spec.pdf", "type": "application/pdf", "content": "SGVsbG8="}],
    }
    data.update(overrides)
    return NoteInput.model_validate(data)


class TestNoteServiceCreate:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_note(self, fake_store):
        note = await self.service.create_note(fake_store, _input())

        assert note.title == "Title"
        assert note.version == 1
        assert len(note.attachments) == 1
        assert note.attachments[0].name == "spec.pdf"
        assert note.attachments[0].size == 5
        assert "content" not in note.attachments[0].model_dump()

    @pytest.mark.asyncio
    async def test_created_attachment_is_retrievable(self, fake_store):
        note = await self.service.create_note(fake_store, _input())
        entry = await self.service.get_attachment(fake_store, note.attachments[0].id)
        assert entry.content == b"Hello"
        assert entry.name == "spec.pdf"

    @pytest.mark.asyncio
    async def test_invalid_attachments_never_reach_store(self, fake_store):
        with pytest.raises(InvalidAttachmentFormatError):
            await self.service.create_note(fake_store, _input(attachments="not-a-list"))
        assert fake_store.writes == 0

    @pytest.mark.asyncio
    async def test_bad_base64_never_reaches_store(self, fake_store):
        bad = [{"name": "a", "type": "t", "content": "***"}]
        with pytest.raises(DecodeError):
            await self.service.create_note(fake_store, _input(attachments=bad))
        assert fake_store.writes == 0


class TestNoteServiceQueries:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_list_newest_first(self, fake_store):
        await self.service.create_note(fake_store, _input(title="old", createdAt="2024-01-01T00:00:00Z"))
        await self.service.create_note(fake_store, _input(title="new", createdAt="2024-06-01T00:00:00Z"))

        notes = await self.service.list_notes(fake_store)
        assert [n.title for n in notes] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_search_without_match_is_empty(self, fake_store):
        await self.service.create_note(fake_store, _input())
        assert await self.service.list_notes(fake_store, search="zebra") == []

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, fake_store):
        await self.service.create_note(fake_store, _input(title="Quarterly Plan"))
        notes = await self.service.list_notes(fake_store, search="quarterly")
        assert len(notes) == 1

    @pytest.mark.asyncio
    async def test_get_note_not_found(self, fake_store):
        with pytest.raises(NotFoundError):
            await self.service.get_note(fake_store, str(ObjectId()))


class TestNoteServiceUpdate:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_update_replaces_attachments_with_new_ids(self, fake_store):
        created = await self.service.create_note(fake_store, _input())
        old_id = created.attachments[0].id

        updated = await self.service.update_note(fake_store, created.id, _input())

        assert updated.version == 2
        assert updated.attachments[0].id != old_id
        with pytest.raises(NotFoundError):
            await self.service.get_attachment(fake_store, old_id)

    @pytest.mark.asyncio
    async def test_noop_update_returns_current_values(self, fake_store):
        created = await self.service.create_note(fake_store, _input(attachments=None))
        updated = await self.service.update_note(fake_store, created.id, _input(attachments=None))
        assert updated.title == created.title
        assert updated.content == created.content
        assert updated.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, fake_store):
        created = await self.service.create_note(fake_store, _input())
        await self.service.update_note(fake_store, created.id, _input(title="first"))

        with pytest.raises(ConflictError):
            await self.service.update_note(fake_store, created.id, _input(title="second", version=1))

    @pytest.mark.asyncio
    async def test_explicit_version_overrides_body(self, fake_store):
        created = await self.service.create_note(fake_store, _input())
        updated = await self.service.update_note(
            fake_store, created.id, _input(version=99), expected_version=1
        )
        assert updated.version == 2

    @pytest.mark.asyncio
    async def test_invalid_id_checked_before_payload(self, fake_store):
        """A malformed id wins over a malformed attachment list."""
        with pytest.raises(InvalidIdentifierError):
            await self.service.update_note(fake_store, "invalid", _input(attachments="not-a-list"))


class TestMapping:

    def test_to_utc_naive(self):
        value = to_utc(datetime(2024, 1, 1, 12, 0))
        assert value.tzinfo == timezone.utc

    def test_to_utc_converts_offset(self):
        value = to_utc(datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))))
        assert value == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert value.hour == 10

    def test_to_note_response_without_attachments_field(self):
        oid = ObjectId()
        note = to_note_response({
            "_id": oid,
            "title": "t",
            "content": "c",
            "priority": "low",
            "createdAt": datetime(2024, 1, 1),
        })
        assert note.id == str(oid)
        assert note.attachments == []
        assert note.version == 1
        assert note.created_at.tzinfo == timezone.utc
