"""
NoteVault Backend — Note Service (Business Logic Orchestrator)
================================================================

What:  Coordinates the attachment builder and the note store for every
       note and attachment operation.
Why:   Keeps validation order and document/response mapping out of routes.
How:   Stateless; receives the NoteStore for the current request.
Who:   Called by the notes and attachments route handlers.

Write flow (POST /notes, PUT /notes/{id}):
    ┌───────────┐    ┌───────────────────┐    ┌──────────────┐
    │ NoteInput │───▶│ AttachmentBuilder │───▶│  NoteStore   │
    │ (schema)  │    │ shape · id · b64  │    │ insert/update│
    └───────────┘    └───────────────────┘    └──────────────┘

    All validation (schema, attachment shape, base64, size) completes before
    the store is touched. Each request performs at most one logical write.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from notevault.models.note import AttachmentEntry, build_note_fields
from notevault.schemas.note import AttachmentSummary, NoteInput, NoteResponse
from notevault.services.attachment_builder import attachment_builder
from notevault.services.note_store import NoteStore, parse_object_id

logger = logging.getLogger(__name__)


def to_utc(value: datetime) -> datetime:
    """Naive timestamps are taken as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_note_response(document: Dict[str, Any]) -> NoteResponse:
    """Map a stored note document to its API representation (no bytes)."""
    created_at = document["createdAt"]
    if isinstance(created_at, datetime):
        created_at = to_utc(created_at)
    return NoteResponse(
        id=str(document["_id"]),
        title=document["title"],
        content=document["content"],
        priority=document["priority"],
        created_at=created_at,
        version=document.get("version", 1),
        attachments=[
            AttachmentSummary(
                id=str(item["_id"]),
                name=item.get("name", ""),
                type=item.get("type", ""),
                size=item.get("size", 0),
            )
            for item in document.get("attachments") or []
        ],
    )


class NoteService:
    """
    Business logic layer for note operations.

    Error Handling Strategy:
        Domain errors (ValidationError family, DecodeError, InvalidIdentifierError,
        NotFoundError, ConflictError) propagate unchanged from the builder and
        store. Driver failures are already DatabaseError by the time they
        leave the store.
    """

    def _fields(self, payload: NoteInput) -> Dict[str, Any]:
        attachments = attachment_builder.build(payload.attachments)
        return build_note_fields(
            title=payload.title,
            content=payload.content,
            priority=payload.priority,
            created_at=to_utc(payload.created_at),
            attachments=attachments,
        )

    async def create_note(self, store: NoteStore, payload: NoteInput) -> NoteResponse:
        """
        Build attachments, then insert the note.

        Raises:
            InvalidAttachmentFormatError, DecodeError, AttachmentTooLargeError,
            ValidationError: payload rejected before any store access
            DatabaseError: insert failed
        """
        fields = self._fields(payload)
        document = await store.create(fields)
        return to_note_response(document)

    async def list_notes(
        self, store: NoteStore, search: Optional[str] = None
    ) -> List[NoteResponse]:
        documents = await store.list_notes(search=search)
        return [to_note_response(doc) for doc in documents]

    async def get_note(self, store: NoteStore, note_id: str) -> NoteResponse:
        return to_note_response(await store.get(note_id))

    async def update_note(
        self,
        store: NoteStore,
        note_id: str,
        payload: NoteInput,
        expected_version: Optional[int] = None,
    ) -> NoteResponse:
        """
        Fully replace a note, including its attachment collection.

        Every attachment in the payload gets a new id, even if the same file
        was attached before. A payload identical to the stored note still
        returns 200 with the stored values.

        Args:
            expected_version: Version the client last saw. Falls back to
                payload.version. None disables the check (last writer wins).
        """
        parse_object_id(note_id)
        fields = self._fields(payload)
        if expected_version is None:
            expected_version = payload.version
        document = await store.update(note_id, fields, expected_version=expected_version)
        return to_note_response(document)

    async def delete_note(self, store: NoteStore, note_id: str) -> None:
        await store.delete(note_id)

    async def get_attachment(self, store: NoteStore, attachment_id: str) -> AttachmentEntry:
        return await store.find_attachment_by_id(attachment_id)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
