"""
NoteVault Backend — Notes Route Handlers
==========================================

What:  CRUD endpoints for notes.
How:   Parse the request, hand the request's NoteStore to NoteService,
       return the response model. Errors are raised as NoteVaultError
       subclasses and formatted by the global handlers in main.py.

Endpoints:
    GET    /notes?search=term   list, newest first, optional substring filter
    POST   /notes               create (201)
    GET    /notes/{note_id}     fetch one
    PUT    /notes/{note_id}     full replacement, optional version check
    DELETE /notes/{note_id}     delete note and its attachments
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query

from notevault.database import get_note_store
from notevault.exceptions import ValidationError
from notevault.schemas.note import (
    ErrorResponse,
    MessageResponse,
    NoteInput,
    NoteResponse,
)
from notevault.services.note_service import note_service
from notevault.services.note_store import NoteStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])

_ID_ERRORS = {
    400: {"description": "Invalid note ID or body", "model": ErrorResponse},
    404: {"description": "Note not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


def parse_if_match(value: Optional[str]) -> Optional[int]:
    """
    Read an expected version from an If-Match header.

    Accepts `3`, `"3"` and `W/"3"`. Absent or `*` means no version check.
    """
    if value is None:
        return None
    tag = value.strip()
    if tag.startswith("W/"):
        tag = tag[2:]
    tag = tag.strip('"')
    if tag in ("", "*"):
        return None
    try:
        version = int(tag)
    except ValueError:
        raise ValidationError(
            message="If-Match must carry a note version number",
            field="If-Match",
        )
    if version < 1:
        raise ValidationError(message="If-Match version must be positive", field="If-Match")
    return version


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List notes",
    description=(
        "Returns all notes, newest first. `search` filters by a case-insensitive "
        "substring of the title or content. Attachment bytes are never included."
    ),
)
async def list_notes(
    search: Optional[str] = Query(default=None, description="Substring to match"),
    store: NoteStore = Depends(get_note_store),
) -> List[NoteResponse]:
    # A search with no match is an empty list, never a 404
    return await note_service.list_notes(store, search=search)


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteResponse,
    responses={
        400: {"description": "Missing fields or bad attachments", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a note",
)
async def create_note(
    payload: NoteInput,
    store: NoteStore = Depends(get_note_store),
) -> NoteResponse:
    return await note_service.create_note(store, payload)


@router.get(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses=_ID_ERRORS,
    summary="Get a single note by ID",
)
async def get_note(
    note_id: str,
    store: NoteStore = Depends(get_note_store),
) -> NoteResponse:
    return await note_service.get_note(store, note_id)


@router.put(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={
        **_ID_ERRORS,
        409: {"description": "Version conflict", "model": ErrorResponse},
    },
    summary="Replace a note",
    description=(
        "Replaces every field of the note, including its whole attachment list "
        "(attachments receive new ids). Send `version` in the body or an "
        "`If-Match` header to reject the write if someone else updated the note first."
    ),
)
async def update_note(
    note_id: str,
    payload: NoteInput,
    if_match: Optional[str] = Header(default=None),
    store: NoteStore = Depends(get_note_store),
) -> NoteResponse:
    return await note_service.update_note(
        store,
        note_id,
        payload,
        expected_version=parse_if_match(if_match),
    )


@router.delete(
    "/notes/{note_id}",
    response_model=MessageResponse,
    responses=_ID_ERRORS,
    summary="Delete a note and its attachments",
)
async def delete_note(
    note_id: str,
    store: NoteStore = Depends(get_note_store),
) -> MessageResponse:
    await note_service.delete_note(store, note_id)
    return MessageResponse(message="Note deleted successfully")
