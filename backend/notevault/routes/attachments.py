"""
NoteVault Backend — Attachment Download Route
===============================================

What:  GET /attachments/{attachment_id} streams one stored attachment.
How:   NoteStore.find_attachment_by_id projects the single matching entry out
       of whichever note owns it; AttachmentStreamResponder turns its bytes
       into a chunked download.

Status codes:
    200  raw bytes, Content-Disposition: attachment
    400  id is not a valid ObjectId (checked before querying)
    404  no note holds an attachment with that id
    500  store failure
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from notevault.database import get_note_store
from notevault.schemas.note import ErrorResponse
from notevault.services.attachment_stream import attachment_stream_responder
from notevault.services.note_service import note_service
from notevault.services.note_store import NoteStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attachments"])


@router.get(
    "/attachments/{attachment_id}",
    response_class=StreamingResponse,
    responses={
        200: {
            "description": "Attachment bytes",
            "content": {"application/octet-stream": {}},
        },
        400: {"description": "Invalid attachment ID", "model": ErrorResponse},
        404: {"description": "Attachment not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Download an attachment",
)
async def download_attachment(
    attachment_id: str,
    store: NoteStore = Depends(get_note_store),
) -> StreamingResponse:
    entry = await note_service.get_attachment(store, attachment_id)
    return attachment_stream_responder.respond(entry)
