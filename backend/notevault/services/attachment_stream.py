"""
NoteVault Backend — Attachment Stream Responder
=================================================

What:  Turns a stored attachment into an HTTP download response.
Why:   The payload is already in memory, but the response body is still
       produced chunk by chunk so the first bytes reach the transport before
       the whole frame is built.
How:   An async generator slices the byte buffer; Starlette's
       StreamingResponse pulls one slice per iteration until the generator
       is exhausted, then closes the response.
Who:   Called by GET /attachments/{attachment_id}.

Headers:
    Content-Type         application/octet-stream, or the stored type when
                         ATTACHMENT_FORWARD_MEDIA_TYPE is enabled
    Content-Disposition  attachment; filename="<name>" (quoted-string escaped,
                         plus filename*= for non-ASCII names)
    Content-Length       payload size

There is no cancellation path: a client disconnect simply stops the
transport from pulling further chunks.
"""

import logging
from typing import AsyncIterator, Optional
from urllib.parse import quote

from fastapi.responses import StreamingResponse

from notevault.config import settings
from notevault.models.note import AttachmentEntry

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


async def iter_chunks(payload: bytes, chunk_size: int) -> AsyncIterator[bytes]:
    """
    Yield successive slices of `payload`, each at most `chunk_size` bytes.

    Finite and single-use: one generator serves one response. An empty
    payload yields nothing.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    view = memoryview(payload)
    for offset in range(0, len(view), chunk_size):
        yield bytes(view[offset:offset + chunk_size])


def content_disposition(filename: str) -> str:
    """
    Build an `attachment` Content-Disposition value for a stored file name.

    The name is placed in a quoted-string with backslashes and quotes escaped
    and control characters removed, so no name can end the header early.
    Non-ASCII names additionally get an RFC 5987 `filename*` parameter and an
    ASCII-only fallback in `filename`.
    """
    # quoted-string admits no control characters (C0 range and DEL)
    name = "".join(c for c in filename if ord(c) >= 0x20 and c != "\x7f")
    if not name:
        name = "download"

    ascii_name = name.encode("ascii", errors="ignore").decode("ascii")
    quoted = (ascii_name or "download").replace("\\", "\\\\").replace('"', '\\"')
    value = f'attachment; filename="{quoted}"'
    if ascii_name != name:
        value += f"; filename*=UTF-8''{quote(name, safe='')}"
    return value


class AttachmentStreamResponder:
    """Builds streaming download responses for attachment entries."""

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        forward_media_type: Optional[bool] = None,
    ):
        self.chunk_size = chunk_size or settings.stream_chunk_size
        self.forward_media_type = (
            settings.attachment_forward_media_type
            if forward_media_type is None
            else forward_media_type
        )

    def media_type_for(self, entry: AttachmentEntry) -> str:
        if self.forward_media_type and entry.type:
            return entry.type
        return DEFAULT_MEDIA_TYPE

    def respond(self, entry: AttachmentEntry) -> StreamingResponse:
        logger.info(
            "Streaming attachment %s (%d bytes, %d-byte chunks)",
            entry.id,
            entry.size,
            self.chunk_size,
        )
        return StreamingResponse(
            iter_chunks(entry.content, self.chunk_size),
            media_type=self.media_type_for(entry),
            headers={
                "Content-Disposition": content_disposition(entry.name),
                "Content-Length": str(entry.size),
            },
        )


attachment_stream_responder = AttachmentStreamResponder()
