"""
NoteVault Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the HTTP contract of the notes API.
Why:   Input validation, serialization and OpenAPI docs from one definition.
How:   Field names follow Python style; aliases carry the camelCase names
       the frontend sends and expects (`createdAt`).

Why schemas are separate from the document model:
    Responses never carry attachment bytes. A note in a response lists its
    attachments as {id, name, type, size}; the bytes are only reachable
    through GET /attachments/{id}.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from notevault.models.note import NotePriority


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteInput(BaseModel):
    """
    What:  Body of POST /notes and PUT /notes/{id}.

    `attachments` is deliberately untyped here: its shape is checked by the
    attachment builder so that a non-list value reports
    invalid_attachment_format rather than a generic field error.

    `version` is optional. On update, when present (or sent as If-Match),
    the write only applies if the stored note still has that version.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, description="Note title")
    content: str = Field(min_length=1, description="Rich-text HTML body")
    priority: NotePriority = Field(description="low, medium or high")
    created_at: datetime = Field(alias="createdAt", description="Creation time (ISO 8601)")
    attachments: Any = Field(
        default=None,
        description="List of {name, type, content} objects; content is base64",
    )
    version: Optional[int] = Field(
        default=None, ge=1, description="Expected current version (updates only)"
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AttachmentSummary(BaseModel):
    """Attachment metadata as listed inside a note; bytes are never included."""

    id: str = Field(description="Attachment id, used with GET /attachments/{id}")
    name: str
    type: str
    size: int = Field(default=0, description="Decoded size in bytes")


class NoteResponse(BaseModel):
    """
    What:  A note as returned by every notes endpoint.
    Who:   GET /notes (as array items), POST, GET/PUT /notes/{id}.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Document key (24-hex ObjectId)")
    title: str
    content: str
    priority: NotePriority
    created_at: datetime = Field(alias="createdAt")
    version: int = Field(default=1, description="Incremented on every update")
    attachments: List[AttachmentSummary] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str


class DbStatsResponse(BaseModel):
    """Raw output of MongoDB's dbStats command."""

    stats: Dict[str, Any]


class ErrorResponse(BaseModel):
    """
    What:  Error body shared by every endpoint.

    Fields:
        error: Machine-readable error code (e.g. "invalid_attachment_format")
        message: Human-readable description
        details: Extra context for client errors (4xx only)
        request_id: Correlation ID for tracing this error in server logs
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
