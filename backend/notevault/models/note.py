"""
NoteVault Backend — Note Document Model
=========================================

What:  Shape of the note documents and embedded attachment entries as they
       are stored in the `notes` collection.
Why:   One place that knows the on-disk field names, so the store, the fake
       store used in tests and the API schemas cannot drift apart.
Who:   Used by the attachment builder (to produce entries) and by NoteStore
       (to write documents and to read attachment entries back).

Document layout:
    {
        "_id":        ObjectId,             # document key, store-assigned
        "title":      str,
        "content":    str,                  # rich-text HTML
        "priority":   "low" | "medium" | "high",
        "createdAt":  datetime (UTC),       # client-supplied, sortable
        "version":    int,                  # 1 on insert, +1 per update
        "attachments": [
            {
                "_id":     str,             # 24-hex ObjectId string, global lookup key
                "name":    str,
                "type":    str,             # client-declared, not validated
                "size":    int,
                "content": Binary,          # BSON binary subtype 0, never base64 text
            },
            ...
        ]
    }

Why embedded attachments (not a separate collection):
    Deleting a note removes its files with no orphan cleanup, and a note
    update replaces the attachment array in one atomic document write.
    Retrieval by attachment id uses the positional projection
    `{"attachments.$": 1}` so sibling payloads never leave the server.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Tuple

from bson import Binary
from pydantic import BaseModel, Field

NotePriority = Literal["low", "medium", "high"]
PRIORITIES: Tuple[str, ...] = ("low", "medium", "high")

# Projection used for every read that returns notes to clients
WITHOUT_ATTACHMENT_CONTENT: Dict[str, int] = {"attachments.content": 0}


class AttachmentEntry(BaseModel):
    """
    One binary file embedded in a note.

    `content` holds the decoded bytes. Entries are immutable once built;
    a note update replaces them wholesale with freshly built ones.
    """

    id: str
    name: str
    type: str
    content: bytes = Field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "content": Binary(bytes(self.content)),
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AttachmentEntry":
        # pymongo hands subtype-0 Binary back as plain bytes
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            type=doc.get("type", ""),
            content=bytes(doc.get("content") or b""),
        )


def build_note_fields(
    title: str,
    content: str,
    priority: str,
    created_at: datetime,
    attachments: List[AttachmentEntry],
) -> Dict[str, Any]:
    """Fields written by both insert and full-replacement update."""
    return {
        "title": title,
        "content": content,
        "priority": priority,
        "createdAt": created_at,
        "attachments": [entry.to_document() for entry in attachments],
    }
