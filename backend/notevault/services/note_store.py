"""
NoteVault Backend — Note Document Store
=========================================

What:  All MongoDB reads and writes for note documents and their embedded
       attachments.
Why:   Keeps query construction, id validation and driver error translation
       out of the service and route layers.
How:   Wraps a pymongo AsyncCollection. Every public method validates ids
       before talking to the server and converts driver failures into
       DatabaseError.
Who:   Created per request by notevault.database.get_note_store().

Query patterns:
    list     find(filter, {"attachments.content": 0})
             .sort(createdAt desc, _id desc)       → idx_notes_created_at
    attach   find_one({"attachments._id": id}, {"attachments.$": 1})
                                                   → idx_notes_attachment_id
             The positional projection returns only the matching embedded
             entry, so sibling payloads never leave the server.
    update   find_one_and_update({_id[, version]}, {$set, $inc version})
             returning the document after the write. A write that changes
             nothing still returns the current document.

Consistency:
    Single-document writes only. Without an expected version the last writer
    wins; with one, a mismatch raises ConflictError.

Errors:
    Documents over the 16 MiB BSON limit raise NoteTooLargeError (400). Any
    other driver failure raises DatabaseError (500).
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from bson import ObjectId
from bson.errors import InvalidDocument
from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DocumentTooLarge, OperationFailure, PyMongoError

from notevault.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidIdentifierError,
    NotFoundError,
    NoteTooLargeError,
)
from notevault.models.note import WITHOUT_ATTACHMENT_CONTENT, AttachmentEntry

logger = logging.getLogger(__name__)

# BSONObjectTooLarge, and an $set whose result would exceed 16 MiB
_DOCUMENT_TOO_LARGE_CODES = {10334, 17419}


def parse_object_id(value: str, resource: str = "note") -> ObjectId:
    """Validate a path id and convert it, before any query is issued."""
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidIdentifierError(resource=resource, identifier=str(value))
    return ObjectId(value)


def search_filter(search: Optional[str]) -> Dict[str, Any]:
    """Case-insensitive substring match on title or content."""
    if not search or not search.strip():
        return {}
    pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
    return {"$or": [{"title": pattern}, {"content": pattern}]}


@contextmanager
def _translate_errors(operation: str, **context: Any) -> Iterator[None]:
    try:
        yield
    except (PyMongoError, InvalidDocument) as e:
        # DocumentTooLarge is raised by the driver's BSON encoder, not the server
        too_large = isinstance(e, DocumentTooLarge) or (
            isinstance(e, OperationFailure) and e.code in _DOCUMENT_TOO_LARGE_CODES
        )
        if too_large:
            logger.warning("MongoDB %s rejected oversized document: %s | %s", operation, e, context)
            raise NoteTooLargeError(context={"operation": operation}) from e
        logger.error("MongoDB %s failed: %s | %s", operation, e, context, exc_info=True)
        raise DatabaseError(
            context={"operation": operation, "error_type": type(e).__name__, **context}
        ) from e


class NoteStore:
    """Persistence operations over the note collection."""

    def __init__(self, collection: AsyncCollection):
        self.collection = collection

    async def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new note document; returns it with `_id` and `version` set."""
        document = dict(fields)
        document["version"] = 1
        with _translate_errors("insert"):
            result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info(
            "Note %s created with %d attachment(s)",
            result.inserted_id,
            len(document.get("attachments", [])),
        )
        return document

    async def list_notes(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newest first; ties on createdAt broken by _id, newest first."""
        query = search_filter(search)
        with _translate_errors("find", search=search):
            cursor = self.collection.find(query, WITHOUT_ATTACHMENT_CONTENT).sort(
                [("createdAt", DESCENDING), ("_id", DESCENDING)]
            )
            return await cursor.to_list(None)

    async def get(self, note_id: str) -> Dict[str, Any]:
        oid = parse_object_id(note_id)
        with _translate_errors("find_one", note_id=note_id):
            document = await self.collection.find_one({"_id": oid}, WITHOUT_ATTACHMENT_CONTENT)
        if document is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return document

    async def update(
        self,
        note_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Replace a note's fields (including its whole attachment array).

        Args:
            note_id: Hex ObjectId of the note
            fields: title, content, priority, createdAt and attachments
            expected_version: When given, the write only applies if the stored
                version still matches.

        Returns:
            The stored document after the write, attachment content excluded.

        Raises:
            InvalidIdentifierError: note_id is not an ObjectId
            NotFoundError: no note with that id
            ConflictError: expected_version no longer matches
        """
        oid = parse_object_id(note_id)
        query: Dict[str, Any] = {"_id": oid}
        if expected_version is not None:
            query["version"] = expected_version

        with _translate_errors("find_one_and_update", note_id=note_id):
            document = await self.collection.find_one_and_update(
                query,
                {"$set": fields, "$inc": {"version": 1}},
                projection=WITHOUT_ATTACHMENT_CONTENT,
                return_document=ReturnDocument.AFTER,
            )
            if document is None and expected_version is not None:
                current = await self.collection.find_one({"_id": oid}, {"version": 1})
                if current is not None:
                    raise ConflictError(
                        note_id=note_id,
                        expected_version=expected_version,
                        current_version=current.get("version"),
                    )

        if document is None:
            raise NotFoundError(resource="note", resource_id=note_id)

        logger.info("Note %s updated (version=%s)", note_id, document.get("version"))
        return document

    async def delete(self, note_id: str) -> None:
        """Remove a note and, with it, every embedded attachment."""
        oid = parse_object_id(note_id)
        with _translate_errors("delete_one", note_id=note_id):
            result = await self.collection.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError(resource="note", resource_id=note_id)
        logger.info("Note %s deleted", note_id)

    async def find_attachment_by_id(self, attachment_id: str) -> AttachmentEntry:
        """
        Fetch exactly one embedded attachment by its own id.

        The owning note is irrelevant to the caller; the query matches any
        note whose attachment array holds the id and projects only that entry.
        """
        parse_object_id(attachment_id, resource="attachment")
        with _translate_errors("find_attachment", attachment_id=attachment_id):
            document = await self.collection.find_one(
                {"attachments._id": attachment_id},
                {"attachments.$": 1},
            )
        if not document or not document.get("attachments"):
            raise NotFoundError(resource="attachment", resource_id=attachment_id)
        return AttachmentEntry.from_document(document["attachments"][0])

    async def stats(self) -> Dict[str, Any]:
        with _translate_errors("dbStats"):
            return await self.collection.database.command("dbStats")

    async def ping(self) -> bool:
        """True when the server answers; never raises."""
        try:
            await self.collection.database.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False

    async def ensure_indexes(self) -> None:
        with _translate_errors("create_index"):
            await self.collection.create_index(
                [("createdAt", DESCENDING)], name="idx_notes_created_at"
            )
            await self.collection.create_index(
                "attachments._id", name="idx_notes_attachment_id"
            )
