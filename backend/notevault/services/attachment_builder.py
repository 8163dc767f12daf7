"""
NoteVault Backend — Attachment Record Builder
===============================================

What:  Turns the raw `attachments` value of a create/update payload into
       AttachmentEntry objects ready to embed in a note document.
Why:   Shape validation, id generation and decoding happen in one place,
       before any store interaction, so a bad payload fails fast with a 400.
How:   Validates that the value is a list, validates each item, generates a
       fresh ObjectId string per entry and runs the codec on its content.
Who:   Called by NoteService for POST /notes and PUT /notes/{id}.

Id policy:
    Every build() call generates new ids, including for files the client
    already uploaded earlier. A note update therefore never preserves prior
    attachment ids.
"""

import logging
from typing import Any, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, StrictStr
from pydantic import ValidationError as PydanticValidationError

from notevault.config import settings
from notevault.exceptions import (
    InvalidAttachmentFormatError,
    NoteTooLargeError,
    ValidationError,
)
from notevault.models.note import AttachmentEntry
from notevault.services.codec import decode_base64

logger = logging.getLogger(__name__)


class RawAttachment(BaseModel):
    """One item of the wire-format attachments list."""

    model_config = ConfigDict(extra="ignore")

    name: StrictStr
    type: StrictStr
    content: StrictStr  # base64


class AttachmentBuilder:
    """
    Builds attachment entries from wire-format attachment payloads.

    Stateless apart from its limits; a module-level instance is shared.
    """

    def __init__(
        self,
        max_attachment_size: Optional[int] = None,
        max_attachments: Optional[int] = None,
        max_total_size: Optional[int] = None,
    ):
        self.max_attachment_size = max_attachment_size or settings.max_attachment_size
        self.max_attachments = max_attachments or settings.max_attachments_per_note
        self.max_total_size = max_total_size or settings.max_note_attachments_size

    def build(self, raw_attachments: Any) -> List[AttachmentEntry]:
        """
        Build entries for every item of `raw_attachments`.

        Args:
            raw_attachments: The decoded JSON value of the `attachments` field.
                None or [] means no attachments.

        Returns:
            One AttachmentEntry per input item, in input order.

        Raises:
            InvalidAttachmentFormatError: not a list, or an item has the wrong shape
            ValidationError: more items than max_attachments
            DecodeError: an item's content is not valid base64
            AttachmentTooLargeError: an item decodes to more than the size cap
            NoteTooLargeError: all items together decode to more than the note cap
        """
        if raw_attachments is None:
            return []

        # Checked before iterating: a dict or a string is iterable too
        if not isinstance(raw_attachments, list):
            raise InvalidAttachmentFormatError(
                context={"received_type": type(raw_attachments).__name__},
            )

        if len(raw_attachments) > self.max_attachments:
            raise ValidationError(
                message=(
                    f"Too many attachments ({len(raw_attachments)}). "
                    f"A note can hold at most {self.max_attachments}."
                ),
                field="attachments",
                context={"max_attachments": self.max_attachments},
            )

        entries: List[AttachmentEntry] = []
        total_size = 0
        for index, item in enumerate(raw_attachments):
            try:
                raw = RawAttachment.model_validate(item)
            except PydanticValidationError as e:
                raise InvalidAttachmentFormatError(
                    message=(
                        f"Invalid attachment format at index {index}: "
                        "expected an object with string 'name', 'type' and 'content'"
                    ),
                    index=index,
                    context={"errors": [err["loc"] for err in e.errors()]},
                ) from e

            payload = decode_base64(raw.content, max_size=self.max_attachment_size)
            total_size += len(payload)
            # Checked per item so an oversized note stops decoding early
            if total_size > self.max_total_size:
                max_mb = self.max_total_size / (1024 * 1024)
                raise NoteTooLargeError(
                    message=f"Attachments of one note exceed {max_mb:g}MB in total",
                    context={"max_total_size": self.max_total_size, "index": index},
                )
            entries.append(
                AttachmentEntry(
                    id=str(ObjectId()),
                    name=raw.name,
                    type=raw.type,
                    content=bytes(payload),
                )
            )

        if entries:
            logger.debug(
                "Built %d attachment(s), %d bytes total", len(entries), total_size
            )
        return entries


attachment_builder = AttachmentBuilder()
