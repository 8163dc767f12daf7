"""
NoteVault Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every error the API can report.
Why:   Each exception type maps to exactly one HTTP status and machine-readable
       error code, so services raise meaningfully and routes stay thin.
How:   Each exception carries a user-facing message and an optional context dict.
       Global handlers (registered in main.py) turn them into JSON responses.
Who:   Raised by the codec, builder, store and middleware; caught by handlers.

Exception Hierarchy:
    NoteVaultError (base)
    ├── ValidationError                 → 400 validation_error
    │   ├── InvalidAttachmentFormatError → 400 invalid_attachment_format
    │   ├── AttachmentTooLargeError      → 400 attachment_too_large
    │   └── NoteTooLargeError            → 400 note_too_large
    ├── DecodeError                     → 400 decode_error
    ├── InvalidIdentifierError          → 400 invalid_id
    ├── NotFoundError                   → 404 not_found
    ├── ConflictError                   → 409 conflict
    ├── RateLimitExceededError          → 429 rate_limit_exceeded
    └── DatabaseError                   → 500 server_error

`context` is logged server-side and, for 4xx errors only, returned as
`details`. 5xx responses never echo context.
"""

from typing import Any, Dict, Optional


class NoteVaultError(Exception):
    """
    Base exception for all NoteVault application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteVaultError):
    """
    Raised when client input fails validation.

    When:  Missing required note fields, too many attachments.
    HTTP:  400 Bad Request
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidAttachmentFormatError(ValidationError):
    """
    The `attachments` value is not a list, or one of its items is not an
    object with string `name`, `type` and `content`.
    """

    error_code = "invalid_attachment_format"

    def __init__(
        self,
        message: str = "Invalid attachment format: 'attachments' must be a list",
        index: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if index is not None:
            ctx["index"] = index
        super().__init__(message=message, field="attachments", context=ctx)


class AttachmentTooLargeError(ValidationError):
    """A decoded attachment exceeds settings.max_attachment_size."""

    error_code = "attachment_too_large"

    def __init__(self, max_size: int, actual_size: Optional[int] = None):
        max_mb = max_size / (1024 * 1024)
        ctx: Dict[str, Any] = {"max_size": max_size}
        if actual_size is not None:
            ctx["actual_size"] = actual_size
        super().__init__(
            message=f"Attachment exceeds the maximum size of {max_mb:g}MB",
            field="attachments",
            context=ctx,
        )


class NoteTooLargeError(ValidationError):
    """
    A note as a whole is too large to store.

    Raised by the builder when the attachments' combined decoded size exceeds
    settings.max_note_attachments_size, and by the store when the encoded
    document is rejected by the BSON encoder (16 MiB document limit).
    """

    error_code = "note_too_large"

    def __init__(
        self,
        message: str = "Note exceeds the maximum document size",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field="attachments", context=context)


class DecodeError(NoteVaultError):
    """
    Attachment content is not valid base64.

    HTTP:  400 Bad Request. Raised by the codec; the process never sees the
    underlying binascii error.
    """

    status_code = 400
    error_code = "decode_error"

    def __init__(
        self,
        message: str = "Attachment content is not valid base64",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidIdentifierError(NoteVaultError):
    """
    A note or attachment id is not a syntactically valid ObjectId.

    Checked before any query is sent, so a malformed id is a 400 and never a
    404 or 500.
    """

    status_code = 400
    error_code = "invalid_id"

    def __init__(self, resource: str = "note", identifier: Optional[str] = None):
        super().__init__(
            message=f"Invalid {resource} ID",
            context={"resource": resource, "identifier": identifier},
        )


class NotFoundError(NoteVaultError):
    """
    Raised when a requested note or attachment does not exist.

    HTTP:  404 Not Found
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(NoteVaultError):
    """
    An update carried an expected version that no longer matches the stored note.

    HTTP:  409 Conflict. The client should re-fetch the note and retry.
    """

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        note_id: str,
        expected_version: int,
        current_version: Optional[int] = None,
    ):
        ctx: Dict[str, Any] = {"note_id": note_id, "expected_version": expected_version}
        if current_version is not None:
            ctx["current_version"] = current_version
        super().__init__(
            message="Note was modified by another request; reload it and try again",
            context=ctx,
        )


class DatabaseError(NoteVaultError):
    """
    Raised when a MongoDB operation fails (connectivity, timeout, server error).

    The message returned to the client is always generic; driver details are
    logged server-side only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(NoteVaultError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:  429 Too Many Requests, with a Retry-After header.
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
