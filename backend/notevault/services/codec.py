"""
NoteVault Backend — Attachment Binary Codec
=============================================

What:  Converts the base64 text clients send into the BSON binary payload
       that is stored, and back.
Why:   Storing the raw bytes as a native binary field avoids the ~33% size
       inflation of base64 text and lets downloads stream the bytes directly.
How:   Strict base64 decoding with an up-front size estimate, so an oversized
       payload is rejected before it is materialized.
Who:   Called by AttachmentBuilder once per uploaded attachment.
When:  Exactly once per attachment, at write time. Nothing downstream ever
       re-encodes stored content as text.
"""

import base64
import binascii
import re
from typing import Optional

from bson import Binary

from notevault.exceptions import AttachmentTooLargeError, DecodeError

# FileReader.readAsDataURL() output: "data:application/pdf;base64,JVBERi0x..."
_DATA_URL_PREFIX = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)


def decode_base64(text: str, max_size: Optional[int] = None) -> Binary:
    """
    Decode client-supplied base64 into a storable binary payload.

    Args:
        text:      Base64 text, optionally prefixed with a data-URL header and
                   optionally wrapped across lines; trailing padding may
                   be omitted.
        max_size:  Maximum decoded size in bytes; None disables the check.

    Returns:
        bson.Binary (subtype 0) holding the decoded bytes.

    Raises:
        DecodeError: text is not a string or not valid base64
        AttachmentTooLargeError: decoded size would exceed max_size
    """
    if not isinstance(text, str):
        raise DecodeError(
            message="Attachment content must be a base64-encoded string",
            context={"received_type": type(text).__name__},
        )

    payload = _DATA_URL_PREFIX.sub("", text.strip(), count=1)
    payload = "".join(payload.split())
    # Trailing "=" padding is optional on input
    payload += "=" * (-len(payload) % 4)

    if max_size is not None:
        # 4 base64 chars -> 3 bytes; padding removes at most 2 of them
        estimated = (len(payload) // 4) * 3 - 2
        if estimated > max_size:
            raise AttachmentTooLargeError(max_size=max_size, actual_size=estimated)

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        # ValueError: non-ASCII characters in the input string
        raise DecodeError(context={"reason": str(e)}) from e

    if max_size is not None and len(raw) > max_size:
        raise AttachmentTooLargeError(max_size=max_size, actual_size=len(raw))

    return Binary(raw)


def encode_base64(payload: bytes) -> str:
    """Inverse of decode_base64 for canonical input."""
    return base64.b64encode(bytes(payload)).decode("ascii")
