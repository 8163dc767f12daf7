"""
NoteVault Backend — Binary Codec Unit Tests
=============================================

What:  Tests for base64 decoding into stored binary payloads.

What we test:
    ✅ Canonical base64 decodes to the exact bytes, as BSON Binary subtype 0
    ✅ Data-URL prefixes, line wrapping and missing padding are tolerated
    ✅ Malformed input raises DecodeError, never binascii.Error
    ✅ Size cap enforced before and after decoding
"""

import pytest
from bson import Binary

from notevault.exceptions import AttachmentTooLargeError, DecodeError
from notevault.services.codec import decode_base64, encode_base64


class TestDecodeBase64:

    def test_decodes_hello(self):
        payload = decode_base64("SGVsbG8=")
        assert bytes(payload) == b"Hello"
        assert isinstance(payload, Binary)
        assert payload.subtype == 0

    def test_empty_string_is_empty_payload(self):
        assert bytes(decode_base64("")) == b""

    def test_all_byte_values_survive(self):
        raw = bytes(range(256))
        assert bytes(decode_base64(encode_base64(raw))) == raw

    def test_data_url_prefix_is_stripped(self):
        assert bytes(decode_base64("data:application/pdf;base64,SGVsbG8=")) == b"Hello"

    def test_wrapped_lines_are_accepted(self):
        """MIME-style 76-column wrapping."""
        assert bytes(decode_base64("SGVs\nbG8=\n")) == b"Hello"

    @pytest.mark.parametrize("text, expected", [("SGVsbG8", b"Hello"), ("SGVsbA", b"Hell")])
    def test_missing_padding_is_restored(self, text, expected):
        assert bytes(decode_base64(text)) == expected

    @pytest.mark.parametrize("text", ["A", "SGVsb", "not base64!", "SGV$bG8=", "é"])
    def test_malformed_input_raises_decode_error(self, text):
        with pytest.raises(DecodeError) as exc_info:
            decode_base64(text)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("value", [None, 123, b"SGVsbG8=", ["SGVsbG8="]])
    def test_non_string_raises_decode_error(self, value):
        with pytest.raises(DecodeError, match="base64-encoded string"):
            decode_base64(value)


class TestSizeLimit:

    def test_payload_at_limit_passes(self):
        assert bytes(decode_base64("SGVsbG8=", max_size=5)) == b"Hello"

    def test_payload_over_limit_rejected(self):
        with pytest.raises(AttachmentTooLargeError) as exc_info:
            decode_base64("SGVsbG8=", max_size=4)
        assert exc_info.value.context["max_size"] == 4
        assert exc_info.value.error_code == "attachment_too_large"

    def test_oversized_input_rejected_before_decoding(self):
        """Not even valid base64, but far too long: the size check wins."""
        with pytest.raises(AttachmentTooLargeError):
            decode_base64("!" * 4000, max_size=100)


class TestEncodeBase64:

    def test_encodes_bytes(self):
        assert encode_base64(b"Hello") == "SGVsbG8="

    def test_accepts_binary(self):
        assert encode_base64(Binary(b"Hello")) == "SGVsbG8="

    @pytest.mark.parametrize("text", ["", "SGVsbG8=", "AAECAwQ=", "/+8="])
    def test_canonical_text_survives_decode_encode(self, text):
        assert encode_base64(decode_base64(text)) == text
