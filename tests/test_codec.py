"""Tests for the data URL payload codec."""

import os

import pytest

from common.codec import decode_payload, encode_payload
from common.exceptions import PayloadDecodeError
from common.types import FileRecord


class TestRoundTrip:
    """decode(encode(bytes)) must reproduce the exact bytes."""

    def test_text_content(self):
        data = "héllo wörld\n".encode("utf-8")
        assert decode_payload(encode_payload(data, "text/plain")) == data

    def test_binary_content(self):
        data = bytes(range(256)) + os.urandom(1024)
        assert decode_payload(encode_payload(data, "application/octet-stream")) == data

    def test_empty_file(self):
        payload = encode_payload(b"", "text/plain")
        assert payload == "data:text/plain;base64,"
        assert decode_payload(payload) == b""

    def test_file_record_decode(self):
        record = FileRecord(
            name="a.bin", size=3, mime_type="", payload=encode_payload(b"\x00\xff\x10"), modified_at=0
        )
        assert record.decode() == b"\x00\xff\x10"


class TestEncoding:

    def test_missing_mime_type_defaults_to_octet_stream(self):
        assert encode_payload(b"x").startswith("data:application/octet-stream;base64,")

    def test_rejects_non_bytes(self):
        with pytest.raises(PayloadDecodeError):
            encode_payload("not bytes")


class TestDecoding:

    def test_percent_encoded_data_url(self):
        assert decode_payload("data:text/plain,hello%20world") == b"hello world"

    def test_not_a_data_url(self):
        with pytest.raises(PayloadDecodeError):
            decode_payload("http://example.com/file.txt")

    def test_missing_separator(self):
        with pytest.raises(PayloadDecodeError):
            decode_payload("data:text/plain;base64")

    def test_invalid_base64(self):
        with pytest.raises(PayloadDecodeError):
            decode_payload("data:text/plain;base64,@@@@")
