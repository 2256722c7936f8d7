"""Self-describing payload codec: raw bytes <-> base64 data URLs."""

import base64
import binascii
from urllib.parse import unquote_to_bytes

from common.constants import DEFAULT_MIME_TYPE
from common.exceptions import PayloadDecodeError

DATA_URL_SCHEME = "data:"
BASE64_MARKER = ";base64"


def encode_payload(data: bytes, mime_type: str = "") -> str:
    """
    Encode raw file bytes as a base64 data URL.

    Args:
        data: Raw file content (may be empty)
        mime_type: Declared content type; falls back to application/octet-stream

    Returns:
        Data URL string of the form "data:<mime>;base64,<b64>"
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise PayloadDecodeError(f"Cannot encode payload of type {type(data).__name__}")
    media_type = mime_type or DEFAULT_MIME_TYPE
    encoded = base64.b64encode(bytes(data)).decode("ascii")
    return f"{DATA_URL_SCHEME}{media_type}{BASE64_MARKER},{encoded}"


def decode_payload(payload: str) -> bytes:
    """
    Decode a data URL back to the exact original bytes.

    Both base64 and percent-encoded data URLs are accepted.

    Args:
        payload: Data URL produced by encode_payload (or any RFC 2397 data URL)

    Returns:
        Original file bytes

    Raises:
        PayloadDecodeError: If the payload is not a valid data URL
    """
    if not isinstance(payload, str) or not payload.startswith(DATA_URL_SCHEME):
        raise PayloadDecodeError("Payload is not a data URL")

    header, sep, body = payload[len(DATA_URL_SCHEME):].partition(",")
    if not sep:
        raise PayloadDecodeError("Data URL is missing its ',' separator")

    if header.lower().endswith(BASE64_MARKER):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise PayloadDecodeError(f"Invalid base64 payload: {e}") from e

    return unquote_to_bytes(body)
