"""Shared data type definitions (Bundle, FileRecord)."""

from dataclasses import dataclass
from typing import Tuple

from common.codec import decode_payload


@dataclass(frozen=True)
class FileRecord:
    """
    One file within a bundle.

    `payload` is a self-describing data URL; `size`, `mime_type` and
    `modified_at` are advisory metadata captured at selection time.
    """
    name: str
    size: int
    mime_type: str
    payload: str
    modified_at: int

    def decode(self) -> bytes:
        """Return the original file bytes."""
        return decode_payload(self.payload)


@dataclass(frozen=True)
class Bundle:
    """
    The unit stored for one share operation.

    Timestamps are epoch milliseconds. A bundle is dead once now > expires_at.
    """
    id: str
    items: Tuple[FileRecord, ...]
    created_at: int
    expires_at: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at

    @property
    def total_size(self) -> int:
        return sum(item.size for item in self.items)
