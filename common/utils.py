"""Utility helper functions shared across packages."""

import time


def now_ms() -> int:
    """
    Get the current wall-clock time in epoch milliseconds.

    Returns:
        Milliseconds since the Unix epoch
    """
    return int(time.time() * 1000)


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count the way the share pages display it.

    Uses 1024-based steps with at most two decimals and trailing zeros
    dropped (e.g. "0 Bytes", "1.5 KB", "3 MB").

    Args:
        size_bytes: File size in bytes

    Returns:
        Human-readable size string
    """
    if size_bytes <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    size = float(size_bytes)
    order = 0
    while size >= 1024 and order < len(units) - 1:
        size /= 1024
        order += 1

    rounded = round(size, 2)
    text = f"{rounded:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[order]}"
