"""Utility functions for shell output."""

import sys
from cli.constants import GREEN, RESET

PROGRESS_BAR_WIDTH = 30


def render_progress(percent: float) -> None:
    """
    Display encoding progress to stdout, finishing the line at 100%.

    Args:
        percent: Completed percentage (0-100)
    """
    percent = max(0.0, min(100.0, percent))
    filled = int(PROGRESS_BAR_WIDTH * percent / 100)
    bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
    sys.stdout.write(f"\rEncoding: [{bar}] ({GREEN}{percent:.1f}%{RESET})")
    if percent >= 100:
        sys.stdout.write("\n")
    sys.stdout.flush()


def pluralize(count: int, word: str) -> str:
    """
    Format a count with a naively pluralized word.

    Args:
        count: Number of items
        word: Singular noun

    Returns:
        e.g. "1 file", "3 files"
    """
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
