"""Command request data types for the shell."""

from dataclasses import dataclass
from typing import Literal, Optional, Union


@dataclass(frozen=True)
class ShareCommand:
    """Share local files as a new bundle."""

    file_list: tuple[str, ...]
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class OpenCommand:
    """Open a locator (share URL or bare id) for download."""

    locator: str
    command: Literal["open"] = "open"


@dataclass(frozen=True)
class DownloadCommand:
    """Download one file (by 1-based index) or all files of the opened bundle."""

    target: Union[int, Literal["all"]]
    output_dir: Optional[str] = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class SweepCommand:
    """Remove expired bundles now."""

    command: Literal["sweep"] = "sweep"


@dataclass(frozen=True)
class QrCommand:
    """Fetch a QR image for text through the resource cache."""

    text: str
    size: Optional[int] = None
    output_path: Optional[str] = None
    command: Literal["qr"] = "qr"


CommandRequest = Union[ShareCommand, OpenCommand, DownloadCommand, SweepCommand, QrCommand]
