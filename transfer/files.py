"""File sources for sharing and sinks for delivered downloads."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

DEFAULT_DOWNLOAD_NAME = "download"


class FileSource(Protocol):
    """A selected file: metadata plus a way to read its exact bytes."""
    name: str
    size: int
    mime_type: str
    modified_at: int

    def read_bytes(self) -> bytes:
        ...


@dataclass(frozen=True)
class LocalFileSource:
    """
    A file on the local filesystem.
    """
    path: Path
    name: str
    size: int
    mime_type: str
    modified_at: int

    @classmethod
    def from_path(cls, path: Path) -> 'LocalFileSource':
        """
        Capture metadata for a local file.

        Raises:
            OSError: If the file cannot be stat'ed
        """
        path = Path(path)
        stat = path.stat()
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            path=path,
            name=path.name,
            size=stat.st_size,
            mime_type=mime_type or "",
            modified_at=int(stat.st_mtime * 1000),
        )

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


class DirectorySink:
    """
    Writes delivered files into a directory.

    File names inside a bundle need not be unique; clashes are resolved by
    appending " (n)" before the extension.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _target_path(self, name: str) -> Path:
        safe_name = Path(name).name
        if safe_name in ("", ".."):
            safe_name = DEFAULT_DOWNLOAD_NAME
        candidate = self.directory / safe_name
        counter = 1
        while candidate.exists():
            stem = Path(safe_name).stem
            suffix = Path(safe_name).suffix
            candidate = self.directory / f"{stem} ({counter}){suffix}"
            counter += 1
        return candidate

    def deliver(self, name: str, data: bytes) -> Path:
        """
        Write one file.

        Args:
            name: Original file name
            data: Decoded file content

        Returns:
            Path the file was written to
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self._target_path(name)
        target.write_bytes(data)
        return target
