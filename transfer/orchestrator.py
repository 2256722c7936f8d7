"""Turns file selections into stored bundles and locators back into downloads."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from bundlestore.id_generator import generate_bundle_id, generate_unique_bundle_id
from bundlestore.object_store import BundleStore
from common.codec import encode_payload
from common.constants import DEFAULT_QR_SIZE, DEFAULT_TTL_MS, DOWNLOAD_STAGGER_SECONDS
from common.exceptions import (
    BundleItemNotFoundError,
    EmptySelectionError,
    PayloadDecodeError,
    ShareFailedError,
)
from common.types import Bundle, FileRecord
from common.utils import format_file_size, now_ms
from transfer.files import DirectorySink, FileSource
from transfer.locator import build_base_url, build_share_url, parse_bundle_id
from transfer.qr import build_qr_image_url

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def _plural(count: int) -> str:
    return "file" if count == 1 else "files"


@dataclass(frozen=True)
class ShareResult:
    """Outcome of a share: the stored bundle, its locator and skipped files."""
    bundle: Bundle
    share_url: str
    qr_image_url: str
    warnings: Tuple[str, ...] = ()

    def summary(self) -> str:
        count = len(self.bundle.items)
        return (
            f"Shared Files ({count} {_plural(count)}, "
            f"{format_file_size(self.bundle.total_size)})"
        )


@dataclass(frozen=True)
class DownloadView:
    """A retrieved bundle presented for per-file or bulk download."""
    bundle: Bundle

    @property
    def files(self) -> Tuple[FileRecord, ...]:
        return self.bundle.items

    def summary(self) -> str:
        count = len(self.files)
        return (
            f"Available Files ({count} {_plural(count)}, "
            f"{format_file_size(self.bundle.total_size)})"
        )


class TransferOrchestrator:
    """
    Glue between file selections, the bundle store and download sinks.
    """

    def __init__(
        self,
        store: BundleStore,
        app_url: str,
        ttl_ms: int = DEFAULT_TTL_MS,
        qr_size: int = DEFAULT_QR_SIZE,
        stagger_seconds: float = DOWNLOAD_STAGGER_SECONDS,
        clock: Callable[[], int] = now_ms,
        id_source: Callable[[], str] = generate_bundle_id,
    ):
        """
        Initialize orchestrator.

        Args:
            store: Bundle store shared with the receiving context
            app_url: URL the application is served from (locator base)
            ttl_ms: Bundle time-to-live in milliseconds
            qr_size: QR image edge length in pixels
            stagger_seconds: Delay between items in a bulk download
            clock: Source of the current time in epoch milliseconds
            id_source: Identifier generator
        """
        self.store = store
        self.base_url = build_base_url(app_url)
        self.ttl_ms = ttl_ms
        self.qr_size = qr_size
        self.stagger_seconds = stagger_seconds
        self.clock = clock
        self.id_source = id_source

    async def encode_files(
        self,
        sources: Sequence[FileSource],
        progress: Optional[ProgressCallback] = None
    ) -> Tuple[List[FileRecord], List[str]]:
        """
        Encode each selected file; failures are skipped and reported.

        Args:
            sources: Selected files in selection order
            progress: Called with the completed percentage after each success

        Returns:
            Tuple of (encoded records, warning messages naming failed files)
        """
        loop = asyncio.get_running_loop()
        records: List[FileRecord] = []
        warnings: List[str] = []
        total = len(sources)

        for source in sources:
            try:
                data = await loop.run_in_executor(None, source.read_bytes)
                payload = encode_payload(data, source.mime_type)
            except (OSError, PayloadDecodeError) as e:
                logger.error(f"Error processing file: {source.name}: {e}")
                warnings.append(f"Error processing file: {source.name}")
                continue

            records.append(FileRecord(
                name=source.name,
                size=len(data),
                mime_type=source.mime_type,
                payload=payload,
                modified_at=source.modified_at,
            ))
            if progress is not None:
                progress(len(records) / total * 100)

        return records, warnings

    async def share_files(
        self,
        sources: Sequence[FileSource],
        progress: Optional[ProgressCallback] = None
    ) -> ShareResult:
        """
        Encode the selection, store it as a new bundle and build its locator.

        Args:
            sources: Selected files in selection order
            progress: Optional percentage callback

        Returns:
            ShareResult with bundle, share URL, QR image URL and warnings

        Raises:
            EmptySelectionError: If no files were selected
            ShareFailedError: If no file could be encoded
            StorageFullError: If the store quota is exceeded
        """
        if not sources:
            raise EmptySelectionError("No files selected")

        records, warnings = await self.encode_files(sources, progress)
        if not records:
            raise ShareFailedError("Upload failed. Please try again.")

        bundle_id = await generate_unique_bundle_id(self.store.exists, generator=self.id_source)
        created_at = self.clock()
        bundle = Bundle(
            id=bundle_id,
            items=tuple(records),
            created_at=created_at,
            expires_at=created_at + self.ttl_ms,
        )
        await self.store.put(bundle)

        share_url = build_share_url(self.base_url, bundle_id)
        return ShareResult(
            bundle=bundle,
            share_url=share_url,
            qr_image_url=build_qr_image_url(share_url, self.qr_size),
            warnings=tuple(warnings),
        )

    async def open_bundle(self, bundle_id: str) -> Optional[DownloadView]:
        """
        Look up a bundle for download.

        Returns:
            DownloadView, or None when the bundle is absent or expired
        """
        bundle = await self.store.get(bundle_id)
        if bundle is None:
            return None
        return DownloadView(bundle=bundle)

    async def open_locator(self, locator: str) -> Optional[DownloadView]:
        """
        Parse a locator and open the bundle it names.

        Returns:
            DownloadView, or None when the locator has no id or the bundle is
            not found or expired (callers return to the start state)
        """
        bundle_id = parse_bundle_id(locator)
        if bundle_id is None:
            return None
        return await self.open_bundle(bundle_id)

    def download_file(self, view: DownloadView, index: int, sink: DirectorySink) -> Path:
        """
        Deliver one file of an opened bundle.

        Raises:
            BundleItemNotFoundError: If index is out of range
            PayloadDecodeError: If the stored payload cannot be decoded
        """
        if not 0 <= index < len(view.files):
            raise BundleItemNotFoundError("File not found for download")

        item = view.files[index]
        path = sink.deliver(item.name, item.decode())
        logger.info(f"Downloading: {item.name}")
        return path

    async def download_all(
        self,
        view: DownloadView,
        sink: DirectorySink,
        stagger_seconds: Optional[float] = None
    ) -> int:
        """
        Deliver every file, item i scheduled i * stagger_seconds after start.

        A file whose payload cannot be decoded or whose delivery fails is
        skipped and logged; the other deliveries still run to completion.

        Returns:
            Number of files delivered, once every scheduled delivery has run

        Raises:
            BundleItemNotFoundError: If the bundle has no files
        """
        if not view.files:
            raise BundleItemNotFoundError("No files to download")

        delay = self.stagger_seconds if stagger_seconds is None else stagger_seconds

        async def deliver_later(index: int, item: FileRecord) -> bool:
            await asyncio.sleep(index * delay)
            try:
                sink.deliver(item.name, item.decode())
            except (OSError, PayloadDecodeError) as e:
                logger.warning(f"Failed to deliver {item.name}: {e}")
                return False
            return True

        tasks = [
            asyncio.create_task(deliver_later(index, item))
            for index, item in enumerate(view.files)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for item, result in zip(view.files, results):
            if isinstance(result, BaseException):
                logger.error(f"Unexpected error delivering {item.name}: {result!r}")

        delivered = sum(1 for result in results if result is True)
        logger.info(f"Successfully downloaded {delivered} {_plural(delivered)}")
        return delivered
