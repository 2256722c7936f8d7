"""Shell session wiring the bundle store, resource cache and orchestrator."""

from pathlib import Path
from typing import List, Optional

import httpx

from bundlestore.object_store import BundleStore
from bundlestore.sweep_task import ExpiredBundleSweeper
from cli.config import Config
from cli.constants import (
    GREEN,
    NO_BUNDLE_OPEN,
    NOT_FOUND_MESSAGE,
    RESET,
    STORAGE_FULL_MESSAGE,
    UPLOAD_FAILED_MESSAGE,
)
from cli.utils import pluralize, render_progress
from common.exceptions import (
    BundleItemNotFoundError,
    EmptySelectionError,
    IdentifierExhaustedError,
    PayloadDecodeError,
    ShareFailedError,
    StorageFullError,
)
from common.kv_store import KeyValueStore, SqliteKeyValueStore
from common.logging_config import get_logger
from common.utils import format_file_size
from offline_cache.cache_storage import CacheStorage
from offline_cache.fetcher import NetworkFetcher
from offline_cache.manifest import CacheManifest
from offline_cache.service_worker import ResourceCacheWorker, WorkerRegistration
from transfer.files import DirectorySink, LocalFileSource
from transfer.orchestrator import DownloadView, TransferOrchestrator
from transfer.qr import fetch_qr_image

logger = get_logger(__name__)

SHELL_CLIENT_ID = "shell"


class AirdropSession:
    """Stateful shell session: one store, one cache registration, one open share."""

    def __init__(
        self,
        config: Config,
        kv: Optional[KeyValueStore] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize session.

        Args:
            config: Configuration instance
            kv: Key-value backend (defaults to the configured SQLite store)
            http_client: Preconfigured httpx client (e.g. with a mock transport)
        """
        self.config = config
        self.kv = kv if kv is not None else SqliteKeyValueStore(str(config.get_store_path()))
        self.store = BundleStore(self.kv)
        self.orchestrator = TransferOrchestrator(
            self.store,
            app_url=config.get_app_url(),
            ttl_ms=config.get_ttl_ms(),
            qr_size=config.get_qr_size(),
            stagger_seconds=config.get_download_stagger(),
        )
        self.manifest = CacheManifest(app_url=config.get_app_url())
        self.cache_storage = CacheStorage(self.kv)
        self.fetcher = NetworkFetcher(
            self.manifest.origin, client=http_client, timeout=config.get_timeout()
        )
        self.registration = WorkerRegistration(self.fetcher)
        self.sweeper = ExpiredBundleSweeper(self.store, config.get_sweep_interval())
        self.current_view: Optional[DownloadView] = None
        logger.info(f"Initialized AirdropSession [app_url={config.get_app_url()}]")

    async def start(self, install_cache: bool = True) -> None:
        """
        Sweep expired shares, start the periodic sweeper and install the
        resource cache generation.
        """
        await self.sweeper.start()
        self.registration.attach_client(SHELL_CLIENT_ID)
        if install_cache:
            worker = ResourceCacheWorker(self.manifest, self.cache_storage, self.fetcher)
            await self.registration.register(worker)

    async def close(self) -> None:
        """Stop background work and release the HTTP client."""
        await self.sweeper.stop()
        if self.registration.active is not None:
            await self.registration.active.wait_until_idle()
        await self.registration.detach_client(SHELL_CLIENT_ID)
        await self.fetcher.close()

    async def share(self, paths: List[str]) -> str:
        """
        Share local files.

        Args:
            paths: Local file paths in selection order

        Returns:
            Share summary with link, or an error message
        """
        sources = []
        warnings: List[str] = []
        for path in paths:
            try:
                sources.append(LocalFileSource.from_path(Path(path)))
            except OSError as e:
                logger.error(f"Error processing file: {path}: {e}")
                warnings.append(f"Error processing file: {Path(path).name}")

        try:
            result = await self.orchestrator.share_files(sources, progress=render_progress)
        except (EmptySelectionError, ShareFailedError, IdentifierExhaustedError):
            return "\n".join(warnings + [UPLOAD_FAILED_MESSAGE])
        except StorageFullError as e:
            logger.error(f"Upload failed: {e}")
            return STORAGE_FULL_MESSAGE

        lines = list(warnings) + list(result.warnings)
        lines.append(result.summary())
        for item in result.bundle.items:
            lines.append(f"  {item.name}  {format_file_size(item.size)}")
        lines.append(f"Share link: {GREEN}{result.share_url}{RESET}")
        lines.append(f"QR code: {result.qr_image_url}")
        return "\n".join(lines)

    async def open(self, locator: str) -> str:
        """
        Open a share link for download.

        Returns:
            File listing, or the not-found message (session returns to start state)
        """
        view = await self.orchestrator.open_locator(locator)
        if view is None:
            self.current_view = None
            return NOT_FOUND_MESSAGE

        self.current_view = view
        lines = [view.summary()]
        for index, item in enumerate(view.files, start=1):
            lines.append(f"  [{index}] {item.name}  {format_file_size(item.size)}")
        return "\n".join(lines)

    async def download(self, target, output_dir: Optional[str] = None) -> str:
        """
        Download one file (1-based index) or "all" files of the open share.

        Returns:
            Success or error message
        """
        if self.current_view is None:
            return NO_BUNDLE_OPEN

        sink = DirectorySink(Path(output_dir) if output_dir else self.config.get_download_dir())

        try:
            if target == "all":
                delivered = await self.orchestrator.download_all(self.current_view, sink)
                return f"Successfully downloaded {pluralize(delivered, 'file')}!"

            path = self.orchestrator.download_file(self.current_view, target - 1, sink)
            return f"Downloading: {path.name} -> {path}"
        except BundleItemNotFoundError as e:
            return str(e)
        except (PayloadDecodeError, OSError) as e:
            logger.error(f"Download failed: {e}")
            return f"Download failed: {e}"

    async def sweep(self) -> str:
        removed = await self.sweeper.run_once()
        return f"Removed {pluralize(removed, 'expired share')}"

    async def qr(self, text: str, size: Optional[int] = None, output_path: Optional[str] = None) -> str:
        """
        Fetch the QR image for text and save it.

        Returns:
            Saved path, or an unavailability message
        """
        image = await fetch_qr_image(self.registration, text, size or self.config.get_qr_size())
        if image is None:
            return "QR image unavailable (are you offline?)"

        target = Path(output_path) if output_path else self.config.get_download_dir() / "qr.png"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(image)
        return f"QR image saved to {target}"
