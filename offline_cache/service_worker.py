"""
Versioned resource cache worker: install / activate / fetch lifecycle.

A ResourceCacheWorker owns one cache generation (a static namespace tag plus
the shared dynamic namespace). A WorkerRegistration tracks which worker is
installing, waiting and active, and routes fetches through the active one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from common.constants import BACKGROUND_SYNC_TAG, LOGO_URL, SKIP_WAITING_MESSAGE
from common.exceptions import InstallFailedError, NetworkFailureError
from offline_cache.cache_storage import CacheStorage
from offline_cache.fetcher import NetworkFetcher
from offline_cache.http_types import CachedRequest, CachedResponse, ResponseType
from offline_cache.manifest import CacheManifest

logger = logging.getLogger(__name__)


class WorkerState(Enum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


@dataclass(frozen=True)
class PushNotification:
    """Notification shown in response to a push message."""
    title: str
    body: str
    icon: str = LOGO_URL
    badge: str = LOGO_URL
    vibrate: tuple = (200, 100, 200)
    data: Any = None
    actions: tuple = field(default_factory=lambda: (
        {'action': 'view', 'title': 'View', 'icon': LOGO_URL},
        {'action': 'close', 'title': 'Close', 'icon': LOGO_URL},
    ))


class ResourceCacheWorker:
    """
    Cache-first fetch handler for one cache generation.
    """

    def __init__(
        self,
        manifest: CacheManifest,
        storage: CacheStorage,
        fetcher: NetworkFetcher,
        skip_waiting_on_install: bool = True
    ):
        """
        Initialize worker.

        Args:
            manifest: Precache manifest and namespace names for this generation
            storage: Cache storage shared with other generations
            fetcher: Network layer
            skip_waiting_on_install: Request immediate activation after a successful install
        """
        self.manifest = manifest
        self.storage = storage
        self.fetcher = fetcher
        self.skip_waiting_on_install = skip_waiting_on_install
        self.state = WorkerState.PARSED
        self.skip_waiting_requested = False
        self.registration: Optional['WorkerRegistration'] = None
        self._pending: Set[asyncio.Task] = set()

    # Lifecycle

    async def install(self) -> None:
        """
        Precache every manifest URL into the static namespace.

        All entries are fetched before anything is written; a single failure
        leaves the static namespace exactly as it was.

        Raises:
            InstallFailedError: If any manifest entry cannot be fetched or stored
        """
        self.state = WorkerState.INSTALLING
        logger.info(f"Resource cache installing [cache={self.manifest.static_cache_name}]")

        requests = [CachedRequest(url=url) for url in self.manifest.resolved_urls()]
        results = await asyncio.gather(
            *(self._fetch_for_install(request) for request in requests),
            return_exceptions=True
        )

        failures = [
            (request.url, result)
            for request, result in zip(requests, results)
            if isinstance(result, BaseException)
        ]
        if failures:
            self.state = WorkerState.REDUNDANT
            url, error = failures[0]
            logger.error(
                f"Resource cache installation failed: {len(failures)} of {len(requests)} "
                f"manifest entries failed (first: {url}: {error})"
            )
            raise InstallFailedError(f"Failed to precache {url}: {error}") from error

        existed = await self.storage.has(self.manifest.static_cache_name)
        try:
            cache = await self.storage.open(self.manifest.static_cache_name)
            logger.info("Caching static assets")
            await cache.put_all(zip(requests, results))
        except Exception as e:
            if not existed:
                await self.storage.delete(self.manifest.static_cache_name)
            self.state = WorkerState.REDUNDANT
            logger.error(f"Resource cache installation failed while storing: {e}")
            raise InstallFailedError(f"Failed to store precached assets: {e}") from e

        self.state = WorkerState.INSTALLED
        logger.info("Resource cache installed successfully")

        if self.skip_waiting_on_install:
            await self.skip_waiting()

    async def _fetch_for_install(self, request: CachedRequest) -> CachedResponse:
        response = await self.fetcher.fetch(request)
        if not response.ok:
            raise InstallFailedError(
                f"Request for {request.url} returned status {response.status}"
            )
        return response

    async def skip_waiting(self) -> None:
        """Request activation without waiting for controlled clients to close."""
        self.skip_waiting_requested = True
        if self.registration is not None and self.registration.waiting is self:
            await self.registration.promote()

    async def activate(self) -> None:
        """
        Delete every namespace other than this generation's static and
        dynamic ones, then take control of all clients.
        """
        if self.state is not WorkerState.INSTALLED:
            raise RuntimeError(f"Cannot activate worker in state {self.state.value}")

        self.state = WorkerState.ACTIVATING
        logger.info("Resource cache activating...")

        keep = self.manifest.kept_cache_names
        for name in await self.storage.keys():
            if name not in keep:
                logger.info(f"Deleting old cache: {name}")
                await self.storage.delete(name)

        self.state = WorkerState.ACTIVATED
        logger.info("Resource cache activated")

        if self.registration is not None:
            self.registration.claim(self)

    # Fetch interception

    async def handle_fetch(self, request: CachedRequest) -> Optional[CachedResponse]:
        """
        Produce a response for an outbound request.

        Args:
            request: Intercepted request

        Returns:
            Response, or None when a cross-origin request failed

        Raises:
            NetworkFailureError: Same-origin request with no cache entry, no
                network and (for navigations) no cached shell
        """
        if request.method.upper() != "GET":
            return await self.fetcher.fetch(request)

        if request.origin == self.manifest.origin:
            return await self._handle_same_origin(request)
        return await self._handle_cross_origin(request)

    async def _handle_same_origin(self, request: CachedRequest) -> CachedResponse:
        cached = await self.storage.match(request)
        if cached is not None:
            return cached

        try:
            response = await self.fetcher.fetch(request)
        except NetworkFailureError:
            if request.is_navigation:
                shell = await self.storage.match(CachedRequest(url=self.manifest.shell_url))
                if shell is not None:
                    logger.info(f"Offline, serving cached shell for {request.url}")
                    return shell
                logger.warning(f"Offline and no cached shell for {request.url}")
            raise

        if response.status == 200 and response.type is ResponseType.BASIC:
            self._cache_in_background(request, response.clone())

        return response

    async def _handle_cross_origin(self, request: CachedRequest) -> Optional[CachedResponse]:
        cached = await self.storage.match(request)
        if cached is not None:
            return cached

        try:
            response = await self.fetcher.fetch(request)
        except NetworkFailureError as e:
            logger.info(f"External request failed: {request.url} ({e})")
            return None

        if response.status == 200:
            self._cache_in_background(request, response.clone())

        return response

    def _cache_in_background(self, request: CachedRequest, response: CachedResponse) -> None:
        task = asyncio.create_task(self._store_dynamic(request, response))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _store_dynamic(self, request: CachedRequest, response: CachedResponse) -> None:
        try:
            cache = await self.storage.open(self.manifest.dynamic_cache_name)
            await cache.put(request, response)
            logger.debug(f"Cached runtime response for {request.url}")
        except Exception as e:
            logger.warning(f"Failed to cache runtime response for {request.url}: {e}")

    async def wait_until_idle(self) -> None:
        """Wait for every background cache write started so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # Ancillary channels

    async def handle_message(self, message: Dict[str, Any]) -> bool:
        """
        Handle a message posted by a page.

        Returns:
            True if the message was recognised
        """
        if message and message.get('type') == SKIP_WAITING_MESSAGE:
            logger.info("Received skip-waiting message")
            await self.skip_waiting()
            return True
        return False

    async def handle_sync(self, tag: str) -> bool:
        """
        Handle a background sync event.

        Returns:
            True if the tag was recognised
        """
        if tag == BACKGROUND_SYNC_TAG:
            logger.info("Background sync triggered")
            return True
        return False

    def handle_push(self, payload: Optional[Dict[str, Any]]) -> Optional[PushNotification]:
        """
        Build the notification for a push message, if it carries data.
        """
        if not payload:
            return None
        return PushNotification(
            title=payload.get('title', ''),
            body=payload.get('body', ''),
            data=payload.get('data'),
        )

    def handle_notification_click(self, action: Optional[str]) -> Optional[str]:
        """
        Return the URL to open for a notification action, if any.
        """
        if action == 'view':
            return '/'
        return None


class WorkerRegistration:
    """
    Tracks installing, waiting and active workers plus the clients (pages)
    they control.
    """

    def __init__(self, fetcher: NetworkFetcher):
        """
        Initialize registration.

        Args:
            fetcher: Network layer used while no worker is active
        """
        self.fetcher = fetcher
        self.installing: Optional[ResourceCacheWorker] = None
        self.waiting: Optional[ResourceCacheWorker] = None
        self.active: Optional[ResourceCacheWorker] = None
        self.clients: Dict[str, Optional[ResourceCacheWorker]] = {}

    async def register(self, worker: ResourceCacheWorker) -> bool:
        """
        Install a new worker and activate it when allowed.

        Args:
            worker: New cache generation

        Returns:
            True if the worker installed successfully
        """
        worker.registration = self
        self.installing = worker

        try:
            await worker.install()
        except InstallFailedError as e:
            self.installing = None
            if self.active is not None:
                logger.warning(f"New cache version not installed, current version keeps serving: {e}")
            else:
                logger.warning(f"Cache not installed, running uncached: {e}")
            return False

        self.installing = None
        if self.waiting is not None and self.waiting is not worker:
            self.waiting.state = WorkerState.REDUNDANT
        if worker.state is WorkerState.INSTALLED:
            self.waiting = worker

        if self.waiting is worker and (worker.skip_waiting_requested or not self._has_controlled_clients()):
            await self.promote()
        return True

    async def promote(self) -> None:
        """Make the waiting worker active, superseding the current one."""
        worker = self.waiting
        if worker is None:
            return

        self.waiting = None
        previous = self.active
        self.active = worker
        await worker.activate()

        if previous is not None and previous is not worker:
            previous.state = WorkerState.REDUNDANT
            logger.info("Previous cache version superseded")

    def claim(self, worker: ResourceCacheWorker) -> None:
        """Set worker as the controller of every attached client."""
        for client_id in self.clients:
            self.clients[client_id] = worker
        logger.debug(f"Claimed {len(self.clients)} client(s)")

    def _has_controlled_clients(self) -> bool:
        return any(controller is not None for controller in self.clients.values())

    def attach_client(self, client_id: str) -> Optional[ResourceCacheWorker]:
        """
        Register a newly opened page; it is controlled by the active worker.

        Returns:
            The controlling worker, or None when running uncached
        """
        self.clients[client_id] = self.active
        return self.active

    async def detach_client(self, client_id: str) -> None:
        """Forget a closed page; a waiting worker activates once none remain."""
        self.clients.pop(client_id, None)
        if self.waiting is not None and not self._has_controlled_clients():
            await self.promote()

    def controlled_clients(self) -> List[str]:
        return [cid for cid, controller in self.clients.items() if controller is not None]

    async def fetch(self, request: CachedRequest) -> Optional[CachedResponse]:
        """
        Fetch through the active worker, or straight from the network when
        no cache generation is active.
        """
        if self.active is None:
            return await self.fetcher.fetch(request)
        return await self.active.handle_fetch(request)

    async def post_message(self, message: Dict[str, Any]) -> bool:
        """Deliver a page message to the waiting worker, else the active one."""
        target = self.waiting or self.active
        if target is None:
            return False
        return await target.handle_message(message)
