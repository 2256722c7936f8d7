"""
Named cache namespaces persisted in a key-value store.

Each namespace maps request keys ("GET <url>") to response snapshots. The
list of namespace names is kept under a single registry key, in creation
order, so that cross-namespace lookups are deterministic.
"""

import asyncio
import json
import logging
from typing import Iterable, List, Optional, Tuple

from common.constants import CACHE_KEY_PREFIX
from common.kv_store import KeyValueStore
from offline_cache.http_types import CachedRequest, CachedResponse

logger = logging.getLogger(__name__)

REGISTRY_KEY = f"{CACHE_KEY_PREFIX}names"
ENTRY_SEPARATOR = "|"


class CacheNamespace:
    """
    A single named cache.
    """

    def __init__(self, storage: 'CacheStorage', name: str):
        self._storage = storage
        self.name = name

    @property
    def _prefix(self) -> str:
        return f"{CACHE_KEY_PREFIX}entry:{self.name}{ENTRY_SEPARATOR}"

    def _entry_key(self, request: CachedRequest) -> str:
        return f"{self._prefix}{request.cache_key}"

    async def match(self, request: CachedRequest) -> Optional[CachedResponse]:
        """
        Look up a stored response for this exact request.

        Unreadable entries are treated as misses.

        Args:
            request: Request to match (method + URL without fragment)

        Returns:
            A clone of the stored response, or None
        """
        raw = await self._storage.kv.get(self._entry_key(request))
        if raw is None:
            return None
        try:
            return CachedResponse.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Dropping unreadable cache entry in {self.name}: {e}")
            await self._storage.kv.delete(self._entry_key(request))
            return None

    async def put(self, request: CachedRequest, response: CachedResponse) -> None:
        """
        Store a response snapshot; the last write for a key wins.

        Raises:
            StorageFullError: If the backend quota is exceeded
        """
        await self._storage.kv.set(self._entry_key(request), response.to_json())

    async def put_all(self, entries: Iterable[Tuple[CachedRequest, CachedResponse]]) -> None:
        """
        Store several responses. On failure every entry touched by this call
        is restored to its previous value before the error propagates.
        """
        kv = self._storage.kv
        previous: List[Tuple[str, Optional[str]]] = []
        try:
            for request, response in entries:
                key = self._entry_key(request)
                previous.append((key, await kv.get(key)))
                await self.put(request, response)
        except Exception:
            for key, old_value in reversed(previous):
                if old_value is None:
                    await kv.delete(key)
                else:
                    await kv.set(key, old_value)
            raise

    async def delete(self, request: CachedRequest) -> bool:
        return await self._storage.kv.delete(self._entry_key(request))

    async def keys(self) -> List[str]:
        """List stored request keys ("GET <url>") in this namespace."""
        prefix = self._prefix
        return [key[len(prefix):] for key in await self._storage.kv.keys(prefix)]

    async def clear(self) -> int:
        prefix = self._prefix
        removed = 0
        for key in await self._storage.kv.keys(prefix):
            if await self._storage.kv.delete(key):
                removed += 1
        return removed


class CacheStorage:
    """
    Registry of named cache namespaces sharing one key-value backend.
    """

    def __init__(self, kv: KeyValueStore):
        """
        Initialize cache storage.

        Args:
            kv: Key-value backend shared by every namespace
        """
        self.kv = kv
        self._registry_lock: Optional[asyncio.Lock] = None

    def _lock(self) -> asyncio.Lock:
        # Created on first use so it binds to the running loop
        if self._registry_lock is None:
            self._registry_lock = asyncio.Lock()
        return self._registry_lock

    async def _load_names(self) -> List[str]:
        raw = await self.kv.get(REGISTRY_KEY)
        if raw is None:
            return []
        try:
            names = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Cache registry unreadable, starting empty: {e}")
            return []
        return [name for name in names if isinstance(name, str)]

    async def _save_names(self, names: List[str]) -> None:
        await self.kv.set(REGISTRY_KEY, json.dumps(names))

    async def keys(self) -> List[str]:
        """List namespace names in creation order."""
        return await self._load_names()

    async def has(self, name: str) -> bool:
        return name in await self._load_names()

    async def open(self, name: str) -> CacheNamespace:
        """
        Open a namespace, creating it if it does not exist.

        Args:
            name: Namespace name (e.g. a versioned static cache tag)

        Returns:
            CacheNamespace handle
        """
        async with self._lock():
            names = await self._load_names()
            if name not in names:
                names.append(name)
                await self._save_names(names)
                logger.debug(f"Created cache namespace {name}")
        return CacheNamespace(self, name)

    async def delete(self, name: str) -> bool:
        """
        Delete a namespace and all its entries.

        Returns:
            True if the namespace existed
        """
        async with self._lock():
            names = await self._load_names()
            if name not in names:
                return False

            removed = await CacheNamespace(self, name).clear()
            names.remove(name)
            await self._save_names(names)
        logger.debug(f"Deleted cache namespace {name} ({removed} entries)")
        return True

    async def match(self, request: CachedRequest) -> Optional[CachedResponse]:
        """
        Search every namespace, in creation order, for the request.

        Returns:
            The first stored response found, or None
        """
        for name in await self._load_names():
            response = await CacheNamespace(self, name).match(request)
            if response is not None:
                return response
        return None
