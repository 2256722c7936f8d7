"""Bundle persistence keyed by opaque id, with lazy and eager expiry."""

import logging
from typing import Callable, List, Optional

from bundlestore.record_schema import parse_bundle, serialize_bundle
from common.constants import STORAGE_KEY_PREFIX
from common.exceptions import CorruptRecordError
from common.kv_store import KeyValueStore
from common.types import Bundle
from common.utils import now_ms

logger = logging.getLogger(__name__)


class BundleStore:
    """
    Stores immutable bundles under "airdrop_<id>" in a key-value backend.

    Expired bundles are removed lazily when read and eagerly by sweep().
    Lookups are by id only; the id is the credential handed out in a locator.
    """

    def __init__(self, kv: KeyValueStore, clock: Callable[[], int] = now_ms):
        """
        Initialize the store.

        Args:
            kv: Key-value backend (memory or SQLite)
            clock: Source of the current time in epoch milliseconds
        """
        self.kv = kv
        self.clock = clock

    @staticmethod
    def _key(bundle_id: str) -> str:
        return f"{STORAGE_KEY_PREFIX}{bundle_id}"

    async def put(self, bundle: Bundle) -> None:
        """
        Persist a bundle under its id.

        Args:
            bundle: Bundle with at least one item

        Raises:
            ValueError: If the bundle has no items
            StorageFullError: If the backend quota is exceeded
        """
        if not bundle.items:
            raise ValueError("Cannot store a bundle with no files")

        await self.kv.set(self._key(bundle.id), serialize_bundle(bundle))
        logger.info(
            f"Stored bundle {bundle.id} ({len(bundle.items)} file(s), expires={bundle.expires_at})"
        )

    async def get(self, bundle_id: str) -> Optional[Bundle]:
        """
        Retrieve a live bundle.

        An expired or corrupt record is deleted as a side effect.

        Args:
            bundle_id: Identifier from the locator

        Returns:
            Bundle if present and not expired, None otherwise
        """
        key = self._key(bundle_id)
        raw = await self.kv.get(key)
        if raw is None:
            logger.debug(f"Bundle {bundle_id} not found")
            return None

        try:
            bundle = parse_bundle(raw)
        except CorruptRecordError as e:
            logger.error(f"Removing corrupt bundle record {key}: {e}")
            await self.kv.delete(key)
            return None

        if bundle.is_expired(self.clock()):
            logger.info(f"Bundle {bundle_id} has expired, removing")
            await self.kv.delete(key)
            return None

        return bundle

    async def delete(self, bundle_id: str) -> None:
        """Remove a bundle. No error if it does not exist."""
        if await self.kv.delete(self._key(bundle_id)):
            logger.debug(f"Deleted bundle {bundle_id}")

    async def exists(self, bundle_id: str) -> bool:
        """Check whether any record (live or not) occupies this id."""
        return await self.kv.contains(self._key(bundle_id))

    async def _list_ids(self) -> List[str]:
        keys = await self.kv.keys(STORAGE_KEY_PREFIX)
        return [key[len(STORAGE_KEY_PREFIX):] for key in keys]

    async def sweep(self, now: Optional[int] = None) -> int:
        """
        Delete every expired or unparseable bundle.

        Args:
            now: Reference time in epoch milliseconds (defaults to the clock)

        Returns:
            Number of records removed
        """
        if now is None:
            now = self.clock()

        removed = 0
        for bundle_id in await self._list_ids():
            key = self._key(bundle_id)
            raw = await self.kv.get(key)
            if raw is None:
                continue

            try:
                bundle = parse_bundle(raw)
            except CorruptRecordError as e:
                logger.error(f"Error parsing stored key {key}, removing: {e}")
                await self.kv.delete(key)
                removed += 1
                continue

            if bundle.expires_at < now:
                await self.kv.delete(key)
                logger.info(f"Cleaned up expired bundle: {key}")
                removed += 1

        if removed:
            logger.info(f"Sweep removed {removed} bundle(s)")
        return removed
