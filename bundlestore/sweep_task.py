"""Background task for removing expired bundles."""

import asyncio
import logging
from typing import Optional

from bundlestore.object_store import BundleStore
from common.constants import DEFAULT_SWEEP_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class ExpiredBundleSweeper:
    """
    Background task that sweeps the bundle store once at startup and then
    periodically.
    """

    def __init__(self, store: BundleStore, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS):
        """
        Initialize sweeper task.

        Args:
            store: Bundle store to sweep
            interval_seconds: Time between sweeps (default 1 hour)
        """
        self.store = store
        self.interval_seconds = interval_seconds
        self.total_removed = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Run a startup sweep, then start the periodic task."""
        if self._running:
            logger.warning("Sweep task already running")
            return

        await self.run_once()

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started expired bundle sweep task (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Stopped expired bundle sweep task")

    async def run_once(self) -> int:
        """
        Execute one sweep cycle.

        Returns:
            Number of bundles removed in this cycle
        """
        removed = await self.store.sweep()
        self.total_removed += removed
        logger.debug(f"Sweep cycle complete: {removed} removed")
        return removed

    async def _run(self) -> None:
        """Main loop for sweep task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self.run_once()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in sweep task: {e}", exc_info=True)
