"""Background task that revokes expired publications."""

import asyncio
import logging
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from courier import publisher

logger = logging.getLogger(__name__)

REAPER_INTERVAL_SECONDS = 3600


class PublicationReaper:
    """
    Periodically deletes token directories older than a maximum age.
    """

    def __init__(self, publish_root: Path, max_age: timedelta, interval_seconds: int = REAPER_INTERVAL_SECONDS):
        """
        Initialize reaper task.

        Args:
            publish_root: Directory holding the token directories
            max_age: Publications older than this are revoked
            interval_seconds: Time between sweeps (default 1 hour)
        """
        self.publish_root = publish_root
        self.max_age = max_age
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            logger.warning("Publication reaper already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Started publication reaper (max age: {int(self.max_age.total_seconds())}s, "
            f"interval: {self.interval_seconds}s)"
        )

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
        logger.info("Stopped publication reaper")

    async def sweep(self) -> List[str]:
        """Run one sweep now; returns the revoked tokens."""
        return await asyncio.to_thread(publisher.prune_expired, self.publish_root, self.max_age)

    async def _run(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self.sweep()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in publication reaper: {e}", exc_info=True)
