"""Timer-driven cache revalidation that never blocks the foreground."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

from datasync.result import Err, Result

logger = logging.getLogger(__name__)

RefreshFn = Callable[[], Awaitable[Result]]


class BackgroundRefresher:
    """
    Run `refresh` every `interval` seconds while started, and on demand.

    `refresh` reports failure by returning Err; those are logged and dropped
    so the previously cached data stays in place. Stopping cancels the
    interval timer only; a refresh already in flight runs to completion.
    """

    def __init__(
        self,
        refresh: RefreshFn,
        interval: float,
        name: str = "refresh",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.refresh = refresh
        self.interval = interval
        self.name = name
        self._sleep = sleep
        self._timer: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def run_once(self, refresh: Optional[RefreshFn] = None) -> Result:
        try:
            result = await (refresh or self.refresh)()
        except Exception as e:
            result = Err(reason=str(e), error=e)
        if not result.ok:
            logger.warning("Background %s failed: %s", self.name, result.reason)
        else:
            logger.debug("Background %s complete", self.name)
        return result

    async def _loop(self) -> None:
        while True:
            await self._sleep(self.interval)
            await self.run_once()

    def start(self) -> None:
        if self.is_running():
            return
        self._timer = asyncio.create_task(self._loop(), name=f"{self.name}-timer")
        logger.info("Background %s started (every %.0fs)", self.name, self.interval)

    def trigger(self, refresh: Optional[RefreshFn] = None) -> asyncio.Task:
        """Schedule one refresh now without waiting for it. `refresh` overrides the default."""
        task = asyncio.create_task(self.run_once(refresh), name=f"{self.name}-now")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.info("Background %s stopped", self.name)
