"""
Single-flight periodic refresh.

The poller calls a blocking refresh function on a fixed interval in a
worker thread. At most one refresh runs at a time: a tick that finds a
refresh still running is skipped, and an on-demand refresh joins the one
already in flight. Stopping the poller cancels the loop and the running
refresh.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

from feedportal.utils import now

logger = logging.getLogger(__name__)


class SingleFlightPoller:
    def __init__(self, refresh: Callable[[], Any], interval: float, name: str = 'poller'):
        self._refresh = refresh
        self.interval = interval
        self.name = name
        self._loop_task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self.result = None
        self.error: Optional[str] = None
        self.refreshed_at = None
        self.runs = 0
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def _execute(self):
        self.runs += 1
        try:
            result = await asyncio.to_thread(self._refresh)
        except asyncio.CancelledError:
            logger.info(f"{self.name}: refresh cancelled")
            raise
        except Exception as e:
            self.error = str(e)
            logger.error(f"{self.name}: refresh failed: {e}")
            raise
        self.result = result
        self.error = None
        self.refreshed_at = now()
        return result

    @staticmethod
    def _collect(task: asyncio.Task) -> None:
        # Failures were logged in _execute; retrieve them so asyncio does not warn
        if not task.cancelled():
            task.exception()

    def trigger(self) -> asyncio.Task:
        """Start a refresh unless one is running; returns the in-flight task."""
        if not self.in_flight:
            self._inflight = asyncio.create_task(self._execute())
            self._inflight.add_done_callback(self._collect)
        return self._inflight

    async def refresh(self):
        """Refresh now, joining the in-flight refresh if there is one."""
        # A caller that goes away must not cancel the shared refresh
        return await asyncio.shield(self.trigger())

    async def _run(self):
        while True:
            if self.in_flight:
                self.skipped += 1
                logger.debug(f"{self.name}: previous refresh still running, tick skipped")
            else:
                self.trigger()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        logger.info(f"{self.name}: polling every {self.interval}s")
        self._loop_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        tasks = [t for t in (self._loop_task, self._inflight) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._inflight = None
        logger.info(f"{self.name}: stopped")
