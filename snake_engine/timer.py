"""Cancelable recurring tick timer on the running asyncio loop."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TickTimer:
    def __init__(self):
        self._task: Optional[asyncio.Task] = None
        self.interval_ms: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_ms: int, callback: Callable[[], None]):
        """Start calling callback every interval_ms. Must be called from the event loop."""
        self.stop()
        loop = asyncio.get_running_loop()
        self.interval_ms = interval_ms
        self._task = loop.create_task(self._run(interval_ms / 1000, callback))

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self, interval: float, callback: Callable[[], None]):
        while True:
            await asyncio.sleep(interval)
            try:
                callback()
            except Exception:
                logger.exception("Tick callback failed")
