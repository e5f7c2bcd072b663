"""Repeating scheduled task driving per-frame work on the event loop."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TICK_HZ = 60.0


class Ticker:
    """Calls ``callback`` once immediately and then once per tick until cancelled."""

    def __init__(self, callback: Callable[[], None], tick_hz: float = DEFAULT_TICK_HZ, name: str = "ticker"):
        if tick_hz <= 0:
            raise ValueError(f"tick_hz must be positive, got {tick_hz}")
        self.callback = callback
        self.interval = 1.0 / tick_hz
        self.name = name
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self.running:
            logger.warning(f"Ticker {self.name} already running")
            return
        self.ticks = 0
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.debug(f"Ticker {self.name} started every {self.interval * 1000:.1f}ms")

    async def _run(self) -> None:
        while True:
            try:
                self.callback()
            except Exception:
                logger.exception(f"Ticker {self.name} callback failed on tick {self.ticks}")
            self.ticks += 1
            await asyncio.sleep(self.interval)

    def cancel(self) -> None:
        """Stop scheduling further ticks. A tick in progress is not interrupted."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug(f"Ticker {self.name} cancelled after {self.ticks} ticks")

    async def stop(self) -> None:
        """Cancel and wait until the task has finished."""
        task = self._task
        self.cancel()
        if task is not None:
            # Only a cancellation of the caller propagates out of wait()
            await asyncio.wait({task})
        self._task = None
