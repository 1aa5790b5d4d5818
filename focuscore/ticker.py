"""One-second driver for a SessionTimer, running as an asyncio task.

The ticker is the engine's only background activity. It stops on its own
when the timer goes idle and can be cancelled at any point, so a torn-down
screen never leaves a stale loop mutating timer state.
"""

from __future__ import annotations

import asyncio
import logging

from focuscore.errors import PersistenceError
from focuscore.timer import SessionTimer

logger = logging.getLogger(__name__)


class Ticker:
    def __init__(self, timer: SessionTimer, interval: float = 1.0) -> None:
        self.timer = timer
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Schedule the tick loop on the running event loop."""
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait until the loop ends (timer idle or cancelled)."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        try:
            while self.timer.is_active:
                await asyncio.sleep(self.interval)
                try:
                    completed = self.timer.tick()
                except PersistenceError as e:
                    # Session is already kept locally; the timer has moved on.
                    logger.warning("Tick completed a session that could not be persisted: %s", e)
                    continue
                if completed is not None:
                    logger.debug("Ticker observed completion of %s", completed.id)
        except asyncio.CancelledError:
            logger.debug("Ticker cancelled")
            raise
