"""Timing helpers for the answer flow: the answer clock and delayed advances."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from trivia_app.constants.game_constants import ADVANCE_DELAY_MS

logger = logging.getLogger(__name__)


class QuestionClock:
    """Measures the time since the current question became answerable."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started_at: float | None = None

    def restart(self) -> None:
        self._started_at = self._clock()

    def stop(self) -> None:
        self._started_at = None

    def elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return max(0, int((self._clock() - self._started_at) * 1000))


class AdvanceScheduler:
    """Runs one delayed callback per session id on the running event loop.

    Scheduling again for the same session replaces the pending callback.
    """

    def __init__(self, delay_ms: int = ADVANCE_DELAY_MS) -> None:
        self.delay_ms = delay_ms
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def schedule(self, session_id: str, callback: Callable[[], None]) -> asyncio.Task[None]:
        self.cancel(session_id)
        task = asyncio.get_running_loop().create_task(self._run(session_id, callback))
        self._tasks[session_id] = task
        return task

    def cancel(self, session_id: str) -> bool:
        task = self._tasks.pop(session_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Cancelled pending advance for session %s", session_id)
        return True

    def cancel_all(self) -> None:
        for session_id in list(self._tasks):
            self.cancel(session_id)

    def is_pending(self, session_id: str) -> bool:
        task = self._tasks.get(session_id)
        return task is not None and not task.done()

    async def wait_idle(self) -> None:
        """Wait until every scheduled callback has fired or been cancelled."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, session_id: str, callback: Callable[[], None]) -> None:
        await asyncio.sleep(self.delay_ms / 1000)
        if self._tasks.get(session_id) is asyncio.current_task():
            del self._tasks[session_id]
        callback()
