# search_core/debounce.py
"""
Single-slot debouncer.

Each ``submit`` schedules work to run after ``delay_s`` and cancels whatever
was still pending, so only the last submission inside the window runs.
Superseded work is discarded, never merged or queued.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

from config.constant import LOCAL_FILTER_DEBOUNCE_S

logger = logging.getLogger(__name__)


class LatestTaskSlot:
    """Holds at most one pending task; a new submission supersedes it."""

    def __init__(self, delay_s: float = LOCAL_FILTER_DEBOUNCE_S):
        self.delay_s = delay_s
        self._pending: Optional[asyncio.Task] = None
        self.superseded = 0

    @property
    def pending(self) -> Optional[asyncio.Task]:
        if self._pending is not None and not self._pending.done():
            return self._pending
        return None

    async def _run(self, fn: Callable[[], Any]) -> Any:
        await asyncio.sleep(self.delay_s)
        result = fn()
        if inspect.isawaitable(result):
            result = await result
        return result

    def submit(self, fn: Callable[[], Any]) -> asyncio.Task:
        """Schedule ``fn`` after the delay. Must be called inside a running loop."""
        previous = self.pending
        if previous is not None:
            previous.cancel()
            self.superseded += 1
            logger.debug("Debounced work superseded (%d so far)", self.superseded)
        self._pending = asyncio.get_running_loop().create_task(self._run(fn))
        return self._pending

    def cancel(self) -> None:
        task = self.pending
        if task is not None:
            task.cancel()
        self._pending = None


__all__ = [
    "LatestTaskSlot",
]
