"""Tick-driven deferred callbacks.

Everything runs on the thread that calls ``tick()``, once per frame. A
scheduled task is the only way to "wait": the caller returns and the task
fires on a later tick unless it was cancelled first.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a callback due on a specific tick."""

    __slots__ = ("_callback", "due_tick", "_cancelled")

    def __init__(self, callback: Callable[[], None], due_tick: int) -> None:
        self._callback = callback
        self.due_tick = due_tick
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Invalidate the task. Harmless if it already ran."""
        self._cancelled = True

    def _run(self) -> None:
        self._callback()


class TickScheduler:
    """Runs scheduled callbacks in order as logical ticks advance.

    Usage:
        ticks = TickScheduler()
        task = ticks.schedule_next_tick(do_something)
        ticks.tick()  # do_something runs here unless task.cancel() was called
    """

    def __init__(self) -> None:
        self._current_tick = 0
        self._tasks: list[ScheduledTask] = []

    @property
    def current_tick(self) -> int:
        return self._current_tick

    def schedule(self, callback: Callable[[], None], delay: int = 1) -> ScheduledTask:
        """Run ``callback`` ``delay`` ticks from now (at least one)."""
        task = ScheduledTask(callback, self._current_tick + max(delay, 1))
        self._tasks.append(task)
        return task

    def schedule_next_tick(self, callback: Callable[[], None]) -> ScheduledTask:
        return self.schedule(callback, 1)

    def tick(self) -> None:
        """Advance one tick and run every task now due, in scheduling order."""
        self._current_tick += 1
        due = [task for task in self._tasks if task.due_tick <= self._current_tick]
        self._tasks = [task for task in self._tasks if task.due_tick > self._current_tick]
        for task in due:
            if task.cancelled:
                continue
            try:
                task._run()
            except Exception:
                logger.exception("Scheduled task failed on tick %d", self._current_tick)
