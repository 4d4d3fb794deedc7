"""Supervision for fire-and-forget asyncio tasks.

A ``TaskSupervisor`` holds strong references to the tasks it starts, so they
are not garbage collected mid-flight, and logs any that fail instead of
letting the exception vanish. Owners cancel or await their tasks as a set.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set

logger = logging.getLogger(__name__)


class TaskSupervisor:
    def __init__(self, label: str = "background"):
        self.label = label
        self._tasks: Set[asyncio.Task[Any]] = set()

    @property
    def running(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable[Any], *, name: Optional[str] = None,
              on_error: Optional[Callable[[BaseException], None]] = None) -> asyncio.Task[Any]:
        """Start ``coro`` as a supervised task.

        Raises RuntimeError when no event loop is running.
        """
        task = asyncio.get_running_loop().create_task(coro, name=name)  # type: ignore[arg-type]
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished(t, on_error))
        return task

    def _finished(self, t: asyncio.Task[Any], on_error: Optional[Callable[[BaseException], None]]) -> None:
        self._tasks.discard(t)
        if t.cancelled():
            logger.debug("%s task %s cancelled", self.label, t.get_name())
            return
        exc = t.exception()
        if exc is None:
            return
        if on_error:
            try:
                on_error(exc)
            except Exception:  # noqa: BLE001
                logger.exception("Error in on_error callback for %s task %s", self.label, t.get_name())
        logger.error("%s task %s failed", self.label, t.get_name(), exc_info=exc)

    async def join(self) -> None:
        """Wait until every task, including ones started meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> List[asyncio.Task[Any]]:
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        return tasks


__all__ = ["TaskSupervisor"]
