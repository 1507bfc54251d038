"""
Detached Background Tasks

Cache writes and stale-while-revalidate refreshes run detached from the
response they belong to. Their contract:
- the caller never awaits them
- their errors are logged, never surfaced
- a reference is held until they finish so they are not garbage collected
"""

import asyncio
from typing import Any, Coroutine

import structlog


logger = structlog.get_logger(__name__)


class BackgroundTasks:
    """Registry of fire-and-forget tasks."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("background_task_failed", task=task.get_name(), error=str(error))

    async def drain(self) -> None:
        """Wait until every task (including ones spawned meanwhile) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
