"""
Task tracker for fire-and-forget work.

Background tasks (widget refreshes) are registered here so callers can
await them in tests and on shutdown instead of leaking them.
"""

import asyncio
import logging
from typing import Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class TaskTracker:
    """Registry of in-flight asyncio tasks."""

    def __init__(self) -> None:
        self._active: Set[asyncio.Task] = set()

    def create(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        """Create an asyncio task and track it until it finishes.

        Args:
            coro: The coroutine to run as a task
            name: Optional name for the task (for debugging)

        Returns:
            The created task
        """
        task = asyncio.create_task(coro, name=name)
        self._active.add(task)
        task.add_done_callback(self._on_done)
        logger.debug(f"Created tracked task: {task.get_name()}")
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._active.discard(task)
        if task.cancelled():
            logger.info(f"Task cancelled: {task.get_name()}")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Task failed: {task.get_name()}",
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        else:
            logger.debug(f"Task completed: {task.get_name()}")

    @property
    def active_count(self) -> int:
        return len(self._active)

    async def wait(self, timeout: Optional[float] = None) -> None:
        """Wait for all tracked tasks, including ones spawned while waiting."""
        while self._active:
            tasks = list(self._active)
            try:
                await asyncio.wait_for(
                    asyncio.gather(*tasks, return_exceptions=True), timeout=timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Timeout waiting for tasks. "
                    f"Remaining: {len([t for t in tasks if not t.done()])}"
                )
                return

    async def cancel_all(self, timeout: float = 5.0) -> int:
        """Cancel all tracked tasks and wait for them to finish.

        Returns:
            Number of tasks that were cancelled
        """
        tasks = list(self._active)
        if not tasks:
            return 0

        logger.info(f"Cancelling {len(tasks)} active tasks...")
        for task in tasks:
            if not task.done():
                task.cancel()

        try:
            await asyncio.wait_for(
                asyncio.gather(*tasks, return_exceptions=True), timeout=timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Timeout waiting for tasks to cancel")

        cancelled = sum(1 for t in tasks if t.cancelled())
        logger.info(f"Cancelled {cancelled}/{len(tasks)} tasks")
        return cancelled
