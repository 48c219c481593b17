"""
Task utilities for fire-and-forget background work.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from utils.logging import get_logger

logger = get_logger(__name__)

# Strong references so pending tasks are not garbage collected mid-flight
_background_tasks: set[asyncio.Task[Any]] = set()


def spawn(coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
    """
    Spawn a coroutine as a background task.

    Exceptions raised by the task are logged when it finishes, so a failing
    status update never takes down the event handler that started it.

    Args:
        coro: The coroutine to spawn as a task
        name: Optional task name used in log lines

    Returns:
        The created asyncio task
    """
    task = asyncio.create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_on_task_done)
    return task


def _on_task_done(task: asyncio.Task[Any]) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        logger.debug(f"Task {task.get_name()} cancelled")
        return
    exc = task.exception()
    if exc:
        logger.error(f"Task {task.get_name()} failed with exception", exc_info=exc)


async def cancel_background_tasks() -> None:
    """Cancel and await every task started through ``spawn``."""
    tasks = list(_background_tasks)
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
    _background_tasks.clear()
