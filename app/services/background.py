import asyncio
import logging

logger = logging.getLogger(__name__)

# Strong references so detached tasks aren't garbage collected mid-flight
_tasks: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task):
    _tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc!r}", exc_info=exc)


def spawn(coro, name: str | None = None) -> asyncio.Task:
    """Run `coro` detached from the caller. Failures are logged, never raised."""
    task = asyncio.create_task(coro, name=name)
    _tasks.add(task)
    task.add_done_callback(_on_done)
    return task


def pending() -> int:
    return len(_tasks)


async def drain(timeout: float = 5.0):
    """Wait for outstanding background work, e.g. on shutdown or in tests."""
    if not _tasks:
        return
    done, still_running = await asyncio.wait(set(_tasks), timeout=timeout)
    if still_running:
        logger.warning(f"{len(still_running)} background task(s) still running after {timeout}s")
