import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

logger = logging.getLogger("eduplatform.timers")


async def _invoke(callback: Callable[[], Any]) -> None:
    try:
        result = callback()
        if inspect.isawaitable(result):
            await result
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Timer callback %r failed", callback)


class Timers:
    """setTimeout/setInterval on top of the running asyncio loop.

    Callbacks may be plain functions or coroutine functions. A handle returned
    by ``set_timeout``/``set_interval`` is cancelled with ``clear``.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def set_timeout(self, callback: Callable[[], Any], delay: float) -> asyncio.Task:
        async def run():
            await asyncio.sleep(delay)
            await _invoke(callback)

        return self._spawn(run())

    def set_interval(self, callback: Callable[[], Any], interval: float) -> asyncio.Task:
        async def run():
            while True:
                await asyncio.sleep(interval)
                await _invoke(callback)

        return self._spawn(run())

    def clear(self, handle: Optional[asyncio.Task]) -> None:
        if handle is not None and not handle.done():
            handle.cancel()

    def clear_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
