"""
Cancellable repeating task for asyncio
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union


logger = logging.getLogger(__name__)

Interval = Union[float, Callable[[], float]]


class PeriodicTask:
    """
    Run `callback` every `interval` seconds until stopped

    `interval` may be a callable; it is re-evaluated after every run, which
    is how adaptive cadences switch speed without recreating the timer.
    A failing run is logged and the loop carries on.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], interval: Interval, name: str = "periodic"):
        self._callback = callback
        self._interval = interval
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def current_interval(self) -> float:
        return self._interval() if callable(self._interval) else self._interval

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(f"{self.name} run failed")
            await asyncio.sleep(self.current_interval())
