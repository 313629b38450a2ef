"""Cancellable self-rescheduling poll timer."""
import asyncio
from typing import Awaitable, Callable

Tick = Callable[[], Awaitable[float | None]]


class PollTimer:
    """Runs ``tick`` after a delay, then again after whatever delay it returns.

    The loop ends when ``tick`` returns None or the timer is cancelled. Only
    one loop runs at a time; starting an active timer is a no-op.
    """

    def __init__(self, tick: Tick):
        self._tick = tick
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, delay: float = 0.0) -> bool:
        """Schedule the first tick. Returns False if already running."""
        if self.active:
            return False
        self._task = asyncio.get_running_loop().create_task(self._run(delay))
        return True

    def cancel(self) -> None:
        """Stop scheduling ticks."""
        if self.active and self._task is not asyncio.current_task():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the loop to end or be cancelled."""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def _run(self, delay: float) -> None:
        next_delay: float | None = delay
        while next_delay is not None:
            await asyncio.sleep(next_delay)
            next_delay = await self._tick()
