"""Self-pacing repeated task with cancellation."""

import asyncio
from typing import Awaitable, Callable, Protocol

from roomchat.logging_config import get_logger

logger = get_logger(__name__)


class IScheduledTask(Protocol):
    """A callback re-armed after each run."""

    def start(self) -> None:
        """Begin running the callback."""
        ...

    async def stop(self) -> None:
        """Cancel the pending run."""
        ...

    def poke(self) -> None:
        """Run again now instead of waiting out the delay."""
        ...


class ScheduledTask:
    """Runs a callback, waits a fixed delay, repeats.

    The next run is scheduled only after the previous one finishes, whether it
    succeeded or failed, so runs never overlap and failures retry at the same
    pace.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        interval: float,
        name: str = "scheduled-task",
    ):
        self._callback = callback
        self._interval = interval
        self._name = name
        self._wake = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.runs = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin running the callback."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self._name)

    async def stop(self) -> None:
        """Cancel the pending run."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def poke(self) -> None:
        """Run again now instead of waiting out the delay."""
        self._wake.set()

    async def _loop(self) -> None:
        while True:
            # Cleared before the run so a poke during it triggers another
            self._wake.clear()
            try:
                await self._callback()
            except Exception as e:
                self.failures += 1
                logger.warning("%s run failed: %s", self._name, e)
            self.runs += 1

            # asyncio.wait, not wait_for: a stop() landing as the poke fires
            # must still cancel the loop
            waiter = asyncio.ensure_future(self._wake.wait())
            try:
                await asyncio.wait({waiter}, timeout=self._interval)
            finally:
                waiter.cancel()
