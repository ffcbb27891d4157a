"""
Single-consumer queue workers.

Each QueueWorker owns one FIFO queue and at most one asyncio.Task that
drains it. Producers hand items over with submit(); only the worker's own
task ever pops. Liveness is read from the task handle, so calling
ensure_running() any number of times never starts a second consumer.

Pacing is expressed as a Schedule and a per-item step() coroutine that
reports how the loop should continue:

- IDLE: queue was empty, wait `idle_seconds`
- PROCESSED: an item was handled, wait `interval_seconds`
- CONTINUE: move straight to the next item
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


class StepOutcome(Enum):
    """How the worker loop proceeds after one step."""

    IDLE = "idle"
    PROCESSED = "processed"
    CONTINUE = "continue"


@dataclass(frozen=True)
class Schedule:
    """Fixed pacing between loop iterations."""

    interval_seconds: float
    idle_seconds: float | None = None

    def delay_for(self, outcome: StepOutcome) -> float:
        if outcome is StepOutcome.CONTINUE:
            return 0.0
        if outcome is StepOutcome.IDLE and self.idle_seconds is not None:
            return self.idle_seconds
        return self.interval_seconds


class QueueWorker(Generic[T]):
    """Base class for a worker that is the sole consumer of its queue."""

    name = "worker"

    def __init__(self, schedule: Schedule, sleep: Sleeper | None = None) -> None:
        self.schedule = schedule
        self.queue: deque[T] = deque()
        self._sleep = sleep or asyncio.sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, item: T) -> None:
        """Append an item at the tail of the queue."""
        self.queue.append(item)

    def ensure_running(self) -> bool:
        """
        Start the consumer task unless one is alive.

        Must be called from inside the running event loop.

        Returns:
            True if a new task was started, False if already running
        """
        if self.is_running:
            return False
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=f"{self.name}-worker")
        logger.info("Started %s worker (%d queued)", self.name, len(self.queue))
        return True

    async def stop(self) -> None:
        """Cancel the consumer task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info("Stopped %s worker", self.name)

    async def step(self) -> StepOutcome:
        """Handle at most one queued item."""
        raise NotImplementedError

    async def _run(self) -> None:
        while True:
            try:
                outcome = await self.step()
            except Exception:
                # Keep the consumer alive; the offending item is already dequeued
                logger.exception("Unexpected error in %s worker", self.name)
                outcome = StepOutcome.PROCESSED
            delay = self.schedule.delay_for(outcome)
            if delay > 0:
                await self._sleep(delay)
            else:
                # Yield so other tasks can run between back-to-back items
                await asyncio.sleep(0)
