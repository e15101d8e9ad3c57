"""
Round countdown timer.

The timer moves through ``idle -> running -> expired | cancelled``. While
running, each tick subtracts a fixed step from the remaining time; the tick
that reaches zero moves the timer to ``expired`` and calls ``on_expire``
exactly once.

Every start/cancel bumps a generation counter. A tick scheduled under an
older generation is ignored, so a cancel that lands while a tick is in
flight can never be followed by an expiry.

The timer can drive itself on the running asyncio loop (``auto_tick``) or be
advanced by hand with ``tick(dt)``, which is how tests and turn-based
callers use it.
"""

import asyncio
import logging
from typing import Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)

TimerState = Literal["idle", "running", "expired", "cancelled"]


class CountdownTimer(BaseModel):
    """
    Cancellable, resettable countdown.

    Attributes:
        tick_interval: Seconds between ticks when driving itself
        auto_tick: Tick on the asyncio loop after start(); otherwise call tick()
        state: Current timer state
        duration: Seconds the current countdown started from
        remaining: Seconds left; never increases while running
        generation: Incremented on every start and cancel
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    tick_interval: float = Field(default=0.1, gt=0)
    auto_tick: bool = True
    state: TimerState = "idle"
    duration: float = 0.0
    remaining: float = 0.0
    generation: int = 0
    _on_expire: Optional[Callable[[], None]] = None
    _task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.state == "running"

    def start(self, duration: float, on_expire: Callable[[], None]) -> None:
        """
        Start (or restart) a countdown.

        Args:
            duration: Seconds to count down from
            on_expire: Called once when the countdown reaches zero

        Raises:
            ValueError: If duration is not positive
        """
        if duration <= 0:
            raise ValueError(f"Timer duration must be positive (got {duration})")

        self._stop_task()
        self.generation += 1
        self.duration = float(duration)
        self.remaining = float(duration)
        self.state = "running"
        self._on_expire = on_expire
        logger.debug("Timer started: %.1fs (generation %d)", duration, self.generation)

        if self.auto_tick:
            self._task = asyncio.get_running_loop().create_task(self._drive(self.generation))

    def cancel(self) -> float:
        """
        Stop the countdown without firing. Safe to call any number of times.

        Returns:
            Seconds that were left when the timer stopped
        """
        if self.state == "running":
            self.state = "cancelled"
            self.generation += 1
            logger.debug("Timer cancelled with %.1fs left", self.remaining)
        self._stop_task()
        return self.remaining

    def reset(self, new_duration: float) -> None:
        """Cancel and start again from `new_duration` with the same callback."""
        callback = self._on_expire
        if callback is None:
            raise ValueError("Timer has never been started")
        self.cancel()
        self.start(new_duration, callback)

    def tick(self, dt: Optional[float] = None, generation: Optional[int] = None) -> None:
        """
        Advance the countdown by `dt` seconds (default: one tick interval).

        No-op unless running. A tick stamped with a stale generation is dropped.
        """
        if self.state != "running":
            return
        if generation is not None and generation != self.generation:
            return

        step = self.tick_interval if dt is None else max(0.0, dt)
        # Round to the tick resolution to keep float drift out of the display
        self.remaining = max(0.0, round(self.remaining - step, 6))
        if self.remaining > 0:
            return

        self.state = "expired"
        callback, self._on_expire = self._on_expire, None
        self._task = None
        logger.debug("Timer expired (generation %d)", self.generation)
        if callback is not None:
            callback()
        # Keep the callback available for reset()
        if self._on_expire is None:
            self._on_expire = callback

    async def _drive(self, generation: int) -> None:
        while self.state == "running" and self.generation == generation:
            await asyncio.sleep(self.tick_interval)
            self.tick(self.tick_interval, generation=generation)

    def _stop_task(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def fraction_remaining(self) -> float:
        """Remaining time as a fraction of the countdown's duration."""
        if self.duration <= 0:
            return 0.0
        return max(0.0, self.remaining / self.duration)
