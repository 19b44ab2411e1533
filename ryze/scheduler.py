"""
Periodic poll scheduler.

Fires a job on wall-clock aligned ticks (second 0 of every minute with the
default interval) and never runs two cycles at once.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


def seconds_until_next_tick(now: float, interval: float) -> float:
    """
    Delay from ``now`` to the next multiple of ``interval``.

    Parameters
    ----------
    now : float
        Current UNIX timestamp.
    interval : float
        Tick interval in seconds.

    Returns
    -------
    float
        Seconds to wait, in ``(0, interval]``.
    """
    return interval - (now % interval)


class PollScheduler:
    """
    Run an async job on aligned ticks with a single-flight guard.

    A tick that fires while the previous cycle is still running is skipped.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[object]],
        interval: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the scheduler.

        Parameters
        ----------
        job : Callable[[], Awaitable]
            Coroutine function run on each tick.
        interval : float
            Seconds between ticks.
        clock : Callable[[], float]
            Wall-clock source used for alignment.
        """
        self.job = job
        self.interval = interval
        self._clock = clock
        self._running = False
        self._timer: asyncio.Task | None = None
        self._current: asyncio.Task | None = None
        self.skipped_ticks = 0

    @property
    def is_busy(self) -> bool:
        """Whether a cycle is currently running."""
        return self._current is not None and not self._current.done()

    def start(self) -> None:
        """Start the timer task."""
        if self._timer is not None and not self._timer.done():
            return
        self._running = True
        self._timer = asyncio.create_task(self._run())
        logger.info("Scheduler started, polling every %gs", self.interval)

    async def stop(self) -> None:
        """Stop the timer and cancel any running cycle."""
        self._running = False
        tasks = [t for t in (self._timer, self._current) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._current = None
        logger.info("Scheduler stopped")

    def trigger(self) -> bool:
        """
        Start a cycle now unless one is already running.

        Returns
        -------
        bool
            True if a cycle was started, False if the tick was skipped.
        """
        if self.is_busy:
            self.skipped_ticks += 1
            logger.warning("Previous poll cycle still running, skipping tick")
            return False
        self._current = asyncio.create_task(self._run_job())
        return True

    async def _run(self) -> None:
        now = self._clock()
        next_tick = now + seconds_until_next_tick(now, self.interval)
        while self._running:
            await asyncio.sleep(max(0.0, next_tick - self._clock()))
            if not self._running:
                break
            now = self._clock()
            # asyncio.sleep runs on the monotonic clock and may wake before
            # the wall-clock boundary
            if now < next_tick:
                continue
            self.trigger()
            next_tick = now + seconds_until_next_tick(now, self.interval)

    async def _run_job(self) -> None:
        try:
            await self.job()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Poll cycle failed")
