from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Awaitable, Callable, Optional

from loguru import logger

from ..config import parse_interval
from ..errors import ConnectivityError, DataError
from ..log import one_line
from ..metrics import RELAY_CYCLE_DURATION, RELAY_CYCLES_TOTAL

Clock = Callable[[], float]
Waiter = Callable[[float], Awaitable[None]]


class PeriodicTask:
    """Explicit tick-and-sleep loop with drift compensation.

    Each tick runs ``run_cycle`` and then waits ``interval - elapsed``. A tick
    that overran the interval is followed immediately by the next one, so the
    loop never accumulates delay but never runs faster than the interval
    either. The stop event is checked before every cycle and ends the wait
    early. Errors raised by a cycle are logged and never leave the loop.

    ``clock`` and ``waiter`` are injectable so the timing logic can be
    exercised without real waits.
    """

    name = "task"

    def __init__(
        self,
        interval,
        *,
        clock: Clock = time.monotonic,
        waiter: Optional[Waiter] = None,
    ) -> None:
        self.interval = parse_interval(interval)
        self._interval_s = self.interval.total_seconds()
        self._clock = clock
        self._waiter = waiter or self._wait_for_stop
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.cycles = 0
        self.log = logger.bind(scheduler=self.name)

    # ---------- hooks ----------

    async def run_cycle(self) -> Optional[str]:
        """One tick of work; returns an outcome label for metrics."""
        raise NotImplementedError

    # ---------- timing ----------

    def next_delay(self, elapsed: float) -> float:
        return max(0.0, self._interval_s - elapsed)

    async def _wait_for_stop(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    # ---------- loop ----------

    def _failure_outcome(self, stage: str, exc: Exception) -> str:
        if isinstance(exc, ConnectivityError):
            self.log.error(f"{stage} failed, endpoint unreachable: {exc}")
            return "connectivity_error"
        if isinstance(exc, DataError):
            self.log.error(f"{stage} failed, bad data: {exc}")
            return "data_error"
        self.log.error(f"{stage} failed unexpectedly: {one_line(exc)}")
        return "error"

    async def run_once(self) -> str:
        """Run a single cycle with the error boundary applied."""
        self.log.info(f"### Trigger at {datetime.now():%d/%m/%Y %H:%M:%S} ###")
        started = self._clock()
        try:
            outcome = await self.run_cycle() or "ok"
        except Exception as exc:
            outcome = self._failure_outcome("Cycle", exc)
        finally:
            RELAY_CYCLE_DURATION.labels(self.name).observe(max(0.0, self._clock() - started))
        self.cycles += 1
        RELAY_CYCLES_TOTAL.labels(self.name, outcome).inc()
        return outcome

    async def run(self) -> None:
        self.log.info(f"{self.name} scheduler started (interval {self.interval})")
        while not self._stop.is_set():
            started = self._clock()
            await self.run_once()
            if self._stop.is_set():
                break
            delay = self.next_delay(self._clock() - started)
            if delay > 0:
                await self._waiter(delay)
        self.log.info(f"{self.name} scheduler stopped after {self.cycles} cycle(s)")

    # ---------- lifecycle ----------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stop.clear()
            self._task = asyncio.create_task(self.run(), name=f"{self.name}-scheduler")
        return self._task

    def request_stop(self) -> None:
        self._stop.set()

    async def stop(self, timeout: Optional[float] = None) -> None:
        """Signal shutdown and wait for the loop to finish its current step."""
        self._stop.set()
        if self._task is None:
            return
        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            self.log.warning(f"{self.name} scheduler did not stop within {timeout}s; cancelling")
            self._task.cancel()
        finally:
            self._task = None

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
