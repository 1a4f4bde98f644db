"""Periodic asyncio jobs that can also be woken up on demand."""

# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

import asyncio
import logging
import time
from typing import Protocol

logger = logging.getLogger(__name__)


class Task(Protocol):
    """Task for the cron job."""

    async def __call__(self) -> None:  # pragma: no cover # noqa: D102
        ...


class Job:
    """Run a task every `interval` seconds, or sooner when triggered.

    Triggers coalesce: any number of `trigger()` calls made while the task is
    running or sleeping result in a single extra run.
    """

    name: str
    interval: float
    task: Task

    def __init__(self, *, name: str, interval: float, task: Task, run_on_start: bool = False) -> None:
        """Create a cron job.

        Args:
            name: The name used to identify the cron job in logs.
            interval: The interval in seconds between two scheduled runs of the task.
            task: An asynchronous callable that defines the task to be run.
            run_on_start: Run the task immediately instead of waiting for the first interval.
        """
        self.name = name
        self.interval = interval
        self.task = task
        self._wakeup = asyncio.Event()
        if run_on_start:
            self._wakeup.set()

    def trigger(self) -> None:
        """Request a run without waiting for the next tick."""
        self._wakeup.set()

    async def _wait_for_tick(self, deadline: float) -> None:
        timeout = max(0, deadline - time.monotonic())
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=timeout)
        except TimeoutError:
            pass
        self._wakeup.clear()

    async def __call__(self) -> None:  # noqa: D102
        next_tick = time.monotonic() + self.interval

        while True:
            await self._wait_for_tick(next_tick)
            next_tick = time.monotonic() + self.interval

            begin = time.perf_counter()
            try:
                await self.task()
            except Exception as e:
                logger.warning(
                    f"Cron: failed to run task {self.name}",
                    extra={"error message": f"{e}"},
                )
            else:
                logger.info(
                    f"Cron: successfully ran task {self.name}",
                    extra={"duration": time.perf_counter() - begin},
                )
