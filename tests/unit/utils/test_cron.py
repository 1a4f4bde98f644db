# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for the cron job runner."""

import asyncio
import logging
from typing import Any

import pytest

from feedback_svc.utils import cron


@pytest.fixture(name="numbers")
def fixture_numbers() -> list[int]:
    """Return a list containing the number 1."""
    return [1]


@pytest.fixture(name="task")
def fixture_task(numbers: list[int]) -> cron.Task:
    """Return a task for a cron job."""

    async def add_number() -> None:
        """Adds a new number to the list."""
        new_number = numbers[-1] + 1

        if new_number == 2:
            numbers.append(3)
            raise ValueError("Number 2 is not valid. Added 3 instead.")

        numbers.append(new_number)

    return add_number


@pytest.mark.asyncio
async def test_cron_interval(caplog: Any, task: cron.Task, numbers: list[int]) -> None:
    """Test that the task runs on every tick and failures don't stop the job."""
    caplog.set_level(logging.INFO)
    cron_job = cron.Job(name="create_numbers", interval=0.2, task=task)

    cron_task = asyncio.create_task(cron_job())
    await asyncio.sleep(0.5)
    cron_task.cancel()

    assert numbers == [1, 3, 4]
    assert caplog.record_tuples == [
        (
            "feedback_svc.utils.cron",
            logging.WARNING,
            "Cron: failed to run task create_numbers",
        ),
        (
            "feedback_svc.utils.cron",
            logging.INFO,
            "Cron: successfully ran task create_numbers",
        ),
    ]
    error_message = caplog.records[0].__dict__["error message"]
    assert error_message == "Number 2 is not valid. Added 3 instead."


@pytest.mark.asyncio
async def test_cron_run_on_start(task: cron.Task, numbers: list[int]) -> None:
    """Test that `run_on_start` runs the task without waiting for the interval."""
    cron_job = cron.Job(name="create_numbers", interval=60, task=task, run_on_start=True)

    cron_task = asyncio.create_task(cron_job())
    await asyncio.sleep(0.1)
    cron_task.cancel()

    assert numbers == [1, 3]


@pytest.mark.asyncio
async def test_cron_trigger(task: cron.Task, numbers: list[int]) -> None:
    """Test that triggers wake the job early and coalesce."""
    cron_job = cron.Job(name="create_numbers", interval=60, task=task)

    cron_task = asyncio.create_task(cron_job())
    await asyncio.sleep(0.05)
    assert numbers == [1]

    cron_job.trigger()
    cron_job.trigger()
    await asyncio.sleep(0.1)
    cron_task.cancel()

    assert numbers == [1, 3]
