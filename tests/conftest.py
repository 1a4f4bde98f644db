# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Module for test configurations shared by the test suites."""

import os
from datetime import datetime, timezone
from logging import LogRecord
from typing import Any, Callable

import aiodogstatsd
import httpx
import pytest
from pytest_mock import MockerFixture

from tests.types import FilterCaplogFixture

# Settings are loaded lazily, so this takes effect before the first access.
os.environ.setdefault("FEEDBACK_SVC_ENV", "testing")

# A route is either a (status, headers, body) triple or an exception to raise.
Route = tuple[int, dict[str, str], bytes] | Exception


class FakeOrigin:
    """An in-process website served through `httpx.MockTransport`.

    Unknown URLs answer 404. Every requested URL is recorded in `requested`.
    """

    def __init__(self, routes: dict[str, Route]) -> None:
        self.routes = routes
        self.requested: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        """Answer a request from the configured routes."""
        url = str(request.url)
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        status, headers, body = route
        return httpx.Response(status, headers=headers, content=body)

    def client(self) -> httpx.AsyncClient:
        """Return an HTTP client bound to this origin."""
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


FakeOriginFixture = Callable[[dict[str, Route]], FakeOrigin]


@pytest.fixture(scope="session", name="filter_caplog")
def fixture_filter_caplog() -> FilterCaplogFixture:
    """Return a function that will filter pytest captured log records for a given logger
    name
    """

    def filter_caplog(records: list[LogRecord], logger_name: str) -> list[LogRecord]:
        """Filter pytest captured log records for a given logger name"""
        return [record for record in records if record.name == logger_name]

    return filter_caplog


@pytest.fixture(name="fake_origin")
def fixture_fake_origin() -> FakeOriginFixture:
    """Return a factory building fake websites from a route table."""
    return FakeOrigin


@pytest.fixture(name="metrics_client")
def fixture_metrics_client(mocker: MockerFixture) -> Any:
    """Return a mock StatsD client."""
    return mocker.MagicMock(spec=aiodogstatsd.Client)


@pytest.fixture(name="now")
def fixture_now() -> datetime:
    """Return a fixed, timezone-aware timestamp."""
    return datetime(2025, 3, 14, 9, 26, 53, tzinfo=timezone.utc)


@pytest.fixture(name="png_bytes")
def fixture_png_bytes() -> bytes:
    """Return the first bytes of a PNG file, enough to act as icon content."""
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
