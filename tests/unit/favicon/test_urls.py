# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for site favicon URLs."""

from datetime import datetime, timezone
from typing import Optional

import pytest

from feedback_svc.favicon.urls import versioned_site_favicon_url


@pytest.mark.parametrize(
    ["site_id", "fetched_at", "expected"],
    [
        (
            "site-1",
            datetime(2025, 3, 14, 9, 26, 53, 900000, tzinfo=timezone.utc),
            "/api/sites/site-1/favicon?ts=1741944413",
        ),
        (" site-1 ", None, "/api/sites/site-1/favicon"),
        ("", datetime(2025, 3, 14, tzinfo=timezone.utc), ""),
        ("   ", None, ""),
    ],
    ids=["versioned", "unversioned", "empty-id", "blank-id"],
)
def test_versioned_site_favicon_url(
    site_id: str, fetched_at: Optional[datetime], expected: str
) -> None:
    """Test that favicon URLs carry the fetch time in whole seconds."""
    assert versioned_site_favicon_url(site_id, fetched_at) == expected
