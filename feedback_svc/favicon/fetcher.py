"""Size-bounded HTTP fetches of favicons and HTML documents"""

import logging
from typing import Optional

import httpx

from feedback_svc.favicon.models import Asset
from feedback_svc.favicon.parsing import (
    DEFAULT_CONTENT_TYPE,
    is_image_content_type,
    normalize_content_type,
)

logger = logging.getLogger(__name__)

# Failures that only mean "this candidate is unavailable".
FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class PayloadTooLarge(Exception):
    """Raised internally when a response body exceeds its byte budget."""


async def _read_limited(response: httpx.Response, limit: int, truncate: bool) -> bytes:
    """Read at most `limit` bytes of a streamed response body.

    With `truncate` the body is cut at the limit, otherwise an oversized body
    raises `PayloadTooLarge`.
    """
    chunks: list[bytes] = []
    size = 0
    async for chunk in response.aiter_bytes():
        chunks.append(chunk)
        size += len(chunk)
        if size > limit:
            if truncate:
                return b"".join(chunks)[:limit]
            raise PayloadTooLarge(f"response exceeds {limit} bytes")
    return b"".join(chunks)


class IconFetcher:
    """Issue GET requests on behalf of the resolution strategies.

    Every method returns `None` when the resource is unavailable: network
    failures, error statuses, empty or oversized bodies, or non-image content.
    Cancellation is never swallowed.
    """

    http_client: httpx.AsyncClient
    max_icon_bytes: int
    max_html_bytes: int

    def __init__(self, http_client: httpx.AsyncClient, max_icon_bytes: int, max_html_bytes: int):
        self.http_client = http_client
        self.max_icon_bytes = max_icon_bytes
        self.max_html_bytes = max_html_bytes

    async def fetch_icon(self, url: str) -> Optional[Asset]:
        """Download an icon and return it if it looks like an image."""
        try:
            async with self.http_client.stream("GET", url) as response:
                if response.is_error:
                    logger.debug(f"Favicon candidate {url} returned {response.status_code}")
                    return None
                data = await _read_limited(response, self.max_icon_bytes, truncate=False)
                content_type = normalize_content_type(response.headers.get("Content-Type"))
        except PayloadTooLarge as e:
            logger.debug(f"Skipping favicon candidate {url}: {e}")
            return None
        except FETCH_ERRORS as e:
            logger.debug(f"Failed to fetch favicon candidate {url}: {e}")
            return None

        if not data:
            return None
        if not is_image_content_type(content_type):
            logger.debug(f"Skipping favicon candidate {url} served as {content_type}")
            return None
        return Asset(content_type=content_type or DEFAULT_CONTENT_TYPE, data=data)

    async def fetch_html(self, url: str) -> Optional[bytes]:
        """Download the beginning of an HTML document."""
        try:
            async with self.http_client.stream("GET", url) as response:
                if response.is_error:
                    logger.debug(f"HTML probe {url} returned {response.status_code}")
                    return None
                return await _read_limited(response, self.max_html_bytes, truncate=True)
        except FETCH_ERRORS as e:
            logger.debug(f"Failed to fetch HTML probe {url}: {e}")
            return None
