"""Favicon resolver that discovers a site's favicon over HTTP"""

import asyncio
import logging
import time
from typing import Optional, Protocol

import aiodogstatsd
from httpx import AsyncClient

from feedback_svc.configs import settings
from feedback_svc.exceptions import FaviconLookupTimeoutError
from feedback_svc.favicon.fetcher import IconFetcher
from feedback_svc.favicon.models import Asset
from feedback_svc.favicon.strategies import (
    LookupTarget,
    OutcomeState,
    ResolutionOutcome,
    build_strategies,
    run_strategies,
)
from feedback_svc.metrics import get_metrics_client
from feedback_svc.utils.http_client import create_http_client

logger = logging.getLogger(__name__)

favicon_settings = settings.favicon


class Resolver(Protocol):
    """Discovers favicons for a site origin."""

    async def resolve(
        self, origin: str, timeout: Optional[float] = None
    ) -> str:  # pragma: no cover
        """Return the favicon URL for the origin, or an empty string if none was found.

        Inline icons are returned as their `data:` URI.

        Raises:
            FaviconResolutionError: If the lookup could not complete within `timeout`.
        """
        ...

    async def resolve_asset(
        self, origin: str, timeout: Optional[float] = None
    ) -> Optional[Asset]:  # pragma: no cover
        """Return the favicon contents for the origin, or None if none was found.

        Raises:
            FaviconResolutionError: If the lookup could not complete within `timeout`.
        """
        ...


class HTTPResolver:
    """Resolve favicons by probing the origin over HTTP.

    The lookup order is `/favicon.ico`, then the icon links declared by the
    origin's HTML documents. Unavailable or non-image resources are skipped, so
    the only error a caller sees is its own `timeout` running out.

    `resolve` remembers results (including empty ones) per origin for
    `cache_ttl_sec`; `resolve_asset` always goes to the network.
    """

    fetcher: IconFetcher
    html_probe_paths: list[str]
    cache_ttl_sec: float
    metrics_client: aiodogstatsd.Client

    def __init__(
        self,
        http_client: Optional[AsyncClient] = None,
        *,
        max_icon_bytes: int = favicon_settings.max_icon_bytes,
        max_html_bytes: int = favicon_settings.max_html_bytes,
        cache_ttl_sec: float = favicon_settings.cache_ttl_sec,
        html_probe_paths: Optional[list[str]] = None,
        metrics_client: Optional[aiodogstatsd.Client] = None,
    ) -> None:
        if http_client is None:
            http_client = create_http_client(
                user_agent=favicon_settings.user_agent,
                connect_timeout=favicon_settings.connect_timeout_sec,
                request_timeout=favicon_settings.request_timeout_sec,
            )
        self.fetcher = IconFetcher(http_client, max_icon_bytes, max_html_bytes)
        self.html_probe_paths = (
            list(favicon_settings.html_probe_paths) if html_probe_paths is None else html_probe_paths
        )
        self.cache_ttl_sec = cache_ttl_sec
        self.metrics_client = metrics_client or get_metrics_client()
        self._cache: dict[str, tuple[str, float]] = {}

    async def resolve(self, origin: str, timeout: Optional[float] = None) -> str:  # noqa: D102
        target = LookupTarget.from_origin(origin)
        if target is None:
            return ""

        cache_key = f"{target.root}{target.path}".lower()
        cached = self._cache.get(cache_key)
        if cached is not None:
            if time.monotonic() < cached[1]:
                self.metrics_client.increment("favicon.resolve.cache_hit")
                return cached[0]
            del self._cache[cache_key]

        outcome = await self._lookup(origin, target, timeout)
        now = time.monotonic()
        self._evict_expired(now)
        if self.cache_ttl_sec > 0:
            self._cache[cache_key] = (outcome.url, now + self.cache_ttl_sec)
        return outcome.url

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._cache.items() if expires_at <= now]
        for key in expired:
            del self._cache[key]

    async def resolve_asset(  # noqa: D102
        self, origin: str, timeout: Optional[float] = None
    ) -> Optional[Asset]:
        target = LookupTarget.from_origin(origin)
        if target is None:
            return None
        outcome = await self._lookup(origin, target, timeout)
        return outcome.asset

    async def _lookup(
        self, origin: str, target: LookupTarget, timeout: Optional[float]
    ) -> ResolutionOutcome:
        strategies = build_strategies(self.fetcher, target, self.html_probe_paths)
        try:
            async with asyncio.timeout(timeout):
                outcome = await run_strategies(strategies, target)
        except TimeoutError as e:
            self.metrics_client.increment("favicon.resolve.timeout")
            logger.debug(
                "Favicon lookup timed out",
                extra={"allowed_origin": origin, "timeout": timeout},
            )
            raise FaviconLookupTimeoutError(
                f"favicon lookup for {origin} exceeded {timeout} seconds"
            ) from e

        if outcome.state is OutcomeState.FAILED and outcome.error is not None:
            self.metrics_client.increment("favicon.resolve.failed")
            logger.debug(
                "Favicon lookup failed",
                extra={"allowed_origin": origin, "error": str(outcome.error)},
            )
            raise outcome.error

        if outcome.state is OutcomeState.RESOLVED:
            self.metrics_client.increment("favicon.resolve.found")
        else:
            self.metrics_client.increment("favicon.resolve.not_found")
        return outcome

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.fetcher.http_client.aclose()
