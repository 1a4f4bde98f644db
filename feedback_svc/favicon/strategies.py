"""Favicon resolution strategies.

A lookup runs an ordered list of strategies. Each one reports a
`ResolutionOutcome` that is either RESOLVED (stop, this is the favicon),
ABSENT (try the next strategy) or FAILED (stop, surface the error).
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Protocol
from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel, ConfigDict

from feedback_svc.exceptions import FaviconResolutionError, InvalidDataURLError
from feedback_svc.favicon.fetcher import IconFetcher
from feedback_svc.favicon.models import Asset
from feedback_svc.favicon.parsing import find_icon_hrefs, is_data_url, parse_data_url

logger = logging.getLogger(__name__)

DEFAULT_FAVICON_PATH: str = "/favicon.ico"


class OutcomeState(str, Enum):
    """State of a single strategy evaluation."""

    RESOLVED = "resolved"
    ABSENT = "absent"
    FAILED = "failed"


class ResolutionOutcome(BaseModel):
    """Result of one strategy."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    state: OutcomeState
    # The fetched icon URL, or the data URI itself for inline icons.
    url: str = ""
    asset: Optional[Asset] = None
    error: Optional[FaviconResolutionError] = None

    @classmethod
    def resolved(cls, url: str, asset: Asset) -> "ResolutionOutcome":  # noqa: D102
        return cls(state=OutcomeState.RESOLVED, url=url, asset=asset)

    @classmethod
    def absent(cls) -> "ResolutionOutcome":  # noqa: D102
        return cls(state=OutcomeState.ABSENT)

    @classmethod
    def failed(cls, error: FaviconResolutionError) -> "ResolutionOutcome":  # noqa: D102
        return cls(state=OutcomeState.FAILED, error=error)


class LookupTarget(BaseModel):
    """An origin split into its root (scheme + host) and optional path."""

    model_config = ConfigDict(frozen=True)

    root: str
    path: str = ""

    @classmethod
    def from_origin(cls, origin: str) -> Optional["LookupTarget"]:
        """Parse an origin, returning None when it lacks a scheme or host.

        Query strings and fragments are dropped.
        """
        try:
            parsed = urlsplit(origin.strip())
        except ValueError:
            return None
        if not parsed.scheme or not parsed.netloc:
            return None
        return cls(root=f"{parsed.scheme}://{parsed.netloc}", path=parsed.path)

    def url_for(self, path_or_href: str) -> str:
        """Resolve a path or href against the origin root."""
        return urljoin(self.root + "/", path_or_href)


class ResolutionStrategy(Protocol):
    """A single way of locating a favicon for a lookup target."""

    name: str

    async def __call__(self, target: LookupTarget) -> ResolutionOutcome:  # pragma: no cover
        """Evaluate the strategy for the target."""
        ...


class DefaultIconStrategy:
    """Fetch `/favicon.ico` at the origin root."""

    name = "default-icon"

    def __init__(self, fetcher: IconFetcher) -> None:
        self.fetcher = fetcher

    async def __call__(self, target: LookupTarget) -> ResolutionOutcome:  # noqa: D102
        url = target.url_for(DEFAULT_FAVICON_PATH)
        asset = await self.fetcher.fetch_icon(url)
        if asset is None:
            return ResolutionOutcome.absent()
        return ResolutionOutcome.resolved(url, asset)


class HtmlDeclaredIconStrategy:
    """Fetch one HTML document and follow the icon links it declares.

    Links are tried in document order. Inline `data:` icons are decoded in
    place; everything else is resolved against the origin root and fetched.
    """

    def __init__(self, fetcher: IconFetcher, page_path: str) -> None:
        self.fetcher = fetcher
        self.page_path = page_path
        self.name = f"html:{page_path}"

    async def __call__(self, target: LookupTarget) -> ResolutionOutcome:  # noqa: D102
        html = await self.fetcher.fetch_html(target.url_for(self.page_path))
        if html is None:
            return ResolutionOutcome.absent()

        for href in find_icon_hrefs(html):
            if is_data_url(href):
                try:
                    asset = parse_data_url(href, self.fetcher.max_icon_bytes)
                except InvalidDataURLError as e:
                    logger.debug(f"Skipping inline favicon on {self.page_path}: {e}")
                    continue
                return ResolutionOutcome.resolved(href, asset)

            try:
                icon_url = target.url_for(href)
            except ValueError as e:
                logger.debug(f"Skipping malformed favicon link on {self.page_path}: {e}")
                continue
            asset = await self.fetcher.fetch_icon(icon_url)
            if asset is not None:
                return ResolutionOutcome.resolved(icon_url, asset)

        return ResolutionOutcome.absent()


def html_probe_paths(target: LookupTarget, extra_paths: Iterable[str]) -> list[str]:
    """Return the HTML documents to probe, in order and without duplicates.

    The origin root comes first. Origins mounted under a sub-path (for example
    `https://host/app`) then probe that path, its trailing-slash variant and its
    `index.html`, followed by the configured extra paths.
    """
    ordered: list[str] = []

    def add(path: str) -> None:
        normalized = path.strip() or "/"
        if not normalized.startswith("/"):
            normalized = f"/{normalized}"
        if normalized not in ordered:
            ordered.append(normalized)

    add("/")
    base_path = target.path.strip()
    if base_path and base_path != "/":
        add(base_path)
        if not base_path.endswith("/"):
            add(f"{base_path}/")
        add(f"{base_path.rstrip('/')}/index.html")
    for path in extra_paths:
        add(path)
    return ordered


def build_strategies(
    fetcher: IconFetcher, target: LookupTarget, extra_paths: Iterable[str]
) -> list[ResolutionStrategy]:
    """Build the strategy chain for a lookup target."""
    strategies: list[ResolutionStrategy] = [DefaultIconStrategy(fetcher)]
    strategies.extend(
        HtmlDeclaredIconStrategy(fetcher, path) for path in html_probe_paths(target, extra_paths)
    )
    return strategies


async def run_strategies(
    strategies: Iterable[ResolutionStrategy], target: LookupTarget
) -> ResolutionOutcome:
    """Evaluate strategies left to right until one resolves or fails."""
    for strategy in strategies:
        outcome = await strategy(target)
        if outcome.state is not OutcomeState.ABSENT:
            logger.debug(
                f"Favicon strategy {strategy.name} {outcome.state.value} for {target.root}"
            )
            return outcome
    return ResolutionOutcome.absent()
