"""Favicon collection service.

Turns one favicon lookup into a proposal of persistence updates and a
notification decision. All network access happens in the resolver; the service
itself only compares the resolved asset with the stored state.
"""

import logging
from datetime import datetime
from typing import Optional

from feedback_svc.exceptions import FaviconConfigurationError, FaviconResolutionError
from feedback_svc.favicon.models import (
    Asset,
    CollectionResult,
    FaviconUpdates,
    SiteFaviconState,
)
from feedback_svc.favicon.resolver import Resolver

logger = logging.getLogger(__name__)


def asset_changed(site: SiteFaviconState, asset: Asset) -> bool:
    """Return whether a resolved asset differs from the stored favicon.

    A site that never had a successful fetch always counts as changed. Content
    types are compared case-insensitively, contents byte for byte.
    """
    if site.favicon_fetched_at is None:
        return True
    if site.favicon_data != asset.data:
        return True
    return site.favicon_content_type.strip().lower() != asset.content_type.strip().lower()


class CollectionService:
    """Collect favicons for sites and decide what should be persisted."""

    resolver: Resolver

    def __init__(self, resolver: Resolver) -> None:
        if resolver is None:
            raise FaviconConfigurationError("favicon resolver is not configured")
        self.resolver = resolver

    async def collect(
        self,
        site: SiteFaviconState,
        origin: str,
        force_notify: bool,
        now: datetime,
        timeout: Optional[float] = None,
    ) -> CollectionResult:
        """Resolve the favicon for `origin` and diff it against `site`.

        The attempt itself (`favicon_origin`, `favicon_last_attempt_at`) is always
        staged, so callers can persist it even when the resolver fails. Resolver
        failures are returned on `CollectionResult.error` rather than raised.

        Args:
            site: The stored favicon state of the site.
            origin: The site's public origin. Blank origins make this a no-op.
            force_notify: Request a notification even if the favicon is unchanged.
            now: Timestamp recorded for the attempt and any notification.
            timeout: Upper bound in seconds for the whole lookup.
        """
        normalized_origin = origin.strip()
        if not normalized_origin:
            return CollectionResult()

        updates = FaviconUpdates(
            favicon_origin=normalized_origin,
            favicon_last_attempt_at=now,
        )
        try:
            asset = await self.resolver.resolve_asset(normalized_origin, timeout=timeout)
        except FaviconResolutionError as e:
            logger.debug(
                "Favicon collection failed",
                extra={"allowed_origin": normalized_origin, "error": str(e)},
            )
            return CollectionResult(updates=updates, error=e)

        should_notify = False
        if asset is not None and asset.data:
            if asset_changed(site, asset):
                updates.favicon_data = asset.data
                updates.favicon_content_type = asset.content_type
                should_notify = True
            updates.favicon_fetched_at = now

        if force_notify:
            should_notify = True

        return CollectionResult(
            updates=updates,
            should_notify=should_notify,
            event_timestamp=now if should_notify else None,
        )
