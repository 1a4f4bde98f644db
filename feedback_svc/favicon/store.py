"""Storage boundary for site favicon state"""

import asyncio
from typing import Any, Iterable, Protocol

from feedback_svc.exceptions import SiteNotFoundError
from feedback_svc.favicon.models import Site


class SiteStore(Protocol):
    """A protocol describing where sites are loaded from and favicon updates go to.

    Timestamps should be timezone-aware; naive values are read as UTC.
    """

    async def get_site(self, site_id: str) -> Site:  # pragma: no cover
        """Load a site.

        Raises:
            - `SiteNotFoundError` if the site doesn't exist.
            - `SiteStoreError` for other storage failures.
        """
        ...

    async def list_sites(self) -> list[Site]:  # pragma: no cover
        """Load every registered site.

        Raises:
            - `SiteStoreError` for storage failures.
        """
        ...

    async def update_site(self, site_id: str, updates: dict[str, Any]) -> None:  # pragma: no cover
        """Apply column updates to a site in a single transaction.

        Raises:
            - `SiteNotFoundError` if the site doesn't exist.
            - `SiteStoreError` for other storage failures.
        """
        ...


class InMemorySiteStore:
    """A site store backed by a dict, for local runs and tests."""

    def __init__(self, sites: Iterable[Site] = ()) -> None:
        self._sites: dict[str, Site] = {site.id: site for site in sites}
        self._lock = asyncio.Lock()

    async def get_site(self, site_id: str) -> Site:  # noqa: D102
        try:
            return self._sites[site_id]
        except KeyError:
            raise SiteNotFoundError(f"site {site_id} not found") from None

    async def list_sites(self) -> list[Site]:  # noqa: D102
        return list(self._sites.values())

    async def update_site(self, site_id: str, updates: dict[str, Any]) -> None:  # noqa: D102
        async with self._lock:
            site = await self.get_site(site_id)
            self._sites[site_id] = site.apply(updates)
