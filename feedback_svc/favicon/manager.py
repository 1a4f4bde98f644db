"""Background manager that keeps stored site favicons fresh.

Sites are scanned every `scan_interval_sec`. Each site that is due for a fetch
is put on a bounded queue drained by a fixed pool of workers, and every
collection is capped at `per_site_timeout_sec`, so a slow origin holds at most
one worker for a bounded time. Failed attempts are not retried; the next scan
picks them up again once `retry_interval_sec` has passed.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional, Protocol

import aiodogstatsd

from feedback_svc.configs import settings
from feedback_svc.exceptions import SiteNotFoundError, SiteStoreError
from feedback_svc.favicon.models import CollectionResult, Site, SiteFaviconEvent
from feedback_svc.favicon.service import CollectionService
from feedback_svc.favicon.store import SiteStore
from feedback_svc.favicon.urls import versioned_site_favicon_url
from feedback_svc.metrics import get_metrics_client
from feedback_svc.utils import cron

logger = logging.getLogger(__name__)

manager_settings = settings.favicon.manager


class FaviconNotifier(Protocol):
    """Receives favicon events, e.g. to push them to subscribers or over gRPC."""

    async def notify(self, event: SiteFaviconEvent) -> None:  # pragma: no cover
        """Deliver a favicon event."""
        ...


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime, reading naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SiteFaviconManager:
    """Schedule favicon collections for stored sites and act on their results."""

    store: SiteStore
    service: CollectionService
    notifiers: list[FaviconNotifier]
    metrics_client: aiodogstatsd.Client

    def __init__(
        self,
        store: SiteStore,
        service: CollectionService,
        notifiers: Iterable[FaviconNotifier] = (),
        *,
        retry_interval_sec: float = manager_settings.retry_interval_sec,
        refresh_interval_sec: float = manager_settings.refresh_interval_sec,
        scan_interval_sec: float = manager_settings.scan_interval_sec,
        queue_capacity: int = manager_settings.queue_capacity,
        max_workers: int = manager_settings.max_workers,
        per_site_timeout_sec: float = manager_settings.per_site_timeout_sec,
        clock: Callable[[], datetime] = utc_now,
        metrics_client: Optional[aiodogstatsd.Client] = None,
    ) -> None:
        self.store = store
        self.service = service
        self.notifiers = list(notifiers)
        self.retry_interval = timedelta(seconds=retry_interval_sec)
        self.refresh_interval = timedelta(seconds=refresh_interval_sec)
        self.scan_interval_sec = scan_interval_sec
        self.max_workers = max_workers
        self.per_site_timeout_sec = per_site_timeout_sec
        self.clock = clock
        self.metrics_client = metrics_client or get_metrics_client()

        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_capacity)
        self.in_flight: set[str] = set()
        self.cron_job = cron.Job(
            name="favicon_refresh",
            interval=scan_interval_sec,
            task=self.refresh_all,
            run_on_start=True,
        )
        self._tasks: list[asyncio.Task] = []

    def should_fetch(self, site: Site) -> bool:
        """Return whether a site's favicon is due for a fetch.

        A changed origin always triggers a fetch. Sites without a stored favicon
        are retried after `retry_interval`, sites with one are refreshed after
        `refresh_interval`.
        """
        origin = site.allowed_origin.strip()
        stored_origin = site.favicon_origin.strip()
        if not stored_origin or stored_origin.lower() != origin.lower():
            return True

        now = as_utc(self.clock())
        if not site.favicon_data:
            if site.favicon_last_attempt_at is None:
                return True
            return now - as_utc(site.favicon_last_attempt_at) >= self.retry_interval
        if site.favicon_fetched_at is None:
            return True
        return now - as_utc(site.favicon_fetched_at) >= self.refresh_interval

    def schedule_fetch(self, site: Site) -> bool:
        """Queue a site for collection if it is due and not already queued.

        Returns whether the site was queued. A full queue drops the site until
        the next scan.
        """
        if not site.allowed_origin.strip():
            return False
        if site.id in self.in_flight or not self.should_fetch(site):
            return False

        try:
            self.queue.put_nowait(site.id)
        except asyncio.QueueFull:
            logger.warning("Favicon queue is full, skipping site", extra={"site_id": site.id})
            self.metrics_client.increment("favicon.queue.dropped")
            return False
        self.in_flight.add(site.id)
        return True

    async def refresh_all(self) -> None:
        """Scan the store and queue every site whose favicon is due."""
        try:
            sites = await self.store.list_sites()
        except SiteStoreError as e:
            logger.warning("Failed to load sites for favicon refresh", extra={"error": str(e)})
            return

        scheduled = sum(1 for site in sites if self.schedule_fetch(site))
        logger.info(
            "Scheduled favicon refresh",
            extra={"sites": len(sites), "scheduled": scheduled},
        )

    def trigger_scheduled_refresh(self) -> None:
        """Run a refresh scan now instead of waiting for the next interval."""
        self.cron_job.trigger()

    async def refresh_now(self, site_id: str) -> Optional[CollectionResult]:
        """Collect a site's favicon immediately and always notify about it."""
        return await self.process(site_id, force_notify=True)

    async def process(self, site_id: str, force_notify: bool = False) -> Optional[CollectionResult]:
        """Collect, persist and announce the favicon of one site.

        Returns None when nothing was attempted: the site is gone, has no
        origin, or (without `force_notify`) is not due yet.
        """
        try:
            site = await self.store.get_site(site_id)
        except SiteNotFoundError:
            return None
        except SiteStoreError as e:
            logger.warning(
                "Failed to load site for favicon collection",
                extra={"site_id": site_id, "error": str(e)},
            )
            return None

        origin = site.allowed_origin.strip()
        if not origin:
            return None
        if not force_notify and not self.should_fetch(site):
            return None

        now = self.clock()
        with self.metrics_client.timeit("favicon.collect.timing"):
            result = await self.service.collect(
                site.favicon_state(),
                origin,
                force_notify,
                now,
                timeout=self.per_site_timeout_sec,
            )

        if result.error is not None:
            self.metrics_client.increment("favicon.collect.error")
            logger.info(
                "Failed to fetch site favicon",
                extra={"site_id": site_id, "allowed_origin": origin, "error": str(result.error)},
            )

        if result.updates is None:
            return result

        try:
            await self.store.update_site(site_id, result.updates.as_dict())
        except SiteStoreError as e:
            logger.warning(
                "Failed to persist site favicon",
                extra={"site_id": site_id, "error": str(e)},
            )
            return result

        if result.should_notify and result.event_timestamp is not None:
            await self._broadcast(
                SiteFaviconEvent(
                    site_id=site_id,
                    favicon_url=versioned_site_favicon_url(site_id, result.event_timestamp),
                    updated_at=result.event_timestamp,
                )
            )
        return result

    async def _broadcast(self, event: SiteFaviconEvent) -> None:
        self.metrics_client.increment("favicon.notify")
        for notifier in self.notifiers:
            try:
                await notifier.notify(event)
            except Exception as e:
                logger.warning(
                    "Failed to deliver favicon event",
                    extra={"site_id": event.site_id, "error": str(e)},
                )

    async def _worker(self) -> None:
        while True:
            site_id = await self.queue.get()
            try:
                await self.process(site_id)
            except Exception as e:
                logger.error(
                    "Unexpected error collecting site favicon",
                    extra={"site_id": site_id, "error": str(e)},
                )
            finally:
                self.in_flight.discard(site_id)
                self.queue.task_done()

    def start(self) -> None:
        """Start the workers and the periodic refresh scan."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(), name=f"favicon_worker_{index}")
            for index in range(self.max_workers)
        ]
        # Keep a reference to the task, otherwise it will get garbage collected
        # because asyncio's runtime only holds a weak reference to it.
        self._tasks.append(asyncio.create_task(self.cron_job(), name="favicon_refresh"))

    async def stop(self) -> None:
        """Cancel the workers and the refresh scan."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
