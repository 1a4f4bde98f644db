"""CLI commands for probing site favicons"""

import asyncio
import json
from typing import Optional

import typer

from feedback_svc.config_logging import configure_logging
from feedback_svc.configs import settings as config
from feedback_svc.favicon.manager import utc_now
from feedback_svc.favicon.models import CollectionResult, SiteFaviconState
from feedback_svc.favicon.resolver import HTTPResolver
from feedback_svc.favicon.service import CollectionService
from feedback_svc.metrics import configure_metrics, shutdown_metrics

job_settings = config.favicon

# CLI Options
timeout_option = typer.Option(
    job_settings.manager.per_site_timeout_sec,
    "--timeout",
    help="Upper bound in seconds for the whole favicon lookup",
)

force_notify_option = typer.Option(
    False,
    "--force-notify",
    help="Report a notification even when the favicon did not change",
)

verbose_option = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log at DEBUG level, including every probed page and icon",
)

favicon_cmd = typer.Typer(
    name="favicon",
    help="Commands for resolving site favicons",
)


def _describe(result: CollectionResult) -> dict:
    """Summarise a collection result as JSON-friendly data."""
    updates = result.updates.as_dict() if result.updates is not None else None
    return {
        "updates": sorted(updates) if updates is not None else None,
        "content_type": updates.get("favicon_content_type") if updates else None,
        "should_notify": result.should_notify,
        "event_timestamp": (
            result.event_timestamp.isoformat() if result.event_timestamp is not None else None
        ),
        "error": str(result.error) if result.error is not None else None,
    }


async def _resolve(origin: str, timeout: Optional[float]) -> str:
    resolver = HTTPResolver(metrics_client=await configure_metrics())
    try:
        return await resolver.resolve(origin, timeout=timeout)
    finally:
        await resolver.close()
        await shutdown_metrics()


async def _collect(origin: str, force_notify: bool, timeout: Optional[float]) -> CollectionResult:
    resolver = HTTPResolver(metrics_client=await configure_metrics())
    try:
        service = CollectionService(resolver)
        return await service.collect(
            SiteFaviconState(), origin, force_notify, utc_now(), timeout=timeout
        )
    finally:
        await resolver.close()
        await shutdown_metrics()


@favicon_cmd.command()
def resolve(
    origin: str,
    timeout: float = timeout_option,
    verbose: bool = verbose_option,
) -> None:
    """Print the favicon URL of an origin, or nothing if none was found."""
    configure_logging("DEBUG" if verbose else None)
    favicon_url = asyncio.run(_resolve(origin, timeout))
    if favicon_url:
        typer.echo(favicon_url)


@favicon_cmd.command()
def collect(
    origin: str,
    force_notify: bool = force_notify_option,
    timeout: float = timeout_option,
    verbose: bool = verbose_option,
) -> None:
    """Collect the favicon of an origin as for a site that never had one."""
    configure_logging("DEBUG" if verbose else None)
    result = asyncio.run(_collect(origin, force_notify, timeout))
    typer.echo(json.dumps(_describe(result), indent=2))
    if result.error is not None:
        raise typer.Exit(code=1)
