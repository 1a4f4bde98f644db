"""StatsD metrics shared by the favicon service and its jobs."""

import logging
from functools import cache
from typing import Mapping

import aiodogstatsd

from feedback_svc.configs import settings

logger = logging.getLogger(__name__)

# Type definition for tags in aiodogstatsd metrics
MetricTags = Mapping[str, float | int | str]

METRICS_NAMESPACE: str = "feedback_svc"


def _constant_tags() -> MetricTags:
    return {
        "application": "feedback-svc",
        "environment": settings.current_env.lower(),
        "deployment.canary": int(settings.deployment.canary),
    }


@cache
def get_metrics_client() -> aiodogstatsd.Client:
    """Return the process-wide StatsD client."""
    return aiodogstatsd.Client(
        host=settings.metrics.host,
        port=settings.metrics.port,
        namespace=METRICS_NAMESPACE,
        constant_tags=_constant_tags(),
    )


async def configure_metrics() -> aiodogstatsd.Client:
    """Connect the StatsD client.

    With `metrics.dev_logger` enabled datagrams are written to the debug log
    instead of a socket.
    """
    client = get_metrics_client()
    if settings.metrics.dev_logger:
        client._protocol = _DatagramLogger()
    await client.connect()
    return client


async def shutdown_metrics() -> None:
    """Flush pending metrics and close the StatsD client."""
    await get_metrics_client().close()


class _DatagramLogger(aiodogstatsd.client.DatagramProtocol):
    """Datagram protocol that logs StatsD payloads rather than sending them."""

    def send(self, data: bytes) -> None:
        logger.debug("StatsD datagram", extra={"datagram": data.decode("utf8")})

    def error_received(self, exc) -> None:
        logger.warning("StatsD transport error", extra={"error": str(exc)})
