"""A helper to create the asynchronous HTTP client (via `httpx.AsyncClient`)
used to probe site origins.
"""

from httpx import AsyncClient, Limits, Timeout


def create_http_client(
    user_agent: str,
    max_connections: int = 64,
    connect_timeout: float = 2.0,
    request_timeout: float = 5.0,
    pool_timeout: float = 1.0,
) -> AsyncClient:
    """Create a new `httpx.AsyncClient` for talking to arbitrary site origins.

    Redirects are followed so that `http://` origins upgraded to `https://`, or
    icons served from a CDN, still resolve.

    Args:
      - `user_agent` {str}: The User-Agent header sent with every request.
      - `max_connections` {int}: Max connections of the connection pool.
      - `connect_timeout` {float}: The timeout for establishing a connection to the host.
      - `request_timeout` {float}: The timeout for handling a request to the host.
      - `pool_timeout` {float}: The timeout for acquiring a connection from the pool.
    Returns:
      - {AsyncClient}: An async HTTP client.
    """
    return AsyncClient(
        headers={"User-Agent": user_agent},
        follow_redirects=True,
        limits=Limits(max_connections=max_connections),
        timeout=Timeout(request_timeout, connect=connect_timeout, pool=pool_timeout),
    )
