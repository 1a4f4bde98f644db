"""Public URLs of stored favicons"""

from datetime import datetime
from typing import Optional

SITE_FAVICON_URL_TEMPLATE: str = "/api/sites/{site_id}/favicon"


def versioned_site_favicon_url(site_id: str, fetched_at: Optional[datetime]) -> str:
    """Return the favicon URL of a site, versioned by its fetch time for cache busting."""
    normalized_id = site_id.strip()
    if not normalized_id:
        return ""
    base = SITE_FAVICON_URL_TEMPLATE.format(site_id=normalized_id)
    if fetched_at is None:
        return base
    return f"{base}?ts={int(fetched_at.timestamp())}"
