"""Data models for the favicon pipeline"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from feedback_svc.exceptions import FaviconResolutionError


class Asset(BaseModel):
    """Favicon contents and the content type they were served with."""

    model_config = ConfigDict(frozen=True)

    content_type: str = Field(
        description="Declared content type, e.g. 'image/png' or 'image/x-icon'"
    )
    data: bytes


class SiteFaviconState(BaseModel):
    """The favicon fields of a stored site that drive change detection."""

    model_config = ConfigDict(frozen=True)

    favicon_data: bytes = b""
    favicon_content_type: str = ""
    # None when no fetch ever succeeded.
    favicon_fetched_at: Optional[datetime] = None


class FaviconUpdates(BaseModel):
    """Persistence updates proposed by a collection.

    Only fields that were staged are proposed; `as_dict` returns them keyed by
    the column names the storage layer expects.
    """

    favicon_origin: Optional[str] = None
    favicon_last_attempt_at: Optional[datetime] = None
    favicon_data: Optional[bytes] = None
    favicon_content_type: Optional[str] = None
    favicon_fetched_at: Optional[datetime] = None

    def as_dict(self) -> dict[str, Any]:
        """Return the staged fields as a flat column -> value mapping."""
        return self.model_dump(exclude_none=True)


class CollectionResult(BaseModel):
    """Outcome of a single favicon collection."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # None when the site has no public origin configured.
    updates: Optional[FaviconUpdates] = None
    should_notify: bool = False
    event_timestamp: Optional[datetime] = None
    # Set when the resolver failed; `updates` then only records the attempt.
    error: Optional[FaviconResolutionError] = None


class Site(BaseModel):
    """A registered site as far as favicon collection is concerned."""

    id: str
    allowed_origin: str = ""
    favicon_origin: str = ""
    favicon_data: bytes = b""
    favicon_content_type: str = ""
    favicon_fetched_at: Optional[datetime] = None
    favicon_last_attempt_at: Optional[datetime] = None

    def favicon_state(self) -> SiteFaviconState:
        """Project the fields used for change detection."""
        return SiteFaviconState(
            favicon_data=self.favicon_data,
            favicon_content_type=self.favicon_content_type,
            favicon_fetched_at=self.favicon_fetched_at,
        )

    def apply(self, updates: dict[str, Any]) -> "Site":
        """Return a copy of this site with the given column updates applied."""
        return self.model_copy(update=updates)


class SiteFaviconEvent(BaseModel):
    """Notification emitted when a site's favicon should be re-announced."""

    site_id: str
    favicon_url: str
    updated_at: datetime
