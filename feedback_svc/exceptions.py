"""feedback-svc specific exceptions."""


class FaviconResolutionError(Exception):
    """Hard failure of a favicon lookup that must be surfaced to the caller."""


class FaviconLookupTimeoutError(FaviconResolutionError):
    """Raised when a favicon lookup outlives the deadline given by its caller."""

    pass


class FaviconConfigurationError(Exception):
    """Raised when the favicon pipeline is wired without a required collaborator."""

    pass


class SiteStoreError(Exception):
    """Error specific to site store operations."""


class SiteNotFoundError(SiteStoreError):
    """Raised when a site doesn't exist in the store."""

    pass


class InvalidDataURLError(ValueError):
    """Raised for inline `data:` favicons that can't be decoded into an icon."""

    pass
