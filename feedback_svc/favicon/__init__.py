"""Favicon resolution and change detection for registered sites"""

from feedback_svc.favicon.manager import FaviconNotifier, SiteFaviconManager
from feedback_svc.favicon.models import (
    Asset,
    CollectionResult,
    FaviconUpdates,
    Site,
    SiteFaviconEvent,
    SiteFaviconState,
)
from feedback_svc.favicon.resolver import HTTPResolver, Resolver
from feedback_svc.favicon.service import CollectionService
from feedback_svc.favicon.store import InMemorySiteStore, SiteStore

__all__ = [
    "Asset",
    "CollectionResult",
    "CollectionService",
    "FaviconNotifier",
    "FaviconUpdates",
    "HTTPResolver",
    "InMemorySiteStore",
    "Resolver",
    "Site",
    "SiteFaviconEvent",
    "SiteFaviconManager",
    "SiteFaviconState",
    "SiteStore",
]
