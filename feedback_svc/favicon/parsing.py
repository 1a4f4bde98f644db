"""Helpers that turn raw HTTP payloads into favicon candidates and assets"""

import base64
import binascii
import logging
from urllib.parse import unquote_to_bytes

from bs4 import BeautifulSoup

from feedback_svc.exceptions import InvalidDataURLError
from feedback_svc.favicon.models import Asset

logger = logging.getLogger(__name__)

PARSER: str = "html.parser"

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

DATA_URL_PREFIX: str = "data:"

# Served by misconfigured hosts for perfectly fine .ico files.
BINARY_CONTENT_TYPES: frozenset[str] = frozenset({"application/octet-stream", "binary/octet-stream"})


def normalize_content_type(content_type: str | None) -> str:
    """Lower-case and trim a content type, keeping its parameters."""
    return (content_type or "").strip().lower()


def is_image_content_type(content_type: str | None) -> bool:
    """Return whether a declared content type may carry an icon.

    An empty type is accepted since many hosts omit it for static files.
    """
    normalized = normalize_content_type(content_type)
    if not normalized or normalized in BINARY_CONTENT_TYPES:
        return True
    return normalized.startswith("image/") or "icon" in normalized or "svg" in normalized


def is_data_url(value: str) -> bool:
    """Return whether an href is an inline `data:` URI."""
    return value.strip().lower().startswith(DATA_URL_PREFIX)


def _decode_base64(payload: str) -> bytes:
    """Decode standard base64, tolerating missing padding."""
    trimmed = "".join(payload.split())
    if not trimmed:
        raise InvalidDataURLError("empty base64 payload")
    padded = trimmed + "=" * (-len(trimmed) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except binascii.Error as exc:
        raise InvalidDataURLError(f"invalid base64 payload: {exc}") from exc


def parse_data_url(value: str, max_bytes: int) -> Asset:
    """Decode a `data:<content-type>[;base64],<payload>` URI into an asset.

    Raises:
        InvalidDataURLError: If the URI is malformed, empty, larger than
          `max_bytes`, or declares a non-image content type.
    """
    trimmed = value.strip()
    if not is_data_url(trimmed):
        raise InvalidDataURLError("not a data url")

    metadata, separator, payload = trimmed[len(DATA_URL_PREFIX) :].partition(",")
    if not separator:
        raise InvalidDataURLError("data url has no payload separator")

    segments = [segment.strip() for segment in metadata.split(";")]
    content_type = segments[0] or DEFAULT_CONTENT_TYPE
    is_base64 = any(segment.lower() == "base64" for segment in segments[1:])

    data = _decode_base64(payload) if is_base64 else unquote_to_bytes(payload)
    if not data:
        raise InvalidDataURLError("empty data url payload")
    if len(data) > max_bytes:
        raise InvalidDataURLError(f"favicon exceeds {max_bytes} bytes")
    if not is_image_content_type(content_type):
        raise InvalidDataURLError(f"unsupported data url content type: {content_type}")

    return Asset(content_type=content_type, data=data)


def rel_contains_icon(rel: str | list[str] | None) -> bool:
    """Return whether a `rel` attribute declares some kind of icon.

    Matches `icon`, `shortcut icon`, `apple-touch-icon`, `mask-icon` and friends.
    """
    if not rel:
        return False
    if isinstance(rel, list):
        rel = " ".join(rel)
    return "icon" in rel.lower()


def find_icon_hrefs(html: str | bytes) -> list[str]:
    """Return the hrefs of icon `<link>` elements in document order."""
    page = BeautifulSoup(html, PARSER)
    hrefs: list[str] = []
    for link in page.find_all("link", href=True):
        href = str(link.get("href", "")).strip()
        if href and rel_contains_icon(link.get("rel")):
            hrefs.append(href)
    return hrefs
