"""Shareable locator URLs carrying a bundle id."""

from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

LOCATOR_PARAM = "id"


def build_base_url(page_url: str) -> str:
    """
    Strip query, fragment and trailing slashes from the application URL.

    Args:
        page_url: URL the application is served from

    Returns:
        Origin plus path, e.g. "https://example.com/share"
    """
    parts = urlsplit(page_url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path.rstrip('/'), '', ''))


def build_share_url(base_url: str, bundle_id: str) -> str:
    """
    Build the locator for a bundle.

    Args:
        base_url: Result of build_base_url
        bundle_id: Bundle identifier

    Returns:
        "<base_url>?id=<bundle_id>"
    """
    return f"{base_url}?{urlencode({LOCATOR_PARAM: bundle_id})}"


def parse_bundle_id(locator: str) -> Optional[str]:
    """
    Extract the bundle id from a locator.

    A bare identifier (no URL syntax) is accepted as-is.

    Args:
        locator: Share URL or identifier

    Returns:
        Bundle id, or None when the locator carries none
    """
    locator = locator.strip()
    if not locator:
        return None

    parts = urlsplit(locator)
    if not parts.scheme and not parts.query and '/' not in locator and '=' not in locator:
        return locator

    values = parse_qs(parts.query).get(LOCATOR_PARAM)
    if values and values[0]:
        return values[0]
    return None
