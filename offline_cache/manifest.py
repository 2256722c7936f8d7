"""Versioned precache manifest for the application shell."""

from dataclasses import dataclass
from typing import List, Tuple
from urllib.parse import urljoin

from common.constants import (
    DYNAMIC_CACHE_NAME,
    SHELL_ENTRY_URL,
    STATIC_CACHE_NAME,
    STATIC_CACHE_URLS,
)
from offline_cache.http_types import get_origin


@dataclass(frozen=True)
class CacheManifest:
    """
    Fixed list of URLs cached verbatim on install, plus the namespace names
    of the generation they belong to.

    Relative entries are resolved against app_url.
    """
    app_url: str
    static_cache_name: str = STATIC_CACHE_NAME
    dynamic_cache_name: str = DYNAMIC_CACHE_NAME
    urls: Tuple[str, ...] = STATIC_CACHE_URLS
    shell_entry: str = SHELL_ENTRY_URL

    @property
    def origin(self) -> str:
        return get_origin(self.app_url)

    @property
    def shell_url(self) -> str:
        return urljoin(self.app_url, self.shell_entry)

    @property
    def kept_cache_names(self) -> Tuple[str, str]:
        return (self.static_cache_name, self.dynamic_cache_name)

    def resolved_urls(self) -> List[str]:
        """
        Resolve every manifest entry to an absolute URL, dropping duplicates
        while keeping order.
        """
        resolved: List[str] = []
        for url in self.urls:
            absolute = urljoin(self.app_url, url)
            if absolute not in resolved:
                resolved.append(absolute)
        return resolved
