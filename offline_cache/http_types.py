"""Request/response snapshots stored in and served from the resource cache."""

import base64
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional
from urllib.parse import urldefrag, urlsplit


class RequestMode(Enum):
    NAVIGATE = "navigate"
    SAME_ORIGIN = "same-origin"
    CORS = "cors"
    NO_CORS = "no-cors"


class ResponseType(Enum):
    BASIC = "basic"
    CORS = "cors"
    OPAQUE = "opaque"


def get_origin(url: str) -> str:
    """
    Return the scheme://host[:port] origin of an absolute URL.

    Args:
        url: Absolute URL

    Returns:
        Origin string (lowercased scheme and host)
    """
    parts = urlsplit(url)
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


@dataclass(frozen=True)
class CachedRequest:
    """
    An outbound request as seen by the fetch handler.
    """
    url: str
    method: str = "GET"
    mode: RequestMode = RequestMode.CORS

    @property
    def origin(self) -> str:
        return get_origin(self.url)

    @property
    def is_navigation(self) -> bool:
        return self.mode is RequestMode.NAVIGATE

    @property
    def cache_key(self) -> str:
        """Method plus URL with any fragment removed."""
        return f"{self.method.upper()} {urldefrag(self.url).url}"


@dataclass
class CachedResponse:
    """
    Snapshot of a network response; body is fully materialized.
    """
    url: str
    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    status_text: str = ""
    type: ResponseType = ResponseType.BASIC
    redirected: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> Optional[str]:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return None

    def clone(self) -> 'CachedResponse':
        return replace(self, headers=dict(self.headers))

    def to_json(self) -> str:
        """Serialize to a JSON string for the key-value store."""
        return json.dumps({
            'url': self.url,
            'status': self.status,
            'status_text': self.status_text,
            'headers': self.headers,
            'body': base64.b64encode(self.body).decode('ascii'),
            'type': self.type.value,
            'redirected': self.redirected,
        })

    @classmethod
    def from_json(cls, data: str) -> 'CachedResponse':
        """Deserialize from a JSON string."""
        obj = json.loads(data)
        return cls(
            url=obj['url'],
            status=obj['status'],
            status_text=obj.get('status_text', ''),
            headers=obj.get('headers', {}),
            body=base64.b64decode(obj.get('body', '')),
            type=ResponseType(obj.get('type', ResponseType.BASIC.value)),
            redirected=obj.get('redirected', False),
        )
