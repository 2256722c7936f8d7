"""HTTP network layer behind the resource cache."""

import logging
from typing import Optional

import httpx

from common.constants import NETWORK_TIMEOUT_SECONDS
from common.exceptions import NetworkFailureError
from offline_cache.http_types import (
    CachedRequest,
    CachedResponse,
    RequestMode,
    ResponseType,
    get_origin,
)

logger = logging.getLogger(__name__)


class NetworkFetcher:
    """
    Async HTTP client that turns network responses into cacheable snapshots.

    Responses are classified relative to the application origin: same-origin
    final URLs are "basic", other origins are "cors", and no-cors requests to
    other origins are "opaque" (status 0, empty body).
    """

    def __init__(
        self,
        app_origin: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = NETWORK_TIMEOUT_SECONDS
    ):
        """
        Initialize fetcher with lazy client creation.

        Args:
            app_origin: Origin of the application (scheme://host[:port])
            client: Preconfigured httpx client (e.g. with a mock transport)
            timeout: Request timeout in seconds when creating a client
        """
        self.app_origin = app_origin.rstrip('/')
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
            logger.info(f"Created HTTP client [app_origin={self.app_origin}]")
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _classify(self, request: CachedRequest, final_url: str) -> ResponseType:
        if get_origin(final_url) == self.app_origin:
            return ResponseType.BASIC
        if request.mode is RequestMode.NO_CORS:
            return ResponseType.OPAQUE
        return ResponseType.CORS

    async def fetch(self, request: CachedRequest) -> CachedResponse:
        """
        Perform the network request.

        HTTP error statuses are returned as responses; only transport-level
        failures raise.

        Args:
            request: Request to send

        Returns:
            Response snapshot

        Raises:
            NetworkFailureError: If the request could not be completed
        """
        client = self._ensure_client()

        try:
            response = await client.request(request.method, request.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Network request failed for {request.url}: {e}")
            raise NetworkFailureError(f"Network request failed for {request.url}: {e}") from e

        final_url = str(response.url)
        response_type = self._classify(request, final_url)

        if response_type is ResponseType.OPAQUE:
            return CachedResponse(
                url=final_url,
                status=0,
                type=ResponseType.OPAQUE,
                redirected=bool(response.history),
            )

        return CachedResponse(
            url=final_url,
            status=response.status_code,
            body=response.content,
            headers=dict(response.headers),
            status_text=response.reason_phrase,
            type=response_type,
            redirected=bool(response.history),
        )
