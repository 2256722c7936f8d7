"""QR image locator rendering through the third-party image endpoint."""

import logging
from typing import Optional
from urllib.parse import quote

from common.constants import DEFAULT_QR_SIZE, QR_ENDPOINT
from common.exceptions import NetworkFailureError
from offline_cache.http_types import CachedRequest, RequestMode
from offline_cache.service_worker import WorkerRegistration

logger = logging.getLogger(__name__)


def build_qr_image_url(text: str, size: int = DEFAULT_QR_SIZE) -> str:
    """
    Build the image URL that renders text as a square QR code.

    Args:
        text: Content to encode (typically a share URL)
        size: Edge length in pixels

    Returns:
        Absolute image URL
    """
    data = quote(text, safe="!*'()")
    return f"{QR_ENDPOINT}?size={size}x{size}&data={data}"


async def fetch_qr_image(
    registration: WorkerRegistration,
    text: str,
    size: int = DEFAULT_QR_SIZE
) -> Optional[bytes]:
    """
    Fetch the QR image as a cacheable cross-origin GET.

    Args:
        registration: Resource cache registration that fronts the fetch
        text: Content to encode
        size: Edge length in pixels

    Returns:
        Image bytes, or None if the image is unavailable
    """
    request = CachedRequest(url=build_qr_image_url(text, size), mode=RequestMode.CORS)
    try:
        response = await registration.fetch(request)
    except NetworkFailureError as e:
        logger.info(f"QR image unavailable: {e}")
        return None

    if response is None or not response.ok:
        return None
    return response.body
