"""Opaque identifier generation for new bundles."""

import logging
import secrets
import string
from typing import Awaitable, Callable

from common.constants import BUNDLE_ID_HALF_LENGTH, BUNDLE_ID_MAX_ATTEMPTS
from common.exceptions import IdentifierExhaustedError

logger = logging.getLogger(__name__)

ID_ALPHABET = string.digits + string.ascii_lowercase


def _random_base36(length: int) -> str:
    return ''.join(secrets.choice(ID_ALPHABET) for _ in range(length))


def generate_bundle_id() -> str:
    """
    Generate a new opaque bundle identifier.

    Two independent base-36 halves are concatenated, giving 36**26 possible
    identifiers. Uniqueness is probabilistic; see generate_unique_bundle_id.

    Returns:
        26-character lowercase alphanumeric string
    """
    return _random_base36(BUNDLE_ID_HALF_LENGTH) + _random_base36(BUNDLE_ID_HALF_LENGTH)


async def generate_unique_bundle_id(
    exists: Callable[[str], Awaitable[bool]],
    max_attempts: int = BUNDLE_ID_MAX_ATTEMPTS,
    generator: Callable[[], str] = generate_bundle_id,
) -> str:
    """
    Draw identifiers until one is not already present in the store.

    Args:
        exists: Async predicate reporting whether an identifier is taken
        max_attempts: Number of draws before giving up
        generator: Identifier source (injectable for tests)

    Returns:
        An identifier that was unused at the time of the check

    Raises:
        IdentifierExhaustedError: If every draw collided
    """
    for attempt in range(max_attempts):
        candidate = generator()
        if not await exists(candidate):
            return candidate
        logger.warning(f"Bundle id collision, redrawing (attempt {attempt + 1}/{max_attempts})")

    raise IdentifierExhaustedError(f"No unused bundle id after {max_attempts} attempts")
