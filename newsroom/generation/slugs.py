"""Unique slug resolution against a tenant's existing articles."""

import secrets
from typing import Awaitable, Callable

from newsroom.core.exceptions import SlugExhaustedError
from newsroom.core.logging import get_logger

logger = get_logger(__name__)

MAX_SLUG_ATTEMPTS = 5
SUFFIX_BYTES = 3

SlugExists = Callable[[str], Awaitable[bool]]


def with_suffix(candidate: str) -> str:
    """Append a short random hex suffix."""
    return f"{candidate}-{secrets.token_hex(SUFFIX_BYTES)}"


async def resolve_unique_slug(
    candidate: str,
    exists: SlugExists,
    max_attempts: int = MAX_SLUG_ATTEMPTS,
) -> str:
    """
    Return a slug no existing article of the tenant uses.

    The bare candidate is tried first, then suffixed variants. Each attempt
    costs one existence query.

    Args:
        candidate: Slug derived from the title
        exists: Async predicate bound to the tenant's article store
        max_attempts: Existence checks allowed before giving up

    Raises:
        SlugExhaustedError: When every attempt collided
    """
    slug = candidate
    for attempt in range(1, max_attempts + 1):
        if not await exists(slug):
            if attempt > 1:
                logger.debug(f"Resolved slug '{slug}' after {attempt} attempts")
            return slug
        slug = with_suffix(candidate)

    logger.error(f"Slug '{candidate}' still colliding after {max_attempts} attempts")
    raise SlugExhaustedError(f"Could not find a unique slug for '{candidate}' in {max_attempts} attempts")
