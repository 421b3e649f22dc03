"""Tests for unique slug resolution."""
import pytest
from unittest.mock import AsyncMock

from newsroom.core.exceptions import SlugExhaustedError
from newsroom.generation.slugs import MAX_SLUG_ATTEMPTS, resolve_unique_slug


class TestResolveUniqueSlug:
    """Collision handling against a tenant's article slugs."""

    @pytest.mark.asyncio
    async def test_free_candidate_is_used_as_is(self):
        exists = AsyncMock(return_value=False)

        slug = await resolve_unique_slug("park-reopens", exists)

        assert slug == "park-reopens"
        exists.assert_awaited_once_with("park-reopens")

    @pytest.mark.asyncio
    async def test_same_candidate_twice_yields_distinct_slugs(self):
        taken = set()

        async def exists(slug):
            return slug in taken

        first = await resolve_unique_slug("park-reopens", exists)
        taken.add(first)
        second = await resolve_unique_slug("park-reopens", exists)

        assert first == "park-reopens"
        assert second != first
        assert second.startswith("park-reopens-")

    @pytest.mark.asyncio
    async def test_suffix_after_collision(self):
        exists = AsyncMock(side_effect=[True, False])

        slug = await resolve_unique_slug("park-reopens", exists)

        assert slug.startswith("park-reopens-")
        assert len(slug) == len("park-reopens-") + 6
        assert exists.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_exactly_five_attempts(self):
        exists = AsyncMock(return_value=True)

        with pytest.raises(SlugExhaustedError):
            await resolve_unique_slug("park-reopens", exists)

        assert MAX_SLUG_ATTEMPTS == 5
        assert exists.await_count == 5

    @pytest.mark.asyncio
    async def test_attempt_budget_is_configurable(self):
        exists = AsyncMock(return_value=True)

        with pytest.raises(SlugExhaustedError):
            await resolve_unique_slug("park-reopens", exists, max_attempts=2)

        assert exists.await_count == 2
