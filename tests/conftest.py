"""Shared fakes for the newsroom tests."""
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from newsroom.generation.credits import CREDIT_COSTS
from newsroom.generation.models import CreditCheck, ImageResult, SourceContent

PLATFORM_SECRET = "platform-test-secret"
TENANT_API_KEY = "tenant-test-key"


def words(count: int, word: str = "council") -> str:
    return " ".join([word] * count)


def make_tenant(**overrides) -> SimpleNamespace:
    """Tenant row stand-in with one 'Local News' category."""
    values = dict(
        id="tenant-1",
        business_name="Riverside Daily",
        api_key=TENANT_API_KEY,
        status="active",
        service_area={"city": "Riverside", "state": "CA"},
        editor_in_chief_directive="Be accurate and fair.",
        ai_settings={},
        article_length=None,
        categories=[
            SimpleNamespace(
                id="cat-local",
                name="Local News",
                slug="local-news",
                directive="Focus on neighborhoods.",
            ),
        ],
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class FakeTenantStore:
    def __init__(self, *tenants):
        self.tenants = {tenant.id: tenant for tenant in tenants}

    async def get_tenant(self, tenant_id: str):
        return self.tenants.get(tenant_id)


class FakeArticleStore:
    """In-memory article collection recording every write in a shared event log."""

    def __init__(self, events: Optional[List[str]] = None, existing_slugs=()):
        self.events = events if events is not None else []
        self.slugs = set(existing_slugs)
        self.articles: List[Dict[str, Any]] = []

    async def slug_exists(self, tenant_id: str, slug: str) -> bool:
        return slug in self.slugs

    async def add_article(self, data: Dict[str, Any]) -> str:
        self.articles.append(data)
        self.slugs.add(data["slug"])
        self.events.append("add_article")
        return f"article-{len(self.articles)}"

    async def recent_titles(self, tenant_id: str, limit: int = 20) -> List[str]:
        return [article["title"] for article in self.articles][-limit:]


class FakeCreditClient:
    def __init__(
        self,
        check_result: CreditCheck,
        events: Optional[List[str]] = None,
        costs: Optional[Dict[str, int]] = None,
    ):
        self.check_result = check_result
        self.costs = dict(costs or CREDIT_COSTS)
        self.events = events if events is not None else []
        self.checks: List[Dict[str, Any]] = []
        self.deductions: List[Dict[str, Any]] = []

    async def check(self, tenant_id: str, credits: int) -> CreditCheck:
        self.checks.append({"tenant_id": tenant_id, "credits": credits})
        self.events.append("check")
        return self.check_result

    async def deduct(self, tenant_id, credits, description, article_id, metadata=None):
        self.events.append("deduct")
        self.deductions.append({
            "tenant_id": tenant_id,
            "credits": credits,
            "article_id": article_id,
        })


@pytest.fixture
def events():
    return []


@pytest.fixture
def tenant():
    return make_tenant()


@pytest.fixture
def tenants(tenant):
    return FakeTenantStore(tenant)


@pytest.fixture
def articles(events):
    return FakeArticleStore(events)


@pytest.fixture
def credits(events):
    return FakeCreditClient(CreditCheck(allowed=True, credits_remaining=100), events)


@pytest.fixture
def acquirer():
    mock = AsyncMock()
    mock.acquire.return_value = SourceContent(
        title="Library Extends Weekend Hours",
        description="The public library will open on Sundays.",
        full_content=words(400, "library"),
        source_name="News Reports",
    )
    return mock


@pytest.fixture
def image_resolver():
    mock = AsyncMock()
    mock.resolve.return_value = ImageResult(
        url="https://images.example.com/library.jpg",
        attribution="Photo by Jane Doe on Pexels",
        method="pexels",
    )
    return mock


@pytest.fixture
def tenant_headers():
    return {"X-Tenant-ID": "tenant-1", "X-API-Key": TENANT_API_KEY}


@pytest.fixture
def platform_headers():
    return {"X-Tenant-ID": "tenant-1", "X-Platform-Secret": PLATFORM_SECRET}
