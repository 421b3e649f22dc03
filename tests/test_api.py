"""
API tests for the generator and support services.

Each test runs the real lifespan against an in-memory SQLite database; the
generation provider and outbound clients are replaced on app.state before
startup.
"""
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from newsroom.core.models import Article, Category, Tenant
from newsroom.core.settings import Settings
from newsroom.generation.app import create_generation_app
from newsroom.generation.credits import CREDIT_COSTS
from newsroom.generation.llm_provider import DummyLLMProvider
from newsroom.generation.models import CreditCheck, ImageResult
from newsroom.generation.publisher import ArticlePublisher
from newsroom.support.app import create_support_app
from newsroom.support.autopilot import AutopilotResponder
from newsroom.support.tickets import TicketService
from newsroom.support.triage import SupportTriageEngine
from conftest import PLATFORM_SECRET, TENANT_API_KEY, words

TENANT_HEADERS = {"X-Tenant-ID": "tenant-1", "X-API-Key": TENANT_API_KEY}


@pytest.fixture
def settings():
    return Settings(db_url="sqlite+aiosqlite://", platform_secret=PLATFORM_SECRET, log_level="WARNING")


def seed_tenant(client: TestClient) -> None:
    """Insert one tenant with a category inside the app's event loop."""
    database = client.app.state.database

    async def seed():
        async with database.session_factory() as session:
            session.add(Tenant(
                id="tenant-1",
                business_name="Riverside Daily",
                api_key=TENANT_API_KEY,
                status="active",
                service_area={"city": "Riverside", "state": "CA"},
                ai_settings={},
            ))
            session.add(Category(id="cat-local", tenant_id="tenant-1", name="Local News", slug="local-news"))
            await session.commit()

    client.portal.call(seed)


def stored_articles(client: TestClient):
    database = client.app.state.database

    async def load():
        async with database.session_factory() as session:
            result = await session.execute(select(Article))
            return list(result.scalars().all())

    return client.portal.call(load)


@pytest.fixture
def generator(settings):
    credits = AsyncMock()
    credits.costs = dict(CREDIT_COSTS)
    credits.check.return_value = CreditCheck(allowed=True, credits_remaining=50)
    images = AsyncMock()
    images.resolve.return_value = ImageResult()

    app = create_generation_app(settings)
    app.state.publisher = ArticlePublisher(
        provider=DummyLLMProvider(),
        acquirer=AsyncMock(),
        image_resolver=images,
        credits=credits,
        platform_secret=PLATFORM_SECRET,
    )
    with TestClient(app) as client:
        seed_tenant(client)
        yield client


@pytest.fixture
def support(settings):
    provider = DummyLLMProvider(["We're looking into it."])
    app = create_support_app(settings)
    app.state.ticket_service = TicketService(SupportTriageEngine(provider), AutopilotResponder(provider))
    with TestClient(app) as client:
        seed_tenant(client)
        yield client


class TestGenerateArticleEndpoint:

    def test_generates_and_stores_article(self, generator):
        response = generator.post(
            "/api/ai/generate-article",
            headers=TENANT_HEADERS,
            json={
                "categoryId": "cat-local",
                "sourceContent": {"title": "Garden opens", "fullContent": words(150, "garden"), "sourceName": "Tribune"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["article"]["slug"] == "community-garden-opens-on-elm-street"
        assert data["creditsUsed"] == 10
        assert data["creditsRemaining"] == 40

        stored = stored_articles(generator)
        assert len(stored) == 1
        assert stored[0].tenant_id == "tenant-1"
        assert stored[0].category_name == "Local News"

    def test_same_title_twice_gets_distinct_slugs(self, generator):
        body = {"categoryId": "cat-local", "sourceContent": {"title": "Garden", "fullContent": words(150)}}

        first = generator.post("/api/ai/generate-article", headers=TENANT_HEADERS, json=body).json()
        second = generator.post("/api/ai/generate-article", headers=TENANT_HEADERS, json=body).json()

        assert first["article"]["slug"] != second["article"]["slug"]
        assert len(stored_articles(generator)) == 2

    def test_unauthenticated(self, generator):
        response = generator.post("/api/ai/generate-article", json={"categoryId": "cat-local"})

        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["model"] == "unknown"

    def test_invalid_json_body(self, generator):
        response = generator.post(
            "/api/ai/generate-article",
            headers={**TENANT_HEADERS, "Content-Type": "application/json"},
            content=b"{not json",
        )

        assert response.status_code == 400
        assert response.json()["error"] == "categoryId is required"

    def test_no_source_rejected(self, generator):
        response = generator.post(
            "/api/ai/generate-article",
            headers=TENANT_HEADERS,
            json={"categoryId": "cat-local"},
        )

        assert response.status_code == 400
        assert stored_articles(generator) == []

    def test_options_preflight(self, generator):
        response = generator.options("/api/ai/generate-article")

        assert response.status_code == 204


class TestSupportTicketsEndpoint:

    def test_ticket_lifecycle(self, support):
        created = support.post(
            "/api/support/tickets",
            headers=TENANT_HEADERS,
            json={"subject": "Images broken", "description": "No images on the homepage"},
        )
        assert created.status_code == 201
        ticket_id = created.json()["ticketId"]
        assert created.json()["aiResponse"] == "We're looking into it."

        listed = support.get("/api/support/tickets", headers=TENANT_HEADERS)
        assert listed.status_code == 200
        assert listed.json()["total"] == 1

        detail = support.get("/api/support/tickets", headers=TENANT_HEADERS, params={"id": ticket_id})
        assert [m["senderType"] for m in detail.json()["messages"]] == ["user", "ai"]

        closed = support.patch(
            "/api/support/tickets",
            headers=TENANT_HEADERS,
            json={"ticketId": ticket_id, "action": "update_status", "status": "closed"},
        )
        assert closed.status_code == 200

        forbidden = support.delete("/api/support/tickets", headers=TENANT_HEADERS, params={"id": ticket_id})
        assert forbidden.status_code == 403

        deleted = support.delete(
            "/api/support/tickets",
            headers={"X-Platform-Secret": PLATFORM_SECRET},
            params={"id": ticket_id},
        )
        assert deleted.status_code == 200
        assert support.get("/api/support/tickets", headers=TENANT_HEADERS).json()["total"] == 0

    def test_platform_sees_all_tickets(self, support):
        support.post(
            "/api/support/tickets",
            headers=TENANT_HEADERS,
            json={"subject": "Billing", "description": "Charged twice"},
        )

        response = support.get("/api/support/tickets", headers={"X-Platform-Secret": PLATFORM_SECRET})

        assert response.json()["tickets"][0]["tenantName"] == "Riverside Daily"

    def test_missing_ticket_is_404(self, support):
        response = support.get("/api/support/tickets", headers=TENANT_HEADERS, params={"id": "nope"})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Ticket not found"}

    def test_patch_requires_ticket_and_action(self, support):
        response = support.patch("/api/support/tickets", headers=TENANT_HEADERS, json={"action": "reply"})

        assert response.status_code == 400

    def test_invalid_priority_is_400(self, support):
        response = support.post(
            "/api/support/tickets",
            headers=TENANT_HEADERS,
            json={"subject": "x", "description": "y", "priority": "whenever"},
        )

        assert response.status_code == 400

    def test_unauthenticated(self, support):
        response = support.get("/api/support/tickets")

        assert response.status_code == 401
        assert response.headers["Access-Control-Allow-Origin"] == "*"
