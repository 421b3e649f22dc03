"""Tests for credit pricing and the credit service client."""
import json

import httpx
import pytest

from newsroom.generation.credits import CreditClient, compute_article_cost, credits_to_quantity


def client_for(handler) -> CreditClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CreditClient(http, "https://platform.example.com/api/", platform_secret="s3cret")


class TestPricing:

    def test_base_cost(self):
        assert compute_article_cost(generate_seo=False, use_web_search=False) == 10

    def test_seo_and_search_add_up(self):
        assert compute_article_cost(generate_seo=True, use_web_search=True) == 14

    def test_custom_costs(self):
        costs = {"article_generation": 5, "seo_optimization": 1, "web_search": 1}
        assert compute_article_cost(False, True, costs) == 6

    def test_quantity_rounds_up_to_whole_articles(self):
        assert credits_to_quantity(10) == 1
        assert credits_to_quantity(14) == 2
        assert credits_to_quantity(0) == 1


class TestCreditClient:

    @pytest.mark.asyncio
    async def test_check_reports_denial(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["secret"] = request.headers["X-Platform-Secret"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"allowed": False, "creditsRemaining": 2, "message": "Out of credits"})

        result = await client_for(handler).check("tenant-1", 14)

        assert result.allowed is False
        assert result.credits_remaining == 2
        assert result.message == "Out of credits"
        assert seen["url"] == "https://platform.example.com/api/credits/check"
        assert seen["secret"] == "s3cret"
        assert seen["body"] == {"tenantId": "tenant-1", "action": "article_generation", "quantity": 2}

    @pytest.mark.asyncio
    async def test_check_is_permissive_when_service_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = await client_for(handler).check("tenant-1", 10)

        assert result.allowed is True
        assert result.credits_remaining == -1

    @pytest.mark.asyncio
    async def test_check_is_permissive_on_garbage(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>")

        result = await client_for(handler).check("tenant-1", 10)

        assert result.allowed is True
        assert result.credits_remaining == -1

    @pytest.mark.asyncio
    async def test_deduct_posts_article_reference(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True})

        await client_for(handler).deduct("tenant-1", 10, "Generated article: X", "article-1", {"model": "m"})

        assert bodies[0]["articleId"] == "article-1"
        assert bodies[0]["quantity"] == 1
        assert bodies[0]["metadata"] == {"model": "m"}

    @pytest.mark.asyncio
    async def test_deduct_raises_on_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "ledger down"})

        with pytest.raises(httpx.HTTPStatusError):
            await client_for(handler).deduct("tenant-1", 10, "Generated article: X", "article-1")

    @pytest.mark.asyncio
    async def test_quantity_uses_client_price_table(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"allowed": True, "creditsRemaining": 20})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = CreditClient(http, "https://platform.example.com/api", costs={"article_generation": 4})

        await client.check("tenant-1", 10)

        assert bodies[0]["quantity"] == 3
