"""Tests for article image resolution."""
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from newsroom.generation.images import ImageResolver, extract_photo_keywords


def gemini_client(response=None, error=None):
    generate = AsyncMock(return_value=response, side_effect=error)
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate)))


def image_response(data: bytes = b"\x89PNG", mime_type: str = "image/png"):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def http_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_photo_keywords_skip_stopwords_and_add_category():
    assert extract_photo_keywords("Breaking: Downtown Bakery Wins State Award", "Business") == "downtown bakery wins business"


class TestImageResolver:

    @pytest.mark.asyncio
    async def test_pexels_photo(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "pexels-key"
            return httpx.Response(200, json={"photos": [{
                "photographer": "Jane Doe",
                "src": {"large2x": "https://images.pexels.com/1.jpg", "large": "https://images.pexels.com/1-small.jpg"},
            }]})

        resolver = ImageResolver(http_client(handler), pexels_api_key="pexels-key")
        result = await resolver.resolve("Downtown Bakery Wins Award", "Business")

        assert result.method == "pexels"
        assert result.url == "https://images.pexels.com/1.jpg"
        assert result.attribution == "Photo by Jane Doe on Pexels"

    @pytest.mark.asyncio
    async def test_falls_back_to_gemini_when_no_photos(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"photos": []})

        genai = gemini_client(image_response())
        resolver = ImageResolver(http_client(handler), pexels_api_key="pexels-key", genai_client=genai)
        result = await resolver.resolve("Downtown Bakery Wins Award", "Business")

        assert result.method == "gemini"
        assert result.url.startswith("data:image/png;base64,")
        assert result.attribution == "AI-generated image"

    @pytest.mark.asyncio
    async def test_nothing_available(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        genai = gemini_client(error=RuntimeError("quota exceeded"))
        resolver = ImageResolver(http_client(handler), pexels_api_key="pexels-key", genai_client=genai)
        result = await resolver.resolve("Downtown Bakery Wins Award", "Business")

        assert result.method == "none"
        assert result.url == ""

    @pytest.mark.asyncio
    async def test_text_only_gemini_response_is_no_image(self):
        part = SimpleNamespace(inline_data=None, text="I cannot draw that")
        response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])
        resolver = ImageResolver(http_client(lambda r: httpx.Response(200)), genai_client=gemini_client(response))

        result = await resolver.resolve("Downtown Bakery Wins Award", "Business")

        assert result.method == "none"
