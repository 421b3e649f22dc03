"""Article image resolution: Pexels stock photos first, Gemini image fallback."""

import base64
import random
import re
from typing import Optional

import httpx
from google import genai
from google.genai import types

from newsroom.core.logging import get_logger
from newsroom.core.settings import Settings
from newsroom.core.utils import extract_keywords
from .models import ImageResult

logger = get_logger(__name__)

PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"
PEXELS_PER_PAGE = 15
PEXELS_MAX_PAGE = 5


def extract_photo_keywords(title: str, category: Optional[str] = None) -> str:
    """Top three headline words plus the category, as a stock photo query."""
    category_keyword = re.sub(r'[^a-z]', '', (category or "").lower())
    keywords = extract_keywords(title, max_keywords=3, min_length=4)
    if category_keyword and category_keyword not in keywords:
        keywords.append(category_keyword)
    return " ".join(keywords) or category or "news"


def build_image_prompt(title: str, category: str) -> str:
    return f"""Create a professional news photograph for this headline: "{title}"

Requirements:
- Photorealistic editorial photography style
- High resolution, sharp focus, natural lighting
- Clean composition suitable for newspaper front page
- No text overlays, watermarks, or logos
- No recognizable human faces
- Professional photojournalism quality
- Category context: {category}"""


class ImageResolver:
    """
    Resolve one image per article.

    Every failure is absorbed; the worst outcome is ImageResult(method="none").
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        pexels_api_key: Optional[str] = None,
        genai_client: Optional[genai.Client] = None,
        image_model: str = "gemini-2.0-flash-exp-image-generation",
    ):
        self.client = client
        self.pexels_api_key = pexels_api_key
        self.genai_client = genai_client
        self.image_model = image_model

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> "ImageResolver":
        genai_client = genai.Client(api_key=settings.gemini_api_key) if settings.gemini_api_key else None
        return cls(
            client=client,
            pexels_api_key=settings.pexels_api_key,
            genai_client=genai_client,
            image_model=settings.image_model,
        )

    async def resolve(self, title: str, category: str, force_ai: bool = False) -> ImageResult:
        if self.pexels_api_key and not force_ai:
            query = extract_photo_keywords(title, category)
            logger.debug(f"Searching Pexels for: {query}")
            result = await self._search_pexels(query)
            if result is not None:
                return result
            logger.info("No Pexels results, trying AI image generation")

        if self.genai_client is not None:
            result = await self._generate_with_gemini(title, category)
            if result is not None:
                return result

        logger.info(f"No image available for '{title}'")
        return ImageResult(url="", method="none")

    async def _search_pexels(self, query: str) -> Optional[ImageResult]:
        try:
            response = await self.client.get(
                PEXELS_SEARCH_URL,
                params={
                    "query": query,
                    "per_page": PEXELS_PER_PAGE,
                    "orientation": "landscape",
                    "page": random.randint(1, PEXELS_MAX_PAGE),
                },
                headers={"Authorization": self.pexels_api_key},
            )
            response.raise_for_status()
            photos = response.json().get("photos") or []
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Pexels search failed: {e}")
            return None

        if not photos:
            return None

        photo = random.choice(photos)
        src = photo.get("src") or {}
        url = src.get("large2x") or src.get("large")
        if not url:
            return None

        return ImageResult(
            url=url,
            attribution=f"Photo by {photo.get('photographer', 'Unknown')} on Pexels",
            method="pexels",
        )

    async def _generate_with_gemini(self, title: str, category: str) -> Optional[ImageResult]:
        try:
            response = await self.genai_client.aio.models.generate_content(
                model=self.image_model,
                contents=build_image_prompt(title, category),
                config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
            )
        except Exception as e:
            logger.error(f"Gemini image generation failed: {e}")
            return None

        candidates = getattr(response, "candidates", None) or []
        parts = candidates[0].content.parts if candidates and candidates[0].content else []
        for part in parts or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data and (inline.mime_type or "").startswith("image/"):
                encoded = base64.b64encode(inline.data).decode("ascii")
                return ImageResult(
                    url=f"data:{inline.mime_type};base64,{encoded}",
                    attribution="AI-generated image",
                    method="gemini",
                )

        logger.error("Gemini returned no image data")
        return None
