"""
FastAPI application for the article generation service.

POST /api/ai/generate-article is the single entry point used by tenant sites
and the platform scheduler.
"""

import json

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.db import get_db
from newsroom.core.logging import get_logger
from newsroom.core.repositories import ArticleRepository, TenantRepository
from newsroom.core.settings import Settings, get_settings
from newsroom.services.base import create_app
from .credits import CreditClient
from .images import ImageResolver
from .llm_provider import LLMProviderFactory
from .publisher import ArticlePublisher
from .web_search import SourceAcquirer

logger = get_logger(__name__)


async def setup_generation(app: FastAPI, settings: Settings) -> None:
    """Build the publisher from settings unless one was injected."""
    if hasattr(app.state, "publisher"):
        return
    client = app.state.http_client
    app.state.publisher = ArticlePublisher(
        provider=LLMProviderFactory.from_settings(settings),
        acquirer=SourceAcquirer.from_settings(settings, client),
        image_resolver=ImageResolver.from_settings(settings, client),
        credits=CreditClient.from_settings(settings, client),
        platform_secret=settings.platform_secret,
    )


async def drain_deductions(app: FastAPI) -> None:
    await app.state.publisher.drain()


def create_generation_app(settings: Settings = None) -> FastAPI:
    app = create_app(
        "generator",
        description="AI article generation for tenant newspapers",
        setup=setup_generation,
        teardown=drain_deductions,
        settings=settings,
    )

    @app.options("/api/ai/generate-article")
    async def generate_article_options():
        return Response(status_code=204)

    @app.post("/api/ai/generate-article")
    async def generate_article(request: Request, db: AsyncSession = Depends(get_db)):
        """Generate, store and return one article."""
        try:
            body = await request.json()
        except json.JSONDecodeError:
            body = None

        publisher: ArticlePublisher = request.app.state.publisher
        status_code, response = await publisher.handle(
            request.headers,
            body,
            tenants=TenantRepository(db),
            articles=ArticleRepository(db),
        )
        return JSONResponse(status_code=status_code, content=response.to_payload())

    return app


app = create_generation_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "newsroom.generation.app:app",
        host=settings.service_host,
        port=settings.service_port or 8001,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
