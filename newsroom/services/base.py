"""Base FastAPI service with common functionality."""
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsroom.core.db import Database
from newsroom.core.logging import setup_logging, get_logger
from newsroom.core.settings import Settings, get_settings

ServiceSetup = Callable[[FastAPI, Settings], Awaitable[None]]

VERSION = "0.1.0"


def create_app(
    service_name: str,
    description: str = "",
    setup: Optional[ServiceSetup] = None,
    teardown: Optional[Callable[[FastAPI], Awaitable[None]]] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Create FastAPI application with common configuration.

    The lifespan opens the database and one shared httpx client and stores
    them on app.state, then calls `setup` to build the service components.
    Anything already placed on app.state (tests do this) is left alone.
    """
    settings = settings or get_settings()
    setup_logging(service_name, settings)
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_database = not hasattr(app.state, "database")
        if owns_database:
            app.state.database = Database.from_settings(settings)
        await app.state.database.create_all()

        owns_client = not hasattr(app.state, "http_client")
        if owns_client:
            app.state.http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.http_timeout),
                follow_redirects=True,
            )

        if setup is not None:
            await setup(app, settings)
        logger.info(f"{service_name} service started")

        yield

        if teardown is not None:
            await teardown(app)
        if owns_client:
            await app.state.http_client.aclose()
        if owns_database:
            await app.state.database.dispose()
        logger.info(f"{service_name} service stopped")

    app = FastAPI(
        title=f"Newsroom - {service_name.title()}",
        description=description or f"Newsroom {service_name} service",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Callers are arbitrary tenant subdomains
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Tenant-ID", "X-API-Key", "X-Platform-Secret"],
        max_age=86400,
    )

    @app.get("/healthz")
    async def health_check():
        """Health check endpoint."""
        return {"ok": True, "service": service_name}

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": service_name,
            "message": f"Newsroom {service_name.title()} Service",
            "version": VERSION,
        }

    return app
