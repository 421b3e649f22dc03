"""
FastAPI application for the support ticket service.

/api/support/tickets serves tenant admin UIs (X-Tenant-ID + X-API-Key) and
the platform admin (X-Platform-Secret, optionally scoped with X-Tenant-ID).
"""

import json
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.db import get_db
from newsroom.core.exceptions import NewsroomError, RequestValidationError
from newsroom.core.logging import get_logger
from newsroom.core.repositories import SupportRepository, TenantRepository
from newsroom.core.settings import Settings, get_settings
from newsroom.generation.auth import AuthContext, authenticate
from newsroom.generation.llm_provider import LLMProviderFactory
from newsroom.services.base import create_app
from .autopilot import AutopilotResponder
from .models import TicketAction, TicketCreate
from .tickets import TicketService
from .triage import SupportTriageEngine

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Tenant-ID, X-API-Key, X-Platform-Secret",
    "Access-Control-Max-Age": "86400",
}


def _json(content: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


async def setup_support(app: FastAPI, settings: Settings) -> None:
    """Build the ticket service from settings unless one was injected."""
    app.state.settings = settings
    if hasattr(app.state, "ticket_service"):
        return
    provider = LLMProviderFactory.from_settings(settings)
    app.state.ticket_service = TicketService(
        triage_engine=SupportTriageEngine(provider),
        autopilot=AutopilotResponder(provider),
    )


async def _authenticate(request: Request, db: AsyncSession) -> AuthContext:
    settings: Settings = getattr(request.app.state, "settings", None) or get_settings()
    return await authenticate(
        request.headers,
        TenantRepository(db),
        settings.platform_secret,
        require_tenant=False,
    )


async def _read_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise RequestValidationError("Request body must be JSON")
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object")
    return body


def create_support_app(settings: Optional[Settings] = None) -> FastAPI:
    app = create_app(
        "support",
        description="Support tickets with AI triage and autopilot replies",
        setup=setup_support,
        settings=settings,
    )

    @app.exception_handler(NewsroomError)
    async def newsroom_error_handler(request: Request, exc: NewsroomError):
        logger.error(f"{request.method} {request.url.path} failed ({exc.status_code}): {exc.message}")
        return _json({"success": False, "error": exc.message}, exc.status_code)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.error(f"{request.method} {request.url.path} invalid body: {exc}")
        return _json({"success": False, "error": str(exc.errors()[0].get("msg", "Invalid request"))}, 400)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} failed: {exc}")
        return _json({"success": False, "error": str(exc) or "Internal server error"}, 500)

    @app.options("/api/support/tickets")
    async def tickets_options():
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.get("/api/support/tickets")
    async def get_tickets(
        request: Request,
        id: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        tenantId: Optional[str] = None,
        db: AsyncSession = Depends(get_db),
    ):
        """Single ticket with its messages when `id` is given, otherwise a filtered list."""
        auth = await _authenticate(request, db)
        service: TicketService = request.app.state.ticket_service
        store = SupportRepository(db)
        if id:
            return _json(await service.get_ticket(store, auth, id))
        return _json(await service.list_tickets(store, auth, status, priority, search, limit, tenantId))

    @app.post("/api/support/tickets")
    async def create_ticket(request: Request, db: AsyncSession = Depends(get_db)):
        auth = await _authenticate(request, db)
        body = TicketCreate.model_validate(await _read_body(request))
        service: TicketService = request.app.state.ticket_service
        return _json(await service.create_ticket(SupportRepository(db), auth, body), 201)

    @app.patch("/api/support/tickets")
    async def update_ticket(request: Request, db: AsyncSession = Depends(get_db)):
        auth = await _authenticate(request, db)
        raw = await _read_body(request)
        if not raw.get("ticketId") or not raw.get("action"):
            raise RequestValidationError("ticketId and action are required")
        body = TicketAction.model_validate(raw)
        service: TicketService = request.app.state.ticket_service
        return _json(await service.update_ticket(SupportRepository(db), auth, body))

    @app.delete("/api/support/tickets")
    async def delete_ticket(request: Request, id: Optional[str] = None, db: AsyncSession = Depends(get_db)):
        auth = await _authenticate(request, db)
        service: TicketService = request.app.state.ticket_service
        return _json(await service.delete_ticket(SupportRepository(db), auth, id))

    return app


app = create_support_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "newsroom.support.app:app",
        host=settings.service_host,
        port=settings.service_port or 8002,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
