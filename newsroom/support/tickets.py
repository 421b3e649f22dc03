"""
Support ticket operations.

Tenants see and act on their own tickets; the platform admin sees all of
them and alone may assign, escalate, reprioritise, switch autopilot or
delete. New tickets get an AI first response; replies on autopilot tickets
get an AI follow-up.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from newsroom.core.exceptions import NotFoundError, PermissionDeniedError, RequestValidationError
from newsroom.core.logging import get_logger
from newsroom.core.models import SupportTicket, TicketMessage
from newsroom.generation.auth import AuthContext
from .autopilot import HISTORY_TURNS, AutopilotResponder
from .models import TicketAction, TicketCreate, TicketPriority, TicketStatus
from .triage import SupportTriageEngine

logger = get_logger(__name__)

MAX_LIST_LIMIT = 100
ASSISTANT_NAME = "Support Assistant"
TICKET_MODES = ("standard", "autopilot")
TENANT_STATUSES = (TicketStatus.OPEN, TicketStatus.CLOSED)


class TicketStore(Protocol):
    async def create_ticket(self, data: Dict[str, Any]) -> SupportTicket: ...

    async def get_ticket(self, ticket_id: str) -> Optional[SupportTicket]: ...

    async def list_tickets(self, tenant_id=None, status=None, priority=None, limit: int = 50) -> List[SupportTicket]: ...

    async def add_message(self, ticket: SupportTicket, content: str, sender_type: str, sender_name: str = "",
                          sender_email: str = "", attachments=None) -> TicketMessage: ...

    async def list_messages(self, ticket_id: str) -> List[TicketMessage]: ...

    async def recent_messages(self, ticket_id: str, limit: int = 6) -> List[TicketMessage]: ...

    async def update_ticket(self, ticket: SupportTicket, updates: Dict[str, Any]) -> SupportTicket: ...

    async def delete_ticket(self, ticket_id: str) -> None: ...


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def ticket_to_dict(ticket: SupportTicket) -> Dict[str, Any]:
    return {
        "id": ticket.id,
        "tenantId": ticket.tenant_id,
        "tenantName": ticket.tenant_name,
        "subject": ticket.subject,
        "description": ticket.description,
        "category": ticket.category,
        "priority": ticket.priority,
        "status": ticket.status,
        "type": ticket.type,
        "mode": ticket.mode,
        "adminBusy": ticket.admin_busy,
        "reporterUid": ticket.reporter_uid,
        "reporterName": ticket.reporter_name,
        "reporterEmail": ticket.reporter_email,
        "assignedTo": ticket.assigned_to,
        "assignedName": ticket.assigned_name,
        "upvotes": ticket.upvotes or 0,
        "diagnostics": ticket.diagnostics,
        "triage": ticket.triage,
        "messageCount": ticket.message_count or 0,
        "lastMessageAt": _iso(ticket.last_message_at),
        "resolvedAt": _iso(ticket.resolved_at),
        "closedAt": _iso(ticket.closed_at),
        "createdAt": _iso(ticket.created_at),
        "updatedAt": _iso(ticket.updated_at),
    }


def message_to_dict(message: TicketMessage) -> Dict[str, Any]:
    return {
        "id": message.id,
        "content": message.content,
        "senderType": message.sender_type,
        "senderName": message.sender_name,
        "senderEmail": message.sender_email,
        "attachments": message.attachments or [],
        "createdAt": _iso(message.created_at),
    }


def matches_search(ticket: SupportTicket, search: str) -> bool:
    needle = search.lower()
    return any(
        needle in (value or "").lower()
        for value in (ticket.subject, ticket.description, ticket.tenant_name, ticket.reporter_name)
    )


class TicketService:
    """Ticket CRUD plus the AI first response and autopilot follow-ups."""

    def __init__(self, triage_engine: SupportTriageEngine, autopilot: AutopilotResponder):
        self.triage_engine = triage_engine
        self.autopilot = autopilot

    @staticmethod
    def _check_access(auth: AuthContext, ticket: SupportTicket) -> None:
        if not auth.is_platform and ticket.tenant_id != auth.tenant_id:
            raise PermissionDeniedError("Not authorized")

    @staticmethod
    def _require_platform(auth: AuthContext, message: str) -> None:
        if not auth.is_platform:
            raise PermissionDeniedError(message)

    async def _load(self, store: TicketStore, auth: AuthContext, ticket_id: str) -> SupportTicket:
        ticket = await store.get_ticket(ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket not found")
        self._check_access(auth, ticket)
        return ticket

    async def get_ticket(self, store: TicketStore, auth: AuthContext, ticket_id: str) -> Dict[str, Any]:
        ticket = await self._load(store, auth, ticket_id)
        messages = await store.list_messages(ticket.id)
        return {
            "success": True,
            "ticket": ticket_to_dict(ticket),
            "messages": [message_to_dict(message) for message in messages],
        }

    async def list_tickets(
        self,
        store: TicketStore,
        auth: AuthContext,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        tenant_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Tenants are always scoped to themselves; the platform may filter by tenant."""
        scope = (tenant_id or auth.tenant_id) if auth.is_platform else auth.tenant_id
        tickets = await store.list_tickets(
            tenant_id=scope,
            status=status,
            priority=priority,
            limit=max(1, min(limit, MAX_LIST_LIMIT)),
        )
        if search:
            tickets = [ticket for ticket in tickets if matches_search(ticket, search)]
        return {"success": True, "tickets": [ticket_to_dict(t) for t in tickets], "total": len(tickets)}

    async def create_ticket(self, store: TicketStore, auth: AuthContext, body: TicketCreate) -> Dict[str, Any]:
        subject = body.subject.strip()
        description = body.description.strip()
        if not subject or not description:
            raise RequestValidationError("Subject and description are required")

        tenant = auth.tenant
        tenant_name = tenant.business_name if tenant is not None else ""
        ticket = await store.create_ticket({
            "tenant_id": auth.tenant_id,
            "tenant_name": tenant_name,
            "subject": subject,
            "description": description,
            "category": body.category or "general",
            "priority": body.priority.value,
            "status": TicketStatus.OPEN.value,
            "type": body.type or "support",
            "reporter_uid": body.reporter_uid,
            "reporter_name": body.reporter_name,
            "reporter_email": body.reporter_email,
            "diagnostics": body.diagnostics,
            "upvotes": 0,
            "upvoted_by": [],
        })

        attachments = [{"type": "diagnostics", "data": body.diagnostics}] if body.diagnostics else []
        await store.add_message(
            ticket,
            description,
            "user",
            sender_name=body.reporter_name,
            sender_email=body.reporter_email,
            attachments=attachments,
        )

        first = await self.triage_engine.generate_first_response(
            subject,
            description,
            body.category or "general",
            tenant_name,
            body.diagnostics,
        )
        if first.ai_generated:
            await store.add_message(ticket, first.response, "ai", sender_name=ASSISTANT_NAME)

        if first.triage is not None:
            triage = first.triage
            priority = TicketPriority.URGENT if triage.escalate else triage.suggested_priority
            await store.update_ticket(ticket, {
                "triage": triage.model_dump(by_alias=True, mode="json"),
                "status": triage.suggested_status.value,
                "priority": priority.value,
            })

        return {
            "success": True,
            "ticketId": ticket.id,
            "aiResponse": first.response if first.ai_generated else None,
            "triage": first.triage.model_dump(by_alias=True, mode="json") if first.triage else None,
        }

    async def update_ticket(self, store: TicketStore, auth: AuthContext, body: TicketAction) -> Dict[str, Any]:
        ticket = await self._load(store, auth, body.ticket_id)
        now = datetime.now(timezone.utc)
        updates: Dict[str, Any] = {}

        if body.action == "reply":
            return await self._reply(store, auth, ticket, body)

        elif body.action == "update_status":
            if body.status is None:
                raise RequestValidationError("status is required")
            if not auth.is_platform and body.status not in TENANT_STATUSES:
                raise PermissionDeniedError("Tenants can only reopen or close tickets")
            updates["status"] = body.status.value
            if body.status == TicketStatus.RESOLVED:
                updates["resolved_at"] = now
            if body.status == TicketStatus.CLOSED:
                updates["closed_at"] = now

        elif body.action == "assign":
            self._require_platform(auth, "Only platform admins can assign tickets")
            updates["assigned_to"] = body.assigned_to or ""
            updates["assigned_name"] = body.assigned_name or ""
            if ticket.status == TicketStatus.OPEN.value:
                updates["status"] = TicketStatus.IN_PROGRESS.value

        elif body.action == "escalate":
            self._require_platform(auth, "Only platform admins can escalate")
            updates["priority"] = TicketPriority.URGENT.value
            if ticket.status == TicketStatus.OPEN.value:
                updates["status"] = TicketStatus.IN_PROGRESS.value

        elif body.action == "update_priority":
            self._require_platform(auth, "Only platform admins can change priority")
            if body.priority is None:
                raise RequestValidationError("priority is required")
            updates["priority"] = body.priority.value

        elif body.action == "upvote":
            voter = auth.tenant_id or body.voter_id or "anonymous"
            voters = list(ticket.upvoted_by or [])
            if voter in voters:
                raise RequestValidationError("Already voted")
            updates["upvotes"] = (ticket.upvotes or 0) + 1
            updates["upvoted_by"] = voters + [voter]

        elif body.action == "set_mode":
            self._require_platform(auth, "Only platform admins can change ticket mode")
            if body.mode not in TICKET_MODES:
                raise RequestValidationError(f"mode must be one of: {', '.join(TICKET_MODES)}")
            updates["mode"] = body.mode
            if body.admin_busy is not None:
                updates["admin_busy"] = body.admin_busy

        else:
            raise RequestValidationError(f"Unknown action: {body.action}")

        await store.update_ticket(ticket, updates)
        return {
            "success": True,
            "updates": {key: _iso(value) if isinstance(value, datetime) else value for key, value in updates.items()},
        }

    async def _reply(
        self,
        store: TicketStore,
        auth: AuthContext,
        ticket: SupportTicket,
        body: TicketAction,
    ) -> Dict[str, Any]:
        content = (body.content or "").strip()
        if not content:
            raise RequestValidationError("Content is required")

        # Tenants can only post as the user
        sender_type = (body.sender_type or "admin") if auth.is_platform else "user"
        message = await store.add_message(
            ticket,
            content,
            sender_type,
            sender_name=body.sender_name,
            sender_email=body.sender_email,
            attachments=body.attachments,
        )

        if auth.is_platform and ticket.status == TicketStatus.OPEN.value:
            await store.update_ticket(ticket, {"status": TicketStatus.IN_PROGRESS.value})

        result: Dict[str, Any] = {"success": True, "messageId": message.id, "autopilotResponse": None}
        if sender_type == "user" and ticket.mode == "autopilot":
            history = await store.recent_messages(ticket.id, HISTORY_TURNS + 1)
            history = [m for m in history if m.id != message.id][-HISTORY_TURNS:]
            reply = await self.autopilot.respond(
                ticket.tenant_name or "",
                ticket.subject,
                content,
                history,
                admin_busy=ticket.admin_busy if ticket.admin_busy is not None else True,
            )
            if reply:
                await store.add_message(ticket, reply, "ai", sender_name=ASSISTANT_NAME)
                result["autopilotResponse"] = reply
            else:
                logger.info(f"Autopilot stayed silent on ticket {ticket.id}")

        return result

    async def delete_ticket(self, store: TicketStore, auth: AuthContext, ticket_id: Optional[str]) -> Dict[str, Any]:
        self._require_platform(auth, "Only platform admins can delete tickets")
        if not ticket_id:
            raise RequestValidationError("Ticket ID required")
        await store.delete_ticket(ticket_id)
        return {"success": True}
