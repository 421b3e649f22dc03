"""Tests for support ticket operations."""
import json
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from newsroom.core.exceptions import NotFoundError, PermissionDeniedError, RequestValidationError
from newsroom.core.models import SupportTicket, TicketMessage
from newsroom.generation.auth import AuthContext
from newsroom.generation.llm_provider import DummyLLMProvider
from newsroom.support.autopilot import AutopilotResponder
from newsroom.support.models import TicketAction, TicketCreate
from newsroom.support.tickets import TicketService, matches_search
from newsroom.support.triage import SupportTriageEngine

ESCALATING_TRIAGE = json.dumps({
    "classification": "real_bug",
    "confidence": "high",
    "suggestedResponse": "Sorry about that, we're escalating this to engineering now.",
    "suggestedStatus": "in-progress",
    "suggestedPriority": "high",
    "escalate": True,
})


class FakeTicketStore:
    """In-memory ticket store with the repository's interface."""

    def __init__(self):
        self.tickets: Dict[str, SupportTicket] = {}
        self.messages: List[TicketMessage] = []

    async def create_ticket(self, data: Dict[str, Any]) -> SupportTicket:
        ticket = SupportTicket(id=f"ticket-{len(self.tickets) + 1}", message_count=0, **data)
        self.tickets[ticket.id] = ticket
        return ticket

    async def get_ticket(self, ticket_id):
        return self.tickets.get(ticket_id)

    async def list_tickets(self, tenant_id=None, status=None, priority=None, limit=50):
        tickets = [
            t for t in self.tickets.values()
            if (not tenant_id or t.tenant_id == tenant_id) and (not status or t.status == status)
        ]
        return tickets[:limit]

    async def add_message(self, ticket, content, sender_type, sender_name="", sender_email="", attachments=None):
        message = TicketMessage(
            id=f"msg-{len(self.messages) + 1}",
            ticket_id=ticket.id,
            content=content,
            sender_type=sender_type,
            sender_name=sender_name,
            sender_email=sender_email,
            attachments=attachments or [],
        )
        self.messages.append(message)
        ticket.message_count = (ticket.message_count or 0) + 1
        return message

    async def list_messages(self, ticket_id):
        return [m for m in self.messages if m.ticket_id == ticket_id]

    async def recent_messages(self, ticket_id, limit=6):
        return (await self.list_messages(ticket_id))[-limit:]

    async def update_ticket(self, ticket, updates):
        for field, value in updates.items():
            setattr(ticket, field, value)
        return ticket

    async def delete_ticket(self, ticket_id):
        self.tickets.pop(ticket_id, None)
        self.messages = [m for m in self.messages if m.ticket_id != ticket_id]


def tenant_auth(tenant_id: str = "tenant-1") -> AuthContext:
    return AuthContext(tenant=SimpleNamespace(id=tenant_id, business_name="Riverside Daily"))


PLATFORM = AuthContext(tenant=None, is_platform=True)


def make_service(*responses) -> TicketService:
    provider = DummyLLMProvider(list(responses) or ["Thanks for the details."])
    return TicketService(SupportTriageEngine(provider), AutopilotResponder(provider))


async def seed_ticket(store, service=None, tenant_id="tenant-1", **fields):
    service = service or make_service(RuntimeError("offline"))
    body = TicketCreate(subject=fields.pop("subject", "Images broken"), description="No images on the homepage")
    result = await service.create_ticket(store, tenant_auth(tenant_id), body)
    ticket = store.tickets[result["ticketId"]]
    for field, value in fields.items():
        setattr(ticket, field, value)
    return ticket


class TestCreateTicket:

    @pytest.mark.asyncio
    async def test_triage_escalation_sets_urgent(self):
        store = FakeTicketStore()
        service = make_service(ESCALATING_TRIAGE)

        result = await service.create_ticket(store, tenant_auth(), TicketCreate(
            subject="Site down",
            description="Every page returns an error",
            reporterName="Pat",
        ))

        ticket = store.tickets[result["ticketId"]]
        assert result["success"] is True
        assert result["aiResponse"].startswith("Sorry about that")
        assert result["triage"]["classification"] == "real_bug"
        assert ticket.priority == "urgent"
        assert ticket.status == "in-progress"
        assert ticket.tenant_name == "Riverside Daily"
        assert [m.sender_type for m in store.messages] == ["user", "ai"]

    @pytest.mark.asyncio
    async def test_unstructured_output_still_answers(self):
        store = FakeTicketStore()
        service = make_service("We'll take a look at your homepage images shortly.")

        result = await service.create_ticket(store, tenant_auth(), TicketCreate(subject="Images", description="Broken"))

        ticket = store.tickets[result["ticketId"]]
        assert result["triage"] is None
        assert result["aiResponse"] == "We'll take a look at your homepage images shortly."
        assert ticket.status == "open"
        assert ticket.triage is None

    @pytest.mark.asyncio
    async def test_static_acknowledgement_is_not_stored(self):
        store = FakeTicketStore()

        result = await make_service(RuntimeError("offline")).create_ticket(
            store, tenant_auth(), TicketCreate(subject="Images", description="Broken"),
        )

        assert result["aiResponse"] is None
        assert [m.sender_type for m in store.messages] == ["user"]

    @pytest.mark.asyncio
    async def test_subject_and_description_required(self):
        with pytest.raises(RequestValidationError):
            await make_service().create_ticket(FakeTicketStore(), tenant_auth(), TicketCreate(subject="  ", description="x"))


class TestReadAccess:

    @pytest.mark.asyncio
    async def test_get_ticket_with_messages(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)

        result = await make_service().get_ticket(store, tenant_auth(), ticket.id)

        assert result["ticket"]["subject"] == "Images broken"
        assert result["ticket"]["messageCount"] == 1
        assert result["messages"][0]["senderType"] == "user"

    @pytest.mark.asyncio
    async def test_other_tenant_is_forbidden(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)

        with pytest.raises(PermissionDeniedError):
            await make_service().get_ticket(store, tenant_auth("tenant-2"), ticket.id)

    @pytest.mark.asyncio
    async def test_missing_ticket(self):
        with pytest.raises(NotFoundError):
            await make_service().get_ticket(FakeTicketStore(), PLATFORM, "ticket-404")

    @pytest.mark.asyncio
    async def test_list_is_scoped_for_tenants(self):
        store = FakeTicketStore()
        await seed_ticket(store, subject="Mine")
        await seed_ticket(store, tenant_id="tenant-2", subject="Theirs")
        service = make_service()

        own = await service.list_tickets(store, tenant_auth(), tenant_id="tenant-2")
        everything = await service.list_tickets(store, PLATFORM)
        filtered = await service.list_tickets(store, PLATFORM, tenant_id="tenant-2")

        assert [t["subject"] for t in own["tickets"]] == ["Mine"]
        assert everything["total"] == 2
        assert [t["subject"] for t in filtered["tickets"]] == ["Theirs"]

    @pytest.mark.asyncio
    async def test_search(self):
        store = FakeTicketStore()
        await seed_ticket(store, subject="Billing question")
        await seed_ticket(store, subject="Images broken")

        result = await make_service().list_tickets(store, PLATFORM, search="billing")

        assert [t["subject"] for t in result["tickets"]] == ["Billing question"]

    def test_matches_search_handles_missing_fields(self):
        ticket = SupportTicket(subject="Login", description="Cannot sign in", tenant_name=None, reporter_name=None)

        assert matches_search(ticket, "SIGN IN")
        assert not matches_search(ticket, "billing")


class TestReplies:

    @pytest.mark.asyncio
    async def test_autopilot_answers_user_reply(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store, mode="autopilot", admin_busy=True)
        provider = DummyLLMProvider(["Thanks, a team member will follow up soon."])
        service = TicketService(SupportTriageEngine(provider), AutopilotResponder(provider))

        result = await service.update_ticket(store, tenant_auth(), TicketAction(
            ticketId=ticket.id,
            action="reply",
            content="Any update?",
            senderType="admin",
        ))

        assert result["autopilotResponse"] == "Thanks, a team member will follow up soon."
        assert [m.sender_type for m in store.messages] == ["user", "user", "ai"]
        prompt = provider.calls[0]["prompt"]
        assert "Customer: No images on the homepage" in prompt
        assert "Customer: Any update?" not in prompt
        assert "busy or away" in prompt

    @pytest.mark.asyncio
    async def test_autopilot_failure_stays_silent(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store, mode="autopilot")
        service = make_service(RuntimeError("offline"))

        result = await service.update_ticket(store, tenant_auth(), TicketAction(
            ticketId=ticket.id, action="reply", content="Any update?",
        ))

        assert result["autopilotResponse"] is None
        assert [m.sender_type for m in store.messages] == ["user", "user"]

    @pytest.mark.asyncio
    async def test_standard_mode_has_no_autopilot(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)
        provider = DummyLLMProvider(["unused"])
        service = TicketService(SupportTriageEngine(provider), AutopilotResponder(provider))

        result = await service.update_ticket(store, tenant_auth(), TicketAction(
            ticketId=ticket.id, action="reply", content="Any update?",
        ))

        assert result["autopilotResponse"] is None
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_platform_reply_moves_ticket_in_progress(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store, mode="autopilot")
        provider = DummyLLMProvider(["unused"])
        service = TicketService(SupportTriageEngine(provider), AutopilotResponder(provider))

        await service.update_ticket(store, PLATFORM, TicketAction(
            ticketId=ticket.id, action="reply", content="Looking now.", senderName="Alex",
        ))

        assert ticket.status == "in-progress"
        assert store.messages[-1].sender_type == "admin"
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_reply_rejected(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)

        with pytest.raises(RequestValidationError):
            await make_service().update_ticket(store, tenant_auth(), TicketAction(ticketId=ticket.id, action="reply", content=" "))


class TestActions:

    @pytest.mark.asyncio
    async def test_tenant_can_close_but_not_resolve(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)
        service = make_service()

        with pytest.raises(PermissionDeniedError):
            await service.update_ticket(store, tenant_auth(), TicketAction(ticketId=ticket.id, action="update_status", status="resolved"))

        result = await service.update_ticket(store, tenant_auth(), TicketAction(ticketId=ticket.id, action="update_status", status="closed"))

        assert ticket.status == "closed"
        assert ticket.closed_at is not None
        assert result["updates"]["status"] == "closed"
        assert isinstance(result["updates"]["closed_at"], str)

    @pytest.mark.asyncio
    async def test_platform_only_actions(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)
        service = make_service()

        for action in ("assign", "escalate", "update_priority", "set_mode"):
            with pytest.raises(PermissionDeniedError):
                await service.update_ticket(store, tenant_auth(), TicketAction(ticketId=ticket.id, action=action))

        await service.update_ticket(store, PLATFORM, TicketAction(ticketId=ticket.id, action="escalate"))

        assert ticket.priority == "urgent"
        assert ticket.status == "in-progress"

    @pytest.mark.asyncio
    async def test_set_mode(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)
        service = make_service()

        with pytest.raises(RequestValidationError):
            await service.update_ticket(store, PLATFORM, TicketAction(ticketId=ticket.id, action="set_mode", mode="turbo"))

        await service.update_ticket(store, PLATFORM, TicketAction(
            ticketId=ticket.id, action="set_mode", mode="autopilot", adminBusy=False,
        ))

        assert ticket.mode == "autopilot"
        assert ticket.admin_busy is False

    @pytest.mark.asyncio
    async def test_upvote_once(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)
        service = make_service()

        await service.update_ticket(store, tenant_auth("tenant-1"), TicketAction(ticketId=ticket.id, action="upvote"))

        assert ticket.upvotes == 1
        with pytest.raises(RequestValidationError):
            await service.update_ticket(store, tenant_auth("tenant-1"), TicketAction(ticketId=ticket.id, action="upvote"))

    @pytest.mark.asyncio
    async def test_unknown_action(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)

        with pytest.raises(RequestValidationError):
            await make_service().update_ticket(store, tenant_auth(), TicketAction(ticketId=ticket.id, action="archive"))

    @pytest.mark.asyncio
    async def test_delete_is_platform_only(self):
        store = FakeTicketStore()
        ticket = await seed_ticket(store)
        service = make_service()

        with pytest.raises(PermissionDeniedError):
            await service.delete_ticket(store, tenant_auth(), ticket.id)

        result = await service.delete_ticket(store, PLATFORM, ticket.id)

        assert result == {"success": True}
        assert store.tickets == {}
        assert store.messages == []
