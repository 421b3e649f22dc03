"""Repository layer for database operations.

Wraps the tenant, article and support-ticket tables behind small async
classes so the orchestrators can be driven with in-memory fakes in tests.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.models import Tenant, Article, SupportTicket, TicketMessage
from newsroom.core.logging import get_logger

logger = get_logger(__name__)


class TenantRepository:
    """Read access to tenants and their categories."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        """
        Load a tenant with its categories.

        Args:
            tenant_id: Tenant primary key

        Returns:
            Tenant or None when it does not exist
        """
        if not tenant_id:
            return None
        result = await self.session.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()


class ArticleRepository:
    """Tenant-scoped article collection."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def slug_exists(self, tenant_id: str, slug: str) -> bool:
        """Exact-match existence check for a slug within one tenant."""
        stmt = (
            select(func.count())
            .select_from(Article)
            .where(Article.tenant_id == tenant_id, Article.slug == slug)
        )
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def add_article(self, data: Dict[str, Any]) -> str:
        """
        Insert a new article and commit.

        Args:
            data: Column values for the Article row

        Returns:
            Identifier of the created article
        """
        article = Article(**data)
        self.session.add(article)
        await self.session.commit()
        await self.session.refresh(article)

        logger.info(f"Stored article {article.id} for tenant {article.tenant_id}: {article.slug}")
        return article.id

    async def recent_titles(self, tenant_id: str, limit: int = 20) -> List[str]:
        stmt = (
            select(Article.title)
            .where(Article.tenant_id == tenant_id)
            .order_by(desc(Article.created_at))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class SupportRepository:
    """Support tickets and their message threads."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_ticket(self, data: Dict[str, Any]) -> SupportTicket:
        now = datetime.now(timezone.utc)
        ticket = SupportTicket(
            created_at=now,
            updated_at=now,
            last_message_at=now,
            message_count=0,
            **data,
        )
        self.session.add(ticket)
        await self.session.commit()
        await self.session.refresh(ticket)

        logger.info(f"Created support ticket {ticket.id} for tenant {ticket.tenant_id}")
        return ticket

    async def get_ticket(self, ticket_id: str) -> Optional[SupportTicket]:
        result = await self.session.execute(select(SupportTicket).where(SupportTicket.id == ticket_id))
        return result.scalar_one_or_none()

    async def list_tickets(
        self,
        tenant_id: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        limit: int = 50
    ) -> List[SupportTicket]:
        """
        List tickets newest first with optional filters.

        Args:
            tenant_id: Restrict to one tenant
            status: Restrict to a status ('all' means no filter)
            priority: Restrict to a priority ('all' means no filter)
            limit: Maximum rows returned

        Returns:
            List of SupportTicket rows
        """
        stmt = select(SupportTicket)
        if tenant_id:
            stmt = stmt.where(SupportTicket.tenant_id == tenant_id)
        if status and status != "all":
            stmt = stmt.where(SupportTicket.status == status)
        if priority and priority != "all":
            stmt = stmt.where(SupportTicket.priority == priority)
        stmt = stmt.order_by(desc(SupportTicket.created_at)).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add_message(
        self,
        ticket: SupportTicket,
        content: str,
        sender_type: str,
        sender_name: str = "",
        sender_email: str = "",
        attachments: Optional[List[Dict[str, Any]]] = None
    ) -> TicketMessage:
        """Append a message to the ticket thread and bump its counters."""
        now = datetime.now(timezone.utc)
        message = TicketMessage(
            ticket_id=ticket.id,
            content=content,
            sender_type=sender_type,
            sender_name=sender_name,
            sender_email=sender_email,
            attachments=attachments or [],
            created_at=now,
        )
        self.session.add(message)

        ticket.message_count = (ticket.message_count or 0) + 1
        ticket.last_message_at = now
        ticket.updated_at = now

        await self.session.commit()
        await self.session.refresh(message)
        return message

    async def list_messages(self, ticket_id: str) -> List[TicketMessage]:
        stmt = (
            select(TicketMessage)
            .where(TicketMessage.ticket_id == ticket_id)
            .order_by(TicketMessage.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def recent_messages(self, ticket_id: str, limit: int = 6) -> List[TicketMessage]:
        """Last `limit` messages of a thread, oldest first."""
        stmt = (
            select(TicketMessage)
            .where(TicketMessage.ticket_id == ticket_id)
            .order_by(desc(TicketMessage.created_at))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def update_ticket(self, ticket: SupportTicket, updates: Dict[str, Any]) -> SupportTicket:
        for field, value in updates.items():
            setattr(ticket, field, value)
        ticket.updated_at = datetime.now(timezone.utc)
        await self.session.commit()
        await self.session.refresh(ticket)
        return ticket

    async def delete_ticket(self, ticket_id: str) -> None:
        await self.session.execute(delete(TicketMessage).where(TicketMessage.ticket_id == ticket_id))
        await self.session.execute(delete(SupportTicket).where(SupportTicket.id == ticket_id))
        await self.session.commit()
        logger.info(f"Deleted support ticket {ticket_id}")
