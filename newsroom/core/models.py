"""Database models for the newsroom platform."""
import uuid

from sqlalchemy import (
    String, DateTime, Boolean, Text, Integer,
    ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import mapped_column, relationship
from sqlalchemy.sql import func

from .db import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class Tenant(Base):
    """One customer newspaper instance."""
    __tablename__ = "tenants"

    id = mapped_column(String(64), primary_key=True, default=_new_id)
    business_name = mapped_column(String(200), nullable=False)
    slug = mapped_column(String(200), nullable=True, index=True)
    api_key = mapped_column(String(200), nullable=False)
    status = mapped_column(String(32), default="active", nullable=False)  # provisioning|active|suspended|...
    service_area = mapped_column(JSON, nullable=False)  # {city, state, region?}
    editor_in_chief_directive = mapped_column(Text, nullable=True)
    ai_settings = mapped_column(JSON, nullable=True)  # {defaultModel, defaultTemperature, aggressiveness, ...}
    article_length = mapped_column(JSON, nullable=True)  # {richSourceWords, moderateSourceWords, ...}
    created_at = mapped_column(DateTime(timezone=True), server_default=func.now())

    categories = relationship(
        "Category",
        back_populates="tenant",
        lazy="selectin",
        order_by="Category.name",
    )


class Category(Base):
    """Per-tenant news category with its editorial directive."""
    __tablename__ = "categories"

    id = mapped_column(String(64), primary_key=True)
    tenant_id = mapped_column(ForeignKey("tenants.id"), primary_key=True)
    name = mapped_column(String(200), nullable=False)
    slug = mapped_column(String(200), nullable=True)
    directive = mapped_column(Text, default="", nullable=False)
    enabled = mapped_column(Boolean, default=True, nullable=False)

    tenant = relationship("Tenant", back_populates="categories")


class Article(Base):
    """Generated article, written once per successful generation."""
    __tablename__ = "articles"

    id = mapped_column(String(64), primary_key=True, default=_new_id)
    tenant_id = mapped_column(ForeignKey("tenants.id"), index=True, nullable=False)
    title = mapped_column(String(500), nullable=False)
    content = mapped_column(Text, nullable=False)
    excerpt = mapped_column(Text, nullable=True)
    slug = mapped_column(String(200), nullable=False)
    tags = mapped_column(JSON, nullable=True)

    category_id = mapped_column(String(64), nullable=False)
    category_name = mapped_column(String(200), nullable=False)
    category_slug = mapped_column(String(200), nullable=True)

    journalist_id = mapped_column(String(64), nullable=True)
    journalist_name = mapped_column(String(200), nullable=True)
    status = mapped_column(String(32), default="published", index=True)
    is_ai_generated = mapped_column(Boolean, default=True)

    source_url = mapped_column(String(1500), nullable=True)
    source_title = mapped_column(String(800), nullable=True)

    image_url = mapped_column(Text, nullable=True)
    image_attribution = mapped_column(String(300), nullable=True)
    image_method = mapped_column(String(32), nullable=True)

    seo = mapped_column(JSON, nullable=True)
    prompts_used = mapped_column(JSON, nullable=True)  # {editorInChief, category, articleSpecific}
    generation_metadata = mapped_column(JSON, nullable=True)  # {model, generationTimeMs, usedWebSearch, ...}

    published_at = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    created_at = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_articles_tenant_slug"),)


class SupportTicket(Base):
    """Support ticket raised from a tenant admin."""
    __tablename__ = "support_tickets"

    id = mapped_column(String(64), primary_key=True, default=_new_id)
    tenant_id = mapped_column(String(64), index=True, nullable=True)
    tenant_name = mapped_column(String(200), default="")
    subject = mapped_column(String(500), nullable=False)
    description = mapped_column(Text, nullable=False)
    category = mapped_column(String(64), default="general")
    priority = mapped_column(String(16), default="medium", index=True)
    status = mapped_column(String(16), default="open", index=True)
    type = mapped_column(String(32), default="support")
    mode = mapped_column(String(16), default="standard")  # standard|autopilot
    admin_busy = mapped_column(Boolean, default=True)  # autopilot tone: no human expected soon

    reporter_uid = mapped_column(String(128), default="")
    reporter_name = mapped_column(String(200), default="")
    reporter_email = mapped_column(String(200), default="")

    assigned_to = mapped_column(String(128), default="")
    assigned_name = mapped_column(String(200), default="")
    upvotes = mapped_column(Integer, default=0)
    upvoted_by = mapped_column(JSON, nullable=True)

    diagnostics = mapped_column(JSON, nullable=True)
    triage = mapped_column(JSON, nullable=True)
    message_count = mapped_column(Integer, default=0)

    last_message_at = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at = mapped_column(DateTime(timezone=True), nullable=True)
    created_at = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class TicketMessage(Base):
    """A single message in a support conversation."""
    __tablename__ = "ticket_messages"

    id = mapped_column(String(64), primary_key=True, default=_new_id)
    ticket_id = mapped_column(ForeignKey("support_tickets.id", ondelete="CASCADE"), index=True, nullable=False)
    content = mapped_column(Text, nullable=False)
    sender_type = mapped_column(String(16), nullable=False)  # user|admin|ai
    sender_name = mapped_column(String(200), default="")
    sender_email = mapped_column(String(200), default="")
    attachments = mapped_column(JSON, nullable=True)
    created_at = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)


Index('idx_articles_tenant_created', Article.tenant_id, Article.created_at)
Index('idx_tickets_tenant_created', SupportTicket.tenant_id, SupportTicket.created_at)
Index('idx_ticket_messages_ticket_created', TicketMessage.ticket_id, TicketMessage.created_at)
