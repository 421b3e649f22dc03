"""Pydantic models for support triage and the ticket API."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Classification(str, Enum):
    KNOWN_ISSUE = "known_issue"
    NON_ISSUE = "non_issue"
    HOW_TO = "how_to"
    REAL_BUG = "real_bug"
    UNCLEAR = "unclear"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TriageResult(CamelModel):
    """Structured verdict for a new ticket; read-only once produced."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    classification: Classification
    confidence: Confidence
    matched_knowledge: Optional[str] = None
    suggested_response: str = Field(..., min_length=1)
    suggested_status: TicketStatus = TicketStatus.OPEN
    suggested_priority: TicketPriority = TicketPriority.MEDIUM
    escalate: bool = False


class FirstResponse(BaseModel):
    """Reply for a new ticket plus the triage verdict when one was produced."""
    response: str
    triage: Optional[TriageResult] = None
    ai_generated: bool = True


class TicketCreate(CamelModel):
    """Body of POST /api/support/tickets."""
    subject: str = ""
    description: str = ""
    category: str = "general"
    priority: TicketPriority = TicketPriority.MEDIUM
    type: str = "support"
    reporter_uid: str = ""
    reporter_name: str = ""
    reporter_email: str = ""
    diagnostics: Optional[Dict[str, Any]] = None


class TicketAction(CamelModel):
    """Body of PATCH /api/support/tickets."""
    ticket_id: str
    action: str
    content: Optional[str] = None
    sender_type: Optional[str] = None
    sender_name: str = ""
    sender_email: str = ""
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assigned_to: Optional[str] = None
    assigned_name: Optional[str] = None
    voter_id: Optional[str] = None
    mode: Optional[str] = None
    admin_busy: Optional[bool] = None
