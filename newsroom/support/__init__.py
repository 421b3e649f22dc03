"""
Newsroom Support Module

Knowledge-grounded triage for new support tickets and autopilot replies for
unattended conversations.
"""

from .models import TriageResult, FirstResponse, Classification, Confidence
from .triage import SupportTriageEngine, parse_triage_response
from .autopilot import AutopilotResponder
from .tickets import TicketService

__all__ = [
    "TriageResult",
    "FirstResponse",
    "Classification",
    "Confidence",
    "SupportTriageEngine",
    "parse_triage_response",
    "AutopilotResponder",
    "TicketService",
]
