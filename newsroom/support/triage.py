"""
Support triage engine.

Classifies a new ticket against the static knowledge base with one
generation call and a strict JSON output contract. Triage is an enrichment:
a malformed verdict means "no triage", never a failed ticket.
"""

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from newsroom.core.logging import get_logger
from newsroom.core.utils import extract_json_text
from newsroom.generation.llm_provider import GenerationConfig, LLMProvider
from .knowledge import KNOWLEDGE_BASE, SUPPORT_SYSTEM_INSTRUCTION
from .models import FirstResponse, TriageResult

logger = get_logger(__name__)

TRIAGE_TEMPERATURE = 0.2
TRIAGE_MAX_TOKENS = 800
ADVISORY_TEMPERATURE = 0.3
ADVISORY_MAX_TOKENS = 300

STATIC_ACKNOWLEDGEMENT = (
    "Thanks for reaching out. We've received your ticket and our support team will "
    "review it shortly. A team member will follow up here if we need more details."
)


def build_triage_prompt(
    subject: str,
    description: str,
    category: str,
    tenant_name: str,
    diagnostics: Optional[Dict[str, Any]] = None,
) -> str:
    diagnostics_block = ""
    if diagnostics:
        diagnostics_block = f"\nDiagnostics:\n{json.dumps(diagnostics, indent=2, default=str)}\n"

    return f"""{KNOWLEDGE_BASE}

A newspaper owner from "{tenant_name}" submitted a support ticket.

Subject: {subject}
Category: {category}
Description: {description}
{diagnostics_block}
Classify the ticket using ONLY the knowledge base above and respond with a single JSON object, no prose and no code fences:

{{
  "classification": "known_issue" | "non_issue" | "how_to" | "real_bug" | "unclear",
  "confidence": "high" | "medium" | "low",
  "matchedKnowledge": "the knowledge base entry this matches, or null",
  "suggestedResponse": "2-4 sentence reply to the owner",
  "suggestedStatus": "open" | "in-progress" | "resolved",
  "suggestedPriority": "low" | "medium" | "high" | "urgent",
  "escalate": true | false
}}

Rules:
- known_issue or how_to only when a knowledge base entry clearly applies
- real_bug when something that should work is broken; set escalate to true if sites are down or data is lost
- unclear when the description is too vague to act on, and ask one clarifying question
- Never promise fixes or timelines and never invent settings that are not in the knowledge base"""


def build_advisory_prompt(subject: str, description: str, category: str, tenant_name: str) -> str:
    return f"""A newspaper owner from "{tenant_name}" submitted a support ticket.

Subject: {subject}
Category: {category}
Description: {description}

Write a brief, helpful first response (2-4 sentences). Acknowledge their issue specifically,
provide any immediate guidance if applicable, and let them know the support team will review
their ticket. Do NOT make up solutions if the issue is unclear, just acknowledge and reassure."""


def parse_triage_response(response_text: str) -> Optional[TriageResult]:
    """Structured verdict, or None when the output is not a valid TriageResult."""
    try:
        data = json.loads(extract_json_text(response_text))
        if not isinstance(data, dict):
            raise ValueError("triage output is not a JSON object")
        return TriageResult.model_validate(data)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Unparseable triage output: {e}")
        return None


class SupportTriageEngine:
    """Knowledge-grounded ticket classification with an advisory fallback."""

    def __init__(self, provider: LLMProvider):
        self.provider = provider

    def _config(self, temperature: float, max_tokens: int) -> GenerationConfig:
        return self.provider.default_config.merge(temperature=temperature, max_tokens=max_tokens)

    async def triage(
        self,
        subject: str,
        description: str,
        category: str,
        tenant_name: str,
        diagnostics: Optional[Dict[str, Any]] = None,
    ) -> Optional[TriageResult]:
        prompt = build_triage_prompt(subject, description, category, tenant_name, diagnostics)
        try:
            response = await self.provider.generate(
                prompt,
                config=self._config(TRIAGE_TEMPERATURE, TRIAGE_MAX_TOKENS),
                system_instruction=SUPPORT_SYSTEM_INSTRUCTION,
            )
        except Exception as e:
            logger.warning(f"Triage generation failed: {e}")
            return None
        return parse_triage_response(response)

    async def generate_first_response(
        self,
        subject: str,
        description: str,
        category: str,
        tenant_name: str,
        diagnostics: Optional[Dict[str, Any]] = None,
    ) -> FirstResponse:
        """
        First reply for a new ticket. Never raises.

        Uses the triage verdict's suggested response when triage succeeds,
        otherwise an unstructured advisory reply, otherwise a fixed
        acknowledgement (ai_generated=False).
        """
        triage = await self.triage(subject, description, category, tenant_name, diagnostics)
        if triage is not None:
            logger.info(f"Ticket triaged as {triage.classification.value} ({triage.confidence.value})")
            return FirstResponse(response=triage.suggested_response.strip(), triage=triage)

        try:
            advisory = await self.provider.generate(
                build_advisory_prompt(subject, description, category, tenant_name),
                config=self._config(ADVISORY_TEMPERATURE, ADVISORY_MAX_TOKENS),
                system_instruction=SUPPORT_SYSTEM_INSTRUCTION,
            )
            if advisory.strip():
                return FirstResponse(response=advisory.strip(), triage=None)
        except Exception as e:
            logger.error(f"Failed to generate first response: {e}")

        return FirstResponse(response=STATIC_ACKNOWLEDGEMENT, triage=None, ai_generated=False)
