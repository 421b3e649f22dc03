"""Autopilot responder for unattended support conversations."""

from typing import Any, Optional, Sequence

from newsroom.core.logging import get_logger
from newsroom.generation.llm_provider import LLMProvider
from .knowledge import KNOWLEDGE_BASE, SUPPORT_SYSTEM_INSTRUCTION

logger = get_logger(__name__)

HISTORY_TURNS = 6
AUTOPILOT_TEMPERATURE = 0.4
AUTOPILOT_MAX_TOKENS = 400

SPEAKER_LABELS = {"user": "Customer", "admin": "Support (human)", "ai": "Support (AI)"}


def _field(message: Any, name: str) -> Any:
    if isinstance(message, dict):
        return message.get(name)
    return getattr(message, name, None)


def format_history(history: Sequence[Any], turns: int = HISTORY_TURNS) -> str:
    """Render the last `turns` messages as 'Speaker: text' lines."""
    lines = []
    for message in list(history)[-turns:]:
        speaker = SPEAKER_LABELS.get(_field(message, "sender_type"), "Customer")
        lines.append(f"{speaker}: {(_field(message, 'content') or '').strip()}")
    return "\n".join(lines)


def build_autopilot_prompt(
    tenant_name: str,
    subject: str,
    user_message: str,
    history: Sequence[Any],
    admin_busy: bool,
) -> str:
    if admin_busy:
        availability = (
            "The human support team is busy or away right now. Set expectations honestly: "
            "say a team member will follow up when available, and do not imply anyone is watching live."
        )
    else:
        availability = (
            "A human support agent is available and may join this conversation shortly. "
            "You can say so if the question needs a person."
        )

    conversation = format_history(history) or "(no earlier messages)"

    return f"""{KNOWLEDGE_BASE}

You are continuing a support conversation with a newspaper owner from "{tenant_name}".
Ticket subject: {subject}

{availability}

Recent conversation:
{conversation}

Latest message from the customer:
{user_message}

Reply in 2-4 sentences. Use only the knowledge base above; if the answer is not there, say the team will look into it. Do not repeat earlier replies word for word."""


class AutopilotResponder:
    """Stateless follow-up replies bounded by the support knowledge base."""

    def __init__(self, provider: LLMProvider):
        self.provider = provider

    async def respond(
        self,
        tenant_name: str,
        subject: str,
        user_message: str,
        history: Sequence[Any],
        admin_busy: bool,
    ) -> Optional[str]:
        """
        Generate the next support reply.

        Args:
            history: Earlier messages (dicts or rows with sender_type and content),
                oldest first; only the last six are used

        Returns:
            Reply text, or None when generation fails so the caller stays silent
        """
        prompt = build_autopilot_prompt(tenant_name, subject, user_message, history, admin_busy)
        try:
            response = await self.provider.generate(
                prompt,
                config=self.provider.default_config.merge(
                    temperature=AUTOPILOT_TEMPERATURE,
                    max_tokens=AUTOPILOT_MAX_TOKENS,
                ),
                system_instruction=SUPPORT_SYSTEM_INSTRUCTION,
            )
        except Exception as e:
            logger.error(f"Autopilot reply failed for '{subject}': {e}")
            return None

        reply = (response or "").strip()
        return reply or None
