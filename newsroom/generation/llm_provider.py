"""
LLM provider interface and implementations for text generation.

Provides one abstraction over the external generation call. Providers are
constructed explicitly from credentials and injected into the orchestrators;
a scripted dummy provider stands in for the real service in development and
tests.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from google import genai
from google.genai import types

from newsroom.core.exceptions import GenerationError
from newsroom.core.logging import get_logger
from newsroom.core.settings import Settings

logger = get_logger(__name__)

NEWS_SYSTEM_INSTRUCTION = (
    "You are a factual news writing assistant. You NEVER fabricate information. "
    "You ONLY write about facts explicitly stated in provided sources. "
    "You MUST attribute every claim to sources. If information is missing, "
    "you acknowledge gaps rather than inventing details. Accuracy is more important "
    "than article length. You follow AP style guidelines strictly."
)


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters for one generation call."""
    model: str = "gemini-2.0-flash"
    max_tokens: int = 2800
    temperature: float = 0.1
    top_p: float = 0.8
    top_k: int = 20

    def merge(self, **overrides: Any) -> "GenerationConfig":
        """Copy with the non-None overrides applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    def __init__(self, default_config: Optional[GenerationConfig] = None):
        self.default_config = default_config or GenerationConfig()

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        config: Optional[GenerationConfig] = None,
        system_instruction: Optional[str] = None
    ) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: User prompt
            config: Sampling configuration (provider default when None)
            system_instruction: Optional fixed system instruction

        Returns:
            Non-empty generated text

        Raises:
            GenerationError: If the provider returns no usable text
        """

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Check provider health and availability."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identification name."""


class GeminiProvider(LLMProvider):
    """Google Gemini text generation through the google-genai SDK."""

    def __init__(
        self,
        api_key: str,
        default_config: Optional[GenerationConfig] = None,
        client: Optional[genai.Client] = None
    ):
        super().__init__(default_config)
        if client is None and not api_key:
            raise GenerationError("GEMINI_API_KEY is not configured")
        self.client = client or genai.Client(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return "Gemini"

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "configured",
            "provider": self.provider_name,
            "model": self.default_config.model,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    async def generate(
        self,
        prompt: str,
        config: Optional[GenerationConfig] = None,
        system_instruction: Optional[str] = None
    ) -> str:
        config = config or self.default_config
        start_time = time.time()

        response = await self.client.aio.models.generate_content(
            model=config.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction or None,
                max_output_tokens=config.max_tokens,
                temperature=config.temperature,
                top_p=config.top_p,
                top_k=config.top_k,
            ),
        )

        text = response.text if response is not None else None
        if not text or not text.strip():
            raise GenerationError(f"No response from {config.model}")

        logger.debug(f"Gemini {config.model} returned {len(text)} chars in {time.time() - start_time:.2f}s")
        return text


class DummyLLMProvider(LLMProvider):
    """
    Scripted provider for development and testing.

    Returns queued responses in order (the last one repeats); an Exception in
    the queue is raised instead of returned. Every call is recorded.
    """

    def __init__(
        self,
        responses: Optional[List[Union[str, Exception]]] = None,
        default_config: Optional[GenerationConfig] = None
    ):
        super().__init__(default_config)
        self.responses = list(responses or [
            "TITLE: Community Garden Opens on Elm Street\n\n"
            "CONTENT:\nVolunteers opened a new community garden this week.\n\n"
            "The garden has twenty raised beds.\n\n"
            "TAGS: garden, community"
        ])
        self.calls: List[Dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "DummyLLM"

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "provider": self.provider_name,
            "calls_made": self.call_count,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    async def generate(
        self,
        prompt: str,
        config: Optional[GenerationConfig] = None,
        system_instruction: Optional[str] = None
    ) -> str:
        self.calls.append({
            "prompt": prompt,
            "config": config or self.default_config,
            "system_instruction": system_instruction,
        })

        index = min(len(self.calls) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        if not response or not response.strip():
            raise GenerationError("No response from DummyLLM")
        return response


class LLMProviderFactory:
    """Factory for creating LLM provider instances."""

    _providers = {
        "gemini": GeminiProvider,
        "dummy": DummyLLMProvider,
    }

    @classmethod
    def create_provider(cls, provider_type: str = "gemini", **config) -> LLMProvider:
        """
        Create LLM provider instance.

        Args:
            provider_type: Type of provider ("gemini", "dummy")
            **config: Provider-specific constructor arguments

        Returns:
            LLMProvider instance
        """
        if provider_type not in cls._providers:
            raise ValueError(f"Unknown provider type: {provider_type}")
        return cls._providers[provider_type](**config)

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMProvider:
        """Gemini provider when a key is configured, dummy outside production."""
        default_config = GenerationConfig(
            model=settings.default_model,
            max_tokens=settings.default_max_tokens,
            temperature=settings.default_temperature,
            top_p=settings.default_top_p,
            top_k=settings.default_top_k,
        )
        if settings.gemini_api_key or settings.environment == "production":
            return cls.create_provider("gemini", api_key=settings.gemini_api_key, default_config=default_config)

        logger.warning("GEMINI_API_KEY not set, falling back to dummy provider")
        return cls.create_provider("dummy", default_config=default_config)

    @classmethod
    def register_provider(cls, name: str, provider_class):
        """Register a new provider type."""
        cls._providers[name] = provider_class

    @classmethod
    def list_providers(cls) -> List[str]:
        """List available provider types."""
        return list(cls._providers.keys())
