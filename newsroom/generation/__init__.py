"""
Newsroom Article Generation Module

Turns a category request into a stored article under a layered editorial
directive system with anti-fabrication constraints.

Main Components:
- web_search: source acquisition with Perplexity, RSS and minimal-content tiers
- source_quality: richness assessment and the source validity gate
- prompt_builder: directive hierarchy and the two generation modes
- llm_provider: Gemini generation client and a scripted dummy
- parser: TITLE / CONTENT / TAGS response parsing
- slugs: per-tenant unique slug resolution
- seo, images, credits: optional enrichment and metering clients
- publisher: request orchestration
- app: FastAPI application
"""

from .models import GenerationRequest, PromptContext, SourceContent, SourceRichness, ParsedArticle
from .source_quality import assess_source_quality, validate_source_material
from .prompt_builder import build_article_prompt, select_mode, LocalInterestMode, SourceGroundedMode
from .llm_provider import LLMProvider, GeminiProvider, DummyLLMProvider, LLMProviderFactory, GenerationConfig
from .parser import parse_article_response, generate_slug
from .slugs import resolve_unique_slug
from .web_search import SourceAcquirer, generate_search_query
from .publisher import ArticlePublisher

__all__ = [
    # Models
    "GenerationRequest",
    "PromptContext",
    "SourceContent",
    "SourceRichness",
    "ParsedArticle",

    # Source handling
    "assess_source_quality",
    "validate_source_material",
    "SourceAcquirer",
    "generate_search_query",

    # Prompting and generation
    "build_article_prompt",
    "select_mode",
    "LocalInterestMode",
    "SourceGroundedMode",
    "LLMProvider",
    "GeminiProvider",
    "DummyLLMProvider",
    "LLMProviderFactory",
    "GenerationConfig",

    # Post-processing
    "parse_article_response",
    "generate_slug",
    "resolve_unique_slug",

    # Orchestration
    "ArticlePublisher",
]
