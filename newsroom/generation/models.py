"""
Core Pydantic models for the article generation pipeline.

Wire models use camelCase aliases because tenant sites and schedulers post
JSON in that shape; Python code uses the snake_case field names.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SourceRichness(str, Enum):
    """Richness tier of the available source material."""
    LIMITED = "limited"
    ADEQUATE = "adequate"
    MODERATE = "moderate"
    RICH = "rich"

    @property
    def rank(self) -> int:
        return _RICHNESS_ORDER.index(self)


_RICHNESS_ORDER = [
    SourceRichness.LIMITED,
    SourceRichness.ADEQUATE,
    SourceRichness.MODERATE,
    SourceRichness.RICH,
]


class WritingStyle(str, Enum):
    FORMAL = "formal"
    CONVERSATIONAL = "conversational"
    INVESTIGATIVE = "investigative"


class Aggressiveness(str, Enum):
    AGGRESSIVE = "aggressive"
    NEUTRAL = "neutral"
    CONSERVATIVE = "conservative"


class SourceContent(CamelModel):
    """Raw news material handed to the prompt composer."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str = Field("", description="Source headline")
    description: str = Field("", description="Short summary")
    full_content: Optional[str] = Field(None, description="Full article text")
    source_name: Optional[str] = Field(None, description="Publication or outlet name")
    url: Optional[str] = Field(None, description="Source URL")


class SourceAssessment(BaseModel):
    word_count: int
    richness: SourceRichness


class SourceValidation(BaseModel):
    valid: bool
    word_count: int
    reason: Optional[str] = None


class ServiceArea(CamelModel):
    city: str
    state: str
    region: Optional[str] = None


class ArticleLengthConfig(CamelModel):
    """Word-count bands per richness tier."""
    rich_source_words: str = "800-1200"
    moderate_source_words: str = "600-900"
    adequate_source_words: str = "500-750"
    limited_source_words: str = "400-600"


class GenerationRequest(CamelModel):
    """Body of POST /api/ai/generate-article."""
    category_id: Optional[str] = Field(None, description="Target category identifier")
    source_content: Optional[SourceContent] = Field(None, description="Manually supplied source material")
    use_web_search: bool = Field(False, description="Acquire source material via web search")
    search_query: Optional[str] = Field(None, description="Explicit web search query")
    article_specific_prompt: Optional[str] = None
    journalist_id: Optional[str] = None
    journalist_name: Optional[str] = None
    generate_image: bool = True
    generate_seo: bool = False
    target_word_count: Optional[int] = Field(None, gt=0)
    writing_style: Optional[WritingStyle] = None
    skip_credits: bool = False
    existing_titles: List[str] = Field(default_factory=list)

    @field_validator('existing_titles')
    @classmethod
    def limit_existing_titles(cls, v):
        return [title.strip() for title in v if title and title.strip()][:50]


class PromptContext(BaseModel):
    """Everything the prompt composer needs; built per request, never stored."""
    business_name: str
    service_area: ServiceArea
    category_name: str
    category_directive: str = ""
    editor_in_chief_directive: Optional[str] = None
    article_specific_prompt: Optional[str] = None
    journalist_name: Optional[str] = None
    journalist_persona: Optional[str] = None
    source_content: Optional[SourceContent] = None
    from_web_search: bool = False
    target_word_count: Optional[int] = None
    writing_style: Optional[str] = None
    aggressiveness: Optional[Aggressiveness] = None
    article_length: ArticleLengthConfig = Field(default_factory=ArticleLengthConfig)
    existing_titles: List[str] = Field(default_factory=list)


class ParsedArticle(BaseModel):
    """Article fields recovered from raw generator output; slug is a candidate."""
    title: str
    content: str
    excerpt: str
    tags: List[str] = Field(default_factory=list)
    slug: str


class SEOEntities(CamelModel):
    people: List[str] = Field(default_factory=list)
    organizations: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)


class SEOMetadata(CamelModel):
    meta_description: str = ""
    keywords: List[str] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)
    local_keywords: List[str] = Field(default_factory=list)
    geo_tags: List[str] = Field(default_factory=list)
    entities: SEOEntities = Field(default_factory=SEOEntities)
    image_alt_text: str = ""
    schema_markup: str = Field("", alias="schema")


class ImageResult(BaseModel):
    url: str = ""
    attribution: Optional[str] = None
    method: str = "none"  # pexels | gemini | none


class CreditCheck(CamelModel):
    allowed: bool
    credits_remaining: int
    message: Optional[str] = None


class GeneratedArticle(CamelModel):
    title: str
    content: str
    excerpt: str
    tags: List[str]
    slug: str
    meta_description: Optional[str] = None
    keywords: Optional[List[str]] = None
    hashtags: Optional[List[str]] = None
    image_url: Optional[str] = None
    image_attribution: Optional[str] = None


class GenerateArticleResponse(CamelModel):
    success: bool
    article: Optional[GeneratedArticle] = None
    credits_used: int = 0
    credits_remaining: int = 0
    generation_time_ms: int = 0
    model: str = "unknown"
    error: Optional[str] = None
    credits_required: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
