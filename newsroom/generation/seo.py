"""
SEO metadata pass.

A second, optional generation call asks for a JSON object describing the
article for search engines and social sharing. Responses are parsed
tolerantly; anything unusable yields deterministic default metadata.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from newsroom.core.logging import get_logger
from newsroom.core.utils import extract_json_text, strip_html
from .llm_provider import GenerationConfig, LLMProvider
from .models import SEOEntities, SEOMetadata, ServiceArea

logger = get_logger(__name__)

META_DESCRIPTION_MAX = 155
IMAGE_ALT_MAX = 125
MAX_KEYWORDS = 8
MAX_HASHTAGS = 8
SEO_CONTENT_CHARS = 2500

SEO_SYSTEM_INSTRUCTION = (
    "You are an SEO specialist for a local news publication. "
    "You respond with a single JSON object and nothing else."
)


def build_seo_prompt(
    title: str,
    content: str,
    category_name: str,
    service_area: ServiceArea,
    business_name: str,
) -> str:
    """Prompt asking for the SEO JSON object for one article."""
    location = service_area.region or f"{service_area.city}, {service_area.state}"
    body = strip_html(content)[:SEO_CONTENT_CHARS]

    return f"""Generate SEO metadata for this {category_name} article published by {business_name}, serving {location}.

HEADLINE: {title}

ARTICLE:
{body}

Return ONLY a JSON object with these fields:
{{
  "metaDescription": "compelling summary, max {META_DESCRIPTION_MAX} characters",
  "keywords": ["up to {MAX_KEYWORDS} search keywords"],
  "hashtags": ["up to {MAX_HASHTAGS} social hashtags"],
  "localKeywords": ["keywords combining the topic with {service_area.city}"],
  "geoTags": ["{service_area.city}", "{service_area.state}"],
  "entities": {{"people": [], "organizations": [], "locations": [], "topics": []}},
  "imageAltText": "descriptive alt text, max {IMAGE_ALT_MAX} characters",
  "schema": {{"@context": "https://schema.org", "@type": "NewsArticle", "headline": "..."}}
}}

Use only names and places that appear in the article."""


def _string_list(value: Any, limit: Optional[int] = None) -> List[str]:
    if not isinstance(value, list):
        return []
    items = [str(item).strip() for item in value if str(item).strip()]
    return items[:limit] if limit is not None else items


def default_seo_metadata(
    title: str,
    category: str,
    author_name: str = "Staff",
    published_at: Optional[str] = None,
) -> SEOMetadata:
    """Deterministic metadata derived from the headline and category."""
    published_at = published_at or datetime.now(timezone.utc).isoformat()
    meta_description = f"{title} - Read the latest {category} news."[:META_DESCRIPTION_MAX]

    title_words = [
        word for word in re.sub(r'[^a-z0-9\s]', '', title.lower()).split()
        if len(word) > 3
    ]
    keywords: List[str] = []
    for word in [category.lower()] + title_words:
        if word not in keywords:
            keywords.append(word)
    keywords = keywords[:MAX_KEYWORDS]

    hashtags = ["#" + re.sub(r'\s+', '', keyword) for keyword in keywords[:5]]
    if not hashtags:
        hashtags = ["#" + re.sub(r'\s+', '', category), "#LocalNews"]

    schema = {
        "@context": "https://schema.org",
        "@type": "NewsArticle",
        "headline": title,
        "description": meta_description,
        "articleSection": category,
        "author": {"@type": "Person", "name": author_name},
        "datePublished": published_at,
        "dateModified": published_at,
    }

    return SEOMetadata(
        meta_description=meta_description,
        keywords=keywords,
        hashtags=hashtags,
        entities=SEOEntities(topics=[category]),
        image_alt_text=f"{category} news",
        schema_markup=json.dumps(schema),
    )


def parse_seo_response(
    response_text: str,
    title: str,
    category: str,
    author_name: str = "Staff",
    published_at: Optional[str] = None,
) -> SEOMetadata:
    """
    Parse the SEO JSON object out of generator output.

    Code fences are stripped and the first {...} block is used. Malformed
    output returns default_seo_metadata() instead of raising.
    """
    try:
        parsed = json.loads(extract_json_text(response_text))
        if not isinstance(parsed, dict):
            raise ValueError("SEO response is not a JSON object")
    except ValueError as e:
        logger.warning(f"Could not parse SEO response, using defaults: {e}")
        return default_seo_metadata(title, category, author_name, published_at)

    entities = parsed.get("entities") if isinstance(parsed.get("entities"), dict) else {}
    hashtags = [
        tag if tag.startswith('#') else f"#{tag}"
        for tag in _string_list(parsed.get("hashtags"), MAX_HASHTAGS)
    ]
    schema = parsed.get("schema")

    return SEOMetadata(
        meta_description=str(parsed.get("metaDescription") or "")[:META_DESCRIPTION_MAX],
        keywords=_string_list(parsed.get("keywords"), MAX_KEYWORDS),
        hashtags=hashtags,
        local_keywords=_string_list(parsed.get("localKeywords")),
        geo_tags=_string_list(parsed.get("geoTags")),
        entities=SEOEntities(
            people=_string_list(entities.get("people")),
            organizations=_string_list(entities.get("organizations")),
            locations=_string_list(entities.get("locations")),
            topics=_string_list(entities.get("topics")),
        ),
        image_alt_text=str(parsed.get("imageAltText") or "")[:IMAGE_ALT_MAX],
        schema_markup=json.dumps(schema) if isinstance(schema, dict) else "",
    )


async def generate_seo_metadata(
    provider: LLMProvider,
    config: GenerationConfig,
    title: str,
    content: str,
    category_name: str,
    service_area: ServiceArea,
    business_name: str,
    author_name: str = "Staff",
) -> SEOMetadata:
    """Run the SEO generation call; any failure degrades to default metadata."""
    prompt = build_seo_prompt(title, content, category_name, service_area, business_name)
    try:
        response = await provider.generate(
            prompt,
            config=config.merge(temperature=0.3, max_tokens=1000),
            system_instruction=SEO_SYSTEM_INSTRUCTION,
        )
    except Exception as e:
        logger.warning(f"SEO generation failed, using defaults: {e}")
        return default_seo_metadata(title, category_name, author_name)

    return parse_seo_response(response, title, category_name, author_name)
