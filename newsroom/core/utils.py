"""
Utility functions for the newsroom services.

Provides text processing, sanitization, slug and excerpt helpers shared by the
article pipeline and the support assistant.
"""

import html
import re
import unicodedata
from datetime import datetime
from typing import List, Optional

import bleach

# Allowed HTML tags for generated article bodies
ALLOWED_HTML_TAGS = [
    'p', 'br', 'strong', 'b', 'em', 'i', 'u', 'ul', 'ol', 'li',
    'h2', 'h3', 'h4', 'blockquote', 'a'
]

ALLOWED_HTML_ATTRIBUTES = {
    'a': ['href', 'title', 'rel'],
    'blockquote': ['cite']
}

ENGLISH_STOPWORDS = {
    'this', 'that', 'with', 'from', 'have', 'been', 'will', 'what', 'when',
    'where', 'their', 'there', 'about', 'after', 'into', 'over', 'they', 'than',
    'breaking', 'update', 'local', 'news'
}


def slugify(text: str, max_length: int = 50) -> str:
    """
    Convert text to URL-safe slug.

    Args:
        text: Text to convert
        max_length: Maximum slug length

    Returns:
        URL-safe slug, empty when nothing alphanumeric survives
    """
    if not text:
        return ""

    # Normalize unicode and remove accents
    normalized = unicodedata.normalize('NFKD', text)
    ascii_only = normalized.encode('ascii', 'ignore').decode('ascii')

    slug = re.sub(r'[^a-z0-9]+', '-', ascii_only.lower())
    slug = slug.strip('-')

    if len(slug) > max_length:
        slug = slug[:max_length].rstrip('-')

    return slug


def count_words(text: Optional[str]) -> int:
    """Count whitespace-separated, non-empty tokens."""
    if not text:
        return 0
    return len([token for token in text.split() if token])


def sanitize_html(content: str, allowed_tags: List[str] = None, strip: bool = False) -> str:
    """
    Sanitize HTML content to prevent XSS attacks.

    Args:
        content: HTML content to sanitize
        allowed_tags: List of allowed HTML tags (None for default)
        strip: Whether to strip every tag instead of keeping allowed ones

    Returns:
        Sanitized HTML content
    """
    if not content:
        return ""

    if strip:
        return bleach.clean(content, tags=[], strip=True)

    return bleach.clean(
        content,
        tags=allowed_tags if allowed_tags is not None else ALLOWED_HTML_TAGS,
        attributes=ALLOWED_HTML_ATTRIBUTES,
        strip=True
    )


def strip_html(content: str) -> str:
    """Remove all tags and decode entities, leaving plain text."""
    if not content:
        return ""
    return html.unescape(re.sub(r'<[^>]+>', '', content)).strip()


def create_excerpt(content: str, max_length: int = 200) -> str:
    """
    Create a plain-text excerpt from HTML content.

    Truncates at a word boundary when one falls in the last 30% of the
    window, otherwise hard-cuts; truncated excerpts end with "...".
    """
    plain = strip_html(content)

    if len(plain) <= max_length:
        return plain

    truncated = plain[:max_length]
    last_space = truncated.rfind(' ')

    if last_space > max_length * 0.7:
        return truncated[:last_space] + '...'

    return truncated + '...'


def extract_keywords(text: str, max_keywords: int = 3, min_length: int = 4) -> List[str]:
    """
    Extract meaningful words from a headline, in order of appearance.

    Args:
        text: Text to analyze
        max_keywords: Maximum number of keywords to return
        min_length: Minimum keyword length

    Returns:
        Unique keywords, first occurrence first
    """
    if not text:
        return []

    words = re.sub(r'[^a-z0-9\s]', ' ', text.lower()).split()
    keywords: List[str] = []
    for word in words:
        if len(word) < min_length or word in ENGLISH_STOPWORDS or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) >= max_keywords:
            break
    return keywords


def decode_feed_text(text: str) -> str:
    """Decode HTML entities and drop markup from feed titles/descriptions."""
    return strip_html(text or "")


def long_date(now: Optional[datetime] = None) -> str:
    """Format a date like 'Saturday, October 17, 2026'."""
    now = now or datetime.now()
    return f"{now.strftime('%A')}, {now.strftime('%B')} {now.day}, {now.year}"


def extract_json_text(text: str) -> str:
    """Strip markdown code fences and isolate the first {...} block."""
    text = (text or "").strip()
    if '```' in text:
        fenced = re.search(r'```(?:json)?\s*([\s\S]*?)```', text)
        if fenced:
            text = fenced.group(1).strip()
        else:
            text = re.sub(r'```(?:json)?\s*', '', text).strip()

    if not text.startswith('{'):
        match = re.search(r'\{[\s\S]*\}', text)
        if match:
            text = match.group(0)
    return text
