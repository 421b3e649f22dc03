"""
Parser for generator responses.

Extracts title, content and tags from the TITLE / CONTENT / TAGS response
template. The generator usually follows the template but not always, so every
field has a fallback and parsing never raises.
"""

import re
from typing import Dict, List, NamedTuple, Optional

from newsroom.core.logging import get_logger
from newsroom.core.utils import create_excerpt, sanitize_html, slugify
from .models import ParsedArticle, SourceContent

logger = get_logger(__name__)

DEFAULT_TITLE = "Local News Update"
DEFAULT_SLUG = "article"
EXCERPT_LENGTH = 200

# Labels the generator drifts to, mapped onto the template's three sections
_LABEL_ALIASES = {
    "TITLE": "TITLE",
    "HEADLINE": "TITLE",
    "CONTENT": "CONTENT",
    "BODY": "CONTENT",
    "ARTICLE": "CONTENT",
    "TAGS": "TAGS",
    "KEYWORDS": "TAGS",
}

_LABEL_RE = re.compile(
    r'^[ \t]*[#*_]*[ \t]*(?P<label>TITLE|HEADLINE|CONTENT|BODY|ARTICLE|TAGS|KEYWORDS)'
    r'[ \t]*[*_]*[ \t]*:[ \t]*[*_]*[ \t]*(?P<rest>.*)$',
    re.IGNORECASE,
)


class SectionLabel(NamedTuple):
    line: int
    section: str
    rest: str


def find_labels(lines: List[str]) -> List[SectionLabel]:
    """Lines that open with a section label, e.g. '**Headline:** ...' or 'TAGS: a, b'."""
    labels: List[SectionLabel] = []
    for index, line in enumerate(lines):
        match = _LABEL_RE.match(line)
        if match:
            section = _LABEL_ALIASES[match.group('label').upper()]
            labels.append(SectionLabel(index, section, match.group('rest').strip()))
    return labels


def split_sections(response: str) -> Dict[str, Optional[str]]:
    """
    Split generator output into raw title, body and tags text.

    The first CONTENT label opens the body and the last TAGS label after it
    closes it. Label-like lines in between stay body text. Missing sections
    come back as None.
    """
    lines = response.splitlines()
    labels = find_labels(lines)

    content = next((label for label in labels if label.section == "CONTENT"), None)
    body_start = content.line if content else -1
    title = next(
        (label for label in labels
         if label.section == "TITLE" and (content is None or label.line < content.line)),
        None,
    )
    if content is None and title is not None:
        body_start = title.line
    tags = next(
        (label for label in reversed(labels) if label.section == "TAGS" and label.line > body_start),
        None,
    )

    title_text = None
    title_lines = set()
    if title is not None:
        title_lines.add(title.line)
        title_text = title.rest
        if not title_text:
            # "TITLE:" alone on its line, headline on the next non-blank line
            stop = content.line if content else len(lines)
            following = next((i for i in range(title.line + 1, stop) if lines[i].strip()), None)
            if following is not None and not _LABEL_RE.match(lines[following]):
                title_text = lines[following]
                title_lines.add(following)
        title_text = title_text.strip() or None

    body_end = tags.line if tags else len(lines)
    if content is not None:
        body_lines = [content.rest] + lines[content.line + 1:body_end]
    else:
        body_lines = [line for index, line in enumerate(lines[:body_end]) if index not in title_lines]
    body_text = "\n".join(body_lines).strip() or None

    tags_text = None
    if tags is not None:
        tags_text = tags.rest or next((line for line in lines[tags.line + 1:] if line.strip()), "")
        tags_text = tags_text.strip() or None

    return {"title": title_text, "content": body_text, "tags": tags_text}


def _clean_title(raw: str) -> str:
    title = raw.strip().strip('*_#').strip()
    if len(title) >= 2 and title[0] == title[-1] and title[0] in '"\'':
        title = title[1:-1].strip()
    return title


def format_paragraphs(text: str) -> str:
    """Wrap blank-line separated blocks in <p>, '## ' blocks in <h2>."""
    blocks = [block.strip() for block in re.split(r'\n\s*\n+', text) if block.strip()]
    html_blocks: List[str] = []
    for block in blocks:
        heading = re.match(r'^#{2,4}\s+(.+)$', block)
        if heading and '\n' not in block:
            html_blocks.append(f"<h2>{heading.group(1).strip()}</h2>")
        else:
            html_blocks.append(f"<p>{block}</p>")
    return "\n".join(html_blocks)


def format_article_content(content: str) -> str:
    """Leave HTML content alone, paragraph-wrap plain text."""
    if '<p>' in content:
        return content
    return format_paragraphs(content)


def parse_tags(raw: str) -> List[str]:
    tags: List[str] = []
    for tag in raw.split(','):
        tag = tag.strip().strip('[]*#').strip().lower()
        if 0 < len(tag) < 50 and tag not in tags:
            tags.append(tag)
    return tags


def generate_slug(title: str) -> str:
    """Lossy URL-safe slug; a candidate only, uniqueness is resolved later."""
    return slugify(title, max_length=50) or DEFAULT_SLUG


def parse_article_response(response: str, source_content: Optional[SourceContent] = None) -> ParsedArticle:
    """
    Parse generator output into article components.

    Args:
        response: Raw generator text
        source_content: Source used for the request, for the title fallback

    Returns:
        ParsedArticle with non-empty title, content and slug
    """
    sections = split_sections(response or "")

    title = _clean_title(sections["title"] or "")
    if not title:
        if source_content is not None and source_content.title:
            title = f"Local Update: {source_content.title}"
        else:
            title = DEFAULT_TITLE
        logger.warning(f"Generator response missing TITLE, using fallback: {title}")

    body = sections["content"]
    content = sanitize_html(format_article_content(body)) if body else ""
    if not content:
        content = f"<p>{sanitize_html(title)}</p>"

    tags = parse_tags(sections["tags"]) if sections["tags"] else []

    return ParsedArticle(
        title=title,
        content=content,
        excerpt=create_excerpt(content, EXCERPT_LENGTH),
        tags=tags,
        slug=generate_slug(title),
    )
