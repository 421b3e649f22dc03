"""Source material assessment and validation."""

from typing import Optional

from newsroom.core.utils import count_words
from .models import SourceAssessment, SourceContent, SourceRichness, SourceValidation

MIN_SOURCE_WORDS = 100

# Lower bounds (exclusive) for each tier, highest first
RICHNESS_THRESHOLDS = (
    (1500, SourceRichness.RICH),
    (800, SourceRichness.MODERATE),
    (300, SourceRichness.ADEQUATE),
)


def richness_for(word_count: int) -> SourceRichness:
    for threshold, richness in RICHNESS_THRESHOLDS:
        if word_count > threshold:
            return richness
    return SourceRichness.LIMITED


def assess_source_quality(source_content: Optional[SourceContent]) -> SourceAssessment:
    """
    Count words across title, description and full content and derive the tier.

    Absent content is simply limited; this never raises.
    """
    if source_content is None:
        return SourceAssessment(word_count=0, richness=SourceRichness.LIMITED)

    full_text = " ".join([
        source_content.title or "",
        source_content.description or "",
        source_content.full_content or "",
    ])
    word_count = count_words(full_text)

    return SourceAssessment(word_count=word_count, richness=richness_for(word_count))


def validate_source_material(source_content: Optional[SourceContent]) -> SourceValidation:
    """Fail-closed check that enough source text exists to write from."""
    if source_content is None:
        return SourceValidation(valid=False, reason="No source content provided", word_count=0)

    word_count = assess_source_quality(source_content).word_count

    if word_count < MIN_SOURCE_WORDS:
        return SourceValidation(
            valid=False,
            reason=f"Insufficient source material ({word_count} words, need {MIN_SOURCE_WORDS}+ minimum)",
            word_count=word_count,
        )

    return SourceValidation(valid=True, word_count=word_count)
