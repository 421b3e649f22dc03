"""
Prompt composer for article generation.

The prompt is assembled from a three-level editorial hierarchy:

1. Editor-in-Chief directive (tenant-wide, highest authority)
2. Category directive (per news category)
3. Article-specific instructions (per request)

Below the hierarchy the prompt takes exactly one of two shapes, chosen once
from the source richness: a local-interest brief when the material is too thin
to report from, or a source-grounded brief carrying the anti-fabrication
protocol. Both end with the same response template.
"""

from dataclasses import dataclass
from typing import List, Union

from .models import Aggressiveness, PromptContext, SourceRichness
from .source_quality import assess_source_quality

SOURCE_EXCERPT_CHARS = 3000

LOCAL_INTEREST_MARKER = "LOCAL INTEREST ARTICLE MODE"
ANTI_FABRICATION_MARKER = "MANDATORY ANTI-FABRICATION PROTOCOL"

TOPIC_IDEAS = {
    "local news": "a specific neighborhood, a local tradition, a seasonal event, a historical anniversary, infrastructure project, library program, park renovation",
    "sports": "a specific team's season, a coaching milestone, youth league spotlight, a local athlete's journey, recreational league, upcoming tournament",
    "business": "a specific restaurant or shop, a new opening, a family business story, downtown revitalization, a local entrepreneur, market trends",
    "politics": "a specific policy debate, zoning issue, budget allocation, school board decision, community planning meeting",
    "entertainment": "a specific venue, upcoming show, local artist profile, museum exhibit, music scene, comedy night, book club",
    "lifestyle": "a specific neighborhood's character, food scene, outdoor activity guide, seasonal living tips, local wellness trend",
    "tourism": "a hidden gem attraction, day trip itinerary, seasonal festival, outdoor adventure, historical walking tour",
    "health": "a local clinic initiative, community health fair, fitness trend, mental health resources, senior wellness program",
    "community": "a specific nonprofit, volunteer spotlight, fundraiser, neighborhood association, cultural celebration",
}

TONE_BRIEF = {
    Aggressiveness.AGGRESSIVE: "Write with strong, assertive language.",
    Aggressiveness.CONSERVATIVE: "Write with measured, careful language.",
}

TONE_DETAILED = {
    Aggressiveness.AGGRESSIVE: (
        "Write with strong, assertive language. Use punchy, attention-grabbing headlines. "
        "Lead with the most impactful angle. Be direct and bold in your statements."
    ),
    Aggressiveness.CONSERVATIVE: (
        "Write with measured, careful language. Avoid sensationalism. Prefer hedged statements "
        "over bold claims. Use qualifying language where appropriate."
    ),
}


@dataclass(frozen=True)
class LocalInterestMode:
    """No usable source: write an evergreen local piece."""


@dataclass(frozen=True)
class SourceGroundedMode:
    """Write strictly from the supplied source at a richness-scaled length."""
    richness: SourceRichness


PromptMode = Union[LocalInterestMode, SourceGroundedMode]


def select_mode(context: PromptContext) -> PromptMode:
    richness = assess_source_quality(context.source_content).richness
    if context.source_content is None or richness == SourceRichness.LIMITED:
        return LocalInterestMode()
    return SourceGroundedMode(richness=richness)


def _source_name(context: PromptContext) -> str:
    source = context.source_content
    return (source.source_name if source and source.source_name else "News Reports")


def _location(context: PromptContext) -> str:
    area = context.service_area
    region = f" ({area.region})" if area.region else ""
    return f"{area.city}{region}, {area.state}"


def render_hierarchy(context: PromptContext, mode: PromptMode) -> str:
    """Directives, publication context, persona and source block, in authority order."""
    parts: List[str] = []

    if context.editor_in_chief_directive:
        parts.append(f"EDITORIAL STANDARDS (Editor-in-Chief):\n{context.editor_in_chief_directive}\n\n")

    area = context.service_area
    publication = f"PUBLICATION: {context.business_name}\nSERVICE AREA: {area.city}, {area.state}"
    if area.region:
        publication += f" ({area.region})"
    parts.append(publication + "\n\n")

    if context.category_directive:
        parts.append(
            f"EDITORIAL DIRECTIVE for {context.category_name} articles:\n{context.category_directive}\n\n"
        )

    if context.journalist_name:
        persona = f"You are {context.journalist_name}"
        if context.journalist_persona:
            persona += f", {context.journalist_persona}"
        parts.append(persona + ".\n\n")

    if isinstance(mode, SourceGroundedMode):
        source = context.source_content
        block = f"SOURCE MATERIAL:\nTitle: {source.title}\nSource: {_source_name(context)}\n"
        if source.description:
            block += f"Summary: {source.description}\n"
        if source.full_content:
            block += f"\nFull Article Content:\n{source.full_content[:SOURCE_EXCERPT_CHARS]}\n"
        if source.url:
            block += f"\nSource URL: {source.url}\n"
        parts.append(block + "\n")

    if context.article_specific_prompt:
        parts.append(f"SPECIFIC INSTRUCTIONS FOR THIS ARTICLE:\n{context.article_specific_prompt}\n\n")

    return "".join(parts)


def _topic_ideas(category_name: str) -> str:
    key = category_name.strip().lower()
    if key in TOPIC_IDEAS:
        return f"- {category_name}: {TOPIC_IDEAS[key]}"
    return "\n".join(f"- {name.title()}: {ideas}" for name, ideas in TOPIC_IDEAS.items())


def render_local_interest(context: PromptContext, mode: LocalInterestMode) -> str:
    area = context.service_area
    lines = [
        f"{LOCAL_INTEREST_MARKER}:",
        "",
        f"Write an original, engaging local-interest article about {context.category_name} in {_location(context)}.",
        "",
        "GUIDELINES:",
        f"- Use your general knowledge of {area.city} and the surrounding area",
        "- Write about real, specific places, landmarks, traditions or topics you are confident exist",
        "- Write as a genuine local newspaper article, not a generic tourism blurb",
        "- Do NOT invent names, quotes, statistics or dated events",
        "- Do NOT mention that no news was found or that sources were unavailable",
        f"- Target: 5-7 paragraphs ({context.article_length.moderate_source_words} words)",
    ]
    if context.target_word_count:
        lines.append(f"- Target word count: {context.target_word_count}")

    lines += [
        "",
        "TITLE FOCUS:",
        "- Do NOT put the city name in every title",
        "- Write titles that focus on the SUBJECT, not the location",
        "",
        "TOPIC IDEAS - pick a SPECIFIC, UNIQUE angle:",
        _topic_ideas(context.category_name),
        "",
    ]
    if context.writing_style:
        lines.append(f"WRITING STYLE: {context.writing_style}")
    if context.aggressiveness in TONE_BRIEF:
        lines.append(f"EDITORIAL TONE: {TONE_BRIEF[context.aggressiveness]}")

    lines.append(
        f"TASK: Write an engaging, original local-interest article about {context.category_name} "
        f"in {area.city}. Choose a SPECIFIC, UNIQUE topic, not a generic overview."
    )
    return "\n".join(lines)


def _length_rules(context: PromptContext, richness: SourceRichness) -> List[str]:
    bands = context.article_length
    if richness == SourceRichness.RICH:
        return [
            f"   - Target: 8-10 paragraphs ({bands.rich_source_words} words) - you have rich source material",
            "   - Develop each key point thoroughly with all available details",
        ]
    if richness == SourceRichness.MODERATE:
        return [
            f"   - Target: 5-8 paragraphs ({bands.moderate_source_words} words) - you have moderate source material",
            "   - Cover main points with supporting details",
        ]
    return [
        f"   - Target: 4-7 paragraphs ({bands.adequate_source_words} words) - you have adequate source material",
        "   - Cover essential points concisely",
    ]


def _attribution_rules(context: PromptContext) -> List[str]:
    if context.from_web_search:
        return [
            "   - Write in professional journalistic style WITHOUT forced attribution phrases",
            '   - DO NOT write "According to sources" or "sources say" - write directly and naturally',
            "   - Present facts as reported news, using active voice and clear statements",
            "   - Attribution is implied through professional news writing style",
        ]
    name = _source_name(context)
    return [
        "   - EVERY paragraph must include source attribution",
        f'   - Use: "According to {name}..."',
        f'   - Or: "As reported by {name}..."',
        f'   - Or: "{name} reports that..."',
        "   - Minimum: one clear attribution per paragraph",
    ]


def render_source_grounded(context: PromptContext, mode: SourceGroundedMode) -> str:
    city = context.service_area.city
    lines = [
        f"{ANTI_FABRICATION_MARKER}:",
        "",
        "You MUST follow these HARD CONSTRAINTS (violations will block publication):",
        "",
        "1. SOURCE-ONLY FACTS:",
        "   - You can ONLY state facts that appear in the source material above",
        "   - If a detail is not explicitly in the source, you CANNOT mention it",
        "   - Do not expand, infer, or assume anything beyond what's written",
        "   - EVERY sentence must be traceable to source material",
        "",
        "2. ATTRIBUTION REQUIREMENTS:",
        *_attribution_rules(context),
        "",
        "3. STRICTLY PROHIBITED:",
        "   - Adding names not in source",
        "   - Adding job titles/positions not in source",
        "   - Creating or paraphrasing quotes not in source",
        "   - Inventing statistics, numbers, or data",
        "   - Making predictions or speculation",
        "   - Adding background information not in source",
        "",
        "4. EDITORIAL TECHNIQUES FOR RICHNESS (without fabricating):",
        "   While staying strictly within source material, you CAN and SHOULD:",
        f"   - Explain significance: why does this matter to {city} residents?",
        "   - Provide context: explain technical terms, acronyms or unfamiliar concepts mentioned in source",
        "   - Draw connections: relate different facts mentioned in the source to show relationships",
        "   - Quote directly: use exact quotes from sources when available",
        "   - Elaborate on impacts: if the source mentions effects, explain what they mean practically",
        "   - Organize logically: present source facts in the most coherent, engaging order",
        "",
        "5. LENGTH CONSTRAINT:",
        "   - Write ONLY what the source supports",
        *_length_rules(context, mode.richness),
    ]
    if context.target_word_count:
        lines.append(f"   - Target word count: {context.target_word_count}")
    lines += [
        "   - DO NOT pad with filler or unsupported background",
        "",
        "6. WHEN INFORMATION IS MISSING:",
        "   - If the source lacks critical details (who, what, when, where), ACKNOWLEDGE IT",
        '   - Use: "Details about [X] were not provided in the report"',
        "   - It is BETTER to admit gaps than to fabricate",
        "",
    ]
    if context.writing_style:
        lines.append(f"7. WRITING STYLE: {context.writing_style}")
    if context.aggressiveness in TONE_DETAILED:
        lines.append(f"8. EDITORIAL TONE: {TONE_DETAILED[context.aggressiveness]}")

    lines.append("TASK: Write a factual news article based STRICTLY on the source material above.")
    return "\n".join(lines)


def render_output_contract(context: PromptContext, mode: PromptMode) -> str:
    """Response template and headline rules shared by both modes."""
    city = context.service_area.city
    attributed = isinstance(mode, SourceGroundedMode) and not context.from_web_search
    source_name = _source_name(context)

    lines = [
        "",
        "",
        "FORMAT YOUR RESPONSE EXACTLY AS FOLLOWS:",
        "",
        'TITLE: [Write a SPECIFIC news headline that answers "What happened?" - NOT generic phrases]',
        "",
        "HEADLINE REQUIREMENTS - MANDATORY:",
        "- DO: Write a SPECIFIC, compelling headline about the actual subject",
        "- DO: Use active voice and concrete details: who, what, where",
        '- DO: Answer "What happened?" or "What is this about?" in under 12 words',
        "- DON'T: Put the city or county name in EVERY title",
        '- DON\'T: Use generic words like "Breaking", "News", "Update", "Alert", "Report"',
        '- DON\'T: Use patterns like "[City] [Category] News"',
        "",
        "GOOD EXAMPLES:",
        '- "Winter Storm Warning Issued Through Thursday"',
        '- "City Council Approves $2M Budget for Road Repairs"',
        '- "Downtown Farmers Market Expands to Year-Round Schedule"',
        "",
        "BAD EXAMPLES (NEVER DO THIS):",
        f'- "{city} News Update"',
        f'- "{city} Business Report"',
        f'- "What\'s Happening in {city}"',
    ]

    if context.existing_titles:
        lines += ["", "EXISTING TITLES TO AVOID DUPLICATING:"]
        lines += [f'- "{title}"' for title in context.existing_titles]
        lines.append("Your article MUST cover a DIFFERENT topic and angle than all of the above.")

    lines += ["", "CONTENT:"]
    if attributed:
        lines += [
            f'[First paragraph - MUST start with "According to {source_name}..." or similar attribution]',
            "",
            "[Second paragraph - continue with source attribution]",
            "",
            "[Additional paragraphs ONLY if source material supports them - each with attribution]",
        ]
    else:
        lines += [
            "[First paragraph - Strong lead with the most important facts, written in active voice]",
            "",
            "[Second paragraph - Supporting details and context]",
            "",
            "[Additional paragraphs as the material supports]",
        ]

    lines += [
        "",
        "TAGS: [comma-separated keywords]",
        "",
        "Article Requirements:",
        "- Professional journalistic tone appropriate for local news",
        "- Include subheadings (## format) for longer articles to improve readability",
    ]
    if attributed:
        lines += [
            "- Attribute ALL facts to sources (mandatory in every paragraph)",
            "- Cite the original source for all claims",
        ]
    else:
        lines += [
            "- Write in active, engaging news style WITHOUT repetitive attribution phrases",
            "- Use varied sentence structures and natural transitions",
        ]
    lines += [
        "- Use direct quotes ONLY if they appear verbatim in source material",
        "- When in doubt, stick to what's verifiable - accuracy over length",
    ]
    return "\n".join(lines)


def build_article_prompt(context: PromptContext) -> str:
    """
    Build the complete article generation prompt.

    Args:
        context: Tenant, category, directives and source for this request

    Returns:
        Prompt text for the generation client
    """
    mode = select_mode(context)
    prompt = render_hierarchy(context, mode)

    if isinstance(mode, LocalInterestMode):
        prompt += render_local_interest(context, mode)
    else:
        prompt += render_source_grounded(context, mode)

    return prompt + render_output_contract(context, mode)
