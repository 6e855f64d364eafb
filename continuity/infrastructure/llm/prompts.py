"""Structured, reusable prompt templates for LLM interactions.

Every call to the completion or image provider goes through a
:class:`PromptTemplate`, keeping the Archivist persona and the output
contracts (the ``RECOMMENDATIONS:`` block, the insight JSON) in one place.
Literal braces in templates are doubled because rendering uses ``str.format``.
"""

from dataclasses import dataclass, field
from typing import Any

from continuity.domain.entities import ReadingContext


@dataclass(frozen=True)
class PromptTemplate:
    """A reusable prompt template with named placeholders.

    Usage::

        tpl = PromptTemplate(
            name="stats_summary",
            system="You are The Archivist.\n\n{context_block}",
            user="Summarise my reading stats.",
        )
        prompt = tpl.render_flat(context_block=format_reading_context(ctx))
    """

    name: str
    system: str
    user: str
    description: str = ""
    version: str = "1.0"
    tags: list[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    def render(self, **kwargs: Any) -> list[dict[str, str]]:
        """Return an OpenAI-style messages list with placeholders filled."""
        return [
            {"role": "system", "content": self.system.format(**kwargs)},
            {"role": "user", "content": self.user.format(**kwargs)},
        ]

    def render_flat(self, **kwargs: Any) -> str:
        """Return a single-string prompt (system + user) for simpler APIs."""
        sys_text = self.system.format(**kwargs)
        usr_text = self.user.format(**kwargs)
        return f"{sys_text}\n\n{usr_text}"


def format_reading_context(context: ReadingContext) -> str:
    """Render the "User Context" bullet list embedded in the Archivist prompt."""
    lines = [f"- Collection size: {context.collection_size} comics"]
    if context.recent_reads:
        reads = ", ".join(f'"{c.title}" by {c.writer or "Unknown"}' for c in context.recent_reads)
        lines.append(f"- Recent reads: {reads}")
    if context.favorite_creators:
        lines.append(f"- Favorite creators: {', '.join(context.favorite_creators)}")
    if context.currently_reading:
        lines.append(
            f"- Currently reading: {', '.join(c.title for c in context.currently_reading)}"
        )
    if context.top_rated_series:
        lines.append(f"- Top-rated series: {', '.join(context.top_rated_series)}")
    stats = context.reading_stats
    lines.append(
        f"- Stats: {stats.total_issues_read} issues read, {stats.average_rating} avg rating"
    )
    return "\n".join(lines)


# =========================================================================
# The Archivist
# =========================================================================

ARCHIVIST_SYSTEM_PROMPT = (
    "You are The Archivist, the keeper of all comic book knowledge and this "
    "user's personal guide through the world of comics.\n\n"
    "Your role is to help users discover comics, track their reading, and get "
    "personalized recommendations based on their taste. You have cataloged every "
    "comic in existence and remember everything about this user's collection.\n\n"
    "**User Context:**\n"
    "{context_block}\n\n"
    "**Guidelines:**\n"
    "1. Be conversational, knowledgeable, and passionate about comics\n"
    "2. Reference specific comics the user has read when making recommendations\n"
    "3. Explain WHY you're recommending something based on their history\n"
    "4. Keep responses concise but informative (2-3 paragraphs max unless asked for more)\n"
    "5. Use the user's reading history to personalize every response\n"
    "6. If you notice patterns (e.g., they love a specific creator), mention it naturally\n"
    "7. Format responses in markdown when helpful (bold titles, lists for multiple recommendations)\n"
    "8. When recommending comics, include writer/artist info when relevant\n"
    "9. Be honest if you don't have enough context - ask clarifying questions\n"
    "10. Celebrate their reading achievements and streaks\n\n"
    "**Tone:**\n"
    "- Wise but approachable (like a guardian of knowledge who loves to share)\n"
    "- Personal and warm (you remember every comic they've read)\n"
    "- Knowledgeable but not condescending\n"
    "- Enthusiastic about great comics\n"
    "- Supportive of all reading preferences\n\n"
    "**IMPORTANT - Structured Recommendations:**\n"
    "When you recommend specific comics, you MUST include a structured JSON block "
    "at the end of your response so the user can easily add them to their "
    "collection. Format:\n\n"
    "RECOMMENDATIONS:\n"
    '{{"comics": [{{"title": "Comic Title", "writer": "Writer Name", '
    '"artist": "Artist Name", "publisher": "Publisher", "year": 2020}}]}}\n\n'
    "Only include the RECOMMENDATIONS block when suggesting specific comics to "
    "read. For general conversation or questions, omit it.\n\n"
    "Remember: You are The Archivist - you've preserved the history of every "
    "comic ever published, and you're using that vast knowledge to guide this "
    "specific reader on their personal journey through comics."
)

ARCHIVIST_CHAT_PROMPT = PromptTemplate(
    name="archivist_chat",
    description="One conversational turn with The Archivist, prior turns inlined.",
    version="1.0",
    tags=["archivist", "chat"],
    system=ARCHIVIST_SYSTEM_PROMPT,
    user="{transcript}User: {message}\n\nArchivist:",
)

QUICK_RECOMMENDATIONS_PROMPT = PromptTemplate(
    name="quick_recommendations",
    description="Standalone recommendation request outside a conversation.",
    version="1.0",
    tags=["archivist", "recommendations"],
    system=ARCHIVIST_SYSTEM_PROMPT,
    user=(
        "{query}\n\n"
        "Provide 3-5 specific comic recommendations with brief explanations of "
        "why they match the user's taste."
    ),
)

STATS_SUMMARY_PROMPT = PromptTemplate(
    name="stats_summary",
    description="Encouraging, personalised summary of the user's reading stats.",
    version="1.0",
    tags=["archivist", "stats"],
    system=ARCHIVIST_SYSTEM_PROMPT,
    user=(
        "Give the user a fun, personalized summary of their reading stats and "
        "patterns. Be encouraging and highlight interesting trends. Keep it to "
        "2-3 short paragraphs."
    ),
)

# =========================================================================
# Single-comic prompts
# =========================================================================

COMIC_INSIGHT_PROMPT = PromptTemplate(
    name="comic_insight",
    description="Structured analysis (summary, significance, key events) of one comic.",
    version="1.0",
    tags=["comic", "insight", "extraction"],
    system='You are a comic book expert analyzing "{title}" by {credits} ({publisher}, {year}).',
    user=(
        "Provide a structured analysis in the following JSON format. Be factual "
        "and use your knowledge of comic book history:\n\n"
        "{{\n"
        '  "storySummary": "2-3 sentence summary of what happens in this comic (may include spoilers)",\n'
        '  "spoilerFreeSummary": "1 sentence overview safe for anyone who hasn\'t read it",\n'
        '  "significance": "major" | "minor" | "filler",\n'
        '  "significanceNotes": "Why this comic matters (first appearances, deaths, major events, cultural impact)",\n'
        '  "keyEvents": ["event 1", "event 2"],\n'
        '  "firstAppearances": {{\n'
        '    "characters": ["character names if any first appear here"],\n'
        '    "items": ["item names if any first appear here"],\n'
        '    "teams": ["team names if any first appear here"]\n'
        "  }},\n"
        '  "mustRead": true/false,\n'
        '  "canSkip": true/false\n'
        "}}\n\n"
        "IMPORTANT RULES:\n"
        "1. If you don't know specific details about this comic, make reasonable "
        "inferences based on the title, creator, and era\n"
        "2. Be factual and concise - no marketing language\n"
        '3. Mark significance as "major" only for truly important comics (first '
        "appearances of major characters, landmark storylines, deaths of major "
        "characters, award winners)\n"
        '4. Mark significance as "filler" for tie-ins, fill-in issues, or '
        "inconsequential stories\n"
        "5. Only mark mustRead if truly essential to the character/series canon\n"
        "6. Only mark canSkip if it's clearly filler or skippable\n"
        "7. If this is a collected edition/trade paperback, analyze the overall story arc\n"
        "8. Leave firstAppearances arrays empty if no notable firsts occur\n"
        "9. For keyEvents, be specific and evocative: include character names, "
        "locations, and vivid details that capture what makes the scene memorable\n\n"
        "Return ONLY the JSON, no additional text or markdown formatting."
    ),
)

COVER_ART_PROMPT = PromptTemplate(
    name="cover_art",
    description="Image prompt for an AI-generated variant cover.",
    version="1.0",
    tags=["comic", "image", "cover"],
    system='A professional, high-resolution comic book variant cover art for "{title}" by {writer}.',
    user=(
        "Style: Modern illustrative comic art, no text, no title logos, focus on "
        "the characters and atmosphere: {description}"
    ),
)

# Registry for programmatic access
PROMPT_REGISTRY: dict[str, PromptTemplate] = {
    tpl.name: tpl
    for tpl in [
        ARCHIVIST_CHAT_PROMPT,
        QUICK_RECOMMENDATIONS_PROMPT,
        STATS_SUMMARY_PROMPT,
        COMIC_INSIGHT_PROMPT,
        COVER_ART_PROMPT,
    ]
}
