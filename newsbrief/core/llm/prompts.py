from typing import Any

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert news analyst. You write tight, factual briefings and "
    "tie every development to the reader's stated interests and profession."
)

MAX_ARTICLE_CHARS = 4000

BRIEFING_PROMPT_TEMPLATE = """<reader>
Topics: {topics}
Interests: {interests}
Job industry: {job_industry}
Demographic: {demographic}
Must mention: {include_keywords}
Avoid: {exclude_keywords}
Preferred sources: {preferred_sources}
Coverage window: {window}
</reader>

<articles>
{articles}
</articles>

<instructions>
- Start with a one-sentence overview of the most important development.
{format_rule}
- Prefer concrete numbers, names and dates over vague references like "recently".
- Explain why each item matters to this reader.
- Do not add closing remarks, sign-offs or offers of further help.
- Stay under 220 words.
- Tone: {tone}.
</instructions>"""

NARRATIVE_RULE = (
    "- Then cover each article in its own paragraph of two sentences, "
    "separated by a blank line."
)
BULLET_RULE = "- Then cover each article as a single bullet starting with \"- \"."


class PromptAdapter:
    """Adapts prompts for different LLM providers."""

    @staticmethod
    def for_claude(
        system: str,
        messages: list[dict[str, str]],
    ) -> dict[str, Any]:
        """Format for Anthropic Claude API."""
        return {
            "system": [{"type": "text", "text": system}],
            "messages": messages,
        }

    @staticmethod
    def for_openai(
        system: str,
        messages: list[dict[str, str]],
    ) -> dict[str, Any]:
        """Format for OpenAI API."""
        return {
            "messages": [
                {"role": "system", "content": system},
                *messages,
            ],
        }


def _join(values: list[str] | None) -> str:
    return ", ".join(values) if values else "none"


def format_article(index: int, article: Any) -> str:
    body = (article.content or article.description or "").strip()
    if len(body) > MAX_ARTICLE_CHARS:
        body = body[:MAX_ARTICLE_CHARS].rstrip() + "..."
    published = article.published_at.strftime("%Y-%m-%d") if article.published_at else "unknown"
    return (
        f"[{index}] {article.title}\n"
        f"Source: {article.source} | Published: {published}\n"
        f"URL: {article.url}\n"
        f"{body}"
    )


def build_briefing_prompt(articles: list, request: Any, window: Any | None = None) -> str:
    """Render the summarization prompt for a set of scraped articles."""
    if window is not None:
        window_text = (
            f"{window.from_.strftime('%Y-%m-%d %H:%M')} to "
            f"{window.to.strftime('%Y-%m-%d %H:%M')} UTC"
        )
    else:
        window_text = f"last {request.time_range_hours} hours"

    format_rule = BULLET_RULE if request.format == "bullet_points" else NARRATIVE_RULE

    return BRIEFING_PROMPT_TEMPLATE.format(
        topics=_join(request.topics),
        interests=_join(request.interests),
        job_industry=request.job_industry or "not specified",
        demographic=request.demographic or "not specified",
        include_keywords=_join(request.include_keywords),
        exclude_keywords=_join(request.exclude_keywords),
        preferred_sources=_join(request.preferred_sources),
        window=window_text,
        articles="\n\n".join(format_article(i, a) for i, a in enumerate(articles, start=1)),
        format_rule=format_rule,
        tone=request.summary_tone,
    )
