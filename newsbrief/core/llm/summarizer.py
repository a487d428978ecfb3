"""Briefing summarization: prompt, single completion, paragraph parsing."""

import logging
import re
from datetime import UTC, datetime

from newsbrief.core.exceptions import LLMError
from newsbrief.core.llm.clients import LLMClients, provider_for
from newsbrief.core.llm.prompts import SUMMARY_SYSTEM_PROMPT, build_briefing_prompt
from newsbrief.core.observability import observe
from newsbrief.core.schemas import (
    BriefingRequest,
    BriefingSummary,
    Citation,
    LLMMetadata,
    ScrapedArticle,
    SourceWindow,
    SummarySection,
)

logger = logging.getLogger(__name__)

_BLANK_LINES = re.compile(r"\n\s*\n")


def parse_sections(text: str) -> list[SummarySection]:
    """Split a completion into overview + summary, or a single briefing block."""
    paragraphs = [p.strip() for p in _BLANK_LINES.split(text.strip()) if p.strip()]
    if len(paragraphs) > 1:
        return [
            SummarySection(category="overview", text=paragraphs[0]),
            SummarySection(category="summary", text="\n\n".join(paragraphs[1:])),
        ]
    return [SummarySection(category="briefing", text=paragraphs[0] if paragraphs else "")]


def citations_for(articles: list[ScrapedArticle]) -> list[Citation]:
    return [
        Citation(title=a.title, url=a.url, source=a.source, published_at=a.published_at)
        for a in articles
    ]


class Summarizer:
    def __init__(
        self,
        llm: LLMClients,
        *,
        model: str = "gpt-4o-mini",
        max_tokens: int = 600,
        temperature: float = 0.3,
    ):
        self.llm = llm
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @observe(name="summarize_briefing")
    async def summarize(
        self,
        articles: list[ScrapedArticle],
        request: BriefingRequest,
        window: SourceWindow | None = None,
    ) -> BriefingSummary:
        """Summarize scraped articles for one reader.

        Provider failures and empty completions degrade to a fallback summary.
        """
        prompt = build_briefing_prompt(articles, request, window)
        try:
            completion = await self.llm.complete(
                self.model,
                SUMMARY_SYSTEM_PROMPT,
                prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except LLMError as e:
            logger.warning("Summarization failed (%s): %s", self.model, e)
            return self._fallback(articles, request)

        if not completion.text.strip():
            logger.warning("Empty completion from %s", self.model)
            return self._fallback(articles, request)

        return BriefingSummary(
            sections=parse_sections(completion.text),
            generated_at=datetime.now(UTC),
            llm=LLMMetadata(
                provider=completion.provider,
                model=completion.model,
                input_tokens=completion.input_tokens,
                output_tokens=completion.output_tokens,
            ),
            citations=citations_for(articles),
        )

    def _fallback(self, articles: list[ScrapedArticle], request: BriefingRequest) -> BriefingSummary:
        topics = ", ".join(request.topics) if request.topics else "your interests"
        text = (
            f"We found {len(articles)} article(s) about {topics}, "
            "but could not generate a summary right now. The sources are listed below."
        )
        try:
            provider = provider_for(self.model)
        except ValueError:
            provider = "unknown"
        return BriefingSummary(
            sections=[SummarySection(category="error", text=text)],
            generated_at=datetime.now(UTC),
            llm=LLMMetadata(provider=provider, model=self.model),
            citations=citations_for(articles),
        )
