"""Background continuation that drives one briefing to a terminal state.

queued -> fetching -> summarizing -> done, with error reachable from every
non-terminal state. Each stage writes the full briefing back before moving on,
so status readers always see a consistent snapshot.
"""

import logging
import time
import uuid
from datetime import UTC, datetime, timedelta

from newsbrief.core.config import Settings
from newsbrief.core.llm.costs import estimate_cost
from newsbrief.core.llm.summarizer import Summarizer
from newsbrief.core.models import Briefing, BriefingErrorCode, BriefingMode, BriefingStatus
from newsbrief.core.observability import observe
from newsbrief.core.schemas import BriefingRequest
from newsbrief.core.stores import BriefingStore, UserStore
from newsbrief.tools.news_api import FetchResult, NewsApiClient, format_timestamp
from newsbrief.tools.scraper import ArticleScraper, ScrapeStats

logger = logging.getLogger(__name__)

NO_ARTICLES_MESSAGE = (
    "No articles matched your topics and keywords in the selected time range. "
    "Try broadening your preferences or extending the time range."
)
NO_CONTENT_MESSAGE = (
    "We found matching articles but could not read enough of their content. "
    "Please try again later."
)
TIMEOUT_MESSAGE = "Briefing generation did not finish in time. Please request a new briefing."


def _now() -> datetime:
    return datetime.now(UTC)


def mark_error(briefing: Briefing, message: str, code: BriefingErrorCode) -> None:
    """Move a briefing to the terminal error state."""
    briefing.status = BriefingStatus.error
    briefing.status_reason = message
    briefing.error = {"message": message, "code": code.value}
    briefing.summary = None
    briefing.progress = 100
    briefing.completed_at = _now()
    briefing.lease_expires_at = None


class BriefingPipeline:
    def __init__(
        self,
        briefings: BriefingStore,
        users: UserStore,
        news: NewsApiClient,
        scraper: ArticleScraper,
        summarizer: Summarizer,
        settings: Settings,
    ):
        self.briefings = briefings
        self.users = users
        self.news = news
        self.scraper = scraper
        self.summarizer = summarizer
        self.target_articles = settings.briefing_target_articles
        self.lease_seconds = settings.briefing_lease_seconds

    @observe(name="briefing_pipeline")
    async def run(self, briefing_id: uuid.UUID) -> None:
        """Run the continuation for one briefing. Never raises."""
        briefing = await self.briefings.claim(briefing_id, self.lease_seconds)
        if briefing is None:
            logger.info("Briefing %s not claimable (missing, finished or leased)", briefing_id)
            return

        try:
            await self._advance(briefing)
        except Exception as e:
            logger.exception("Briefing %s failed", briefing_id)
            mark_error(briefing, str(e) or e.__class__.__name__, BriefingErrorCode.internal)
            try:
                await self.briefings.save(briefing)
            except Exception:
                logger.exception("Could not persist error state for briefing %s", briefing_id)

    async def _advance(self, briefing: Briefing) -> None:
        request = BriefingRequest.model_validate(briefing.request)

        briefing.status = BriefingStatus.fetching
        briefing.fetch_started_at = _now()
        briefing.progress = 25
        await self._persist(briefing)

        result = await self._fetch(request)
        counters = {
            "candidate_count": len(result.articles),
            "article_fetch_count": 0,
            "article_fetch_failed_count": 0,
        }
        briefing.counters = counters
        if result.window is not None:
            briefing.source_window = {
                "from": format_timestamp(result.window.from_),
                "to": format_timestamp(result.window.to),
            }

        if not result.articles:
            logger.info("Briefing %s: no candidate articles", briefing.id)
            briefing.articles = []
            mark_error(briefing, NO_ARTICLES_MESSAGE, BriefingErrorCode.no_articles)
            await self.briefings.save(briefing)
            return

        stats = ScrapeStats()
        scraped = await self.scraper.scrape_until(result.articles, self.target_articles, stats)
        briefing.counters = {
            **counters,
            "article_fetch_count": stats.attempted,
            "article_fetch_failed_count": stats.failed,
        }

        if not scraped:
            logger.info("Briefing %s: no article had enough content", briefing.id)
            briefing.articles = []
            mark_error(briefing, NO_CONTENT_MESSAGE, BriefingErrorCode.no_content)
            await self.briefings.save(briefing)
            return

        briefing.status = BriefingStatus.summarizing
        briefing.summarize_started_at = _now()
        briefing.progress = 75
        briefing.articles = [article.to_document() for article in scraped]
        await self._persist(briefing)

        user = await self.users.get(briefing.user_id)
        started = time.monotonic()
        summary = await self.summarizer.summarize(scraped, request.with_profile(user), result.window)
        duration_ms = int((time.monotonic() - started) * 1000)

        briefing.status = BriefingStatus.done
        briefing.status_reason = None
        briefing.error = None
        briefing.summary = summary.model_dump(mode="json")
        briefing.costs = {
            "input_tokens": summary.llm.input_tokens,
            "output_tokens": summary.llm.output_tokens,
            "provider_cost_usd": float(
                estimate_cost(summary.llm.model, summary.llm.input_tokens, summary.llm.output_tokens)
            ),
            "duration_ms": duration_ms,
        }
        briefing.progress = 100
        briefing.completed_at = _now()
        briefing.lease_expires_at = None
        await self.briefings.save(briefing)
        logger.info("Briefing %s done (%d articles)", briefing.id, len(scraped))

    async def _fetch(self, request: BriefingRequest) -> FetchResult:
        if request.mode == BriefingMode.custom_news_query:
            return await self.news.fetch_custom_articles(
                topics=request.topics,
                include_keywords=request.include_keywords,
                exclude_keywords=request.exclude_keywords,
                preferred_sources=request.preferred_sources,
                language=request.language,
                time_range_hours=request.time_range_hours,
                sort_by=request.sort_by,
            )
        return await self.news.fetch_articles(
            request.topics,
            request.interests,
            language=request.language,
            time_range_hours=request.time_range_hours,
            sort_by=request.sort_by,
        )

    async def _persist(self, briefing: Briefing) -> None:
        """Save a non-terminal state and extend the lease."""
        briefing.lease_expires_at = _now() + timedelta(seconds=self.lease_seconds)
        await self.briefings.save(briefing)

