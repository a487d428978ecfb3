"""Wire briefing components from settings."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newsbrief.core.config import Settings
from newsbrief.core.llm.clients import LLMClients
from newsbrief.core.llm.summarizer import Summarizer
from newsbrief.core.stores import BriefingStore, UserStore
from newsbrief.orchestrators.briefing.dispatch import InProcessDispatcher, TaskiqDispatcher
from newsbrief.orchestrators.briefing.pipeline import BriefingPipeline
from newsbrief.orchestrators.briefing.service import BriefingService
from newsbrief.tools.news_api import NewsApiClient
from newsbrief.tools.scraper import ArticleScraper


def build_pipeline(
    settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> BriefingPipeline:
    return BriefingPipeline(
        briefings=BriefingStore(session_factory),
        users=UserStore(session_factory),
        news=NewsApiClient(
            settings.news_api_key,
            base_url=settings.news_api_base_url,
            timeout=settings.news_api_timeout_s,
            page_size=settings.news_page_size,
        ),
        scraper=ArticleScraper(
            timeout=settings.scraper_timeout_s,
            delay_s=settings.scraper_delay_s,
        ),
        summarizer=Summarizer(
            LLMClients.from_settings(settings),
            model=settings.summary_model,
            max_tokens=settings.summary_max_tokens,
            temperature=settings.summary_temperature,
        ),
        settings=settings,
    )


def build_briefing_service(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    pipeline: BriefingPipeline | None = None,
) -> BriefingService:
    """Service with the dispatcher named by ``settings.briefing_dispatch``."""
    if settings.briefing_dispatch == "taskiq":
        dispatcher = TaskiqDispatcher()
    else:
        pipeline = pipeline or build_pipeline(settings, session_factory)
        dispatcher = InProcessDispatcher(pipeline.run, delay_s=settings.briefing_start_delay_s)
    return BriefingService(
        users=UserStore(session_factory),
        briefings=BriefingStore(session_factory),
        dispatcher=dispatcher,
        settings=settings,
    )
