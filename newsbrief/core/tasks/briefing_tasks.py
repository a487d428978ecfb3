"""Briefing worker tasks: run one continuation, sweep stranded briefings."""

import logging
import uuid

from newsbrief.core.config import settings
from newsbrief.core.db import async_session
from newsbrief.core.tasks.broker import broker
from newsbrief.orchestrators.briefing.factory import build_briefing_service, build_pipeline

logger = logging.getLogger(__name__)


@broker.task
async def run_briefing(briefing_id: str) -> None:
    """Drive one briefing to a terminal state."""
    pipeline = build_pipeline(settings, async_session)
    try:
        await pipeline.run(uuid.UUID(briefing_id))
    finally:
        await pipeline.news.close()
        await pipeline.scraper.close()


@broker.task(schedule=[{"cron": "*/5 * * * *"}])
async def reclaim_stale_briefings() -> None:
    """Requeue briefings whose worker died mid-run."""
    service = build_briefing_service(settings, async_session)
    requeued = await service.reclaim_stale()
    logger.info("Stale sweep requeued %d briefings", requeued)
