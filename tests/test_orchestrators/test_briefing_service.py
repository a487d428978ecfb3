"""Tests for briefing creation, quota, reads and the stale sweep."""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from newsbrief.core.exceptions import (
    BriefingNotFoundError,
    QuotaExceededError,
    UnauthorizedError,
    UserNotFoundError,
)
from newsbrief.core.llm.clients import LLMCompletion
from newsbrief.core.llm.summarizer import Summarizer
from newsbrief.core.models import BriefingStatus
from newsbrief.core.schemas import GenerateRequest
from newsbrief.orchestrators.briefing import BriefingPipeline, BriefingService, InProcessDispatcher
from newsbrief.orchestrators.briefing.service import next_reset_time
from newsbrief.tools.news_api import FetchResult
from newsbrief.tools.scraper import ArticleScraper


@pytest.fixture
def dispatcher():
    d = MagicMock()
    d.dispatch = AsyncMock()
    return d


@pytest.fixture
def service(user_store, briefing_store, dispatcher, test_settings):
    return BriefingService(user_store, briefing_store, dispatcher, test_settings)


# --- generate ---


async def test_generate_creates_queued_briefing(service, briefing_store, user_store, user, dispatcher):
    response = await service.generate(user.id, GenerateRequest(topics=["technology"]))

    briefing = briefing_store.rows[response.briefing_id]
    assert briefing.status == BriefingStatus.queued
    assert briefing.progress == 0
    assert briefing.queued_at is not None
    assert briefing.user_id == user.id
    assert briefing.request["topics"] == ["technology"]
    assert briefing.request["interests"] == ["startups"]
    assert user.generated_count_today == 1
    dispatcher.dispatch.assert_awaited_once_with(response.briefing_id)


async def test_generate_at_cap_raises_without_creating(service, briefing_store, user, dispatcher):
    user.generated_count_today = user.daily_generate_cap

    with pytest.raises(QuotaExceededError):
        await service.generate(user.id, GenerateRequest())

    assert briefing_store.rows == {}
    assert user.generated_count_today == user.daily_generate_cap
    dispatcher.dispatch.assert_not_awaited()


async def test_generate_resets_expired_quota(service, user):
    user.generated_count_today = 3
    user.quota_reset_at = datetime.now(UTC) - timedelta(minutes=1)

    await service.generate(user.id, GenerateRequest())

    assert user.generated_count_today == 1
    assert user.quota_reset_at > datetime.now(UTC)
    assert user.quota_reset_at.hour == 0 and user.quota_reset_at.minute == 0


async def test_generate_unknown_user(service):
    with pytest.raises(UserNotFoundError):
        await service.generate(uuid.uuid4(), GenerateRequest())


async def test_generate_survives_dispatch_failure(service, briefing_store, user, dispatcher):
    dispatcher.dispatch = AsyncMock(side_effect=ConnectionError("redis down"))

    response = await service.generate(user.id, GenerateRequest())

    assert briefing_store.rows[response.briefing_id].status == BriefingStatus.queued


def test_next_reset_time_is_next_utc_midnight():
    now = datetime(2024, 2, 15, 23, 59, tzinfo=UTC)
    assert next_reset_time(now) == datetime(2024, 2, 16, tzinfo=UTC)


# --- reads ---


async def test_reads_are_idempotent(service, user):
    created = await service.generate(user.id, GenerateRequest())

    first_status = await service.get_status(created.briefing_id, user.id)
    second_status = await service.get_status(created.briefing_id, user.id)
    first = await service.get(created.briefing_id, user.id)
    second = await service.get(created.briefing_id, user.id)

    assert first_status == second_status
    assert first == second
    assert first_status.status == BriefingStatus.queued
    assert first.request.topics == ["technology"]


async def test_reads_check_ownership(service, user):
    created = await service.generate(user.id, GenerateRequest())

    with pytest.raises(UnauthorizedError):
        await service.get_status(created.briefing_id, uuid.uuid4())
    with pytest.raises(UnauthorizedError):
        await service.get(created.briefing_id, uuid.uuid4())


async def test_reads_missing_briefing(service, user):
    with pytest.raises(BriefingNotFoundError):
        await service.get_status(uuid.uuid4(), user.id)
    with pytest.raises(BriefingNotFoundError):
        await service.get(uuid.uuid4(), user.id)


async def test_list_for_user_newest_first(service, briefing_store, user):
    first = await service.generate(user.id, GenerateRequest(topics=["AI"]))
    second = await service.generate(user.id, GenerateRequest(topics=["Economy"]))
    briefing_store.rows[first.briefing_id].created_at -= timedelta(minutes=5)

    listing = await service.list_for_user(user.id)

    assert [item.id for item in listing.items] == [second.briefing_id, first.briefing_id]
    assert listing.items[0].topics == ["Economy"]
    assert (await service.list_for_user(uuid.uuid4())).items == []


# --- stale sweep ---


async def _stranded(briefing_store, user, attempts: int):
    briefing = await briefing_store.create(
        user_id=user.id,
        status=BriefingStatus.fetching,
        request={"topics": ["AI"]},
        articles=[],
        progress=25,
        attempts=attempts,
        queued_at=datetime.now(UTC) - timedelta(minutes=20),
        lease_expires_at=datetime.now(UTC) - timedelta(minutes=1),
    )
    return briefing.id


async def test_reclaim_requeues_below_max_attempts(service, briefing_store, user, dispatcher):
    briefing_id = await _stranded(briefing_store, user, attempts=1)

    requeued = await service.reclaim_stale()

    briefing = briefing_store.rows[briefing_id]
    assert requeued == 1
    assert briefing.status == BriefingStatus.queued
    assert briefing.lease_expires_at is None
    dispatcher.dispatch.assert_awaited_once_with(briefing_id)


async def test_reclaim_times_out_at_max_attempts(service, briefing_store, user, dispatcher):
    briefing_id = await _stranded(briefing_store, user, attempts=2)

    requeued = await service.reclaim_stale()

    briefing = briefing_store.rows[briefing_id]
    assert requeued == 0
    assert briefing.status == BriefingStatus.error
    assert briefing.error["code"] == "timeout"
    assert briefing.progress == 100
    dispatcher.dispatch.assert_not_awaited()


async def test_reclaim_ignores_live_and_finished(service, briefing_store, user, dispatcher):
    created = await service.generate(user.id, GenerateRequest())
    dispatcher.dispatch.reset_mock()
    done_id = await _stranded(briefing_store, user, attempts=1)
    briefing_store.rows[done_id].status = BriefingStatus.done

    assert await service.reclaim_stale() == 0
    assert briefing_store.rows[created.briefing_id].status == BriefingStatus.queued
    dispatcher.dispatch.assert_not_awaited()


async def test_requeued_briefing_is_not_swept_again(service, briefing_store, user, dispatcher):
    briefing_id = await _stranded(briefing_store, user, attempts=1)

    assert await service.reclaim_stale() == 1
    assert await service.reclaim_stale() == 0

    briefing = briefing_store.rows[briefing_id]
    assert briefing.status == BriefingStatus.queued
    assert briefing.queued_at > datetime.now(UTC) - timedelta(minutes=1)
    dispatcher.dispatch.assert_awaited_once_with(briefing_id)


async def test_reclaim_counts_dispatches_nobody_claimed(service, briefing_store, user, dispatcher):
    briefing = await briefing_store.create(
        user_id=user.id,
        status=BriefingStatus.queued,
        request={"topics": ["AI"]},
        articles=[],
        progress=0,
        attempts=0,
        queued_at=datetime.now(UTC) - timedelta(minutes=20),
    )
    rows = briefing_store.rows

    assert await service.reclaim_stale() == 1
    assert rows[briefing.id].attempts == 1
    rows[briefing.id].queued_at = datetime.now(UTC) - timedelta(minutes=20)
    assert await service.reclaim_stale() == 1
    assert rows[briefing.id].attempts == 2
    rows[briefing.id].queued_at = datetime.now(UTC) - timedelta(minutes=20)
    assert await service.reclaim_stale() == 0

    row = rows[briefing.id]
    assert row.status == BriefingStatus.error
    assert row.error["code"] == "timeout"
    assert dispatcher.dispatch.await_count == 2


async def test_reclaim_clears_partial_run_state(service, briefing_store, user):
    briefing_id = await _stranded(briefing_store, user, attempts=1)
    row = briefing_store.rows[briefing_id]
    row.status = BriefingStatus.summarizing
    row.status_reason = "Summarizing 3 articles"
    row.progress = 70
    row.source_window = {"from": "2026-10-17T00:00:00.000Z", "to": "2026-10-18T00:00:00.000Z"}
    row.articles = [{"title": "Old", "url": "https://example.com/old"}]
    row.fetch_started_at = datetime.now(UTC) - timedelta(minutes=19)
    row.summarize_started_at = datetime.now(UTC) - timedelta(minutes=18)
    row.counters = {"candidates": 10, "scraped": 3}
    row.costs = {"usd": 0.01}

    await service.reclaim_stale()

    briefing = briefing_store.rows[briefing_id]
    assert briefing.status == BriefingStatus.queued
    assert briefing.progress == 0
    assert briefing.status_reason is None
    assert briefing.source_window is None
    assert briefing.articles == []
    assert briefing.summary is None
    assert briefing.error is None
    assert briefing.fetch_started_at is None
    assert briefing.summarize_started_at is None
    assert briefing.counters is None
    assert briefing.costs is None
    assert briefing.attempts == 1


# --- end to end ---


async def test_generate_runs_to_done_in_background(
    user_store, briefing_store, user, test_settings, candidate_factory
):
    news = MagicMock()
    news.fetch_articles = AsyncMock(
        return_value=FetchResult(articles=[candidate_factory(i) for i in range(4)])
    )
    scraper = ArticleScraper(delay_s=0)
    scraper.scrape_article = AsyncMock(return_value="Paragraph of reporting. " * 30)
    llm = MagicMock()
    llm.complete = AsyncMock(
        return_value=LLMCompletion(text="Overview.\n\nDetails.", provider="openai", model="gpt-4o-mini")
    )
    pipeline = BriefingPipeline(
        briefing_store, user_store, news, scraper, Summarizer(llm), test_settings
    )
    dispatcher = InProcessDispatcher(pipeline.run, delay_s=0)
    service = BriefingService(user_store, briefing_store, dispatcher, test_settings)

    created = await service.generate(user.id, GenerateRequest(topics=["technology"]))
    assert (await service.get_status(created.briefing_id, user.id)).status == BriefingStatus.queued

    await dispatcher.drain()

    status = await service.get_status(created.briefing_id, user.id)
    assert status.status == BriefingStatus.done
    assert status.progress == 100
    assert briefing_store.history[created.briefing_id] == [
        "queued",
        "fetching",
        "summarizing",
        "done",
    ]

    user.generated_count_today = user.daily_generate_cap
    with pytest.raises(QuotaExceededError):
        await service.generate(user.id, GenerateRequest(topics=["technology"]))
    assert len(briefing_store.rows) == 1
