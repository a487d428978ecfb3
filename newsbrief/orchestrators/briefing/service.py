"""Synchronous entry points for briefing generation and reads."""

import logging
import uuid
from datetime import UTC, datetime, time, timedelta
from typing import Protocol

from newsbrief.core.config import Settings
from newsbrief.core.exceptions import (
    BriefingNotFoundError,
    QuotaExceededError,
    UnauthorizedError,
    UserNotFoundError,
)
from newsbrief.core.models import Briefing, BriefingErrorCode, BriefingStatus, User
from newsbrief.core.schemas import (
    BriefingListItem,
    BriefingListResponse,
    BriefingRequest,
    BriefingResponse,
    BriefingStatusResponse,
    GenerateRequest,
    GenerateResponse,
)
from newsbrief.core.stores import BriefingStore, UserStore
from newsbrief.orchestrators.briefing.pipeline import TIMEOUT_MESSAGE, mark_error

logger = logging.getLogger(__name__)


def reset_for_retry(briefing: Briefing) -> None:
    """Put a stranded briefing back in the queue with no partial run state."""
    briefing.status = BriefingStatus.queued
    briefing.status_reason = None
    briefing.progress = 0
    briefing.queued_at = datetime.now(UTC)
    briefing.source_window = None
    briefing.articles = []
    briefing.summary = None
    briefing.error = None
    briefing.fetch_started_at = None
    briefing.summarize_started_at = None
    briefing.completed_at = None
    briefing.counters = None
    briefing.costs = None
    briefing.lease_expires_at = None


class Dispatcher(Protocol):
    async def dispatch(self, briefing_id: uuid.UUID) -> None: ...


def next_reset_time(now: datetime) -> datetime:
    """Next UTC midnight after ``now``."""
    tomorrow = (now + timedelta(days=1)).date()
    return datetime.combine(tomorrow, time.min, tzinfo=UTC)


class BriefingService:
    def __init__(
        self,
        users: UserStore,
        briefings: BriefingStore,
        dispatcher: Dispatcher,
        settings: Settings,
    ):
        self.users = users
        self.briefings = briefings
        self.dispatcher = dispatcher
        self.lease_seconds = settings.briefing_lease_seconds
        self.max_attempts = settings.briefing_max_attempts

    async def generate(self, user_id: uuid.UUID, overrides: GenerateRequest) -> GenerateResponse:
        """Create a queued briefing and schedule its continuation. Returns immediately."""
        user = await self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")

        generated = await self._current_count(user)
        if generated >= user.daily_generate_cap:
            raise QuotaExceededError(
                f"Daily briefing limit of {user.daily_generate_cap} reached"
            )

        request = BriefingRequest.resolve(overrides, user)
        briefing = await self.briefings.create(
            user_id=user.id,
            status=BriefingStatus.queued,
            request=request.model_dump(mode="json"),
            articles=[],
            progress=0,
            attempts=0,
            queued_at=datetime.now(UTC),
        )
        await self.users.increment_generated(user.id)
        logger.info("Briefing %s queued for user %s (mode=%s)", briefing.id, user.id, request.mode.value)

        try:
            await self.dispatcher.dispatch(briefing.id)
        except Exception:
            # Left queued; the stale sweep redispatches it.
            logger.exception("Dispatch failed for briefing %s", briefing.id)

        return GenerateResponse(briefing_id=briefing.id)

    async def _current_count(self, user: User) -> int:
        """Lazily roll the daily counter over once the reset time has passed."""
        now = datetime.now(UTC)
        if user.quota_reset_at is None or now >= user.quota_reset_at:
            reset_at = next_reset_time(now)
            await self.users.reset_quota(user.id, reset_at)
            user.generated_count_today = 0
            user.quota_reset_at = reset_at
        return user.generated_count_today or 0

    async def _owned(self, briefing_id: uuid.UUID, user_id: uuid.UUID) -> Briefing:
        briefing = await self.briefings.get(briefing_id)
        if briefing is None:
            raise BriefingNotFoundError(f"Briefing {briefing_id} not found")
        if briefing.user_id != user_id:
            raise UnauthorizedError("Not allowed to access this briefing")
        return briefing

    async def get_status(self, briefing_id: uuid.UUID, user_id: uuid.UUID) -> BriefingStatusResponse:
        briefing = await self._owned(briefing_id, user_id)
        return BriefingStatusResponse.model_validate(briefing, from_attributes=True)

    async def get(self, briefing_id: uuid.UUID, user_id: uuid.UUID) -> BriefingResponse:
        briefing = await self._owned(briefing_id, user_id)
        return BriefingResponse.model_validate(briefing, from_attributes=True)

    async def list_for_user(
        self, user_id: uuid.UUID, limit: int = 20, offset: int = 0
    ) -> BriefingListResponse:
        rows = await self.briefings.list_for_user(user_id, limit=limit, offset=offset)
        items = [
            BriefingListItem(
                id=b.id,
                status=b.status,
                topics=(b.request or {}).get("topics") or [],
                created_at=b.created_at,
                completed_at=b.completed_at,
            )
            for b in rows
        ]
        return BriefingListResponse(items=items, limit=limit, offset=offset)

    async def reclaim_stale(self) -> int:
        """Requeue briefings stranded by a dead worker; give up after max attempts.

        Returns the number of briefings redispatched.
        """
        stale = await self.briefings.find_stale(self.lease_seconds)
        requeued = 0
        for briefing in stale:
            if briefing.attempts >= self.max_attempts:
                logger.warning(
                    "Briefing %s timed out after %d attempts", briefing.id, briefing.attempts
                )
                mark_error(briefing, TIMEOUT_MESSAGE, BriefingErrorCode.timeout)
                await self.briefings.save(briefing)
                continue

            # Claim counts attempts; a dispatch nobody picked up counts here.
            if briefing.lease_expires_at is None:
                briefing.attempts += 1
            reset_for_retry(briefing)
            await self.briefings.save(briefing)
            await self.dispatcher.dispatch(briefing.id)
            requeued += 1

        if stale:
            logger.info("Reclaimed %d stale briefings (%d requeued)", len(stale), requeued)
        return requeued
