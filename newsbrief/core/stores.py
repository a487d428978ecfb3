"""Persistence for users and briefings over async SQLAlchemy sessions."""

import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newsbrief.core.models import ACTIVE_STATUSES, Briefing, User

# Columns written back by ``BriefingStore.save``. ``request`` and ``user_id``
# are fixed at creation.
_BRIEFING_MUTABLE_FIELDS = (
    "status",
    "status_reason",
    "source_window",
    "articles",
    "summary",
    "error",
    "progress",
    "queued_at",
    "fetch_started_at",
    "summarize_started_at",
    "completed_at",
    "counters",
    "costs",
    "attempts",
    "lease_expires_at",
)


class UserStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, user_id: uuid.UUID) -> User | None:
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def reset_quota(self, user_id: uuid.UUID, reset_at: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(User)
                .where(User.id == user_id)
                .values(generated_count_today=0, quota_reset_at=reset_at)
            )
            await session.commit()

    async def increment_generated(self, user_id: uuid.UUID) -> None:
        """Atomic ``generated_count_today += 1``."""
        async with self._session_factory() as session:
            await session.execute(
                update(User)
                .where(User.id == user_id)
                .values(generated_count_today=User.generated_count_today + 1)
            )
            await session.commit()


class BriefingStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, **fields) -> Briefing:
        briefing = Briefing(id=fields.pop("id", None) or uuid.uuid4(), **fields)
        async with self._session_factory() as session:
            session.add(briefing)
            await session.commit()
            await session.refresh(briefing)
        return briefing

    async def get(self, briefing_id: uuid.UUID) -> Briefing | None:
        async with self._session_factory() as session:
            return await session.get(Briefing, briefing_id)

    async def save(self, briefing: Briefing) -> None:
        """Write the briefing's current state back by id. No version check."""
        values = {name: getattr(briefing, name) for name in _BRIEFING_MUTABLE_FIELDS}
        async with self._session_factory() as session:
            await session.execute(
                update(Briefing).where(Briefing.id == briefing.id).values(**values)
            )
            await session.commit()

    async def claim(self, briefing_id: uuid.UUID, lease_seconds: int) -> Briefing | None:
        """Take the lease on a non-terminal briefing nobody else holds.

        Returns the claimed row with ``attempts`` incremented, or None when the
        briefing is missing, terminal, or leased by a live worker.
        """
        now = datetime.now(UTC)
        async with self._session_factory() as session:
            result = await session.execute(
                update(Briefing)
                .where(
                    Briefing.id == briefing_id,
                    Briefing.status.in_(ACTIVE_STATUSES),
                    or_(Briefing.lease_expires_at.is_(None), Briefing.lease_expires_at < now),
                )
                .values(
                    lease_expires_at=now + timedelta(seconds=lease_seconds),
                    attempts=Briefing.attempts + 1,
                )
                .returning(Briefing)
            )
            briefing = result.scalar_one_or_none()
            await session.commit()
        return briefing

    async def find_stale(self, lease_seconds: int, limit: int = 100) -> list[Briefing]:
        """Non-terminal briefings whose lease ran out, or that were never claimed."""
        now = datetime.now(UTC)
        never_claimed_before = now - timedelta(seconds=lease_seconds)
        async with self._session_factory() as session:
            result = await session.execute(
                select(Briefing)
                .where(
                    Briefing.status.in_(ACTIVE_STATUSES),
                    or_(
                        Briefing.lease_expires_at < now,
                        and_(
                            Briefing.lease_expires_at.is_(None),
                            Briefing.queued_at < never_claimed_before,
                        ),
                    ),
                )
                .order_by(Briefing.queued_at)
                .limit(limit)
            )
            return list(result.scalars().all())

    async def list_for_user(
        self, user_id: uuid.UUID, limit: int = 20, offset: int = 0
    ) -> list[Briefing]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Briefing)
                .where(Briefing.user_id == user_id)
                .order_by(Briefing.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().all())
