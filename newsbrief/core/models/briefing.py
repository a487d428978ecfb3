import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from newsbrief.core.models.base import Base, TimestampMixin
from newsbrief.core.models.enums import BriefingStatus


class Briefing(Base, TimestampMixin):
    """One user-requested briefing and everything the pipeline produced for it.

    ``request`` is written once at creation. The JSONB document fields
    (``articles``, ``summary``, ``error``, ...) are always replaced whole.
    """

    __tablename__ = "briefings"
    __table_args__ = (
        Index("ix_briefings_user_created", "user_id", "created_at"),
        Index("ix_briefings_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"))
    status: Mapped[BriefingStatus] = mapped_column(
        ENUM(BriefingStatus, name="briefing_status", create_type=False),
        default=BriefingStatus.queued,
    )
    status_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    request: Mapped[dict[str, Any]] = mapped_column(JSONB)
    source_window: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    articles: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, default=list)
    summary: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    error: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    progress: Mapped[int] = mapped_column(Integer, default=0)
    queued_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    fetch_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    summarize_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    counters: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    costs: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    # Worker claim
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    lease_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
