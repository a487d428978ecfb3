import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from newsbrief.core.models.enums import BriefingMode, BriefingStatus, SortOrder, SummaryFormat

Language = Literal[
    "ar", "de", "en", "es", "fr", "he", "it", "nl", "no", "pt", "ru", "sv", "ud", "zh"
]


class GenerateRequest(BaseModel):
    """Optional overrides; anything left unset falls back to saved preferences."""

    mode: BriefingMode = BriefingMode.daily
    topics: list[str] | None = None
    interests: list[str] | None = None
    job_industry: str | None = None
    demographic: str | None = None
    include_keywords: list[str] | None = None
    exclude_keywords: list[str] | None = None
    preferred_sources: list[str] | None = Field(default=None, max_length=20)
    language: Language | None = None
    time_range_hours: int | None = Field(default=None, ge=1, le=720)
    sort_by: SortOrder | None = None
    summary_tone: str | None = None
    format: SummaryFormat | None = None


class BriefingRequest(BaseModel):
    """Resolved parameters of one briefing run. Never changes after creation."""

    model_config = ConfigDict(frozen=True)

    mode: BriefingMode = BriefingMode.daily
    topics: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    job_industry: str | None = None
    demographic: str | None = None
    include_keywords: list[str] = Field(default_factory=list)
    exclude_keywords: list[str] = Field(default_factory=list)
    preferred_sources: list[str] = Field(default_factory=list)
    language: str = "en"
    time_range_hours: int = 24
    sort_by: SortOrder = SortOrder.published_at
    summary_tone: str = "neutral"
    format: SummaryFormat = SummaryFormat.narrative

    @classmethod
    def resolve(cls, overrides: GenerateRequest, user: Any) -> "BriefingRequest":
        """Merge request overrides over the user's saved preferences."""

        def pick(value, fallback):
            return value if value is not None else fallback

        values: dict[str, Any] = {
            "mode": overrides.mode,
            "topics": pick(overrides.topics, list(user.topics or [])),
            "interests": pick(overrides.interests, list(user.interests or [])),
            "job_industry": pick(overrides.job_industry, user.job_industry),
            "demographic": pick(overrides.demographic, user.demographic),
        }
        for name in (
            "include_keywords",
            "exclude_keywords",
            "preferred_sources",
            "language",
            "time_range_hours",
            "sort_by",
            "summary_tone",
            "format",
        ):
            value = getattr(overrides, name)
            if value is not None:
                values[name] = value
        return cls(**values)

    def with_profile(self, user: Any | None) -> "BriefingRequest":
        """Fill profile gaps from a freshly loaded user without overriding the snapshot."""
        if user is None:
            return self
        update: dict[str, Any] = {}
        if not self.topics and user.topics:
            update["topics"] = list(user.topics)
        if not self.interests and user.interests:
            update["interests"] = list(user.interests)
        if not self.job_industry and user.job_industry:
            update["job_industry"] = user.job_industry
        if not self.demographic and user.demographic:
            update["demographic"] = user.demographic
        return self.model_copy(update=update) if update else self


class SummarySection(BaseModel):
    category: str
    text: str


class LLMMetadata(BaseModel):
    provider: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class Citation(BaseModel):
    title: str | None = None
    url: str | None = None
    source: str | None = None
    published_at: datetime | None = None


class BriefingSummary(BaseModel):
    sections: list[SummarySection]
    generated_at: datetime
    llm: LLMMetadata
    citations: list[Citation] = Field(default_factory=list)


class BriefingError(BaseModel):
    message: str
    code: str | None = None


# --- Responses ---


class GenerateResponse(BaseModel):
    briefing_id: uuid.UUID


class BriefingStatusResponse(BaseModel):
    id: uuid.UUID
    status: BriefingStatus
    status_reason: str | None = None
    progress: int = 0
    queued_at: datetime | None = None
    fetch_started_at: datetime | None = None
    summarize_started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BriefingArticle(BaseModel):
    title: str | None = None
    url: str | None = None
    source: str | None = None
    published_at: datetime | None = None
    description: str | None = None
    content: str | None = None
    fetch_status: str | None = None


class BriefingResponse(BriefingStatusResponse):
    user_id: uuid.UUID
    request: BriefingRequest
    source_window: dict[str, Any] | None = None
    articles: list[BriefingArticle] = Field(default_factory=list)
    summary: BriefingSummary | None = None
    error: BriefingError | None = None


class BriefingListItem(BaseModel):
    id: uuid.UUID
    status: BriefingStatus
    topics: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    completed_at: datetime | None = None


class BriefingListResponse(BaseModel):
    items: list[BriefingListItem]
    limit: int
    offset: int
