from newsbrief.core.schemas.article import CandidateArticle, ScrapedArticle, SourceWindow
from newsbrief.core.schemas.briefing import (
    BriefingError,
    BriefingListItem,
    BriefingListResponse,
    BriefingRequest,
    BriefingResponse,
    BriefingStatusResponse,
    BriefingSummary,
    Citation,
    GenerateRequest,
    GenerateResponse,
    LLMMetadata,
    SummarySection,
)

__all__ = [
    "BriefingError",
    "BriefingListItem",
    "BriefingListResponse",
    "BriefingRequest",
    "BriefingResponse",
    "BriefingStatusResponse",
    "BriefingSummary",
    "CandidateArticle",
    "Citation",
    "GenerateRequest",
    "GenerateResponse",
    "LLMMetadata",
    "ScrapedArticle",
    "SourceWindow",
    "SummarySection",
]
