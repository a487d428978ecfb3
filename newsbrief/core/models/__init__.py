from newsbrief.core.models.base import Base
from newsbrief.core.models.briefing import Briefing
from newsbrief.core.models.enums import (
    ACTIVE_STATUSES,
    BriefingErrorCode,
    BriefingMode,
    BriefingStatus,
    SortOrder,
    SummaryFormat,
)
from newsbrief.core.models.user import User

__all__ = [
    "ACTIVE_STATUSES",
    "Base",
    "Briefing",
    "BriefingErrorCode",
    "BriefingMode",
    "BriefingStatus",
    "SortOrder",
    "SummaryFormat",
    "User",
]
