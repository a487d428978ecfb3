import enum


class BriefingStatus(str, enum.Enum):
    queued = "queued"
    fetching = "fetching"
    summarizing = "summarizing"
    done = "done"
    error = "error"


ACTIVE_STATUSES = (BriefingStatus.queued, BriefingStatus.fetching, BriefingStatus.summarizing)


class BriefingMode(str, enum.Enum):
    daily = "daily"
    custom_news_query = "custom_news_query"


class SummaryFormat(str, enum.Enum):
    narrative = "narrative"
    bullet_points = "bullet_points"


class SortOrder(str, enum.Enum):
    published_at = "publishedAt"
    relevancy = "relevancy"
    popularity = "popularity"


class BriefingErrorCode(str, enum.Enum):
    no_articles = "no_articles"
    no_content = "no_content"
    timeout = "timeout"
    internal = "internal"
