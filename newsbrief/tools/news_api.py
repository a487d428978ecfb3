"""NewsAPI client: query building, source resolution, windowed search.

Provider failures never leave this module. Every fetch degrades to an empty
``FetchResult`` so the briefing pipeline can report "no articles" instead of
crashing.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx

from newsbrief.core.exceptions import NewsProviderError
from newsbrief.core.schemas import CandidateArticle, SourceWindow
from newsbrief.tools.news_sources import CATEGORY_KEYWORDS, CATEGORY_SOURCES, MAX_SOURCES

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 40

_CUTOFF_PATTERN = re.compile(r"as far back as (\d{4}-\d{2}-\d{2})")
_WORD = re.compile(r"[a-z]+")


@dataclass
class FetchResult:
    articles: list[CandidateArticle] = field(default_factory=list)
    window: SourceWindow | None = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds, e.g. ``2024-01-11T00:00:00.000Z``."""
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _quote_topic(topic: str) -> str:
    return f'"{topic}"' if " " in topic else topic


def build_query(
    topics: list[str] | None = None,
    include_keywords: list[str] | None = None,
    exclude_keywords: list[str] | None = None,
) -> str:
    """Compose a NewsAPI boolean query. Never returns an empty string."""
    topics = [t.strip() for t in topics or [] if t and t.strip()]
    include = [k.strip() for k in include_keywords or [] if k and k.strip()]
    exclude = [k.strip() for k in exclude_keywords or [] if k and k.strip()]

    clauses = []
    if topics:
        clauses.append("(" + " OR ".join(_quote_topic(t) for t in topics) + ")")
    if include:
        clauses.append("(" + " OR ".join(f'"{k}"' for k in include) + ")")

    query = " AND ".join(clauses) if clauses else "news"
    for keyword in exclude:
        query += f' -"{keyword}"'
    return query


def topic_category(topic: str) -> str:
    """Map a free-form topic to a provider category; unmapped topics are general."""
    text = topic.lower()
    words = set(_WORD.findall(text))
    for category, fragments in CATEGORY_KEYWORDS:
        for fragment in fragments:
            # Short fragments ("ai", "tv") must match a whole word
            if len(fragment) <= 3:
                if fragment in words:
                    return category
            elif fragment in text:
                return category
    return "general"


def resolve_source_ids(topics: list[str] | None) -> list[str]:
    """Union of curated source ids for the topics' categories, general always included."""
    categories = ["general"]
    for topic in topics or []:
        category = topic_category(topic)
        if category not in categories:
            categories.append(category)

    seen: dict[str, None] = {}
    for category in categories:
        for source_id in CATEGORY_SOURCES.get(category, []):
            seen.setdefault(source_id, None)
    return list(seen)[:MAX_SOURCES]


def extract_cutoff(message: str) -> datetime | None:
    """Parse the provider's historical-access cutoff date out of an error message."""
    match = _CUTOFF_PATTERN.search(message or "")
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), "%Y-%m-%d").replace(tzinfo=UTC)
    except ValueError:
        return None


def adjusted_window(cutoff: datetime, now: datetime) -> SourceWindow:
    """Start one day after the cutoff, but never later than one day ago."""
    start = min(cutoff + timedelta(days=1), now - timedelta(days=1))
    return SourceWindow(from_=start, to=now)


def _parse_published(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def filter_articles(raw: list[dict]) -> list[CandidateArticle]:
    """Drop removed, untitled or thin candidates and de-duplicate by url."""
    articles: list[CandidateArticle] = []
    seen_urls: set[str] = set()
    for item in raw:
        title = (item.get("title") or "").strip()
        url = (item.get("url") or "").strip()
        description = (item.get("description") or "").strip()
        if not title or not url or title == "[Removed]":
            continue
        if len(description) < MIN_DESCRIPTION_LENGTH:
            continue
        if url in seen_urls:
            continue
        seen_urls.add(url)
        articles.append(
            CandidateArticle(
                title=title,
                description=description,
                url=url,
                source=(item.get("source") or {}).get("name") or "Unknown",
                published_at=_parse_published(item.get("publishedAt")),
                image_url=item.get("urlToImage"),
            )
        )
    return articles


class NewsApiClient:
    """Async client for NewsAPI ``/everything``."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://newsapi.org/v2",
        timeout: float = 10.0,
        page_size: int = 20,
        client: httpx.AsyncClient | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self.page_size = page_size
        self._client = client
        self._now = now

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"X-Api-Key": self._api_key},
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Public fetches
    # ------------------------------------------------------------------
    async def fetch_articles(
        self,
        topics: list[str],
        interests: list[str],
        *,
        language: str = "en",
        time_range_hours: int = 24,
        sort_by: str = "publishedAt",
    ) -> FetchResult:
        """Daily mode: topics and interests OR-joined, any source."""
        terms = [*(topics or []), *(interests or [])]
        params = {
            "q": build_query(terms),
            "language": language,
            "sortBy": str(getattr(sort_by, "value", sort_by)),
            "pageSize": self.page_size,
        }
        return await self._search(params, time_range_hours)

    async def fetch_custom_articles(
        self,
        *,
        topics: list[str] | None = None,
        include_keywords: list[str] | None = None,
        exclude_keywords: list[str] | None = None,
        preferred_sources: list[str] | None = None,
        language: str = "en",
        time_range_hours: int = 24,
        sort_by: str = "publishedAt",
    ) -> FetchResult:
        """Custom mode: keyword query restricted to preferred or topic-derived sources."""
        sources = [s for s in preferred_sources or [] if s] or resolve_source_ids(topics)
        params = {
            "q": build_query(topics, include_keywords, exclude_keywords),
            "sources": ",".join(sources[:MAX_SOURCES]),
            "language": language,
            "sortBy": str(getattr(sort_by, "value", sort_by)),
            "pageSize": self.page_size,
        }
        return await self._search(params, time_range_hours)

    # ------------------------------------------------------------------
    # Windowed search with one cutoff retry
    # ------------------------------------------------------------------
    async def _search(self, params: dict, time_range_hours: int) -> FetchResult:
        now = self._now()
        window = SourceWindow(from_=now - timedelta(hours=time_range_hours), to=now)
        try:
            raw = await self._request(params, window)
            return FetchResult(articles=filter_articles(raw), window=window)
        except NewsProviderError as e:
            cutoff = extract_cutoff(e.message)
            if cutoff is None:
                logger.warning("News API request failed: %s", e.message)
                return FetchResult()
            window = adjusted_window(cutoff, self._now())
            logger.info(
                "News API limits history to %s, retrying from %s",
                cutoff.date(),
                format_timestamp(window.from_),
            )

        try:
            raw = await self._request(params, window)
        except NewsProviderError as e:
            logger.warning("News API retry failed: %s", e.message)
            return FetchResult()
        return FetchResult(articles=filter_articles(raw), window=window)

    async def _request(self, params: dict, window: SourceWindow) -> list[dict]:
        client = await self._get_client()
        query = {
            **params,
            "from": format_timestamp(window.from_),
            "to": format_timestamp(window.to),
        }
        try:
            resp = await client.get(f"{self._base_url}/everything", params=query)
        except httpx.HTTPError as e:
            raise NewsProviderError(f"News API unreachable: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {"message": resp.text}
        if not isinstance(data, dict):
            data = {"message": str(data)}

        if resp.status_code >= 400 or data.get("status") == "error":
            raise NewsProviderError(
                data.get("message") or resp.text or f"HTTP {resp.status_code}",
                provider_code=data.get("code"),
                status_code=resp.status_code,
            )
        return data.get("articles") or []
