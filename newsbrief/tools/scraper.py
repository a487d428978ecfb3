"""Full-text article scraping with ordered selector fallback."""

import asyncio
import logging
import re
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup

from newsbrief.core.schemas import CandidateArticle, ScrapedArticle

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

CONTENT_SELECTORS = [
    "article",
    '[role="article"]',
    ".article-content",
    ".post-content",
    ".entry-content",
    ".content",
    "main article",
    ".article-body",
    "#article-content",
]
NOISE_SELECTOR = "script, style, nav, header, footer, aside, .ad, .advertisement"
PARAGRAPH_SELECTOR = "main p, article p, .content p, #content p"
MIN_PARAGRAPH_LENGTH = 50

_HORIZONTAL_WS = re.compile(r"[ \t\r\f\v\xa0]+")
_BLANK_RUNS = re.compile(r"\n{3,}")


def normalize_whitespace(text: str) -> str:
    """Collapse horizontal runs, strip lines, keep at most one blank line in a row."""
    text = _HORIZONTAL_WS.sub(" ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    return _BLANK_RUNS.sub("\n\n", text).strip()


def _text_of(element) -> str:
    """Element text as one line with every whitespace run collapsed."""
    return " ".join(element.get_text(" ").split())


def extract_content(html: str, min_length: int = 500) -> str:
    """Pull the main article text out of an HTML page."""
    soup = BeautifulSoup(html, "html.parser")

    content = ""
    for selector in CONTENT_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        for element in elements:
            for tag in element.select(NOISE_SELECTOR):
                tag.decompose()
        content = "\n\n".join(text for text in map(_text_of, elements) if text)
        if len(content) > min_length:
            break

    if len(content) < min_length:
        paragraphs = [_text_of(p) for p in soup.select(PARAGRAPH_SELECTOR)]
        joined = "\n\n".join(p for p in paragraphs if len(p) > MIN_PARAGRAPH_LENGTH)
        if len(joined) > len(content):
            content = joined

    return normalize_whitespace(content)


@dataclass
class ScrapeStats:
    attempted: int = 0
    failed: int = 0


class ArticleScraper:
    """Fetches pages one at a time and keeps the ones with enough text."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        delay_s: float = 1.0,
        min_content_length: int = 500,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self.delay_s = delay_s
        self.min_content_length = min_content_length
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def scrape_article(self, url: str) -> str:
        """Return extracted article text, or an empty string on any failure."""
        try:
            client = await self._get_client()
            resp = await client.get(url, headers={"User-Agent": USER_AGENT})
            resp.raise_for_status()
            return await asyncio.to_thread(
                extract_content, resp.text, self.min_content_length
            )
        except Exception as e:
            logger.info("Failed to scrape %s: %s", url, e)
            return ""

    async def scrape_until(
        self,
        candidates: list[CandidateArticle],
        target: int = 3,
        stats: ScrapeStats | None = None,
    ) -> list[ScrapedArticle]:
        """Scrape candidates in order until ``target`` have sufficient content."""
        stats = stats if stats is not None else ScrapeStats()
        scraped: list[ScrapedArticle] = []

        for candidate in candidates:
            if len(scraped) >= target:
                break
            if stats.attempted and self.delay_s > 0:
                await asyncio.sleep(self.delay_s)

            stats.attempted += 1
            content = await self.scrape_article(candidate.url)
            if len(content) < self.min_content_length:
                stats.failed += 1
                logger.debug("Insufficient content (%d chars) at %s", len(content), candidate.url)
                continue
            scraped.append(ScrapedArticle(**candidate.model_dump(), content=content))

        logger.info(
            "Scraped %d/%d articles (%d attempts, %d failed)",
            len(scraped),
            target,
            stats.attempted,
            stats.failed,
        )
        return scraped
