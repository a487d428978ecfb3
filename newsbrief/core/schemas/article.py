from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CandidateArticle(BaseModel):
    """Search result from the news provider, not yet scraped."""

    title: str
    description: str = ""
    url: str
    source: str = "Unknown"
    published_at: datetime | None = None
    image_url: str | None = None


class ScrapedArticle(CandidateArticle):
    """Candidate whose body text was extracted above the content threshold."""

    content: str

    def to_document(self) -> dict:
        """Shape stored in ``Briefing.articles``."""
        return {
            "title": self.title,
            "url": self.url,
            "source": self.source,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "description": self.description,
            "content": self.content,
            "fetch_status": "ok",
        }


class SourceWindow(BaseModel):
    """Historical window actually sent to the news provider."""

    model_config = ConfigDict(populate_by_name=True)

    from_: datetime = Field(alias="from")
    to: datetime
