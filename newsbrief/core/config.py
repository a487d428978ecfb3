from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str

    @property
    def async_database_url(self) -> str:
        """Return database URL with asyncpg driver for SQLAlchemy async."""
        url = self.database_url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        return url

    # Redis (taskiq broker)
    redis_url: str = "redis://localhost:6379/0"

    # News search provider (NewsAPI)
    news_api_key: str = ""
    news_api_base_url: str = "https://newsapi.org/v2"
    news_api_timeout_s: float = 10.0
    news_page_size: int = 20

    # LLM API Keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    google_ai_api_key: str = ""

    # Summarization
    summary_model: str = "gpt-4o-mini"
    summary_max_tokens: int = 600
    summary_temperature: float = 0.3
    llm_timeout_s: float = 60.0

    # Article scraping
    scraper_timeout_s: float = 10.0
    scraper_delay_s: float = 1.0

    # Briefing pipeline
    briefing_target_articles: int = 3
    briefing_start_delay_s: float = 1.0
    briefing_lease_seconds: int = 300
    briefing_max_attempts: int = 2
    briefing_dispatch: str = "inprocess"  # "inprocess" or "taskiq"

    # Langfuse
    langfuse_secret_key: str = ""
    langfuse_public_key: str = ""
    langfuse_host: str = "http://localhost:3000"

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]


settings = Settings()
