"""
Configuration management for TrendLens.
Feed sources, cache/rate-limit tuning and the assistant provider key.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Assistant provider (OpenAI-compatible chat completions)
    # Missing key is a fatal configuration error for the chat endpoint only.
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    assistant_max_tokens: int = Field(default=500, alias="ASSISTANT_MAX_TOKENS")
    assistant_temperature: float = Field(default=0.7, alias="ASSISTANT_TEMPERATURE")
    assistant_timeout_seconds: float = Field(default=60.0, alias="ASSISTANT_TIMEOUT_SECONDS")

    # ── Ingestion ──
    # Merged collection is served from memory for this long before a new fan-out
    cache_ttl_seconds: float = Field(default=300.0, alias="CACHE_TTL_SECONDS")
    # Deadline per source fetch task; a slow source counts as a failed source
    fetch_timeout_seconds: float = Field(default=15.0, alias="FETCH_TIMEOUT_SECONDS")
    # httpx transport timeout (connect/read) for a single feed request
    http_timeout_seconds: float = Field(default=12.0, alias="HTTP_TIMEOUT_SECONDS")
    max_items_per_source: int = Field(default=10, gt=0, alias="MAX_ITEMS_PER_SOURCE")

    # ── Rate limiting (requests per window, per client key) ──
    news_rate_limit: int = Field(default=60, alias="NEWS_RATE_LIMIT")
    chat_rate_limit: int = Field(default=20, alias="CHAT_RATE_LIMIT")
    rate_limit_window_seconds: float = Field(default=60.0, gt=0, alias="RATE_LIMIT_WINDOW_SECONDS")

    # ── Client-side store ──
    auto_refresh_seconds: float = Field(default=120.0, alias="AUTO_REFRESH_SECONDS")
    articles_per_page: int = Field(default=12, gt=0, alias="ARTICLES_PER_PAGE")
    recent_articles_for_chat: int = Field(default=20, gt=0, alias="RECENT_ARTICLES_FOR_CHAT")
    saved_articles_path: str = Field(default="./data/saved_articles.json", alias="SAVED_ARTICLES_PATH")
    api_base_url: str = Field(default="http://localhost:8000", alias="API_BASE_URL")

    mock_mode: bool = Field(default=False, alias="MOCK_MODE")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def get_assistant_config(self) -> dict:
        """Provider settings passed to the assistant client."""
        return {
            "api_key": self.openai_api_key,
            "model": self.openai_model,
            "base_url": self.openai_base_url,
            "max_tokens": self.assistant_max_tokens,
            "temperature": self.assistant_temperature,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Technology news feeds. "category" is the source's default category hint;
# article categories are always assigned by the keyword classifier.
NEWS_SOURCES = {
    "techcrunch": {
        "id": "techcrunch",
        "name": "TechCrunch",
        "rss_url": "https://techcrunch.com/feed/",
        "category": "startup",
    },
    "the_verge": {
        "id": "the_verge",
        "name": "The Verge",
        "rss_url": "https://www.theverge.com/rss/index.xml",
        "category": "all",
    },
    "hacker_news": {
        "id": "hacker_news",
        "name": "Hacker News",
        "rss_url": "https://feeds.feedburner.com/hacker-news-feed-50",
        "category": "all",
    },
    "ars_technica": {
        "id": "ars_technica",
        "name": "Ars Technica",
        "rss_url": "https://feeds.arstechnica.com/arstechnica/index",
        "category": "all",
    },
    "wired": {
        "id": "wired",
        "name": "Wired",
        "rss_url": "https://www.wired.com/feed/rss",
        "category": "all",
    },
    "krebs_on_security": {
        "id": "krebs_on_security",
        "name": "Krebs on Security",
        "rss_url": "https://krebsonsecurity.com/feed/",
        "category": "security",
    },
    "devops_com": {
        "id": "devops_com",
        "name": "DevOps.com",
        "rss_url": "https://devops.com/feed/",
        "category": "devtools",
    },
    "venturebeat": {
        "id": "venturebeat",
        "name": "VentureBeat",
        "rss_url": "https://feeds.feedburner.com/venturebeat/SZYF",
        "category": "startup",
    },
    "zdnet": {
        "id": "zdnet",
        "name": "ZDNet",
        "rss_url": "https://www.zdnet.com/news/rss.xml",
        "category": "all",
    },
    "techradar": {
        "id": "techradar",
        "name": "TechRadar",
        "rss_url": "https://www.techradar.com/rss",
        "category": "all",
    },
}

# Default sources to use (all configured feeds)
DEFAULT_ACTIVE_SOURCES = list(NEWS_SOURCES.keys())

# Key under which saved article ids are persisted in the key-value store
SAVED_ARTICLES_KEY = "trendlens-saved-articles"
