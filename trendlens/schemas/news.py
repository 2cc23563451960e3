"""
News article and source data models.

Hierarchy: NewsSource → RawItem (fetched, normalized) → Article (classified,
deduplicated, served to clients).
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field

from .base import Category, Sentiment


class NewsSource(BaseModel):
    """Feed source configuration. Defined at startup, never mutated."""
    id: str
    name: str
    rss_url: str
    category: Category = Category.ALL  # default category hint

    class Config:
        frozen = True
        use_enum_values = True


class RawItem(BaseModel):
    """A feed entry after parsing and markup stripping, before classification."""
    title: str
    summary: str = ""
    content: str = ""
    link: str
    source: str
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    image: Optional[str] = None


class FetchResult(BaseModel):
    """
    Outcome of fetching one source.

    Failures are carried in `error` rather than raised, so the caller decides
    how a broken source is handled.
    """
    source_id: str
    source_name: str
    items: List[RawItem] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Article(BaseModel):
    """
    Classified article served to clients.

    `link` is the canonical link and the only deduplication key; `id` is a
    display key and differs across re-fetches of the same story.
    """
    id: str
    title: str
    summary: str
    content: str = ""
    link: str
    source: str
    published_at: datetime
    category: Category = Category.ALL
    sentiment: Sentiment = Sentiment.NEUTRAL
    image: Optional[str] = None

    class Config:
        frozen = True
        use_enum_values = True
