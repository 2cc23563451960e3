"""
Client-side news store: filter state, derived views and saved articles.

The store keeps a read-only copy of the latest article collection plus the
user's FilterState. Every mutation recomputes the derived views
synchronously (no suspension points):

  filtered_articles   category AND topic AND search AND time window
  trending_articles   first 6 of the category-scoped collection only
  current_page_articles  filtered[: current_page * page_size]  ("load more")
  has_more_articles   current_page < ceil(len(filtered) / page_size)

Changing category, topic, search text or time filter resets to page 1.

Trending topics are a random sample of vocabulary keywords present in the
collection. The sample is intentionally non-deterministic.
"""

import asyncio
import logging
import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Union

from trendlens.config import get_settings, SAVED_ARTICLES_KEY
from trendlens.schemas.base import Category, CATEGORY_DISPLAY_NAMES, Sentiment, TimeFilter
from trendlens.schemas.news import Article
from trendlens.store.kv_store import JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)

TRENDING_ARTICLE_COUNT = 6
TRENDING_TOPIC_COUNT = 5

# Common tech keywords to track
TRENDING_KEYWORDS = [
    "ai", "artificial intelligence", "machine learning", "ml",
    "startup", "funding", "investment", "series",
    "cloud", "aws", "azure", "kubernetes",
    "security", "breach", "hack", "cyber",
    "mobile", "ios", "android", "app",
    "crypto", "bitcoin", "blockchain", "web3",
    "devtools", "api", "framework", "open source",
    "gaming", "vr", "ar", "metaverse", "platform",
    "agents", "automation", "data", "analytics",
]

FALLBACK_TOPICS = [
    "ai", "startup", "cloud", "security", "mobile",
    "platform", "agents", "devtools", "crypto", "data",
]

ArticleFetcher = Callable[[], Awaitable[List[Article]]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass
class FilterState:
    selected_category: str = Category.ALL.value
    selected_topic: Optional[str] = None
    search_query: str = ""
    time_filter: TimeFilter = TimeFilter.ALL_TIME
    saved_articles: List[str] = field(default_factory=list)
    current_page: int = 1
    articles_per_page: int = 12
    show_saved_view: bool = False
    is_auto_refresh_enabled: bool = False


def extract_trending_topics(
    articles: List[Article],
    rng: Optional[random.Random] = None,
    count: int = TRENDING_TOPIC_COUNT,
) -> List[str]:
    """Random sample of vocabulary keywords that appear in the collection."""
    topics: Dict[str, int] = {}
    for article in articles:
        text = f"{article.title} {article.summary}".lower()
        for keyword in TRENDING_KEYWORDS:
            if keyword in text:
                topics[keyword] = topics.get(keyword, 0) + 1

    available = [topic for topic, hits in topics.items() if hits > 0] or list(FALLBACK_TOPICS)
    rng = rng or random
    return rng.sample(available, min(count, len(available)))


class NewsStore:
    """
    Query engine over the latest article collection.

    Usage:
        store = NewsStore(fetcher=aggregator.get_articles)
        await store.fetch_news()
        store.set_selected_category("ai")
        store.set_search_query("fund")
        page = store.current_page_articles
    """

    def __init__(
        self,
        fetcher: Optional[ArticleFetcher] = None,
        kv_store: Optional[KeyValueStore] = None,
        articles_per_page: Optional[int] = None,
        refresh_interval: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
        rng: Optional[random.Random] = None,
    ):
        settings = get_settings()
        if articles_per_page is None:
            articles_per_page = settings.articles_per_page
        if articles_per_page < 1:
            raise ValueError(f"articles_per_page must be positive, got {articles_per_page}")
        self._fetcher = fetcher
        self._kv = kv_store if kv_store is not None else JsonFileStore(settings.saved_articles_path)
        self._clock = clock
        self._rng = rng or random.Random()
        self.refresh_interval = refresh_interval if refresh_interval is not None else settings.auto_refresh_seconds

        self.filters = FilterState(
            articles_per_page=articles_per_page,
            saved_articles=list(self._kv.get(SAVED_ARTICLES_KEY, []) or []),
        )

        self.articles: List[Article] = []
        self.filtered_articles: List[Article] = []
        self.trending_articles: List[Article] = []
        self.trending_topics: List[str] = []
        self.has_more_articles = False
        self.selected_article: Optional[Article] = None
        self.loading = False

        self._refresh_task: Optional[asyncio.Task] = None
        self._inflight_fetch: Optional[asyncio.Task] = None

    # ── Collection ──

    def set_articles(self, articles: List[Article]) -> None:
        self.articles = list(articles)
        self.filter_articles()
        self.trending_topics = extract_trending_topics(self.articles, self._rng)

    async def fetch_news(self) -> List[Article]:
        """Pull a fresh collection from the fetcher. Failures keep the current one."""
        if self._fetcher is None:
            raise RuntimeError("NewsStore has no fetcher configured")

        self.loading = True
        try:
            articles = await self._fetcher()
        except Exception as e:
            logger.warning(f"Failed to fetch news: {e}")
            return self.articles
        finally:
            self.loading = False

        self.set_articles(articles)
        return self.articles

    # ── Filter mutators ──

    def set_selected_category(self, category: Union[Category, str]) -> None:
        self.filters.selected_category = Category(category).value
        self.filters.selected_topic = None
        self.reset_pagination()
        self.filter_articles()

    def set_selected_topic(self, topic: Optional[str]) -> None:
        self.filters.selected_topic = topic or None
        self.reset_pagination()
        self.filter_articles()

    def set_search_query(self, query: str) -> None:
        self.filters.search_query = query or ""
        self.reset_pagination()
        self.filter_articles()

    def set_time_filter(self, time_filter: Union[TimeFilter, str]) -> None:
        self.filters.time_filter = TimeFilter(time_filter)
        self.reset_pagination()
        self.filter_articles()

    def set_selected_article(self, article: Optional[Article]) -> None:
        self.selected_article = article

    def set_show_saved_view(self, show: bool) -> None:
        self.filters.show_saved_view = show
        self.selected_article = None
        if not show:
            self.filter_articles()

    # ── Derived views ──

    def filter_articles(self) -> None:
        f = self.filters

        scoped = self.articles
        if f.selected_category != Category.ALL.value:
            scoped = [a for a in scoped if a.category == f.selected_category]

        filtered = scoped

        if f.selected_topic:
            topic = f.selected_topic.lower()
            filtered = [
                a for a in filtered
                if topic in a.title.lower() or topic in a.summary.lower()
            ]

        if f.search_query:
            query = f.search_query.lower()
            filtered = [
                a for a in filtered
                if query in a.title.lower()
                or query in a.summary.lower()
                or query in a.source.lower()
            ]

        window = f.time_filter.window
        if window is not None:
            now = self._clock()
            filtered = [a for a in filtered if now - _as_utc(a.published_at) < window]

        self.filtered_articles = filtered
        self.trending_articles = scoped[:TRENDING_ARTICLE_COUNT]
        total_pages = math.ceil(len(filtered) / f.articles_per_page)
        self.has_more_articles = f.current_page < total_pages

    @property
    def current_page_articles(self) -> List[Article]:
        return self.filtered_articles[: self.filters.current_page * self.filters.articles_per_page]

    def load_more_articles(self) -> None:
        if self.has_more_articles:
            self.filters.current_page += 1
            self.filter_articles()

    def reset_pagination(self) -> None:
        self.filters.current_page = 1

    # ── Saved articles ──

    def toggle_saved_article(self, article_id: str) -> None:
        saved = self.filters.saved_articles
        if article_id in saved:
            saved = [sid for sid in saved if sid != article_id]
        else:
            saved = saved + [article_id]
        self._kv.set(SAVED_ARTICLES_KEY, saved)
        self.filters.saved_articles = saved

    def is_saved(self, article_id: str) -> bool:
        return article_id in self.filters.saved_articles

    def get_saved_articles(self) -> List[Article]:
        saved = set(self.filters.saved_articles)
        return [a for a in self.articles if a.id in saved]

    def clear_saved_articles(self) -> None:
        self._kv.delete(SAVED_ARTICLES_KEY)
        self.filters.saved_articles = []

    # ── Analytics ──

    @staticmethod
    def get_category_display_name(category: str) -> str:
        return CATEGORY_DISPLAY_NAMES.get(category, "Tech")

    def get_category_stats(self) -> List[Dict]:
        return [
            {"name": c.value, "count": sum(1 for a in self.articles if a.category == c.value)}
            for c in Category if c is not Category.ALL
        ]

    def get_sentiment_distribution(self) -> List[Dict]:
        total = len(self.articles)
        if not total:
            return []
        counts: Dict[str, int] = {}
        for article in self.articles:
            counts[article.sentiment] = counts.get(article.sentiment, 0) + 1
        return [
            {"sentiment": Sentiment(s).value, "count": n, "percentage": round(n / total * 100)}
            for s, n in counts.items()
        ]

    def topic_article_count(self, topic: str) -> int:
        topic = topic.lower()
        return sum(
            1 for a in self.articles
            if topic in a.title.lower() or topic in a.summary.lower()
        )

    # ── Auto-refresh ──

    @property
    def is_auto_refresh_enabled(self) -> bool:
        return self.filters.is_auto_refresh_enabled

    def start_auto_refresh(self) -> None:
        """Start the periodic refresh timer. Must be called from a running event loop."""
        if self._refresh_task is not None:
            return  # Already running
        self.filters.is_auto_refresh_enabled = True
        self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_loop())
        logger.info(f"Auto-refresh started (every {self.refresh_interval:g}s)")

    def stop_auto_refresh(self) -> None:
        """Cancel the timer. A fetch already in flight is left to finish."""
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None
            logger.info("Auto-refresh stopped")
        self.filters.is_auto_refresh_enabled = False

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_interval)
            self._inflight_fetch = asyncio.ensure_future(self.fetch_news())
            # Cancelling the loop must not cancel the fetch it started
            await asyncio.shield(self._inflight_fetch)
