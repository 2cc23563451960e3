"""
Ingestion coordinator: cache check → concurrent fan-out → classify → dedup → sort.

FLOW (get_articles):
  1. Fresh cache entry → returned unchanged, no network.
  2. Miss → one fan-out task per source, all started together. Every task
     settles (success or error) before merging; a failing source contributes
     zero items and never aborts the others.
  3. Each item is classified and given a display id.
  4. Dedup by canonical link, last write wins.
  5. Newest first.
  6. The single cache slot is replaced with the new collection.

Concurrent misses share one fan-out through SingleFlight. All sources
failing is not an error: the result is an empty collection.
"""

import asyncio
import hashlib
import logging
import random
import re
import string
import time
from typing import Iterable, List, Optional

from trendlens.config import get_settings
from trendlens.news.cache import ResultCache, SingleFlight
from trendlens.news.classifier import classify
from trendlens.schemas.news import Article, FetchResult, NewsSource, RawItem
from trendlens.tools.rss_tool import RSSTool, get_sources

logger = logging.getLogger(__name__)

CACHE_KEY = "articles"

_ID_CHARS = string.ascii_lowercase + string.digits


def generate_article_id(source_name: str, link: str, title: str) -> str:
    """Display id: source, hash of link+title, epoch millis, random suffix.

    Unique per fetch, not stable across fetches; never used for dedup.
    """
    source_part = re.sub(r"[^a-zA-Z0-9]", "", source_name)
    digest = hashlib.md5(f"{link}{title}".encode("utf-8")).hexdigest()[:10]
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_ID_CHARS, k=6))
    return f"{source_part}-{digest}-{millis}-{suffix}"


def build_article(item: RawItem) -> Article:
    category, sentiment = classify(item.title, item.summary)
    return Article(
        id=generate_article_id(item.source, item.link, item.title),
        title=item.title,
        summary=item.summary,
        content=item.content,
        link=item.link,
        source=item.source,
        published_at=item.published_at,
        category=category,
        sentiment=sentiment,
        image=item.image,
    )


def merge_articles(items: Iterable[RawItem]) -> List[Article]:
    """Classify, dedup by link (last write wins) and sort newest first."""
    by_link = {}
    total = 0
    for item in items:
        total += 1
        by_link[item.link] = build_article(item)

    articles = list(by_link.values())
    articles.sort(key=lambda a: a.published_at, reverse=True)
    logger.info(f"Deduplication: {total} -> {len(articles)} articles")
    return articles


class NewsAggregator:
    """
    Owns the result cache and the single-flight guard.

    Constructed once per process (FastAPI lifespan) and passed by reference
    to request handlers.
    """

    def __init__(
        self,
        sources: Optional[List[NewsSource]] = None,
        fetcher: Optional[RSSTool] = None,
        cache: Optional[ResultCache] = None,
        mock_mode: bool = False,
    ):
        self.settings = get_settings()
        self.sources = sources if sources is not None else get_sources()
        self.fetcher = fetcher if fetcher is not None else RSSTool()
        self.cache = cache if cache is not None else ResultCache(ttl_seconds=self.settings.cache_ttl_seconds)
        self.mock_mode = mock_mode or self.settings.mock_mode
        self._flight = SingleFlight()
        self.runs = 0

    async def get_articles(self) -> List[Article]:
        """Return the merged collection, from cache when fresh."""
        cached = self.cache.get()
        if cached is not None:
            return cached
        return await self._flight.do(CACHE_KEY, self._ingest)

    async def refresh(self) -> List[Article]:
        """Force a new ingestion run regardless of cache age."""
        return await self._flight.do(CACHE_KEY, self._ingest)

    @property
    def ingest_in_progress(self) -> bool:
        return self._flight.in_flight(CACHE_KEY)

    async def _ingest(self) -> List[Article]:
        self.runs += 1
        start = time.monotonic()

        if self.mock_mode:
            items = self.fetcher.get_mock_items()
            failed = 0
        else:
            results = await self._fetch_all()
            items = [item for result in results for item in result.items]
            failed = sum(1 for result in results if not result.ok)

        articles = merge_articles(items)
        self.cache.set(articles)

        elapsed = time.monotonic() - start
        logger.info(
            f"[RSS] Fetched {len(articles)} unique articles from {len(self.sources)} sources "
            f"({failed} failed) in {elapsed:.1f}s"
        )
        if self.sources and failed == len(self.sources):
            logger.warning("[RSS] All sources failed; serving an empty collection")
        return articles

    async def _fetch_all(self) -> List[FetchResult]:
        tasks = [self.fetcher.fetch(source) for source in self.sources]
        settled = await asyncio.gather(*tasks, return_exceptions=True)

        results: List[FetchResult] = []
        for source, result in zip(self.sources, settled):
            if isinstance(result, BaseException):
                # fetch() reports its own errors; this only catches bugs in it
                logger.warning(f"Source fetch failed: {source.name}: {result}")
                results.append(FetchResult(source_id=source.id, source_name=source.name, error=str(result)))
            else:
                results.append(result)
        return results
