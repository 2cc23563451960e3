"""
RSS Tool for fetching technology news feeds.

Fetches one feed per call and normalizes its entries into RawItems. Errors
never escape `fetch()`: network failures, HTTP errors, malformed feeds and
deadline overruns are all reported through FetchResult.error so the caller
can isolate a broken source.
"""

import asyncio
import html
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import feedparser
import httpx

from ..config import get_settings, NEWS_SOURCES, DEFAULT_ACTIVE_SOURCES
from ..schemas import NewsSource, RawItem, FetchResult

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK_CHARS = 200

_TAG_RE = re.compile(r"<[^>]+>")
_IMG_RE = re.compile(r'<img[^>]+src="([^">]+)"', re.IGNORECASE)


def strip_markup(text: str) -> str:
    """Remove HTML tags and decode entities (&nbsp; &amp; etc.)."""
    if not text:
        return ""
    return html.unescape(_TAG_RE.sub("", text)).strip()


def extract_image_from_content(content: Optional[str]) -> Optional[str]:
    """Best-effort scan for the first <img src="..."> in raw markup."""
    if not content:
        return None
    match = _IMG_RE.search(content)
    return match.group(1) if match else None


def get_sources(source_ids: Optional[List[str]] = None) -> List[NewsSource]:
    """Build NewsSource models for the given (or default active) source ids."""
    source_ids = source_ids or DEFAULT_ACTIVE_SOURCES
    return [NewsSource(**NEWS_SOURCES[sid]) for sid in source_ids if sid in NEWS_SOURCES]


class RSSTool:
    """
    Single-feed fetcher with per-source health tracking.

    A shared httpx.AsyncClient can be injected (one connection pool for the
    whole fan-out, or a MockTransport in tests); otherwise each fetch opens
    its own short-lived client.
    """

    # Browser-like User-Agent to avoid being blocked by some feeds
    _USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_items: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = get_settings()
        self._client = client
        self.max_items = max_items if max_items is not None else self.settings.max_items_per_source
        self.timeout = timeout if timeout is not None else self.settings.fetch_timeout_seconds
        self._source_health: Dict[str, Dict[str, Any]] = {}

    async def fetch(self, source: NewsSource) -> FetchResult:
        """Fetch and parse one source. Never raises for source-level failures."""
        try:
            items = await asyncio.wait_for(self._fetch_feed(source), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = f"Fetch timeout ({self.timeout:g}s)"
            logger.warning(f"[TIMEOUT] {source.name}: {error}, skipping")
            self._record_failure(source, error)
            return FetchResult(source_id=source.id, source_name=source.name, error=error)
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.warning(f"[FAIL] {source.name}: {error}")
            self._record_failure(source, error)
            return FetchResult(source_id=source.id, source_name=source.name, error=error)

        self._source_health[source.id] = {
            "last_success": datetime.now(timezone.utc).isoformat(),
            "consecutive_failures": 0,
            "articles_fetched": len(items),
        }
        logger.info(f"[OK] {source.name}: {len(items)} items")
        return FetchResult(source_id=source.id, source_name=source.name, items=items)

    async def _fetch_feed(self, source: NewsSource) -> List[RawItem]:
        headers = {"User-Agent": self._USER_AGENT}
        if self._client is not None:
            response = await self._client.get(source.rss_url, follow_redirects=True, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
                response = await client.get(source.rss_url, follow_redirects=True, headers=headers)
        response.raise_for_status()

        feed = feedparser.parse(response.text)
        if feed.bozo and not feed.entries:
            raise ValueError(f"Malformed feed: {feed.get('bozo_exception')}")

        items = []
        for entry in feed.entries[:self.max_items]:
            item = self._parse_rss_entry(entry, source)
            if item:
                items.append(item)
        return items

    def _parse_rss_entry(self, entry: Dict, source: NewsSource) -> Optional[RawItem]:
        """Parse an RSS/Atom entry to a RawItem. Entries without title or link are dropped."""
        title = html.unescape((entry.get("title") or "").strip())
        link = (entry.get("link") or "").strip()
        if not title or not link:
            return None

        raw_content = ""
        if entry.get("content"):
            raw_content = entry["content"][0].get("value", "") or ""
        raw_summary = entry.get("summary", "") or entry.get("description", "") or ""

        summary = strip_markup(raw_summary)
        # Body falls back to the stripped summary, before the "..." padding
        content = strip_markup(raw_content) or summary
        if not summary:
            summary = content[:SUMMARY_FALLBACK_CHARS] + "..."

        return RawItem(
            title=title,
            summary=summary,
            content=content,
            link=link,
            source=source.name,
            published_at=self._parse_published(entry),
            image=self._find_image(entry) or extract_image_from_content(raw_content or raw_summary),
        )

    @staticmethod
    def _parse_published(entry: Dict) -> datetime:
        parsed = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed:
            try:
                return datetime(*parsed[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                pass
        return datetime.now(timezone.utc)

    @staticmethod
    def _find_image(entry: Dict) -> Optional[str]:
        """Image from an explicit enclosure or media element."""
        for enclosure in entry.get("enclosures", []) or []:
            href = enclosure.get("href") or enclosure.get("url")
            media_type = enclosure.get("type", "")
            if href and (not media_type or media_type.startswith("image/")):
                return href
        for key in ("media_content", "media_thumbnail"):
            for media in entry.get(key, []) or []:
                if media.get("url"):
                    return media["url"]
        return None

    def _record_failure(self, source: NewsSource, error: str) -> None:
        health = self._source_health.get(source.id, {"consecutive_failures": 0})
        health["consecutive_failures"] = health.get("consecutive_failures", 0) + 1
        health["last_error"] = error
        self._source_health[source.id] = health

    def get_source_health(self) -> Dict[str, Dict]:
        """Get health status of all sources fetched so far."""
        return self._source_health

    def get_mock_items(self) -> List[RawItem]:
        """Return sample items for mock mode (no network)."""
        now = datetime.now(timezone.utc)
        mock_news = [
            {
                "title": "Fortify discloses breach impacting 2.1M developer accounts",
                "summary": "Compromised OAuth tokens enabled repo cloning; company rotates keys and launches investigation.",
                "link": "https://example.com/fortify-breach",
                "source": "SecOps Daily",
                "hours_ago": 5,
            },
            {
                "title": "AI startup raises $120M Series B funding round",
                "summary": "AuroraAI secures major funding to expand its autonomous agents platform across enterprise workflows.",
                "link": "https://example.com/ai-startup-funding",
                "source": "TechBeat",
                "hours_ago": 1,
            },
            {
                "title": "Cloud giant reports intermittent service disruptions",
                "summary": "Engineers point to a network control plane regression; customers report elevated error rates.",
                "link": "https://example.com/cloud-outage",
                "source": "CloudWatch",
                "hours_ago": 2,
            },
            {
                "title": "DevTools 13 ships smarter code completion",
                "summary": "Latest release includes intelligent autocomplete, refactoring suggestions, and performance optimizations.",
                "link": "https://example.com/devtools-release",
                "source": "DevLog",
                "hours_ago": 3,
            },
            {
                "title": "Mobile chipmaker unveils 3nm processor architecture",
                "summary": "New silicon promises 40% better performance per watt for flagship smartphones.",
                "link": "https://example.com/mobile-chip",
                "source": "MobileWire",
                "hours_ago": 6,
            },
            {
                "title": "Game studio adopts generative tools for asset creation",
                "summary": "Major gaming company speeds up texture and model generation.",
                "link": "https://example.com/game-assets",
                "source": "GamePulse",
                "hours_ago": 7,
            },
        ]
        logger.info(f"[RSS] Returning {len(mock_news)} mock news items")
        return [
            RawItem(
                title=item["title"],
                summary=item["summary"],
                content=item["summary"],
                link=item["link"],
                source=item["source"],
                published_at=now - timedelta(hours=item["hours_ago"]),
            )
            for item in mock_news
        ]
