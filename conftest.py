"""Shared fixtures: fake clocks, sources, a scripted feed fetcher."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

import pytest

from trendlens.schemas import FetchResult, NewsSource, RawItem

NOW = datetime(2025, 8, 12, 20, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic-style clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """
    Scripted stand-in for RSSTool.

    `script` maps source id → list of RawItems, an error string, or an
    Exception instance (raised from fetch, simulating a bug in the fetcher).
    """

    def __init__(self, script: Dict[str, Union[List[RawItem], str, Exception]], delay: float = 0.0):
        self.script = script
        self.delay = delay
        self.calls: List[str] = []

    async def fetch(self, source: NewsSource) -> FetchResult:
        self.calls.append(source.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.script.get(source.id, [])
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, str):
            return FetchResult(source_id=source.id, source_name=source.name, error=outcome)
        return FetchResult(source_id=source.id, source_name=source.name, items=outcome)

    def get_source_health(self) -> Dict:
        return {}

    def get_mock_items(self) -> List[RawItem]:
        return []


def make_item(link: str, title: str, source: str = "Source A", hours_ago: float = 1.0,
              summary: str = "", published_at: Optional[datetime] = None) -> RawItem:
    return RawItem(
        title=title,
        summary=summary,
        content=summary,
        link=link,
        source=source,
        published_at=published_at or NOW - timedelta(hours=hours_ago),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sources():
    return [
        NewsSource(id="a", name="Source A", rss_url="https://a.example.com/rss", category="all"),
        NewsSource(id="b", name="Source B", rss_url="https://b.example.com/rss", category="security"),
    ]


@pytest.fixture
def fake_fetcher():
    """Factory: fake_fetcher({"a": [...], "b": "error"}, delay=0.0)."""
    return FakeFetcher


@pytest.fixture
def item():
    """Factory for RawItems."""
    return make_item
