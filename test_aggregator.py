"""Tests for the ingestion coordinator: isolation, dedup, ordering, caching, single-flight."""

import asyncio
import hashlib
from unittest.mock import patch

import pytest

from conftest import FakeFetcher, make_item
from trendlens.news.aggregator import NewsAggregator, generate_article_id, merge_articles
from trendlens.news.cache import ResultCache, SingleFlight
from trendlens.tools.rss_tool import RSSTool


def _aggregator(sources, fetcher, clock=None, ttl=300.0, **kwargs):
    cache = ResultCache(ttl_seconds=ttl, clock=clock) if clock else ResultCache(ttl_seconds=ttl)
    return NewsAggregator(sources=sources, fetcher=fetcher, cache=cache, **kwargs)


class TestMergeArticles:

    def test_dedup_last_write_wins(self):
        articles = merge_articles([
            make_item("https://x.example.com/1", "First title"),
            make_item("https://x.example.com/1", "Second title"),
        ])
        assert len(articles) == 1
        assert articles[0].title == "Second title"

    def test_sorted_newest_first(self):
        articles = merge_articles([
            make_item("https://x.example.com/old", "Old", hours_ago=10),
            make_item("https://x.example.com/new", "New", hours_ago=1),
            make_item("https://x.example.com/mid", "Mid", hours_ago=5),
        ])
        assert [a.title for a in articles] == ["New", "Mid", "Old"]

    def test_items_are_classified(self):
        (article,) = merge_articles([make_item("https://x.example.com/1", "AI launches")])
        assert article.category == "ai"
        assert article.sentiment == "positive"

    def test_empty(self):
        assert merge_articles([]) == []


class TestArticleId:

    def test_format(self):
        article_id = generate_article_id("Hacker News", "https://x.example.com/1", "Title")
        source_part, digest, millis, suffix = article_id.split("-")
        assert source_part == "HackerNews"
        assert len(digest) == 10
        assert millis.isdigit()
        assert len(suffix) == 6

    def test_millis_and_digest(self):
        with patch("trendlens.news.aggregator.time.time", return_value=1723492800.5):
            article_id = generate_article_id("S", "https://x.example.com/1", "Title")
        digest = hashlib.md5(b"https://x.example.com/1Title").hexdigest()[:10]
        assert article_id.startswith(f"S-{digest}-1723492800500-")

    def test_unique_per_call(self):
        ids = {generate_article_id("S", "https://x.example.com/1", "T") for _ in range(50)}
        assert len(ids) == 50


class TestNewsAggregator:

    def test_failing_source_is_isolated(self, sources, clock):
        fetcher = FakeFetcher({
            "a": [make_item("https://x.example.com/ai", "AI launches")],
            "b": "HTTP 500",
        })
        articles = asyncio.run(_aggregator(sources, fetcher, clock).get_articles())

        assert len(articles) == 1
        assert articles[0].category == "ai"
        assert articles[0].link == "https://x.example.com/ai"

    def test_fetcher_exception_is_isolated(self, sources, clock):
        fetcher = FakeFetcher({
            "a": RuntimeError("parser bug"),
            "b": [make_item("https://x.example.com/b", "Ransomware gang hits hospital network", source="Source B")],
        })
        articles = asyncio.run(_aggregator(sources, fetcher, clock).get_articles())
        assert [a.source for a in articles] == ["Source B"]

    def test_duplicate_across_sources_later_source_wins(self, sources, clock):
        fetcher = FakeFetcher({
            "a": [make_item("https://x.example.com/same", "From A")],
            "b": [make_item("https://x.example.com/same", "From B", source="Source B")],
        })
        articles = asyncio.run(_aggregator(sources, fetcher, clock).get_articles())
        assert len(articles) == 1
        assert articles[0].title == "From B"

    def test_all_sources_failing_returns_empty(self, sources, clock):
        fetcher = FakeFetcher({"a": "timeout", "b": "HTTP 404"})
        assert asyncio.run(_aggregator(sources, fetcher, clock).get_articles()) == []

    def test_slow_success_is_waited_for(self, sources, clock):
        class SlowA(FakeFetcher):
            async def fetch(self, source):
                if source.id == "a":
                    await asyncio.sleep(0.05)
                return await super().fetch(source)

        fetcher = SlowA({"a": [make_item("https://x.example.com/slow", "Slow one")], "b": "boom"})
        articles = asyncio.run(_aggregator(sources, fetcher, clock).get_articles())
        assert [a.title for a in articles] == ["Slow one"]

    def test_cache_hit_skips_fetch(self, sources, clock):
        fetcher = FakeFetcher({"a": [make_item("https://x.example.com/1", "One")]})
        aggregator = _aggregator(sources, fetcher, clock)

        async def go():
            first = await aggregator.get_articles()
            clock.advance(299)
            second = await aggregator.get_articles()
            return first, second

        first, second = asyncio.run(go())
        assert second == first
        assert fetcher.calls == ["a", "b"]
        assert aggregator.runs == 1

    def test_expired_cache_refetches(self, sources, clock):
        fetcher = FakeFetcher({"a": [make_item("https://x.example.com/1", "One")]})
        aggregator = _aggregator(sources, fetcher, clock)

        async def go():
            await aggregator.get_articles()
            clock.advance(300)
            await aggregator.get_articles()

        asyncio.run(go())
        assert fetcher.calls == ["a", "b", "a", "b"]
        assert aggregator.runs == 2

    def test_concurrent_misses_share_one_fanout(self, sources, clock):
        fetcher = FakeFetcher({"a": [make_item("https://x.example.com/1", "One")]}, delay=0.05)
        aggregator = _aggregator(sources, fetcher, clock)

        async def go():
            return await asyncio.gather(*[aggregator.get_articles() for _ in range(5)])

        results = asyncio.run(go())
        assert aggregator.runs == 1
        assert sorted(fetcher.calls) == ["a", "b"]
        assert all(r is results[0] for r in results)
        assert not aggregator.ingest_in_progress

    def test_refresh_ignores_fresh_cache(self, sources, clock):
        fetcher = FakeFetcher({"a": [make_item("https://x.example.com/1", "One")]})
        aggregator = _aggregator(sources, fetcher, clock)

        async def go():
            await aggregator.get_articles()
            await aggregator.refresh()

        asyncio.run(go())
        assert aggregator.runs == 2

    def test_mock_mode_skips_network(self, sources, clock):
        fetcher = RSSTool()
        aggregator = _aggregator(sources, fetcher, clock, mock_mode=True)
        articles = asyncio.run(aggregator.get_articles())
        assert len(articles) == 6
        assert fetcher.get_source_health() == {}

    def test_sorted_across_sources(self, sources, clock):
        fetcher = FakeFetcher({
            "a": [make_item("https://x.example.com/a", "A older", hours_ago=5)],
            "b": [make_item("https://x.example.com/b", "B newer", hours_ago=1, source="Source B")],
        })
        articles = asyncio.run(_aggregator(sources, fetcher, clock).get_articles())
        assert [a.title for a in articles] == ["B newer", "A older"]
        assert articles[0].published_at > articles[1].published_at


class TestResultCache:

    def test_empty_cache(self, clock):
        cache = ResultCache(ttl_seconds=10, clock=clock)
        assert cache.get() is None
        assert not cache.is_valid()
        assert cache.age() is None

    def test_ttl_boundary(self, clock):
        cache = ResultCache(ttl_seconds=10, clock=clock)
        cache.set([])
        clock.advance(9)
        assert cache.get() == []
        clock.advance(1)
        assert cache.get() is None

    def test_caller_mutation_does_not_reach_cache(self, clock):
        cache = ResultCache(ttl_seconds=10, clock=clock)
        articles = merge_articles([make_item("https://x.example.com/1", "One")])
        cache.set(articles)

        articles.clear()
        served = cache.get()
        served.append(served[0])

        assert len(cache.get()) == 1

    def test_clear(self, clock):
        cache = ResultCache(ttl_seconds=10, clock=clock)
        cache.set([])
        cache.clear()
        assert not cache.is_valid()


class TestSingleFlight:

    def test_failure_propagates_to_all_waiters_and_clears(self):
        flight = SingleFlight()
        calls = []

        async def failing():
            calls.append(1)
            await asyncio.sleep(0.01)
            raise RuntimeError("upstream broke")

        async def go():
            results = await asyncio.gather(
                flight.do("k", failing), flight.do("k", failing), return_exceptions=True
            )
            await asyncio.sleep(0)
            return results

        results = asyncio.run(go())
        assert len(calls) == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert not flight.in_flight("k")

    def test_cancelled_waiter_does_not_cancel_run(self):
        flight = SingleFlight()

        async def work():
            await asyncio.sleep(0.05)
            return "done"

        async def go():
            waiter = asyncio.ensure_future(flight.do("k", work))
            await asyncio.sleep(0.01)
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter
            return await flight.do("k", work)

        assert asyncio.run(go()) == "done"
