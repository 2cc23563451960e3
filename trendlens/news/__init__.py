"""
News ingestion and structuring.

Modules:
- classifier: keyword cascade for category, word-count sentiment
- cache: single-slot TTL result cache + single-flight guard
- aggregator (NewsAggregator): concurrent multi-source fetch, dedup, sort
"""

from trendlens.news.aggregator import NewsAggregator, merge_articles
from trendlens.news.cache import ResultCache, SingleFlight
from trendlens.news.classifier import classify, categorize, analyze_sentiment
