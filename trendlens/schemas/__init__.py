"""
Schemas package: data models for TrendLens.

  - base.py: Category, Sentiment, TimeFilter enums and display names
  - news.py: NewsSource, RawItem, FetchResult, Article
"""

from trendlens.schemas.base import (
    Category, Sentiment, TimeFilter, CATEGORY_DISPLAY_NAMES,
)
from trendlens.schemas.news import NewsSource, RawItem, FetchResult, Article

__all__ = [
    # base
    "Category", "Sentiment", "TimeFilter", "CATEGORY_DISPLAY_NAMES",
    # news
    "NewsSource", "RawItem", "FetchResult", "Article",
]
