"""News router -- merged article collection and configured sources."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from trendlens.api.dependencies import Aggregator, news_rate_limit
from trendlens.api.schemas import SourceResponse
from trendlens.schemas import Article

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/news", response_model=List[Article], dependencies=[Depends(news_rate_limit)])
async def get_news(aggregator: Aggregator):
    """Merged, deduplicated, newest-first articles (cached for the TTL).

    Source failures only shrink the list; an empty list is a valid answer.
    """
    try:
        return await aggregator.get_articles()
    except Exception as e:
        logger.exception(f"News API error: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch news")


@router.get("/sources", response_model=List[SourceResponse])
async def list_sources(aggregator: Aggregator):
    health = aggregator.fetcher.get_source_health()
    return [
        SourceResponse(
            id=source.id,
            name=source.name,
            rss_url=source.rss_url,
            category=source.category,
            health=health.get(source.id, {}),
        )
        for source in aggregator.sources
    ]
