"""Health check router -- cache, limiter and source status, config summary."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from trendlens import __version__
from trendlens.api.dependencies import Aggregator, AppSettings

router = APIRouter()


@router.get("/")
async def root():
    return {"service": "TrendLens API", "version": __version__}


@router.get("/health")
async def health(request: Request, aggregator: Aggregator, settings: AppSettings):
    cache_age = aggregator.cache.age()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "cache": {
            "valid": aggregator.cache.is_valid(),
            "age_seconds": round(cache_age, 1) if cache_age is not None else None,
            "ingest_in_progress": aggregator.ingest_in_progress,
            "ingestion_runs": aggregator.runs,
        },
        "rate_limiter": {
            "news_tracked_keys": len(request.app.state.news_limiter),
            "chat_tracked_keys": len(request.app.state.chat_limiter),
        },
        "sources": aggregator.fetcher.get_source_health(),
        "config": {
            "mock_mode": aggregator.mock_mode,
            "source_count": len(aggregator.sources),
            "cache_ttl_seconds": settings.cache_ttl_seconds,
            "fetch_timeout_seconds": settings.fetch_timeout_seconds,
            "news_rate_limit": settings.news_rate_limit,
            "chat_rate_limit": settings.chat_rate_limit,
            "assistant_configured": bool(settings.openai_api_key),
            "assistant_model": settings.openai_model,
        },
    }
