"""
TrendLens - Main Entry Point.
FastAPI server and CLI interface.
"""

import argparse
import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import chat, health, news
from .api.rate_limiter import RateLimiter
from .config import Settings, get_settings
from .news.aggregator import NewsAggregator
from .tools.llm_tool import AssistantClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

# Suppress noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("Starting TrendLens API...")
    logger.info(
        f"  {len(app.state.aggregator.sources)} sources, cache TTL {settings.cache_ttl_seconds:g}s, "
        f"mock mode: {app.state.aggregator.mock_mode}"
    )
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set; /api/chat will return a configuration error")
    yield
    logger.info("TrendLens API stopped")


def create_app(
    settings: Optional[Settings] = None,
    aggregator: Optional[NewsAggregator] = None,
    assistant: Optional[AssistantClient] = None,
    news_limiter: Optional[RateLimiter] = None,
    chat_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """Build the app. Shared components live on app.state for the life of the process."""
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="TrendLens",
        description="Technology news aggregation with classification, caching and an article assistant",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    # Explicit None checks: an empty RateLimiter is falsy (it defines __len__)
    if aggregator is None:
        aggregator = NewsAggregator()
    if assistant is None:
        assistant = AssistantClient()
    if news_limiter is None:
        news_limiter = RateLimiter(settings.news_rate_limit, settings.rate_limit_window_seconds, name="news")
    if chat_limiter is None:
        chat_limiter = RateLimiter(settings.chat_rate_limit, settings.rate_limit_window_seconds, name="chat")

    app.state.aggregator = aggregator
    app.state.assistant = assistant
    app.state.news_limiter = news_limiter
    app.state.chat_limiter = chat_limiter

    app.include_router(health.router)
    app.include_router(news.router, prefix="/api")
    app.include_router(chat.router, prefix="/api")
    return app


app = create_app()


# CLI Runner
async def cli_main(args: argparse.Namespace):
    """Run one ingestion and print a summary."""
    aggregator = NewsAggregator(mock_mode=args.mock)
    articles = await aggregator.get_articles()

    print("\n" + "=" * 60)
    print("TRENDLENS - LATEST TECH NEWS")
    print("=" * 60)
    print(f"Articles: {len(articles)} from {len(aggregator.sources)} sources")

    by_category = Counter(a.category for a in articles)
    for category, count in by_category.most_common():
        print(f"  {category:<10} {count}")

    print("\nNewest:")
    for article in articles[:args.limit]:
        print(f"  [{article.category}] {article.title} ({article.source})")

    failed = [sid for sid, h in aggregator.fetcher.get_source_health().items() if h.get("last_error")]
    if failed:
        print(f"\nFailed sources: {', '.join(failed)}")
    print("=" * 60 + "\n")


def main():
    """Entry point for CLI."""
    parser = argparse.ArgumentParser(description="TrendLens tech news aggregator")
    parser.add_argument("--server", action="store_true", help="Start the FastAPI server")
    parser.add_argument("--port", type=int, default=8000, help="Server port (default: 8000)")
    parser.add_argument("--mock", action="store_true", help="Use sample articles (no network)")
    parser.add_argument("--limit", type=int, default=10, help="Headlines to print (default: 10)")
    args = parser.parse_args()

    if args.server:
        import uvicorn
        logger.info(f"Starting server on port {args.port}...")
        uvicorn.run(app, host="0.0.0.0", port=args.port)
    else:
        asyncio.run(cli_main(args))


if __name__ == "__main__":
    main()
