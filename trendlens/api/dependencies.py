"""FastAPI dependency injection -- Depends() patterns using components stored on app.state."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from trendlens.api.rate_limiter import RateLimiter
from trendlens.config import Settings
from trendlens.news.aggregator import NewsAggregator
from trendlens.tools.llm_tool import AssistantClient


def get_client_key(request: Request) -> str:
    """Rate-limit key: forwarded client IP when behind a proxy, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_aggregator(request: Request) -> NewsAggregator:
    return request.app.state.aggregator


def get_assistant(request: Request) -> AssistantClient:
    return request.app.state.assistant


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _enforce(limiter: RateLimiter, key: str, detail: str) -> None:
    if not limiter.admit(key):
        raise HTTPException(status_code=429, detail=detail)


def news_rate_limit(request: Request) -> None:
    _enforce(
        request.app.state.news_limiter,
        get_client_key(request),
        "Rate limit exceeded. Please try again later.",
    )


def chat_rate_limit(request: Request) -> None:
    _enforce(
        request.app.state.chat_limiter,
        get_client_key(request),
        "Rate limit exceeded. Please slow down.",
    )


# Type aliases for cleaner route signatures
Aggregator = Annotated[NewsAggregator, Depends(get_aggregator)]
Assistant = Annotated[AssistantClient, Depends(get_assistant)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
