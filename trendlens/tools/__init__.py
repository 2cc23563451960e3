# Tools module
from .rss_tool import RSSTool, get_sources
from .llm_tool import (
    AssistantClient,
    ConfigurationError,
    ProviderError,
    ProviderAuthError,
    ProviderQuotaError,
    ProviderModelNotFoundError,
    build_system_prompt,
)
from .api_client import TrendLensClient, APIError

__all__ = [
    # Feeds
    "RSSTool",
    "get_sources",
    # Assistant provider
    "AssistantClient",
    "ConfigurationError",
    "ProviderError",
    "ProviderAuthError",
    "ProviderQuotaError",
    "ProviderModelNotFoundError",
    "build_system_prompt",
    # API client
    "TrendLensClient",
    "APIError",
]
