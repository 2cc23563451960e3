"""
Assistant tool: system-prompt construction and the text-generation provider call.

The provider is any OpenAI-compatible chat-completions endpoint. The prompt is
built deterministically from the current article (if any) and a numbered list
of recent articles (if any); prior conversation turns are forwarded verbatim.

Errors:
  ConfigurationError          no API key configured (fatal, no fallback)
  ProviderAuthError           provider returned 401
  ProviderQuotaError          provider returned 429
  ProviderModelNotFoundError  provider returned 404
  ProviderError               anything else
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)

EMPTY_COMPLETION_REPLY = "Sorry, I could not generate a response."

BASE_SYSTEM_PROMPT = """You are TrendLens AI, an intelligent assistant specialized in discussing technology news articles.

Core Functions:
1. SUMMARIZE articles when asked - provide clear, concise summaries
2. ANSWER QUESTIONS about specific news stories using article content
3. PROVIDE CONTEXT and background on tech topics mentioned in articles
4. COMPARE related stories or developments when multiple articles are discussed

Response Guidelines:
- When asked to summarize, provide a clear 2-3 sentence summary
- Answer questions directly using the article content provided
- Give relevant background context for technical topics
- Compare stories by highlighting similarities, differences, and implications
- Always reference specific details from the article content
- Be conversational but factual"""


class ConfigurationError(RuntimeError):
    """Required configuration (e.g. provider API key) is missing."""


class ProviderError(RuntimeError):
    """Text-generation provider call failed."""

    status_code: Optional[int] = None

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ProviderAuthError(ProviderError):
    status_code = 401


class ProviderQuotaError(ProviderError):
    status_code = 429


class ProviderModelNotFoundError(ProviderError):
    status_code = 404


_STATUS_ERRORS = {
    401: ProviderAuthError,
    429: ProviderQuotaError,
    404: ProviderModelNotFoundError,
}


def _field(article: Any, name: str, default: str = "") -> str:
    if isinstance(article, Mapping):
        value = article.get(name, default)
    else:
        value = getattr(article, name, default)
    return default if value is None else str(value)


def build_system_prompt(
    article: Optional[Any] = None,
    recent_articles: Optional[Sequence[Any]] = None,
) -> str:
    """Build the system prompt. Accepts Article models or plain dicts."""
    prompt = BASE_SYSTEM_PROMPT

    if article:
        published = article.get("published_at") if isinstance(article, Mapping) else getattr(article, "published_at", "")
        if hasattr(published, "isoformat"):
            published = published.isoformat()
        prompt += f"""

CURRENT ARTICLE CONTEXT:
Title: {_field(article, "title")}
Summary: {_field(article, "summary")}
Source: {_field(article, "source")}
Category: {_field(article, "category")}
Published: {published or ""}
Content: {_field(article, "content")}
Link: {_field(article, "link")}

The user is asking about this specific article. Use this context to provide relevant and specific answers."""

    if recent_articles:
        lines = "\n".join(
            f"{index}. {_field(art, 'title')} ({_field(art, 'source')}, {_field(art, 'category')})"
            for index, art in enumerate(recent_articles, start=1)
        )
        prompt += f"""

RECENT ARTICLES FOR COMPARISON (use only when user asks to compare or needs context):
{lines}

Use these articles when the user asks to compare stories, find related news, or needs broader context."""

    return prompt


def build_messages(
    system_prompt: str,
    conversation: Optional[Sequence[Any]],
    message: str,
) -> List[Dict[str, str]]:
    """System prompt, prior turns (role + content), then the new user message."""
    messages = [{"role": "system", "content": system_prompt}]
    for turn in conversation or []:
        messages.append({"role": _field(turn, "role"), "content": _field(turn, "content")})
    messages.append({"role": "user", "content": message})
    return messages


class AssistantClient:
    """OpenAI-compatible chat-completions client over httpx."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, **overrides):
        self.settings = get_settings()
        self.config = {**self.settings.get_assistant_config(), **overrides}
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.config.get("api_key"))

    async def reply(
        self,
        message: str,
        article: Optional[Any] = None,
        recent_articles: Optional[Sequence[Any]] = None,
        conversation: Optional[Sequence[Any]] = None,
    ) -> str:
        if not self.configured:
            raise ConfigurationError(
                "OpenAI API key not configured. Set OPENAI_API_KEY in the environment or .env file."
            )
        system_prompt = build_system_prompt(article, recent_articles)
        messages = build_messages(system_prompt, conversation, message)
        return await self._call_chat_completions(messages)

    async def _call_chat_completions(self, messages: List[Dict[str, str]]) -> str:
        url = f"{self.config['base_url'].rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.config['api_key']}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.config["model"],
            "messages": messages,
            "max_tokens": self.config["max_tokens"],
            "temperature": self.config["temperature"],
        }

        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.settings.assistant_timeout_seconds) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderError(f"Provider request failed: {e}") from e

        if response.status_code != 200:
            error_cls = _STATUS_ERRORS.get(response.status_code, ProviderError)
            logger.warning(f"Assistant provider {response.status_code}: {response.text[:300]}")
            raise error_cls(
                f"Provider API {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        return content or EMPTY_COMPLETION_REPLY
