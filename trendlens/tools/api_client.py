"""HTTP client for the TrendLens API, used by the client-side stores."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import get_settings
from ..schemas import Article

logger = logging.getLogger(__name__)


class APIError(RuntimeError):
    """Non-2xx response from the TrendLens API."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class TrendLensClient:
    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or get_settings().api_base_url).rstrip("/")
        self._client = client

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            response = await self._client.request(method, url, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.request(method, url, **kwargs)

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except (ValueError, AttributeError):
                detail = response.text
            raise APIError(response.status_code, str(detail))
        return response.json()

    async def get_news(self) -> List[Article]:
        data = await self._request("GET", "/api/news")
        if not isinstance(data, list):
            raise APIError(500, "Unexpected /api/news payload")
        return [Article(**item) for item in data]

    async def send_chat(
        self,
        message: str,
        article: Optional[Article] = None,
        all_articles: Optional[Sequence[Article]] = None,
        conversation: Optional[Sequence[Dict[str, str]]] = None,
    ) -> str:
        payload = {
            "message": message,
            "article": article.model_dump(mode="json") if article else None,
            "all_articles": [a.model_dump(mode="json") for a in all_articles or []],
            "conversation": list(conversation or []),
        }
        data = await self._request("POST", "/api/chat", json=payload)
        return data["response"]
