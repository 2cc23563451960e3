"""Client-side assistant conversation."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from trendlens.config import get_settings
from trendlens.schemas.news import Article
from trendlens.tools.api_client import TrendLensClient

logger = logging.getLogger(__name__)

ERROR_REPLY = (
    "Sorry, I encountered an error. Please make sure your OpenAI API key "
    "is configured correctly."
)


@dataclass
class ChatMessage:
    role: str  # user | assistant
    content: str
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_turn(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatStore:
    """
    Keeps the conversation and talks to the assistant endpoint.

    `recent_articles` supplies the comparison context; by default the news
    endpoint is queried and the first N articles are sent along.
    """

    def __init__(
        self,
        client: Optional[TrendLensClient] = None,
        recent_articles: Optional[Callable[[], Awaitable[Sequence[Article]]]] = None,
        recent_limit: Optional[int] = None,
    ):
        self.client = client or TrendLensClient()
        self._recent_articles = recent_articles or self.client.get_news
        self.recent_limit = recent_limit or get_settings().recent_articles_for_chat
        self.messages: List[ChatMessage] = []
        self.is_loading = False

    async def send_message(self, content: str, article: Optional[Article] = None) -> ChatMessage:
        history = [m.to_turn() for m in self.messages]
        self.messages.append(ChatMessage(role="user", content=content))
        self.is_loading = True

        try:
            try:
                recent = list(await self._recent_articles())[: self.recent_limit]
            except Exception as e:
                logger.debug(f"Recent articles unavailable for chat context: {e}")
                recent = []
            reply = await self.client.send_chat(content, article, recent, history)
        except Exception as e:
            logger.warning(f"Chat error: {e}")
            reply = ERROR_REPLY
        finally:
            self.is_loading = False

        message = ChatMessage(role="assistant", content=reply)
        self.messages.append(message)
        return message

    def clear_messages(self) -> None:
        self.messages = []
