"""API request/response schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# -- Chat --

class ArticleContext(BaseModel):
    """Article fields the assistant prompt uses. All optional: clients send what they have."""
    title: str = ""
    summary: str = ""
    content: str = ""
    source: str = ""
    category: str = ""
    link: str = ""
    published_at: Optional[str] = None


class ConversationTurn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    # Any, so a non-string message reaches the handler and gets a 400, not a 422
    message: Any = None
    article: Optional[ArticleContext] = None
    all_articles: List[ArticleContext] = Field(default_factory=list)
    conversation: List[ConversationTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str


# -- Sources --

class SourceResponse(BaseModel):
    id: str
    name: str
    rss_url: str
    category: str
    health: Dict[str, Any] = Field(default_factory=dict)
