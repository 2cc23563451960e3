"""
Client-side state.

- news_store (NewsStore): filters, pagination, trending, saved articles, auto-refresh
- chat_store (ChatStore): assistant conversation
- kv_store: key-value persistence for saved article ids
"""

from trendlens.store.news_store import NewsStore, FilterState, extract_trending_topics
from trendlens.store.chat_store import ChatStore, ChatMessage
from trendlens.store.kv_store import KeyValueStore, JsonFileStore, MemoryStore
