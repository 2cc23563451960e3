"""Tests for prompt construction, the provider client and the client-side chat store."""

import asyncio
import json

import httpx
import pytest

from conftest import NOW
from trendlens.schemas import Article
from trendlens.store.chat_store import ERROR_REPLY, ChatStore
from trendlens.tools.llm_tool import (
    BASE_SYSTEM_PROMPT,
    EMPTY_COMPLETION_REPLY,
    AssistantClient,
    ConfigurationError,
    ProviderAuthError,
    ProviderError,
    ProviderModelNotFoundError,
    ProviderQuotaError,
    build_messages,
    build_system_prompt,
)

ARTICLE = {
    "title": "AuroraAI raises $120M",
    "summary": "Series B for agent platform",
    "source": "TechBeat",
    "category": "ai",
    "published_at": "2025-08-12T19:00:00+00:00",
    "content": "Full body text",
    "link": "https://example.com/aurora",
}


def completion(text):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": text}}]})


def make_assistant(handler, **overrides):
    overrides.setdefault("api_key", "sk-test")
    overrides.setdefault("base_url", "https://llm.example.com/v1")
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AssistantClient(client=client, **overrides)


class TestSystemPrompt:

    def test_base_only(self):
        assert build_system_prompt() == BASE_SYSTEM_PROMPT

    def test_article_block(self):
        prompt = build_system_prompt(ARTICLE)
        assert prompt.startswith(BASE_SYSTEM_PROMPT)
        assert "CURRENT ARTICLE CONTEXT:" in prompt
        assert "Title: AuroraAI raises $120M" in prompt
        assert "Published: 2025-08-12T19:00:00+00:00" in prompt
        assert "Link: https://example.com/aurora" in prompt
        assert "RECENT ARTICLES" not in prompt

    def test_article_model_accepted(self):
        article = Article(id="x", published_at=NOW, **{k: v for k, v in ARTICLE.items() if k != "published_at"})
        prompt = build_system_prompt(article)
        assert f"Published: {NOW.isoformat()}" in prompt
        assert "Category: ai" in prompt

    def test_recent_articles_numbered(self):
        recent = [
            {"title": "First", "source": "S1", "category": "ai"},
            {"title": "Second", "source": "S2", "category": "cloud"},
        ]
        prompt = build_system_prompt(None, recent)
        assert "1. First (S1, ai)\n2. Second (S2, cloud)" in prompt
        assert "CURRENT ARTICLE CONTEXT" not in prompt

    def test_deterministic(self):
        recent = [{"title": "First", "source": "S1", "category": "ai"}]
        assert build_system_prompt(ARTICLE, recent) == build_system_prompt(ARTICLE, recent)

    def test_messages_order(self):
        messages = build_messages(
            "SYS",
            [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}],
            "summarize",
        )
        assert messages == [
            {"role": "system", "content": "SYS"},
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
            {"role": "user", "content": "summarize"},
        ]


class TestAssistantClient:

    def test_reply(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return completion("Here is a summary.")

        assistant = make_assistant(handler, model="gpt-test")
        reply = asyncio.run(assistant.reply("Summarize", article=ARTICLE))

        assert reply == "Here is a summary."
        assert seen["url"] == "https://llm.example.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-test"
        assert seen["body"]["messages"][0]["role"] == "system"
        assert "AuroraAI" in seen["body"]["messages"][0]["content"]
        assert seen["body"]["messages"][-1] == {"role": "user", "content": "Summarize"}

    def test_missing_key_is_configuration_error(self):
        calls = []

        def handler(request):
            calls.append(request)
            return completion("unreachable")

        assistant = make_assistant(handler, api_key="")
        assert not assistant.configured
        with pytest.raises(ConfigurationError):
            asyncio.run(assistant.reply("hi"))
        assert calls == []

    @pytest.mark.parametrize("status, error_cls", [
        (401, ProviderAuthError),
        (429, ProviderQuotaError),
        (404, ProviderModelNotFoundError),
    ])
    def test_status_mapping(self, status, error_cls):
        assistant = make_assistant(lambda request: httpx.Response(status, text="nope"))
        with pytest.raises(error_cls) as exc:
            asyncio.run(assistant.reply("hi"))
        assert exc.value.status_code == status

    def test_other_status_is_generic_provider_error(self):
        assistant = make_assistant(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(ProviderError) as exc:
            asyncio.run(assistant.reply("hi"))
        assert type(exc.value) is ProviderError
        assert exc.value.status_code == 502

    def test_transport_error_is_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable")

        with pytest.raises(ProviderError):
            asyncio.run(make_assistant(handler).reply("hi"))

    def test_empty_completion(self):
        assistant = make_assistant(lambda request: completion(""))
        assert asyncio.run(assistant.reply("hi")) == EMPTY_COMPLETION_REPLY


class FakeAPI:
    def __init__(self, reply="Sure.", fail=False, news_fails=False):
        self.reply = reply
        self.fail = fail
        self.news_fails = news_fails
        self.sent = []

    async def get_news(self):
        if self.news_fails:
            raise RuntimeError("news down")
        return [
            Article(id=str(i), title=f"T{i}", summary="", link=f"https://example.com/{i}",
                    source="S", published_at=NOW)
            for i in range(30)
        ]

    async def send_chat(self, message, article, all_articles, conversation):
        self.sent.append((message, article, list(all_articles), list(conversation)))
        if self.fail:
            raise RuntimeError("HTTP 500: Chat service error")
        return self.reply


class TestChatStore:

    def test_conversation_history(self):
        api = FakeAPI()
        store = ChatStore(client=api, recent_limit=20)

        async def go():
            await store.send_message("first")
            await store.send_message("second")

        asyncio.run(go())

        assert [(m.role, m.content) for m in store.messages] == [
            ("user", "first"), ("assistant", "Sure."), ("user", "second"), ("assistant", "Sure."),
        ]
        _, _, recent, history = api.sent[1]
        assert len(recent) == 20
        assert history == [{"role": "user", "content": "first"}, {"role": "assistant", "content": "Sure."}]
        assert not store.is_loading

    def test_error_becomes_assistant_message(self):
        store = ChatStore(client=FakeAPI(fail=True))
        message = asyncio.run(store.send_message("hi"))
        assert message.role == "assistant"
        assert message.content == ERROR_REPLY
        assert len(store.messages) == 2

    def test_recent_articles_failure_sends_empty_context(self):
        api = FakeAPI(news_fails=True)
        store = ChatStore(client=api)
        asyncio.run(store.send_message("hi"))
        assert api.sent[0][2] == []
        assert store.messages[-1].content == "Sure."

    def test_clear(self):
        store = ChatStore(client=FakeAPI())
        asyncio.run(store.send_message("hi"))
        store.clear_messages()
        assert store.messages == []
