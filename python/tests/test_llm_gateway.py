"""Tests for the LLM layer (prompt rendering, OpenRouter adapter, gateway).

Test coverage:
- Prompt shape: system turn first, last N history turns, user turn last
- Request body and attribution headers
- Status classification: 401/403, 402, 429, other non-2xx
- Malformed bodies, timeouts, network failures
- Missing API key fails before any network call

Explicitly Forbidden:
- Live provider calls
- Real API keys anywhere in test code

These tests use respx to mock HTTP requests and do NOT touch the database.
"""

import json

import httpx
import pytest
import respx

from relay.services.llm import (
    SYSTEM_PROMPT,
    LLMError,
    LLMErrorClass,
    LLMGateway,
    OpenRouterAdapter,
    Turn,
    classify_provider_error,
    render_prompt,
)
from relay.services.redact import safe_kv

BASE_URL = "https://openrouter.test/api/v1"
COMPLETIONS_URL = f"{BASE_URL}/chat/completions"


def completion_body(text: str = "Hello! How can I help you today?") -> dict:
    return {
        "id": "gen-123",
        "choices": [{"message": {"role": "assistant", "content": text}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 8, "total_tokens": 18},
    }


def history_of(n: int) -> list[Turn]:
    return [Turn(role="user" if i % 2 == 0 else "assistant", content=f"m{i}") for i in range(n)]


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def httpx_client():
    return httpx.AsyncClient()


@pytest.fixture
def gateway(httpx_client) -> LLMGateway:
    adapter = OpenRouterAdapter(
        httpx_client, base_url=BASE_URL, referer="http://localhost:3000", title="Relay Chat"
    )
    return LLMGateway(adapter, api_key="sk-or-test", model_name="test/model", timeout_s=5)


def _sent_body(route) -> dict:
    return json.loads(route.calls.last.request.content)


# =============================================================================
# Prompt Rendering
# =============================================================================


class TestRenderPrompt:
    def test_empty_history(self):
        turns = render_prompt("Hello", [])

        assert turns == [
            Turn(role="system", content=SYSTEM_PROMPT),
            Turn(role="user", content="Hello"),
        ]

    def test_history_truncated_to_most_recent(self):
        turns = render_prompt("next", history_of(25), max_history=10)

        assert len(turns) == 12
        assert turns[0].role == "system"
        assert [t.content for t in turns[1:-1]] == [f"m{i}" for i in range(15, 25)]
        assert turns[-1] == Turn(role="user", content="next")

    def test_short_history_kept_whole(self):
        turns = render_prompt("next", history_of(3), max_history=10)
        assert [t.content for t in turns[1:-1]] == ["m0", "m1", "m2"]

    def test_zero_history(self):
        assert len(render_prompt("next", history_of(4), max_history=0)) == 2

    def test_system_turns_in_history_skipped(self):
        turns = render_prompt("next", [Turn(role="system", content="old"), *history_of(2)])
        assert [t.role for t in turns] == ["system", "user", "assistant", "user"]
        assert turns[0].content == SYSTEM_PROMPT


# =============================================================================
# Gateway
# =============================================================================


class TestLLMGateway:
    @pytest.mark.asyncio
    @respx.mock
    async def test_success_returns_reply(self, gateway):
        route = respx.post(COMPLETIONS_URL).respond(200, json=completion_body())

        reply = await gateway.generate_reply("Hello", history_of(2))

        assert reply == "Hello! How can I help you today?"
        assert route.call_count == 1

        body = _sent_body(route)
        assert body["model"] == "test/model"
        assert body["max_tokens"] == 1000
        assert body["temperature"] == 0.7
        assert body["stream"] is False
        assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert body["messages"][-1] == {"role": "user", "content": "Hello"}
        assert len(body["messages"]) == 4

        headers = route.calls.last.request.headers
        assert headers["Authorization"] == "Bearer sk-or-test"
        assert headers["HTTP-Referer"] == "http://localhost:3000"
        assert headers["X-Title"] == "Relay Chat"

    @pytest.mark.asyncio
    @respx.mock
    async def test_history_window_applied(self, gateway):
        route = respx.post(COMPLETIONS_URL).respond(200, json=completion_body())

        await gateway.generate_reply("next", history_of(25), max_history=10)

        contents = [m["content"] for m in _sent_body(route)["messages"]]
        assert contents[1:-1] == [f"m{i}" for i in range(15, 25)]

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_key_makes_no_call(self, httpx_client):
        route = respx.post(COMPLETIONS_URL).respond(200, json=completion_body())
        adapter = OpenRouterAdapter(httpx_client, base_url=BASE_URL, referer="r", title="t")
        gateway = LLMGateway(adapter, api_key=None, model_name="test/model")

        with pytest.raises(LLMError) as exc_info:
            await gateway.generate_reply("Hello")

        assert exc_info.value.error_class == LLMErrorClass.NOT_CONFIGURED
        assert route.call_count == 0
        assert gateway.is_configured is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, LLMErrorClass.INVALID_KEY),
            (403, LLMErrorClass.INVALID_KEY),
            (402, LLMErrorClass.QUOTA_EXCEEDED),
            (429, LLMErrorClass.RATE_LIMIT),
            (500, LLMErrorClass.PROVIDER_ERROR),
            (503, LLMErrorClass.PROVIDER_ERROR),
            (400, LLMErrorClass.PROVIDER_ERROR),
        ],
    )
    @respx.mock
    async def test_status_classification(self, gateway, status, expected):
        respx.post(COMPLETIONS_URL).respond(status, json={"error": {"message": "nope"}})

        with pytest.raises(LLMError) as exc_info:
            await gateway.generate_reply("Hello")

        assert exc_info.value.error_class == expected

    @pytest.mark.asyncio
    @respx.mock
    async def test_provider_error_carries_provider_message(self, gateway):
        respx.post(COMPLETIONS_URL).respond(
            500, json={"error": {"message": "upstream model overloaded"}}
        )

        with pytest.raises(LLMError) as exc_info:
            await gateway.generate_reply("Hello")

        assert exc_info.value.message == "OpenRouter API error: upstream model overloaded"

    @pytest.mark.asyncio
    @respx.mock
    async def test_provider_error_without_json_body(self, gateway):
        respx.post(COMPLETIONS_URL).respond(502, text="Bad Gateway")

        with pytest.raises(LLMError) as exc_info:
            await gateway.generate_reply("Hello")

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_ERROR
        assert exc_info.value.message == "OpenRouter API error: HTTP 502"

    @pytest.mark.asyncio
    @respx.mock
    async def test_rate_limit_message(self, gateway):
        respx.post(COMPLETIONS_URL).respond(429, json={})

        with pytest.raises(LLMError, match="Rate limit exceeded"):
            await gateway.generate_reply("Hello")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"choices": []},
            {"choices": [{}]},
            {"choices": [{"message": {"content": None}}]},
            {"choices": [{"message": {"content": ""}}]},
        ],
    )
    @respx.mock
    async def test_malformed_body(self, gateway, body):
        respx.post(COMPLETIONS_URL).respond(200, json=body)

        with pytest.raises(LLMError) as exc_info:
            await gateway.generate_reply("Hello")

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_ERROR
        assert exc_info.value.message == "Invalid response from OpenRouter API"

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_success_body(self, gateway):
        respx.post(COMPLETIONS_URL).respond(200, text="<html>oops</html>")

        with pytest.raises(LLMError) as exc_info:
            await gateway.generate_reply("Hello")

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_ERROR

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self, gateway):
        respx.post(COMPLETIONS_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(LLMError) as exc_info:
            await gateway.generate_reply("Hello")

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_ERROR
        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    @respx.mock
    async def test_network_error(self, gateway):
        respx.post(COMPLETIONS_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(LLMError) as exc_info:
            await gateway.generate_reply("Hello")

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_ERROR
        assert "Network error" in exc_info.value.message


class TestClassifyProviderError:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, LLMErrorClass.INVALID_KEY),
            (403, LLMErrorClass.INVALID_KEY),
            (402, LLMErrorClass.QUOTA_EXCEEDED),
            (429, LLMErrorClass.RATE_LIMIT),
            (404, LLMErrorClass.PROVIDER_ERROR),
            (None, LLMErrorClass.PROVIDER_ERROR),
        ],
    )
    def test_classification(self, status, expected):
        assert classify_provider_error(status) == expected

    def test_error_classes_are_api_codes(self):
        for error_class in LLMErrorClass:
            assert error_class.api_code.value == error_class.value


class TestSafeKv:
    def test_allows_redacted_suffixes(self):
        assert safe_kv(_env="test", message_chars=3, content_sha256="abc") == {
            "message_chars": 3,
            "content_sha256": "abc",
        }

    def test_blocks_content_in_test(self):
        with pytest.raises(ValueError, match="content"):
            safe_kv(_env="test", content="hello")

    def test_drops_content_in_prod(self):
        assert safe_kv(_env="prod", content="hello", model_name="m") == {"model_name": "m"}

    def test_default_is_strict_regardless_of_process_env(self, monkeypatch):
        monkeypatch.setenv("RELAY_ENV", "prod")

        with pytest.raises(ValueError, match="content"):
            safe_kv(content="hello")
