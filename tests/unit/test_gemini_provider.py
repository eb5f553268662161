"""Tests for the Gemini provider's SDK/REST backend selection."""

import json

import httpx
import pytest

from playground.core.config import LLMConfig
from playground.core.exceptions import ProviderFailure
from playground.llm.gemini_provider import (
    INVALID_KEY,
    NOT_CONFIGURED,
    QUOTA_EXCEEDED,
    UNEXPECTED_FORMAT,
    GeminiProvider,
    build_rest_payload,
)


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class FakeSDK:
    def __init__(self, content="sdk reply", error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls = 0

    async def ainvoke(self, messages):
        self.calls += 1
        if self.error:
            raise self.error
        return type("Reply", (), {"content": self.content})()


def rest_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def config() -> LLMConfig:
    return LLMConfig(provider="gemini", model="gemini-2.0-flash", google_api_key="test-key")


class TestGeminiProvider:
    """Test cases for GeminiProvider."""

    @pytest.mark.asyncio
    async def test_sdk_used_when_it_works(self, config):
        sdk = FakeSDK()
        provider = GeminiProvider(config, sdk_client=sdk, http_client=rest_client(lambda r: httpx.Response(500)))
        assert await provider.generate("hi") == "sdk reply"
        assert provider.use_rest is False

    @pytest.mark.asyncio
    async def test_falls_back_to_rest_and_stays_there(self, config):
        """After one SDK failure every later call goes straight to REST."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=gemini_reply("rest reply"))

        sdk = FakeSDK(error=RuntimeError("model not supported"))
        provider = GeminiProvider(config, sdk_client=sdk, http_client=rest_client(handler))

        assert await provider.generate("first") == "rest reply"
        assert await provider.generate("second") == "rest reply"
        assert sdk.calls == 1
        assert provider.use_rest is True
        assert len(requests) == 2

        request = requests[0]
        assert request.headers["x-goog-api-key"] == "test-key"
        assert request.url.path.endswith("/models/gemini-2.0-flash:generateContent")
        body = json.loads(request.content)
        assert body["contents"][-1]["parts"][0]["text"] == "first"

    @pytest.mark.asyncio
    async def test_missing_key(self):
        provider = GeminiProvider(LLMConfig(provider="gemini", google_api_key="  "))
        with pytest.raises(ProviderFailure) as exc_info:
            await provider.generate("hi")
        assert exc_info.value.message == NOT_CONFIGURED

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "message"),
        [(400, INVALID_KEY), (403, INVALID_KEY), (429, QUOTA_EXCEEDED)],
    )
    async def test_rest_error_mapping(self, config, status, message):
        provider = GeminiProvider(
            config,
            sdk_client=FakeSDK(error=RuntimeError("sdk down")),
            http_client=rest_client(lambda r: httpx.Response(status, json={"error": {}})),
        )
        with pytest.raises(ProviderFailure) as exc_info:
            await provider.generate("hi")
        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_unexpected_format(self, config):
        provider = GeminiProvider(
            config,
            sdk_client=FakeSDK(error=RuntimeError("sdk down")),
            http_client=rest_client(lambda r: httpx.Response(200, json={"candidates": []})),
        )
        with pytest.raises(ProviderFailure) as exc_info:
            await provider.generate("hi")
        assert exc_info.value.message == UNEXPECTED_FORMAT

    @pytest.mark.asyncio
    async def test_network_error(self, config):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = GeminiProvider(
            config, sdk_client=FakeSDK(error=RuntimeError("sdk down")), http_client=rest_client(handler)
        )
        with pytest.raises(ProviderFailure):
            await provider.generate("hi")

    @pytest.mark.asyncio
    async def test_api_key_check(self, config):
        provider = GeminiProvider(
            config,
            sdk_client=FakeSDK(error=RuntimeError("sdk down")),
            http_client=rest_client(lambda r: httpx.Response(400)),
        )
        assert await provider.test_api_key() is False

    def test_rest_payload_maps_roles(self):
        payload = build_rest_payload(
            "now", [{"role": "user", "content": "q"}, {"role": "assistant", "content": "a"}], 0.5, 100
        )
        assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
        assert payload["generationConfig"] == {"temperature": 0.5, "maxOutputTokens": 100}
        assert all(s["threshold"] == "BLOCK_NONE" for s in payload["safetySettings"])
