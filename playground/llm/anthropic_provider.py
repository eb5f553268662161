"""Anthropic LLM Provider."""

from typing_extensions import override

from langchain_anthropic import ChatAnthropic

from playground.llm.base import ChatModelProvider
from playground.llm.factory import LLMFactory


@LLMFactory.register("anthropic")
class AnthropicProvider(ChatModelProvider):
    """Anthropic API provider using langchain-anthropic.

    Supports custom base_url for Anthropic-compatible APIs.
    """

    name = "anthropic"

    @override
    def _build_client(self) -> ChatAnthropic:
        client_kwargs = {
            "model": self.config.model,
            "api_key": self.config.anthropic_api_key,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "timeout": self.config.request_timeout,
        }
        if self.config.base_url:
            client_kwargs["anthropic_api_url"] = self.config.base_url
        return ChatAnthropic(**client_kwargs)
