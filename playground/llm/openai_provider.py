"""OpenAI LLM Provider."""

from typing_extensions import override

from langchain_openai import ChatOpenAI

from playground.llm.base import ChatModelProvider
from playground.llm.factory import LLMFactory


@LLMFactory.register("openai")
class OpenAIProvider(ChatModelProvider):
    """OpenAI API provider using langchain-openai."""

    name = "openai"

    @override
    def _build_client(self) -> ChatOpenAI:
        client_kwargs = {
            "model": self.config.model,
            "api_key": self.config.openai_api_key,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "timeout": self.config.request_timeout,
        }
        if self.config.base_url:
            client_kwargs["openai_api_base"] = self.config.base_url
        return ChatOpenAI(**client_kwargs)
