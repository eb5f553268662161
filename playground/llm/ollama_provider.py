"""Ollama LLM Provider for local models."""

from typing_extensions import override

from langchain_ollama import ChatOllama

from playground.core.logging import get_logger
from playground.llm.base import ChatModelProvider
from playground.llm.factory import LLMFactory

logger = get_logger(__name__)


@LLMFactory.register("ollama")
class OllamaProvider(ChatModelProvider):
    """Ollama local LLM provider using langchain-ollama."""

    name = "ollama"

    @override
    def _build_client(self) -> ChatOllama:
        base_url = self.config.base_url or "http://localhost:11434"
        logger.info("ollama_provider_initialized", model=self.config.model, base_url=base_url)
        return ChatOllama(
            model=self.config.model,
            base_url=base_url,
            temperature=self.config.temperature,
            num_predict=self.config.max_tokens,
        )
