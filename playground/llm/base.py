"""Shared plumbing for providers backed by a LangChain chat model."""

from typing import Any

from playground.core.config import LLMConfig
from playground.core.exceptions import ProviderFailure
from playground.core.logging import get_logger

logger = get_logger(__name__)

_ROLE_MAP = {"user": "user", "assistant": "assistant", "model": "assistant"}


def to_chat_messages(prompt: str, history: list[dict[str, str]] | None = None) -> list[dict[str, str]]:
    """Render prior turns plus the new prompt as chat-model messages."""
    messages = [
        {"role": _ROLE_MAP.get(turn.get("role", "user"), "user"), "content": turn.get("content", "")}
        for turn in history or []
    ]
    messages.append({"role": "user", "content": prompt})
    return messages


def content_text(content: Any) -> str:
    """Flatten a chat-model reply into plain text.

    Some models return a list of content blocks instead of a string.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


class ChatModelProvider:
    """Base for ``TextGenerator`` implementations over a LangChain chat model.

    Subclasses set ``name`` and implement ``_build_client``.
    """

    name = "chat"

    def __init__(self, config: LLMConfig, client: Any | None = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> Any:
        # Built on first use so a missing key surfaces as a ProviderFailure
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self) -> Any:
        raise NotImplementedError

    async def generate(self, prompt: str, history: list[dict[str, str]] | None = None) -> str:
        """Generate a single response.

        Raises:
            ProviderFailure: If the model call fails
        """
        try:
            response = await self.client.ainvoke(to_chat_messages(prompt, history))
        except Exception as e:
            logger.warning("llm_generate_failed", provider=self.name, error=str(e))
            raise ProviderFailure(f"Failed to get AI response: {e}", provider=self.name) from e
        return content_text(response.content)
