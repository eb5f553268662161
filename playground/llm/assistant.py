"""Prompt construction for the playground's code assistant."""

import re

from playground.core.config import LLMConfig
from playground.core.protocols import TextGenerator
from playground.llm.factory import LLMFactory

CODE_REQUEST_PATTERN = re.compile(r"generate|create|build|make|code|component", re.IGNORECASE)
CODE_MARKERS = ("export", "function", "const")

CODE_PROMPT = """
You are a React/Next.js expert helping to create components.

User request: {request}

Please provide clean, modern React code using:
- TypeScript/TSX
- Tailwind CSS for styling
- Modern React patterns (hooks, functional components)
- Proper TypeScript types
- Clean, readable code with comments

Return only the code without markdown formatting or explanations.
"""

CHAT_PROMPT = """
{context}You are an AI assistant specialized in React/Next.js development.
Help the user with their coding questions, component generation, and development guidance.

Current message: {message}

Provide helpful, accurate responses about React, Next.js, TypeScript, and modern web development.
"""


def is_code_request(message: str) -> bool:
    """True when the message asks for code to be produced."""
    return CODE_REQUEST_PATTERN.search(message) is not None


def looks_like_code(reply: str) -> bool:
    return any(marker in reply for marker in CODE_MARKERS)


def render_history(history: list[dict[str, str]]) -> str:
    if not history:
        return ""
    lines = "\n".join(f"{turn['role']}: {turn['content']}" for turn in history)
    return f"Previous conversation:\n{lines}\n\n"


class CodeAssistant:
    """Turns playground requests into prompts for a ``TextGenerator``."""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    @classmethod
    def from_config(cls, config: LLMConfig | None = None, **overrides) -> "CodeAssistant":
        """Build on the provider named by ``LLM_PROVIDER`` (or ``config``).

        Raises:
            ConfigurationError: Unknown provider name
        """
        return cls(LLMFactory.create(config or LLMConfig(), **overrides))

    async def generate_code(self, request: str) -> str:
        return await self.generator.generate(CODE_PROMPT.format(request=request))

    async def chat(self, message: str, history: list[dict[str, str]] | None = None) -> str:
        """Answer a free-form question with prior turns inlined into the prompt."""
        prompt = CHAT_PROMPT.format(context=render_history(history or []), message=message)
        return await self.generator.generate(prompt)
