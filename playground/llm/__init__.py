"""LLM abstraction layer - providers, factory and code assistant."""

# Import providers first to trigger registration via decorators
from playground.llm import anthropic_provider, gemini_provider, ollama_provider, openai_provider
from playground.llm.assistant import CodeAssistant, is_code_request, looks_like_code
from playground.llm.factory import LLMFactory

__all__ = ["CodeAssistant", "LLMFactory", "is_code_request", "looks_like_code"]
