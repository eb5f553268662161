"""Registry of text-generation providers keyed by ``LLM_PROVIDER`` name."""

from typing import Any

from playground.core.config import LLMConfig
from playground.core.exceptions import ConfigurationError


class LLMFactory:
    """Maps provider names to classes taking an ``LLMConfig``.

    Provider modules register themselves on import with
    ``@LLMFactory.register("name")``; importing ``playground.llm`` loads all
    of them.
    """

    _registry: dict[str, type] = {}

    @classmethod
    def register(cls, name: str):
        key = name.lower()

        def decorator(provider_cls: type) -> type:
            existing = cls._registry.get(key)
            if existing is not None and existing is not provider_cls:
                raise ConfigurationError(
                    f"LLM provider '{key}' already registered by {existing.__name__}"
                )
            cls._registry[key] = provider_cls
            return provider_cls

        return decorator

    @classmethod
    def create(cls, config: LLMConfig, **overrides: Any):
        """Instantiate the configured provider.

        Extra keyword arguments go to the provider constructor, which is how
        tests hand in prebuilt SDK or HTTP clients.

        Raises:
            ConfigurationError: No provider is registered under that name
        """
        provider_cls = cls._registry.get(config.provider.lower())
        if provider_cls is None:
            known = ", ".join(sorted(cls._registry)) or "none"
            raise ConfigurationError(f"Unknown LLM provider: '{config.provider}' (known: {known})")
        return provider_cls(config, **overrides)

    @classmethod
    def available_providers(cls) -> list[str]:
        return sorted(cls._registry)
