"""Factory for creating session and user store instances."""

from playground.core.config import StoreConfig
from playground.core.exceptions import ConfigurationError

SESSIONS = "sessions"
USERS = "users"


class StoreFactory:
    """Registry of store implementations keyed by (kind, backend).

    Usage:
        @StoreFactory.register(SESSIONS, "redis")
        class RedisSessionStore:
            ...
    """

    _registry: dict[tuple[str, str], type] = {}

    @classmethod
    def register(cls, kind: str, backend: str):
        """Decorator to register a store implementation."""

        def decorator(store_cls: type) -> type:
            cls._registry[(kind, backend)] = store_cls
            return store_cls

        return decorator

    @classmethod
    def create(cls, kind: str, config: StoreConfig):
        """Create a store of ``kind`` from configuration.

        Raises:
            ConfigurationError: If the backend is not registered for ``kind``
        """
        store_cls = cls._registry.get((kind, config.backend))
        if store_cls is None:
            raise ConfigurationError(
                f"Unknown store backend: '{config.backend}'. Available: {cls.available_backends(kind)}"
            )

        # Create instance based on backend type
        if config.backend == "redis":
            return store_cls(config.redis_url, key_prefix=config.key_prefix)
        return store_cls()

    @classmethod
    def available_backends(cls, kind: str) -> list[str]:
        """Get list of backend names registered for ``kind``."""
        return [backend for (k, backend) in cls._registry if k == kind]
