"""Core infrastructure module - config, DI container, protocols, exceptions."""

from playground.core.config import AppConfig, AuthConfig, LLMConfig, StoreConfig
from playground.core.exceptions import (
    AppError,
    Conflict,
    ConfigurationError,
    InternalFault,
    NotFound,
    ProviderFailure,
    Unauthenticated,
    ValidationFailed,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "LLMConfig",
    "StoreConfig",
    "AppError",
    "Conflict",
    "ConfigurationError",
    "InternalFault",
    "NotFound",
    "ProviderFailure",
    "Unauthenticated",
    "ValidationFailed",
]
