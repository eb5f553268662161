"""Application configuration using pydantic-settings."""

import re
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

DEV_JWT_SECRET = "dev-secret-change-me"

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days", "": "seconds"}


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as ``"15m"`` or ``"7d"``.

    A bare number is read as seconds.

    Raises:
        ValueError: If the string is not a valid duration
    """
    match = _DURATION_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


class AuthConfig(BaseSettings):
    """Token and credential configuration."""

    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 15
    refresh_token_ttl: str = "7d"
    bcrypt_rounds: int = 12

    model_config = SettingsConfigDict(env_prefix="AUTH_")

    @field_validator("refresh_token_ttl")
    @classmethod
    def _check_refresh_ttl(cls, value: str) -> str:
        parse_duration(value)
        return value

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.access_token_ttl_minutes)

    @property
    def refresh_token_lifetime(self) -> timedelta:
        return parse_duration(self.refresh_token_ttl)


class StoreConfig(BaseSettings):
    """Session and user store configuration."""

    backend: str = "in_memory"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "playground"

    model_config = SettingsConfigDict(env_prefix="STORE_")


class LLMConfig(BaseSettings):
    """Text-generation provider configuration."""

    provider: str = "gemini"
    model: str = "gemini-2.0-flash"
    temperature: float = 0.7
    max_tokens: int = 4096
    base_url: str | None = None
    request_timeout: float = 60.0

    # API keys (used based on provider)
    google_api_key: str | None = None
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None

    model_config = SettingsConfigDict(env_prefix="LLM_")


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    app_name: str = "Component Playground"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8001
    cors_origins: list = Field(default_factory=lambda: ["http://localhost:3000"])
    api_prefix: str = "/api"

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    auth: AuthConfig = Field(default_factory=AuthConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    model_config = SettingsConfigDict(env_file=str(_env_file), env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()
