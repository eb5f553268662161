"""Python client for the playground API."""

from playground.client.api_client import ApiClient, ApiError
from playground.client.auth_context import AuthContext
from playground.client.endpoints import AuthApi, PlaygroundApi, UserApi
from playground.client.storage import MemoryTokenStorage, TokenStorage
from playground.client.workspace import CachedSession, PlaygroundWorkspace, SessionCache

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthApi",
    "AuthContext",
    "CachedSession",
    "MemoryTokenStorage",
    "PlaygroundApi",
    "PlaygroundWorkspace",
    "SessionCache",
    "TokenStorage",
    "UserApi",
]
