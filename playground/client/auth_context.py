"""Client-side authentication state."""

from typing import Any

from playground.client.api_client import ApiError
from playground.client.endpoints import AuthApi, UserApi
from playground.core.logging import get_logger

logger = get_logger(__name__)


class AuthContext:
    """Who is signed in, held as an explicit object passed to its consumers.

    ``is_loading`` is True only while a call is in flight.
    """

    def __init__(self, auth_api: AuthApi, user_api: UserApi):
        self.auth_api = auth_api
        self.user_api = user_api
        self.user: dict[str, Any] | None = None
        self.is_authenticated = False
        self.is_loading = False
        self.is_initialized = False

    def _set_user(self, user: dict[str, Any] | None) -> None:
        self.user = user
        self.is_authenticated = user is not None

    async def initialize_auth(self) -> None:
        """Restore the signed-in user from stored tokens, if any."""
        self.is_loading = True
        try:
            if not self.auth_api.client.storage.has_tokens():
                self._set_user(None)
                return
            self._set_user(await self.user_api.get_profile())
        except ApiError as e:
            logger.info("auth_initialization_failed", error=e.message)
            self.auth_api.client.clear_tokens()
            self._set_user(None)
        finally:
            self.is_initialized = True
            self.is_loading = False

    async def login(self, email: str, password: str) -> dict[str, Any]:
        self.is_loading = True
        try:
            data = await self.auth_api.login(email, password)
            self._set_user(data["user"])
            return data["user"]
        finally:
            self.is_loading = False

    async def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        self.is_loading = True
        try:
            data = await self.auth_api.register(name, email, password)
            self._set_user(data["user"])
            return data["user"]
        finally:
            self.is_loading = False

    async def logout(self) -> None:
        """Sign out locally even when the server cannot be reached."""
        self.is_loading = True
        try:
            await self.auth_api.logout()
        except ApiError as e:
            logger.warning("logout_request_failed", error=e.message)
        finally:
            self._set_user(None)
            self.is_loading = False

    def update_user(self, user: dict[str, Any]) -> None:
        self._set_user(user)
