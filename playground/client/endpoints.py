"""Thin wrappers over the account and playground endpoints."""

from typing import Any

from playground.client.api_client import ApiClient, ApiError


def _data(response: dict[str, Any], fallback: str) -> dict[str, Any]:
    if response.get("success") and response.get("data") is not None:
        return response["data"]
    raise ApiError(None, response.get("message") or fallback)


class AuthApi:
    """Registration, login and logout. Successful sign-ins store the token pair."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        response = await self.client.post(
            "/auth/register", {"name": name, "email": email, "password": password}
        )
        data = _data(response, "Registration failed")
        self.client.set_tokens(data["accessToken"], data["refreshToken"])
        return data

    async def login(self, email: str, password: str) -> dict[str, Any]:
        response = await self.client.post("/auth/login", {"email": email, "password": password})
        data = _data(response, "Login failed")
        self.client.set_tokens(data["accessToken"], data["refreshToken"])
        return data

    async def logout(self) -> dict[str, Any]:
        """Tell the server, then drop local tokens whatever the outcome."""
        try:
            return await self.client.post("/auth/logout")
        finally:
            self.client.clear_tokens()

    async def refresh(self) -> dict[str, str]:
        response = await self.client.post("/auth/refresh", {"refreshToken": self.client.refresh_token})
        data = _data(response, "Token refresh failed")
        self.client.set_tokens(data["accessToken"], data["refreshToken"])
        return data


class UserApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_profile(self) -> dict[str, Any]:
        return _data(await self.client.get("/user/profile"), "Failed to get profile")["user"]

    async def update_profile(self, **updates: Any) -> dict[str, Any]:
        response = await self.client.put("/user/profile", updates)
        return _data(response, "Failed to update profile")["user"]

    async def change_password(self, current_password: str, new_password: str) -> None:
        response = await self.client.put(
            "/user/password",
            {"currentPassword": current_password, "newPassword": new_password},
        )
        if not response.get("success"):
            raise ApiError(None, response.get("message") or "Failed to change password")


class PlaygroundApi:
    """Session endpoints under ``/playground``."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_sessions(
        self,
        page: int | None = None,
        limit: int | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        response = await self.client.get(
            "/playground/sessions", {"page": page, "limit": limit, "search": search}
        )
        return _data(response, "Failed to get sessions")

    async def get_session(self, session_id: str) -> dict[str, Any]:
        response = await self.client.get(f"/playground/sessions/{session_id}")
        return _data(response, "Failed to get session")["session"]

    async def create_session(self, **fields: Any) -> dict[str, Any]:
        response = await self.client.post("/playground/sessions", fields)
        return _data(response, "Failed to create session")["session"]

    async def update_session(self, session_id: str, **updates: Any) -> dict[str, Any]:
        response = await self.client.put(f"/playground/sessions/{session_id}", updates)
        return _data(response, "Failed to update session")["session"]

    async def add_message(self, session_id: str, role: str, content: str) -> dict[str, Any]:
        response = await self.client.post(
            f"/playground/sessions/{session_id}/messages", {"role": role, "content": content}
        )
        return _data(response, "Failed to add message")["session"]

    async def delete_session(self, session_id: str) -> None:
        response = await self.client.delete(f"/playground/sessions/{session_id}")
        if not response.get("success"):
            raise ApiError(None, response.get("message") or "Failed to delete session")

    async def get_public_sessions(
        self,
        page: int | None = None,
        limit: int | None = None,
        search: str | None = None,
        tags: str | None = None,
    ) -> dict[str, Any]:
        response = await self.client.get(
            "/playground/public", {"page": page, "limit": limit, "search": search, "tags": tags}
        )
        return _data(response, "Failed to get public sessions")
