"""Tests for the client token storage and refreshing HTTP client."""

import json

import httpx
import pytest

from playground.client.api_client import ApiClient, ApiError
from playground.client.storage import MemoryTokenStorage, TokenStorage

BASE_URL = "http://testserver/api"


def envelope(data=None, message="", success=True, status=200) -> httpx.Response:
    body = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return httpx.Response(status, json=body)


class FakeServer:
    """Accepts only ``valid-access``; refresh succeeds when ``refresh_ok`` is set."""

    def __init__(self, refresh_ok: bool = True):
        self.refresh_ok = refresh_ok
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        if request.url.path == "/api/auth/refresh":
            if not self.refresh_ok:
                return envelope(message="Invalid or expired refresh token", success=False, status=401)
            assert json.loads(request.content) == {"refreshToken": "old-refresh"}
            return envelope({"accessToken": "valid-access", "refreshToken": "new-refresh"})
        if request.headers.get("Authorization") != "Bearer valid-access":
            return envelope(message="Invalid or expired token", success=False, status=401)
        return envelope({"user": {"id": "u1"}})


def make_client(server, storage=None) -> ApiClient:
    return ApiClient(BASE_URL, storage=storage or MemoryTokenStorage(), transport=httpx.MockTransport(server))


class TestTokenStorage:
    """Test cases for the JSON token file."""

    def test_save_load_clear(self, tmp_path):
        storage = TokenStorage(tmp_path / "nested" / "tokens.json")
        assert storage.load() == (None, None)
        storage.save("a", "r")
        assert storage.load() == ("a", "r")
        assert storage.has_tokens()
        storage.clear()
        assert storage.load() == (None, None)

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "tokens.json"
        path.write_text("{not json", encoding="utf-8")
        assert TokenStorage(path).load() == (None, None)


class TestApiClient:
    """Test cases for ApiClient."""

    @pytest.mark.asyncio
    async def test_attaches_bearer_token(self):
        server = FakeServer()
        storage = MemoryTokenStorage()
        storage.save("valid-access", "old-refresh")
        async with make_client(server, storage) as client:
            response = await client.get("/user/profile")
        assert response["data"]["user"]["id"] == "u1"
        assert server.calls == ["/api/user/profile"]

    @pytest.mark.asyncio
    async def test_refreshes_once_and_retries(self):
        server = FakeServer()
        storage = MemoryTokenStorage()
        storage.save("expired-access", "old-refresh")
        async with make_client(server, storage) as client:
            response = await client.get("/user/profile")

        assert response["success"] is True
        assert server.calls == ["/api/user/profile", "/api/auth/refresh", "/api/user/profile"]
        assert storage.load() == ("valid-access", "new-refresh")

    @pytest.mark.asyncio
    async def test_failed_refresh_clears_tokens(self):
        server = FakeServer(refresh_ok=False)
        storage = MemoryTokenStorage()
        storage.save("expired-access", "old-refresh")
        async with make_client(server, storage) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/user/profile")

        assert exc_info.value.status == 401
        assert exc_info.value.message == "Invalid or expired token"
        assert storage.load() == (None, None)
        assert server.calls == ["/api/user/profile", "/api/auth/refresh"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("endpoint", ["/auth/login", "/auth/register"])
    async def test_failed_sign_in_does_not_refresh(self, endpoint):
        server = FakeServer()
        storage = MemoryTokenStorage()
        storage.save("expired-access", "old-refresh")
        async with make_client(server, storage) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.post(endpoint, {"email": "ada@example.com", "password": "wrong-one"})

        assert exc_info.value.status == 401
        assert server.calls == [f"/api{endpoint}"]
        assert storage.load() == ("expired-access", "old-refresh")

    @pytest.mark.asyncio
    async def test_no_refresh_without_refresh_token(self):
        server = FakeServer()
        async with make_client(server) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/user/profile")
        assert exc_info.value.status == 401
        assert server.calls == ["/api/user/profile"]

    @pytest.mark.asyncio
    async def test_error_envelope_surfaces(self):
        def handler(request):
            return httpx.Response(
                400,
                json={"success": False, "message": "Validation failed", "errors": [{"field": "name"}]},
            )

        async with make_client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.post("/playground/sessions", {})
        assert exc_info.value.status == 400
        assert exc_info.value.errors == [{"field": "name"}]

    @pytest.mark.asyncio
    async def test_non_json_error(self):
        async with make_client(lambda r: httpx.Response(502, text="Bad gateway")) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/health")
        assert exc_info.value.message == "HTTP 502: Bad Gateway"

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/health")
        assert exc_info.value.status is None
        assert exc_info.value.message.startswith("Network error:")

    @pytest.mark.asyncio
    async def test_empty_params_dropped(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return envelope({"sessions": []})

        async with make_client(handler) as client:
            await client.get("/playground/public", {"page": 2, "search": "", "tags": None})
        assert seen == ["http://testserver/api/playground/public?page=2"]
