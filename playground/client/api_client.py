"""HTTP client for the playground API with transparent token refresh."""

from typing import Any

import httpx

from playground.client.storage import TokenStorage
from playground.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8001/api"
REFRESH_ENDPOINT = "/auth/refresh"
# Login, register, refresh and logout never carry a token worth refreshing
AUTH_PREFIX = "/auth/"


class ApiError(Exception):
    """Non-2xx response or transport failure.

    ``status`` is None when the request never reached the server.
    """

    def __init__(self, status: int | None, message: str, errors: list[dict[str, Any]] | None = None):
        self.status = status
        self.message = message
        self.errors = errors or []
        super().__init__(message)


class ApiClient:
    """Sends JSON requests with the stored bearer token.

    A 401 on an authenticated request triggers exactly one refresh through
    ``/auth/refresh``; on success the original request is retried once, on
    failure the stored tokens are cleared.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        storage: TokenStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.storage = storage if storage is not None else TokenStorage()
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def access_token(self) -> str | None:
        return self.storage.load()[0]

    @property
    def refresh_token(self) -> str | None:
        return self.storage.load()[1]

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        self.storage.save(access_token, refresh_token)

    def clear_tokens(self) -> None:
        self.storage.clear()

    def is_authenticated(self) -> bool:
        return self.access_token is not None

    async def request(
        self,
        method: str,
        endpoint: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded envelope.

        Raises:
            ApiError: On a non-2xx response or a network failure
        """
        params = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        response = await self._send(method, endpoint, json, params)

        if response.status_code == 401 and self.refresh_token and not endpoint.startswith(AUTH_PREFIX):
            if await self._refresh_access_token():
                response = await self._send(method, endpoint, json, params)

        return self._handle_response(response)

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("POST", endpoint, json=data)

    async def put(self, endpoint: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("PUT", endpoint, json=data)

    async def delete(self, endpoint: str) -> dict[str, Any]:
        return await self.request("DELETE", endpoint)

    async def _send(
        self,
        method: str,
        endpoint: str,
        json: dict[str, Any] | None,
        params: dict[str, Any] | None,
    ) -> httpx.Response:
        headers = {}
        if token := self.access_token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            return await self._client.request(method, endpoint, json=json, params=params, headers=headers)
        except httpx.RequestError as e:
            raise ApiError(None, f"Network error: {e}") from e

    async def _refresh_access_token(self) -> bool:
        refresh_token = self.refresh_token
        try:
            response = await self._client.post(REFRESH_ENDPOINT, json={"refreshToken": refresh_token})
            if response.is_success:
                data = response.json()["data"]
                self.set_tokens(data["accessToken"], data["refreshToken"])
                logger.debug("client_token_refreshed")
                return True
        except (httpx.RequestError, ValueError, KeyError, TypeError) as e:
            logger.warning("client_token_refresh_failed", error=str(e))

        self.clear_tokens()
        return False

    @staticmethod
    def _handle_response(response: httpx.Response) -> dict[str, Any]:
        is_json = "application/json" in response.headers.get("content-type", "")
        body: Any = None
        if is_json:
            try:
                body = response.json()
            except ValueError:
                body = None

        if response.is_error:
            message = f"HTTP {response.status_code}: {response.reason_phrase}"
            errors = None
            if isinstance(body, dict):
                message = body.get("message") or message
                errors = body.get("errors")
            raise ApiError(response.status_code, message, errors)

        if isinstance(body, dict):
            return body
        return {"success": True, "message": response.text}
