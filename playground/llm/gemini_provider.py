"""Google Gemini LLM Provider.

Two interchangeable backends serve the same request:

* the LangChain SDK backend (``ChatGoogleGenerativeAI``), tried first;
* a direct REST call to ``models/{model}:generateContent``.

Once the SDK backend fails, either at construction or on a call, the
provider switches to REST for the rest of its lifetime.
"""

from typing import Any

import httpx
from langchain_google_genai import ChatGoogleGenerativeAI

from playground.core.config import LLMConfig
from playground.core.exceptions import ProviderFailure
from playground.core.logging import get_logger
from playground.llm.base import content_text, to_chat_messages
from playground.llm.factory import LLMFactory

logger = get_logger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
PROVIDER = "gemini"

NOT_CONFIGURED = "Gemini API key is not configured. Set LLM_GOOGLE_API_KEY in your .env file."
INVALID_KEY = "Invalid Gemini API key. Please check your API key."
QUOTA_EXCEEDED = "Gemini API quota exceeded. Please try again later."
UNEXPECTED_FORMAT = "Unexpected response format from Gemini API"

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


def build_rest_payload(
    prompt: str,
    history: list[dict[str, str]] | None,
    temperature: float,
    max_tokens: int,
) -> dict[str, Any]:
    """Request body for ``generateContent``. Assistant turns use the ``model`` role."""
    contents = [
        {
            "role": "model" if turn.get("role") in ("assistant", "model") else "user",
            "parts": [{"text": turn.get("content", "")}],
        }
        for turn in history or []
    ]
    contents.append({"role": "user", "parts": [{"text": prompt}]})
    return {
        "contents": contents,
        "safetySettings": [{"category": c, "threshold": "BLOCK_NONE"} for c in SAFETY_CATEGORIES],
        "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
    }


def extract_text(data: Any) -> str:
    """Pull the first candidate's text out of a ``generateContent`` response."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
        text = "".join(part.get("text", "") for part in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        raise ProviderFailure(UNEXPECTED_FORMAT, provider=PROVIDER) from e
    if not parts:
        raise ProviderFailure(UNEXPECTED_FORMAT, provider=PROVIDER)
    return text


@LLMFactory.register("gemini")
class GeminiProvider:
    """Gemini provider with SDK-first, REST-fallback backend selection."""

    name = PROVIDER

    def __init__(
        self,
        config: LLMConfig,
        sdk_client: Any | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self._sdk_client = sdk_client
        self._http_client = http_client
        self.use_rest = False

    @property
    def api_key(self) -> str | None:
        key = self.config.google_api_key
        return key.strip() if key and key.strip() else None

    @property
    def endpoint(self) -> str:
        base = (self.config.base_url or GEMINI_API_BASE).rstrip("/")
        return f"{base}/models/{self.config.model}:generateContent"

    async def generate(self, prompt: str, history: list[dict[str, str]] | None = None) -> str:
        """Generate a single response.

        Raises:
            ProviderFailure: Missing or invalid key, quota, network failure,
                or a response without candidate text
        """
        if self.api_key is None:
            raise ProviderFailure(NOT_CONFIGURED, provider=PROVIDER)

        if not self.use_rest:
            try:
                return await self._generate_sdk(prompt, history)
            except Exception as e:
                logger.warning("gemini_sdk_failed_switching_to_rest", error=str(e))
                self.use_rest = True

        return await self._generate_rest(prompt, history)

    async def test_api_key(self) -> bool:
        """Send a trivial prompt; True if either backend answers."""
        try:
            await self.generate("Hi")
        except ProviderFailure as e:
            logger.info("gemini_key_test_failed", error=e.message)
            return False
        return True

    def _sdk(self) -> Any:
        if self._sdk_client is None:
            self._sdk_client = ChatGoogleGenerativeAI(
                model=self.config.model,
                google_api_key=self.api_key,
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_tokens,
                timeout=self.config.request_timeout,
            )
        return self._sdk_client

    async def _generate_sdk(self, prompt: str, history: list[dict[str, str]] | None) -> str:
        response = await self._sdk().ainvoke(to_chat_messages(prompt, history))
        return content_text(response.content)

    async def _generate_rest(self, prompt: str, history: list[dict[str, str]] | None) -> str:
        payload = build_rest_payload(prompt, history, self.config.temperature, self.config.max_tokens)
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        client = self._http_client or httpx.AsyncClient(timeout=self.config.request_timeout)
        try:
            response = await client.post(self.endpoint, json=payload, headers=headers)
        except httpx.RequestError as e:
            raise ProviderFailure(f"Failed to reach Gemini API: {e}", provider=PROVIDER) from e
        finally:
            if self._http_client is None:
                await client.aclose()

        if response.status_code in (400, 401, 403):
            logger.warning("gemini_rest_rejected", status_code=response.status_code)
            raise ProviderFailure(INVALID_KEY, provider=PROVIDER)
        if response.status_code == 429:
            raise ProviderFailure(QUOTA_EXCEEDED, provider=PROVIDER)
        if response.is_error:
            raise ProviderFailure(
                f"Gemini API call failed: {response.status_code} - {response.text}",
                provider=PROVIDER,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderFailure(UNEXPECTED_FORMAT, provider=PROVIDER) from e
        return extract_text(data)
