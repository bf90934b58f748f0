"""
Gemini over the REST generateContent endpoint.

There is no Gemini SDK in the dependency set; httpx covers the single
request this adapter needs.
"""
import httpx

from promptcoach.llm.base import LLMResponse, RewriteProvider
from promptcoach.llm.factory import PROVIDER_METADATA
from promptcoach.types import ProviderErrorKind

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient(RewriteProvider):
    name = "gemini"
    display_name = PROVIDER_METADATA["gemini"].display_name
    default_model = PROVIDER_METADATA["gemini"].default_model

    def __init__(
        self,
        timeout: float = 30.0,
        max_tokens: int = 1500,
        base_url: str = DEFAULT_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout=timeout, max_tokens=max_tokens)
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    async def complete(
        self, system: str, user: str, api_key: str, model: str, max_tokens: int
    ) -> LLMResponse:
        body = {
            "contents": [{"role": "user", "parts": [{"text": user}]}],
            "generationConfig": {"maxOutputTokens": max_tokens},
        }
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(
                f"{self._base_url}/models/{model}:generateContent",
                headers={"x-goog-api-key": api_key},
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()

        candidates = data.get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
        content = "".join(part.get("text", "") for part in parts)
        tokens = (data.get("usageMetadata") or {}).get("totalTokenCount", 0)
        return LLMResponse(content=content, tokens_used=tokens, model=model)

    def classify_error(self, exc: Exception) -> ProviderErrorKind:
        # Gemini answers a bad key with 400 INVALID_ARGUMENT, not 401.
        if (
            isinstance(exc, httpx.HTTPStatusError)
            and exc.response.status_code == 400
            and "api key" in exc.response.text.lower()
        ):
            return ProviderErrorKind.AUTHENTICATION
        return super().classify_error(exc)
