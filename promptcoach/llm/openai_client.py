import openai
from openai import AsyncOpenAI

from promptcoach.llm.base import LLMResponse, RewriteProvider, error_kind_for_status
from promptcoach.llm.factory import PROVIDER_METADATA
from promptcoach.types import ProviderErrorKind


class OpenAIClient(RewriteProvider):
    name = "openai"
    display_name = PROVIDER_METADATA["openai"].display_name
    default_model = PROVIDER_METADATA["openai"].default_model

    def __init__(self, timeout: float = 30.0, max_tokens: int = 1500, base_url: str | None = None):
        super().__init__(timeout=timeout, max_tokens=max_tokens)
        self._base_url = base_url

    async def complete(
        self, system: str, user: str, api_key: str, model: str, max_tokens: int
    ) -> LLMResponse:
        kwargs = {"api_key": api_key, "timeout": self._timeout, "max_retries": 0}
        if self._base_url:
            kwargs["base_url"] = self._base_url

        messages = [{"role": "user", "content": user}]
        if system:
            messages.insert(0, {"role": "system", "content": system})

        async with AsyncOpenAI(**kwargs) as client:
            resp = await client.chat.completions.create(
                model=model,
                max_tokens=max_tokens,
                messages=messages,
            )

        content = resp.choices[0].message.content or ""
        tokens = resp.usage.total_tokens if resp.usage else 0
        return LLMResponse(content=content, tokens_used=tokens, model=model)

    def classify_error(self, exc: Exception) -> ProviderErrorKind:
        if isinstance(exc, openai.APIConnectionError):
            return ProviderErrorKind.NETWORK
        if isinstance(exc, openai.APIStatusError):
            return error_kind_for_status(exc.status_code)
        return super().classify_error(exc)
