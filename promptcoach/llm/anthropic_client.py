import anthropic

from promptcoach.llm.base import LLMResponse, RewriteProvider, error_kind_for_status
from promptcoach.llm.factory import PROVIDER_METADATA
from promptcoach.types import ProviderErrorKind


class AnthropicClient(RewriteProvider):
    name = "claude"
    display_name = PROVIDER_METADATA["claude"].display_name
    default_model = PROVIDER_METADATA["claude"].default_model

    async def complete(
        self, system: str, user: str, api_key: str, model: str, max_tokens: int
    ) -> LLMResponse:
        kwargs = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": user}],
        }
        if system:
            kwargs["system"] = system

        # Retries are the fallback loop's decision, not the SDK's.
        async with anthropic.AsyncAnthropic(
            api_key=api_key, timeout=self._timeout, max_retries=0
        ) as client:
            msg = await client.messages.create(**kwargs)

        content = next((block.text for block in msg.content if block.type == "text"), "")
        tokens = (msg.usage.input_tokens or 0) + (msg.usage.output_tokens or 0)
        return LLMResponse(content=content, tokens_used=tokens, model=model)

    def classify_error(self, exc: Exception) -> ProviderErrorKind:
        if isinstance(exc, anthropic.APIConnectionError):
            return ProviderErrorKind.NETWORK
        if isinstance(exc, anthropic.APIStatusError):
            return error_kind_for_status(exc.status_code)
        return super().classify_error(exc)
