from dataclasses import dataclass
from typing import Mapping

from promptcoach.llm.base import RewriteProvider
from promptcoach.types import ProviderType


@dataclass(frozen=True)
class ProviderMetadata:
    id: ProviderType
    display_name: str
    description: str
    docs_url: str
    key_prefix: str
    default_model: str


PROVIDER_METADATA: dict[str, ProviderMetadata] = {
    "claude": ProviderMetadata(
        id="claude",
        display_name="Claude",
        description="Anthropic Claude API",
        docs_url="https://console.anthropic.com/settings/keys",
        key_prefix="sk-ant-",
        default_model="claude-sonnet-4-20250514",
    ),
    "openai": ProviderMetadata(
        id="openai",
        display_name="OpenAI",
        description="OpenAI GPT API",
        docs_url="https://platform.openai.com/api-keys",
        key_prefix="sk-",
        default_model="gpt-4o",
    ),
    "gemini": ProviderMetadata(
        id="gemini",
        display_name="Gemini",
        description="Google Gemini API",
        docs_url="https://aistudio.google.com/apikey",
        key_prefix="AIza",
        default_model="gemini-2.0-flash",
    ),
}


def has_valid_key_format(provider: str, key: str) -> bool:
    """Prefix check only; validate_key does the real round trip."""
    if not key or not key.strip():
        return False
    return key.strip().startswith(PROVIDER_METADATA[provider].key_prefix)


def get_provider(provider: str) -> RewriteProvider:
    from config import settings

    provider = provider.lower()
    timeout = settings.request_timeout_seconds
    max_tokens = settings.max_output_tokens

    if provider == "claude":
        from promptcoach.llm.anthropic_client import AnthropicClient
        return AnthropicClient(timeout=timeout, max_tokens=max_tokens)

    if provider == "openai":
        from promptcoach.llm.openai_client import OpenAIClient
        return OpenAIClient(
            timeout=timeout,
            max_tokens=max_tokens,
            base_url=settings.openai_base_url or None,
        )

    if provider == "gemini":
        from promptcoach.llm.gemini_client import GeminiClient
        return GeminiClient(
            timeout=timeout,
            max_tokens=max_tokens,
            base_url=settings.gemini_base_url,
        )

    raise ValueError(f"Unknown provider: {provider!r}")


def build_registry() -> Mapping[str, RewriteProvider]:
    return {name: get_provider(name) for name in PROVIDER_METADATA}
