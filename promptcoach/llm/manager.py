"""
Priority-ordered rewrite across several AI vendors.

States: not started -> trying(provider) -> succeeded | exhausted.
Only provider outcomes drive transitions; timeouts belong to the adapters.
Vendors are awaited one at a time, and a single attempt budget is shared
across all of them. Cancellation is never caught here.
"""
import logging
from typing import Iterable, Mapping

from promptcoach.llm.base import RewriteProvider
from promptcoach.types import (
    ProviderConfig,
    ProviderType,
    RewriteRequest,
    RewriteResultWithProvider,
)

logger = logging.getLogger(__name__)

NO_PROVIDER_ERROR = (
    "No AI provider is available. Set an API key "
    "(ANTHROPIC_API_KEY, OPENAI_API_KEY or GEMINI_API_KEY) to enable AI rewrites."
)
ALL_FAILED_ERROR = "All AI providers failed."


def get_enabled_providers(configs: Iterable[ProviderConfig]) -> list[ProviderConfig]:
    """Enabled, keyed configs in ascending priority; equal priorities keep input order."""
    usable = [c for c in configs if c.is_enabled and c.api_key.strip()]
    return sorted(usable, key=lambda c: c.priority)


def get_primary_provider(configs: Iterable[ProviderConfig]) -> ProviderConfig | None:
    configs = list(configs)
    for config in configs:
        if config.is_primary and config.is_enabled and config.api_key.strip():
            return config
    enabled = get_enabled_providers(configs)
    return enabled[0] if enabled else None


def has_any_provider(configs: Iterable[ProviderConfig]) -> bool:
    return bool(get_enabled_providers(configs))


def create_default_provider_config(
    provider: ProviderType,
    api_key: str = "",
    is_primary: bool = False,
    priority: int = 1,
    model_id: str | None = None,
) -> ProviderConfig:
    return ProviderConfig(
        provider=provider,
        api_key=api_key,
        is_enabled=bool(api_key.strip()),
        is_primary=is_primary,
        priority=priority,
        model_id=model_id,
    )


def _resolve_registry(registry: Mapping[str, RewriteProvider] | None) -> Mapping[str, RewriteProvider]:
    if registry is not None:
        return registry
    from promptcoach.llm.factory import build_registry
    return build_registry()


async def validate_provider_key(
    provider: ProviderType,
    api_key: str,
    registry: Mapping[str, RewriteProvider] | None = None,
) -> bool:
    return await _resolve_registry(registry)[provider].validate_key(api_key)


async def rewrite_with_fallback(
    request: RewriteRequest,
    configs: Iterable[ProviderConfig],
    max_retries: int = 2,
    registry: Mapping[str, RewriteProvider] | None = None,
) -> RewriteResultWithProvider:
    enabled = get_enabled_providers(configs)
    if not enabled:
        logger.info("No enabled AI provider, skipping rewrite")
        return RewriteResultWithProvider(success=False, error=NO_PROVIDER_ERROR)

    registry = _resolve_registry(registry)
    attempts: list[ProviderType] = []
    last_error: str | None = None

    for config in enabled:
        if len(attempts) >= max_retries:
            break

        provider = registry.get(config.provider)
        attempts.append(config.provider)
        if provider is None:
            last_error = f"Unknown provider: {config.provider}"
            logger.warning("No adapter registered for %s", config.provider)
            continue
        logger.info("Trying %s (attempt %d/%d)", config.provider, len(attempts), max_retries)

        try:
            result = await provider.rewrite_prompt(request, config.api_key, config.model_id)
        except Exception as exc:
            last_error = str(exc) or type(exc).__name__
            logger.warning("%s raised: %s", config.provider, last_error)
            continue

        if result.success:
            was_fallback = len(attempts) > 1
            logger.info("Rewrite succeeded with %s%s", config.provider, " (fallback)" if was_fallback else "")
            return RewriteResultWithProvider(
                success=True,
                rewritten_prompt=result.rewritten_prompt,
                explanation=result.explanation,
                improvements=result.improvements,
                provider=config.provider,
                was_fallback=was_fallback,
                fallback_reason=last_error if was_fallback else None,
                attempts=tuple(attempts),
            )

        last_error = result.error or "Unknown error"
        logger.warning("%s failed: %s", config.provider, last_error)

    logger.info("All %d provider attempts failed", len(attempts))
    was_fallback = len(attempts) > 1
    return RewriteResultWithProvider(
        success=False,
        error=last_error or ALL_FAILED_ERROR,
        provider=attempts[-1] if attempts else None,
        was_fallback=was_fallback,
        fallback_reason=ALL_FAILED_ERROR if was_fallback else None,
        attempts=tuple(attempts),
    )
