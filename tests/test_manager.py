"""
Unit tests for the priority-ordered provider fallback
"""
import asyncio

import pytest

from conftest import failed, mock_adapter, ok
from promptcoach.llm.manager import (
    ALL_FAILED_ERROR,
    NO_PROVIDER_ERROR,
    create_default_provider_config,
    get_enabled_providers,
    get_primary_provider,
    has_any_provider,
    rewrite_with_fallback,
    validate_provider_key,
)
from promptcoach.types import ProviderConfig, RewriteRequest


@pytest.fixture
def request_():
    return RewriteRequest(original_prompt="fix it", golden_scores={})


class TestProviderSelection:

    def test_enabled_sorted_by_priority(self):
        configs = [
            ProviderConfig(provider="openai", api_key="sk-2", priority=2),
            ProviderConfig(provider="claude", api_key="sk-ant-1", priority=1),
            ProviderConfig(provider="gemini", api_key="AIza3", priority=3, is_enabled=False),
        ]
        assert [c.provider for c in get_enabled_providers(configs)] == ["claude", "openai"]

    def test_blank_keys_are_not_usable(self):
        configs = [ProviderConfig(provider="claude", api_key="  ", priority=1)]
        assert get_enabled_providers(configs) == []
        assert not has_any_provider(configs)

    def test_equal_priorities_keep_input_order(self):
        configs = [
            ProviderConfig(provider="gemini", api_key="AIza", priority=1),
            ProviderConfig(provider="claude", api_key="sk-ant", priority=1),
        ]
        assert [c.provider for c in get_enabled_providers(configs)] == ["gemini", "claude"]

    def test_primary_provider(self, three_configs):
        assert get_primary_provider(three_configs).provider == "claude"

    def test_primary_falls_back_to_first_enabled(self):
        configs = [
            ProviderConfig(provider="claude", api_key="", is_primary=True, priority=1),
            ProviderConfig(provider="openai", api_key="sk-2", priority=2),
        ]
        assert get_primary_provider(configs).provider == "openai"
        assert get_primary_provider([]) is None

    def test_default_config_enabled_only_with_key(self):
        assert not create_default_provider_config("openai").is_enabled
        assert create_default_provider_config("openai", "sk-1").is_enabled


class TestRewriteWithFallback:

    @pytest.mark.asyncio
    async def test_primary_success(self, request_, three_configs):
        registry = {"claude": mock_adapter(ok()), "openai": mock_adapter(), "gemini": mock_adapter()}
        result = await rewrite_with_fallback(request_, three_configs, registry=registry)

        assert result.success
        assert result.provider == "claude"
        assert not result.was_fallback
        assert result.fallback_reason is None
        assert result.attempts == ("claude",)
        registry["claude"].rewrite_prompt.assert_awaited_once_with(request_, "sk-ant-1", None)
        registry["openai"].rewrite_prompt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_after_fallback(self, request_, three_configs):
        registry = {
            "claude": mock_adapter(failed("Claude rate limit exceeded.")),
            "openai": mock_adapter(ok("Better prompt")),
            "gemini": mock_adapter(),
        }
        result = await rewrite_with_fallback(request_, three_configs, registry=registry)

        assert result.success
        assert result.rewritten_prompt == "Better prompt"
        assert result.provider == "openai"
        assert result.was_fallback
        assert result.fallback_reason == "Claude rate limit exceeded."
        assert result.attempts == ("claude", "openai")

    @pytest.mark.asyncio
    async def test_attempt_budget_bounds_providers_tried(self, request_, three_configs):
        registry = {
            "claude": mock_adapter(failed("claude down")),
            "openai": mock_adapter(failed("openai down")),
            "gemini": mock_adapter(ok()),
        }
        result = await rewrite_with_fallback(request_, three_configs, max_retries=2, registry=registry)

        assert not result.success
        assert result.error == "openai down"
        assert result.provider == "openai"
        assert result.was_fallback
        assert result.fallback_reason == ALL_FAILED_ERROR
        assert result.attempts == ("claude", "openai")
        registry["gemini"].rewrite_prompt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_fail(self, request_, three_configs):
        registry = {
            "claude": mock_adapter(failed("a")),
            "openai": mock_adapter(failed("b")),
            "gemini": mock_adapter(failed("c")),
        }
        result = await rewrite_with_fallback(request_, three_configs, max_retries=5, registry=registry)
        assert not result.success
        assert result.error == "c"
        assert result.attempts == ("claude", "openai", "gemini")

    @pytest.mark.asyncio
    async def test_single_provider_failure_is_not_fallback(self, request_):
        configs = [ProviderConfig(provider="gemini", api_key="AIza", priority=1)]
        registry = {"gemini": mock_adapter(failed("Gemini API key is invalid."))}
        result = await rewrite_with_fallback(request_, configs, registry=registry)
        assert not result.success
        assert not result.was_fallback
        assert result.fallback_reason is None
        assert result.provider == "gemini"

    @pytest.mark.asyncio
    async def test_disabled_provider_never_called(self, request_):
        configs = [
            ProviderConfig(provider="openai", api_key="sk-2", priority=2),
            ProviderConfig(provider="claude", api_key="sk-ant-1", priority=1),
            ProviderConfig(provider="gemini", api_key="AIza3", priority=3, is_enabled=False),
        ]
        registry = {
            "claude": mock_adapter(failed("a")),
            "openai": mock_adapter(failed("b")),
            "gemini": mock_adapter(ok()),
        }
        result = await rewrite_with_fallback(request_, configs, max_retries=3, registry=registry)
        assert result.attempts == ("claude", "openai")
        registry["gemini"].rewrite_prompt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_raised_exception_counts_as_failure(self, request_, three_configs):
        registry = {
            "claude": mock_adapter(RuntimeError("kaboom")),
            "openai": mock_adapter(ok()),
            "gemini": mock_adapter(),
        }
        result = await rewrite_with_fallback(request_, three_configs, registry=registry)
        assert result.success
        assert result.provider == "openai"
        assert result.fallback_reason == "kaboom"

    @pytest.mark.asyncio
    async def test_unregistered_provider_is_reported_not_raised(self, request_):
        configs = [
            ProviderConfig(provider="claude", api_key="sk-ant-1", priority=1),
            ProviderConfig(provider="openai", api_key="sk-2", priority=2),
        ]
        registry = {"claude": mock_adapter(failed("claude down"))}
        result = await rewrite_with_fallback(request_, configs, registry=registry)
        assert not result.success
        assert result.error == "Unknown provider: openai"
        assert result.provider == "openai"
        assert result.attempts == ("claude", "openai")

    @pytest.mark.asyncio
    async def test_unregistered_provider_falls_through_to_next(self, request_, three_configs):
        registry = {"openai": mock_adapter(ok()), "gemini": mock_adapter()}
        result = await rewrite_with_fallback(request_, three_configs, registry=registry)
        assert result.success
        assert result.provider == "openai"
        assert result.fallback_reason == "Unknown provider: claude"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, request_, three_configs):
        registry = {
            "claude": mock_adapter(asyncio.CancelledError()),
            "openai": mock_adapter(ok()),
            "gemini": mock_adapter(),
        }
        with pytest.raises(asyncio.CancelledError):
            await rewrite_with_fallback(request_, three_configs, registry=registry)
        registry["openai"].rewrite_prompt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_enabled_provider(self, request_):
        registry = {"claude": mock_adapter(ok())}
        result = await rewrite_with_fallback(request_, [], registry=registry)
        assert not result.success
        assert result.error == NO_PROVIDER_ERROR
        assert result.provider is None
        assert result.attempts == ()
        registry["claude"].rewrite_prompt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_model_override_is_passed(self, request_):
        configs = [ProviderConfig(provider="openai", api_key="sk-1", model_id="gpt-4o-mini")]
        registry = {"openai": mock_adapter(ok())}
        await rewrite_with_fallback(request_, configs, registry=registry)
        registry["openai"].rewrite_prompt.assert_awaited_once_with(request_, "sk-1", "gpt-4o-mini")


@pytest.mark.asyncio
async def test_validate_provider_key_uses_registry():
    adapter = mock_adapter()
    assert await validate_provider_key("gemini", "AIza", registry={"gemini": adapter})
    adapter.validate_key.assert_awaited_once_with("AIza")
