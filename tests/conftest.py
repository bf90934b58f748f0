"""
Shared fixtures: scripted rewrite providers and provider configs.
"""
from unittest.mock import AsyncMock, Mock

import pytest

from promptcoach.llm.base import LLMResponse, RewriteProvider
from promptcoach.types import ProviderConfig, ProviderRewriteResult


class ScriptedProvider(RewriteProvider):
    """RewriteProvider whose completion call returns a fixed reply or raises."""

    name = "claude"
    display_name = "Scripted"
    default_model = "scripted-1"

    def __init__(self, reply: str = "", exc: Exception | None = None):
        super().__init__(timeout=5.0, max_tokens=256)
        self.reply = reply
        self.exc = exc
        self.calls: list[dict] = []

    async def complete(self, system, user, api_key, model, max_tokens):
        self.calls.append(
            {"system": system, "user": user, "api_key": api_key, "model": model, "max_tokens": max_tokens}
        )
        if self.exc is not None:
            raise self.exc
        return LLMResponse(content=self.reply, model=model)


def ok(text: str = "Improved prompt", improvements=("Added output format",)) -> ProviderRewriteResult:
    return ProviderRewriteResult(
        success=True,
        rewritten_prompt=text,
        explanation="Made it specific.",
        improvements=tuple(improvements),
    )


def failed(error: str) -> ProviderRewriteResult:
    return ProviderRewriteResult(success=False, error=error)


def mock_adapter(*outcomes) -> Mock:
    """Adapter stub; each outcome is a result to return or an exception to raise."""
    adapter = Mock(spec=RewriteProvider)
    adapter.rewrite_prompt = AsyncMock(side_effect=list(outcomes))
    adapter.validate_key = AsyncMock(return_value=True)
    return adapter


@pytest.fixture
def three_configs():
    """Claude, OpenAI and Gemini, all enabled, in that priority order."""
    return [
        ProviderConfig(provider="claude", api_key="sk-ant-1", is_primary=True, priority=1),
        ProviderConfig(provider="openai", api_key="sk-2", priority=2),
        ProviderConfig(provider="gemini", api_key="AIza3", priority=3),
    ]
