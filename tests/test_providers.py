"""
Unit tests for the provider contract, response parsing and vendor adapters
"""
import json

import anthropic
import httpx
import openai
import pytest

from conftest import ScriptedProvider
from promptcoach.llm.anthropic_client import AnthropicClient
from promptcoach.llm.base import (
    GENERIC_EXPLANATION,
    ORIGINAL_KEPT,
    error_kind_for_status,
    parse_rewrite_response,
    strip_placeholders,
)
from promptcoach.llm.factory import has_valid_key_format
from promptcoach.llm.gemini_client import GeminiClient
from promptcoach.llm.openai_client import OpenAIClient
from promptcoach.prompts.rewrite import SYSTEM, build_user_message
from promptcoach.types import (
    ProviderErrorKind,
    RewriteIssue,
    RewriteRequest,
    SessionContext,
)

_REQ = httpx.Request("POST", "https://api.example.com/v1")


@pytest.fixture
def request_():
    return RewriteRequest(
        original_prompt="fix the login bug",
        golden_scores={"goal": 80, "output": 50, "limits": 10, "data": 0, "evaluation": 0, "next": 0},
        issues=(RewriteIssue(severity="high", category="beExplicit", message="Vague", suggestion="Be specific"),),
    )


class TestParseRewriteResponse:

    def test_json_reply(self):
        reply = 'Sure!\n{"rewrittenPrompt": "Fix the login bug in auth.py", ' \
                '"explanation": "Named the file", "improvements": ["file", "goal"]}'
        result = parse_rewrite_response(reply, "fix it")
        assert result.success
        assert result.rewritten_prompt == "Fix the login bug in auth.py"
        assert result.explanation == "Named the file"
        assert result.improvements == ("file", "goal")

    def test_plain_text_reply(self):
        result = parse_rewrite_response("  Fix the login bug in auth.py  ", "fix it")
        assert result.rewritten_prompt == "Fix the login bug in auth.py"
        assert result.explanation == GENERIC_EXPLANATION
        assert result.improvements == ()

    def test_invalid_json_falls_back_to_plain_text(self):
        result = parse_rewrite_response("{not json}", "fix it")
        assert result.success
        assert result.rewritten_prompt == "{not json}"
        assert result.explanation == GENERIC_EXPLANATION

    def test_placeholder_only_rewrite_keeps_original(self):
        reply = json.dumps({"rewrittenPrompt": "[코드 입력]", "explanation": "x"}, ensure_ascii=False)
        result = parse_rewrite_response(reply, "로그인 버그 고쳐줘")
        assert result.rewritten_prompt == "로그인 버그 고쳐줘"
        assert result.explanation == ORIGINAL_KEPT

    def test_placeholders_are_stripped(self):
        reply = json.dumps({
            "rewrittenPrompt": "Fix the bug in [insert file name here] now",
            "explanation": "Clearer",
        })
        result = parse_rewrite_response(reply, "fix it")
        assert result.rewritten_prompt == "Fix the bug in now"
        assert result.explanation == "Clearer"

    def test_strip_placeholders_variants(self):
        assert strip_placeholders("Use [your project] with [describe here] today") == "Use with today"
        assert strip_placeholders("Keep [1, 2] as is") == "Keep [1, 2] as is"


class TestErrorKinds:

    @pytest.mark.parametrize("status,kind", [
        (401, ProviderErrorKind.AUTHENTICATION),
        (403, ProviderErrorKind.AUTHENTICATION),
        (429, ProviderErrorKind.RATE_LIMIT),
        (500, ProviderErrorKind.SERVER),
        (503, ProviderErrorKind.SERVER),
        (400, ProviderErrorKind.API),
        (None, ProviderErrorKind.API),
    ])
    def test_status_mapping(self, status, kind):
        assert error_kind_for_status(status) == kind

    def test_anthropic_errors(self):
        client = AnthropicClient()
        assert client.classify_error(anthropic.APIConnectionError(request=_REQ)) == ProviderErrorKind.NETWORK
        rate = anthropic.RateLimitError("slow down", response=httpx.Response(429, request=_REQ), body=None)
        assert client.classify_error(rate) == ProviderErrorKind.RATE_LIMIT

    def test_openai_errors(self):
        client = OpenAIClient()
        assert client.classify_error(openai.APIConnectionError(request=_REQ)) == ProviderErrorKind.NETWORK
        auth = openai.AuthenticationError("bad key", response=httpx.Response(401, request=_REQ), body=None)
        assert client.classify_error(auth) == ProviderErrorKind.AUTHENTICATION

    def test_key_format(self):
        assert has_valid_key_format("claude", "sk-ant-abc")
        assert has_valid_key_format("gemini", "AIzaXYZ")
        assert not has_valid_key_format("gemini", "sk-abc")
        assert not has_valid_key_format("openai", "  ")


class TestRewriteProviderContract:

    @pytest.mark.asyncio
    async def test_blank_key_makes_no_call(self, request_):
        provider = ScriptedProvider(reply="unused")
        result = await provider.rewrite_prompt(request_, "   ")
        assert not result.success
        assert result.error_kind == ProviderErrorKind.MISSING_KEY
        assert result.error == "Scripted API key is not set."
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_success_uses_default_model_and_shared_prompt(self, request_):
        provider = ScriptedProvider(reply='{"rewrittenPrompt": "Fix login in auth.py"}')
        result = await provider.rewrite_prompt(request_, " key ")
        assert result.success
        assert result.rewritten_prompt == "Fix login in auth.py"
        call = provider.calls[0]
        assert call["api_key"] == "key"
        assert call["model"] == "scripted-1"
        assert call["system"] == SYSTEM
        assert call["user"] == build_user_message(request_)

    @pytest.mark.asyncio
    async def test_model_override(self, request_):
        provider = ScriptedProvider(reply="ok")
        await provider.rewrite_prompt(request_, "key", model_id="custom-model")
        assert provider.calls[0]["model"] == "custom-model"

    @pytest.mark.asyncio
    async def test_empty_reply(self, request_):
        result = await ScriptedProvider(reply="   ").rewrite_prompt(request_, "key")
        assert result.error_kind == ProviderErrorKind.EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_network_error_becomes_failure(self, request_):
        provider = ScriptedProvider(exc=httpx.ConnectError("refused"))
        result = await provider.rewrite_prompt(request_, "key")
        assert not result.success
        assert result.error_kind == ProviderErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_unknown_error_keeps_detail(self, request_):
        provider = ScriptedProvider(exc=RuntimeError("boom"))
        result = await provider.rewrite_prompt(request_, "key")
        assert result.error_kind == ProviderErrorKind.API
        assert result.error == "Scripted API error: boom"

    @pytest.mark.asyncio
    async def test_validate_key(self):
        assert not await ScriptedProvider(reply="hi").validate_key("")
        assert await ScriptedProvider(reply="hi").validate_key("key")
        assert not await ScriptedProvider(exc=RuntimeError("401")).validate_key("key")

    @pytest.mark.asyncio
    async def test_validate_key_sends_minimal_request(self):
        provider = ScriptedProvider(reply="hi")
        await provider.validate_key("key")
        assert provider.calls[0]["user"] == "test"
        assert provider.calls[0]["max_tokens"] == 10


class TestUserMessage:

    def test_scores_issues_and_context(self, request_):
        ctx = SessionContext(project_name="shop", tech_stack=("React",), git_branch="main")
        message = build_user_message(replace_context(request_, ctx))
        assert 'Original prompt:\n"""\nfix the login bug\n"""' in message
        assert "  ✓ Goal: 80" in message
        assert "  △ Output: 50" in message
        assert "  ✗ Limits: 10" in message
        assert "1. [high] Vague\n   -> Be specific" in message
        assert "- Project: shop" in message
        assert "Branch" not in message

    @pytest.mark.parametrize("task", ["작업 진행 중", "working", "In Progress"])
    def test_placeholder_task_is_left_out(self, request_, task):
        ctx = SessionContext(project_name="shop", current_task=task)
        assert "Current task" not in build_user_message(replace_context(request_, ctx))

    def test_real_task_is_included(self, request_):
        ctx = SessionContext(current_task="Migrate the checkout flow")
        assert "- Current task: Migrate the checkout flow" in build_user_message(replace_context(request_, ctx))

    def test_no_context_section_without_context(self, request_):
        assert "Session context:" not in build_user_message(request_)


def replace_context(request: RewriteRequest, ctx: SessionContext) -> RewriteRequest:
    return RewriteRequest(
        original_prompt=request.original_prompt,
        golden_scores=request.golden_scores,
        issues=request.issues,
        session_context=ctx,
    )


class TestGeminiClient:

    def _client(self, handler) -> GeminiClient:
        return GeminiClient(transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_success(self, request_):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            reply = '{"rewrittenPrompt": "Fix the login bug in auth.py", "improvements": ["file"]}'
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": reply}]}}],
                "usageMetadata": {"totalTokenCount": 42},
            })

        result = await self._client(handler).rewrite_prompt(request_, "AIza-test")
        assert result.success
        assert result.rewritten_prompt == "Fix the login bug in auth.py"
        assert result.improvements == ("file",)
        assert seen["path"] == "/v1beta/models/gemini-2.0-flash:generateContent"
        assert seen["key"] == "AIza-test"
        assert seen["body"]["systemInstruction"]["parts"][0]["text"] == SYSTEM
        assert seen["body"]["generationConfig"]["maxOutputTokens"] == 1500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,text,kind", [
        (400, "API key not valid. Please pass a valid API key.", ProviderErrorKind.AUTHENTICATION),
        (400, "Invalid JSON payload", ProviderErrorKind.API),
        (429, "Resource exhausted", ProviderErrorKind.RATE_LIMIT),
        (500, "Internal error", ProviderErrorKind.SERVER),
    ])
    async def test_http_errors(self, request_, status, text, kind):
        client = self._client(lambda request: httpx.Response(status, text=text))
        result = await client.rewrite_prompt(request_, "AIza-test")
        assert not result.success
        assert result.error_kind == kind

    @pytest.mark.asyncio
    async def test_connection_error(self, request_):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        result = await self._client(handler).rewrite_prompt(request_, "AIza-test")
        assert result.error_kind == ProviderErrorKind.NETWORK
        assert result.error == "Could not reach Gemini. Check your network connection."

    @pytest.mark.asyncio
    async def test_no_candidates_is_empty_response(self, request_):
        client = self._client(lambda request: httpx.Response(200, json={"candidates": []}))
        result = await client.rewrite_prompt(request_, "AIza-test")
        assert result.error_kind == ProviderErrorKind.EMPTY_RESPONSE
