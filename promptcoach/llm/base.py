import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from promptcoach.prompts import rewrite as prompts
from promptcoach.types import (
    ProviderErrorKind,
    ProviderRewriteResult,
    ProviderType,
    RewriteRequest,
)

logger = logging.getLogger(__name__)

GENERIC_EXPLANATION = "Improved prompt generated by AI."
PLACEHOLDERS_REMOVED = "Placeholders removed from the AI rewrite."
ORIGINAL_KEPT = "Placeholders removed; original prompt kept."

# Bracketed filler a model leaves behind instead of real values:
# Korean "[...입력]", "[...설명]", "[...정보]"; English "[insert ...]", "[your ...]", "[... here]".
_PLACEHOLDER = re.compile(
    r"\[[^\]\n]*(?:입력|설명|정보)\]"
    r"|\[(?:insert|your)\b[^\]\n]*\]"
    r"|\[[^\]\n]*\bhere\]",
    re.IGNORECASE,
)
_EXTRA_SPACES = re.compile(r"[ \t]{2,}")

_ERROR_MESSAGES: dict[ProviderErrorKind, str] = {
    ProviderErrorKind.MISSING_KEY: "{name} API key is not set.",
    ProviderErrorKind.AUTHENTICATION: "{name} API key is invalid. Check it in your settings.",
    ProviderErrorKind.RATE_LIMIT: "{name} rate limit exceeded. Try again in a moment.",
    ProviderErrorKind.SERVER: "{name} API is temporarily unavailable.",
    ProviderErrorKind.NETWORK: "Could not reach {name}. Check your network connection.",
    ProviderErrorKind.EMPTY_RESPONSE: "{name} returned no text.",
    ProviderErrorKind.API: "{name} API error: {detail}",
}


@dataclass
class LLMResponse:
    content: str
    tokens_used: int = 0
    model: str = ""


def error_kind_for_status(status: int | None) -> ProviderErrorKind:
    if status in (401, 403):
        return ProviderErrorKind.AUTHENTICATION
    if status == 429:
        return ProviderErrorKind.RATE_LIMIT
    if status is not None and status >= 500:
        return ProviderErrorKind.SERVER
    return ProviderErrorKind.API


def strip_placeholders(text: str) -> str:
    cleaned = _PLACEHOLDER.sub("", text)
    return _EXTRA_SPACES.sub(" ", cleaned).strip()


def parse_rewrite_response(reply: str, original_prompt: str) -> ProviderRewriteResult:
    """Normalize a model reply into a rewrite result.

    The reply should hold ``{rewrittenPrompt, explanation, improvements}``. A
    reply without a parseable JSON object is taken as the rewritten prompt.
    """
    plain = ProviderRewriteResult(
        success=True,
        rewritten_prompt=reply.strip(),
        explanation=GENERIC_EXPLANATION,
    )

    match = re.search(r"\{.*\}", reply, re.DOTALL)
    if not match:
        return plain
    try:
        parsed = json.loads(match.group())
    except json.JSONDecodeError:
        return plain
    if not isinstance(parsed, dict):
        return plain

    rewritten = parsed.get("rewrittenPrompt")
    if not isinstance(rewritten, str) or not rewritten.strip():
        rewritten = reply.strip()
    explanation = parsed.get("explanation") if isinstance(parsed.get("explanation"), str) else None
    improvements = parsed.get("improvements")
    improvements = tuple(str(i) for i in improvements) if isinstance(improvements, list) else ()

    if _PLACEHOLDER.search(rewritten):
        logger.warning("Rewrite contains placeholders, stripping them")
        cleaned = strip_placeholders(rewritten)
        if not cleaned:
            return ProviderRewriteResult(
                success=True,
                rewritten_prompt=original_prompt,
                explanation=ORIGINAL_KEPT,
                improvements=improvements,
            )
        return ProviderRewriteResult(
            success=True,
            rewritten_prompt=cleaned,
            explanation=explanation or PLACEHOLDERS_REMOVED,
            improvements=improvements,
        )

    return ProviderRewriteResult(
        success=True,
        rewritten_prompt=rewritten.strip(),
        explanation=explanation,
        improvements=improvements,
    )


class RewriteProvider(ABC):
    """One AI vendor behind the rewrite contract.

    Subclasses only implement the raw completion call and error mapping;
    prompt building, response parsing and error reporting live here.
    """

    name: ProviderType
    display_name: str
    default_model: str

    def __init__(self, timeout: float = 30.0, max_tokens: int = 1500):
        self._timeout = timeout
        self._max_tokens = max_tokens

    @abstractmethod
    async def complete(
        self, system: str, user: str, api_key: str, model: str, max_tokens: int
    ) -> LLMResponse:
        """Send a single-turn completion request."""
        ...

    def classify_error(self, exc: Exception) -> ProviderErrorKind:
        if isinstance(exc, httpx.TransportError):
            return ProviderErrorKind.NETWORK
        if isinstance(exc, httpx.HTTPStatusError):
            return error_kind_for_status(exc.response.status_code)
        return ProviderErrorKind.API

    def error_message(self, kind: ProviderErrorKind, detail: str = "") -> str:
        return _ERROR_MESSAGES[kind].format(name=self.display_name, detail=detail)

    def _failure(self, kind: ProviderErrorKind, detail: str = "") -> ProviderRewriteResult:
        return ProviderRewriteResult(
            success=False,
            error=self.error_message(kind, detail),
            error_kind=kind,
        )

    async def rewrite_prompt(
        self, request: RewriteRequest, api_key: str, model_id: str | None = None
    ) -> ProviderRewriteResult:
        if not api_key or not api_key.strip():
            return self._failure(ProviderErrorKind.MISSING_KEY)

        try:
            response = await self.complete(
                system=prompts.SYSTEM,
                user=prompts.build_user_message(request),
                api_key=api_key.strip(),
                model=model_id or self.default_model,
                max_tokens=self._max_tokens,
            )
        except Exception as exc:
            kind = self.classify_error(exc)
            logger.warning("%s rewrite failed (%s): %s", self.display_name, kind.value, exc)
            return self._failure(kind, str(exc))

        if not response.content.strip():
            logger.warning("%s returned an empty response", self.display_name)
            return self._failure(ProviderErrorKind.EMPTY_RESPONSE)

        return parse_rewrite_response(response.content, request.original_prompt)

    async def validate_key(self, api_key: str) -> bool:
        if not api_key or not api_key.strip():
            return False
        try:
            await self.complete(
                system="",
                user="test",
                api_key=api_key.strip(),
                model=self.default_model,
                max_tokens=10,
            )
        except Exception as exc:
            logger.warning("%s key validation failed: %s", self.display_name, self.classify_error(exc).value)
            return False
        return True
