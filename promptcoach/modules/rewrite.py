import logging
from typing import Iterable, Mapping

from promptcoach.llm.base import RewriteProvider
from promptcoach.llm.manager import has_any_provider, rewrite_with_fallback
from promptcoach.rewriter.confidence import (
    anti_pattern_free_score,
    calculate_calibrated_confidence,
    context_richness,
    count_improved_dimensions,
)
from promptcoach.rewriter.variants import generate_prompt_variants
from promptcoach.types import (
    ConfidenceFactors,
    PromptAnalysis,
    ProviderConfig,
    RewriteIssue,
    RewriteRequest,
    RewriteVariant,
    SessionContext,
)

logger = logging.getLogger(__name__)

AI_LABEL = "AI"
AI_DEFAULT_CHANGE = "Automatically improved by AI"

# A vendor rewrite is written for the prompt itself, so it always fits.
_AI_TEMPLATE_MATCH = 1.0

_ISSUE_BELOW = 0.5
_HIGH_SEVERITY_BELOW = 0.3


def build_rewrite_request(analysis: PromptAnalysis, context: SessionContext | None = None) -> RewriteRequest:
    issues = tuple(
        RewriteIssue(
            severity="high" if gs.score < _HIGH_SEVERITY_BELOW else "medium",
            category=gs.guideline,
            message=gs.description,
            suggestion=gs.suggestion,
        )
        for gs in analysis.guidelines.guideline_scores
        if gs.score < _ISSUE_BELOW
    )
    return RewriteRequest(
        original_prompt=analysis.text,
        golden_scores=analysis.golden.as_percentages(),
        issues=issues,
        session_context=context,
    )


def ai_placeholder(needs_setup: bool = True, explanation: str | None = None) -> RewriteVariant:
    return RewriteVariant(
        rewritten_prompt="",
        key_changes=(),
        confidence=0.0,
        variant="ai",
        label=AI_LABEL,
        needs_setup=needs_setup,
        ai_explanation=explanation,
    )


async def generate_ai_variant(
    analysis: PromptAnalysis,
    configs: Iterable[ProviderConfig],
    context: SessionContext | None = None,
    max_retries: int = 2,
    registry: Mapping[str, RewriteProvider] | None = None,
) -> RewriteVariant:
    """Rewrite through the configured vendors; a placeholder if none can."""
    configs = list(configs)
    if not has_any_provider(configs):
        return ai_placeholder()

    result = await rewrite_with_fallback(
        build_rewrite_request(analysis, context),
        configs,
        max_retries=max_retries,
        registry=registry,
    )
    if not result.success or not result.rewritten_prompt:
        logger.warning("AI rewrite failed: %s", result.error)
        return ai_placeholder(explanation=result.error)

    changes = list(result.improvements) or [AI_DEFAULT_CHANGE]
    if result.was_fallback:
        changes.append(f"Fallback: {result.fallback_reason}")

    factors = ConfidenceFactors(
        classification_confidence=analysis.classification.category_confidence,
        dimensions_improved=count_improved_dimensions(analysis.golden),
        anti_pattern_free=anti_pattern_free_score(analysis.anti_patterns),
        template_match=_AI_TEMPLATE_MATCH,
        context_richness=context_richness(context),
    )
    return RewriteVariant(
        rewritten_prompt=result.rewritten_prompt,
        key_changes=tuple(changes),
        confidence=calculate_calibrated_confidence(factors),
        variant="ai",
        label=AI_LABEL,
        is_ai_generated=True,
        ai_explanation=result.explanation,
        provider=result.provider,
        was_fallback=result.was_fallback,
        fallback_reason=result.fallback_reason,
    )


async def generate_all_variants(
    analysis: PromptAnalysis,
    configs: Iterable[ProviderConfig] = (),
    context: SessionContext | None = None,
    max_retries: int = 2,
    registry: Mapping[str, RewriteProvider] | None = None,
) -> list[RewriteVariant]:
    """AI variant (or its placeholder) first, then the rule-based variants."""
    ai = await generate_ai_variant(analysis, configs, context, max_retries, registry)
    return [ai, *generate_prompt_variants(analysis, context)]
