"""Format analysis and rewrite results as plain terminal text."""
from promptcoach.analysis.classifier import CATEGORY_LABELS, INTENT_LABELS
from promptcoach.types import (
    ClassificationResult,
    GOLDENScore,
    PromptAnalysis,
    RewriteResultWithProvider,
    RewriteVariant,
)

_DIMENSION_NAMES = {
    "goal": "Goal",
    "output": "Output",
    "limits": "Limits",
    "data": "Data",
    "evaluation": "Evaluation",
    "next": "Next",
}

_SEVERITY_ICONS = {"high": "🔴", "medium": "🟠", "low": "🟡"}

_SEPARATOR = "─" * 40


def _score_bar(score: float, total: int = 10) -> str:
    filled = min(max(round(score * total), 0), total)
    return "█" * filled + "░" * (total - filled)


def _pct(value: float) -> str:
    return f"{round(value * 100):>3}%"


def format_classification(result: ClassificationResult) -> str:
    intent = INTENT_LABELS.get(result.intent, result.intent)
    category = CATEGORY_LABELS.get(result.task_category, result.task_category)
    lines = [
        f"Intent:   {intent} ({_pct(result.intent_confidence).strip()})",
        f"Category: {category} ({_pct(result.category_confidence).strip()})",
    ]
    if result.secondary_categories:
        others = ", ".join(
            f"{CATEGORY_LABELS.get(cat, cat)} {_pct(conf).strip()}"
            for cat, conf in result.secondary_categories
        )
        lines.append(f"Also:     {others}")
    features = result.features
    lines.append(
        f"Language: {features.language_hint}  Words: {features.word_count}  "
        f"Complexity: {features.complexity}"
    )
    if result.matched_keywords:
        lines.append(f"Keywords: {', '.join(result.matched_keywords)}")
    return "\n".join(lines)


def format_golden(scores: GOLDENScore) -> str:
    lines = [
        f"{_DIMENSION_NAMES[name]:<11}{_score_bar(value)} {_pct(value)}"
        for name, value in scores.dimensions().items()
    ]
    lines.append(f"{'Total':<11}{_score_bar(scores.total)} {_pct(scores.total)}")
    return "\n".join(lines)


def format_analysis(analysis: PromptAnalysis) -> str:
    guidelines = analysis.guidelines
    lines = [
        "📊 Prompt analysis",
        _SEPARATOR,
        format_classification(analysis.classification),
        "",
        f"GOLDEN  (grade {guidelines.grade}, guidelines {_pct(guidelines.overall_score).strip()})",
        format_golden(analysis.golden),
    ]

    if analysis.violations:
        lines.append("")
        lines.append("Consistency adjustments:")
        for v in analysis.violations:
            lines.append(
                f"  - {v.rule_id}: {v.dimension} {v.original_value:.2f} → {v.adjusted_value:.2f}"
            )

    if analysis.anti_patterns:
        lines.append("")
        lines.append("Anti-patterns:")
        for ap in analysis.anti_patterns:
            lines.append(f"  {_SEVERITY_ICONS.get(ap.severity, '•')} {ap.name}: {ap.fix}")

    if guidelines.recommendations:
        lines.append("")
        lines.append("Recommendations:")
        lines.extend(f"  {i}. {rec}" for i, rec in enumerate(guidelines.recommendations, start=1))

    return "\n".join(lines)


def format_variant(variant: RewriteVariant) -> str:
    header = f"✏️  {variant.label}"
    if variant.needs_setup:
        note = variant.ai_explanation or "Set an API key to enable AI rewrites."
        return f"{header}\n{_SEPARATOR}\n(unavailable) {note}"

    if variant.provider:
        header += f" via {variant.provider}"
        if variant.was_fallback:
            header += " (fallback)"
    header += f"  confidence {_pct(variant.confidence).strip()}"

    lines = [header, _SEPARATOR, variant.rewritten_prompt]
    if variant.key_changes:
        lines.append("")
        lines.append("Changes: " + ", ".join(variant.key_changes))
    if variant.ai_explanation:
        lines.append(variant.ai_explanation)
    return "\n".join(lines)


def format_variants(variants: list[RewriteVariant]) -> str:
    return "\n\n".join(format_variant(v) for v in variants)


def format_rewrite_result(result: RewriteResultWithProvider) -> str:
    if not result.success:
        tried = " → ".join(result.attempts) if result.attempts else "none"
        return f"❌ Rewrite failed (tried: {tried})\n{result.error}"
    lines = [f"✅ Rewritten by {result.provider}", _SEPARATOR, result.rewritten_prompt or ""]
    if result.explanation:
        lines.extend(["", result.explanation])
    return "\n".join(lines)


def format_key_check(results: dict[str, bool | None]) -> str:
    lines = []
    for provider, ok in results.items():
        if ok is None:
            status = "not configured"
        else:
            status = "✅ valid" if ok else "❌ rejected"
        lines.append(f"{provider:<8}{status}")
    return "\n".join(lines)
