"""
Rule-based intent and task-category classification.

No model involvement: scores are keyword counts adjusted by the rule tables
in patterns.py, so the same text and tables always give the same result.
"""
from promptcoach.analysis.features import extract_features
from promptcoach.analysis.keywords import contains_keyword, find_matches
from promptcoach.analysis.patterns import DEFAULT_TABLES, PatternTables
from promptcoach.types import (
    CategoryResult,
    ClassificationResult,
    IntentResult,
    PromptFeatures,
)

# Literal '?' is a strong question signal on its own.
_QUESTION_MARK_BONUS = 2.0

_CONFIDENCE_OFFSET = 0.2
_FALLBACK_INTENT_CONFIDENCE = 0.5
_UNKNOWN_CATEGORY_CONFIDENCE = 0.3

_SECONDARY_OFFSET = 0.05
_SECONDARY_CAP = 0.9
_SECONDARY_LIMIT = 2
# Top two categories within this relative gap are reported as multi-intent.
_MULTI_INTENT_GAP = 0.15

INTENT_LABELS: dict[str, str] = {
    "command": "Command",
    "question": "Question",
    "instruction": "Instruction",
    "feedback": "Feedback",
    "context": "Context",
    "clarification": "Clarification",
    "unknown": "Unknown",
}

CATEGORY_LABELS: dict[str, str] = {
    "code-generation": "Code generation",
    "code-review": "Code review",
    "bug-fix": "Bug fix",
    "refactoring": "Refactoring",
    "explanation": "Explanation",
    "documentation": "Documentation",
    "testing": "Testing",
    "architecture": "Architecture",
    "deployment": "Deployment",
    "data-analysis": "Data analysis",
    "general": "General",
    "unknown": "Unknown",
}


def _confidence(best: float, total: float) -> float:
    return min(best / total + _CONFIDENCE_OFFSET, 1.0)


def _infer_intent(features: PromptFeatures) -> str:
    if features.has_question_mark:
        return "question"
    if features.complexity == "complex":
        return "instruction"
    return "command"


# ── intent ────────────────────────────────────────────────────────────────────

def classify_intent(text: str, tables: PatternTables | None = None) -> IntentResult:
    tables = tables or DEFAULT_TABLES
    features = extract_features(text)

    scores: dict[str, float] = {}
    matched: list[str] = []
    for intent, patterns in tables.intents.items():
        hits = find_matches(text, patterns.ko, patterns.en)
        scores[intent] = float(len(hits))
        matched.extend(hits)

    for rule in tables.negation:
        if rule.pattern.search(text):
            for intent in rule.intents:
                if intent in scores:
                    scores[intent] = max(0.0, scores[intent] + rule.penalty)

    if features.has_question_mark and "question" in scores:
        scores["question"] += _QUESTION_MARK_BONUS

    best = max(scores.values(), default=0.0)
    if not matched or best <= 0:
        return IntentResult(
            intent=_infer_intent(features),
            confidence=_FALLBACK_INTENT_CONFIDENCE,
            matched_keywords=tuple(matched),
            scores=scores,
        )

    # First intent in table order holding the max, except the command/question tie.
    intent = next(name for name, score in scores.items() if score == best)
    if scores.get("command") == best and scores.get("question") == best:
        intent = "question" if features.has_question_mark else "command"

    return IntentResult(
        intent=intent,
        confidence=_confidence(best, sum(scores.values())),
        matched_keywords=tuple(matched),
        scores=scores,
    )


# ── task category ─────────────────────────────────────────────────────────────

def _apply_disambiguation(
    text: str, scores: dict[str, float], matched: set[str], tables: PatternTables
) -> None:
    lowered = text.lower()
    for rule in tables.disambiguation:
        if rule.keyword not in matched:
            continue
        active = [cat for cat in rule.conflicting if scores.get(cat, 0) > 0]
        if len(active) < 2:
            continue
        for resolution in rule.resolutions:
            if resolution.pattern.search(lowered):
                scores[resolution.category] = scores.get(resolution.category, 0.0) + resolution.bonus
                break


def _apply_cooccurrence(text: str, scores: dict[str, float], tables: PatternTables) -> None:
    for rule in tables.cooccurrence:
        if all(contains_keyword(text, kw) for kw in rule.keywords):
            scores[rule.category] = scores.get(rule.category, 0.0) + rule.bonus


def classify_task_category(text: str, tables: PatternTables | None = None) -> CategoryResult:
    tables = tables or DEFAULT_TABLES

    scores: dict[str, float] = {}
    matched: set[str] = set()
    for category, patterns in tables.categories.items():
        hits = find_matches(text, patterns.ko, patterns.en)
        scores[category] = float(len(hits))
        matched.update(hits)

    _apply_disambiguation(text, scores, matched, tables)
    _apply_cooccurrence(text, scores, tables)

    best = max(scores.values(), default=0.0)
    if best <= 0:
        return CategoryResult(
            category="unknown",
            confidence=_UNKNOWN_CATEGORY_CONFIDENCE,
            scores=scores,
        )

    total = sum(scores.values())
    ranked = sorted(
        ((cat, score) for cat, score in scores.items() if score > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    category = ranked[0][0]
    secondary = tuple(
        (cat, min(score / total + _SECONDARY_OFFSET, _SECONDARY_CAP))
        for cat, score in ranked[1:1 + _SECONDARY_LIMIT]
    )
    is_multi_intent = len(ranked) > 1 and (best - ranked[1][1]) / best < _MULTI_INTENT_GAP

    return CategoryResult(
        category=category,
        confidence=_confidence(best, total),
        scores=scores,
        secondary=secondary,
        is_multi_intent=is_multi_intent,
    )


def classify_prompt(text: str, tables: PatternTables | None = None) -> ClassificationResult:
    """Intent, category and features for one prompt."""
    intent = classify_intent(text, tables)
    category = classify_task_category(text, tables)
    return ClassificationResult(
        intent=intent.intent,
        intent_confidence=intent.confidence,
        task_category=category.category,
        category_confidence=category.confidence,
        matched_keywords=intent.matched_keywords,
        features=extract_features(text),
        secondary_categories=category.secondary,
    )
