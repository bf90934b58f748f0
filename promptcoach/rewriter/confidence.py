"""
Evidence-based confidence for rewrite candidates.

A rule-based estimate never claims near-certainty or near-zero, so the
weighted sum is clamped to [0.30, 0.95].
"""
from typing import Iterable

from promptcoach.types import AntiPattern, ConfidenceFactors, GOLDENScore, SessionContext

_WEIGHTS = {
    "classification": 0.30,
    "dimensions": 0.25,
    "anti_pattern_free": 0.15,
    "template": 0.15,
    "context": 0.15,
}
_FLOOR = 0.30
_CEILING = 0.95

# Dimensions below this are expected to improve after a rewrite.
_IMPROVABLE_BELOW = 0.5

_SEVERITY_PENALTY = {"high": 0.30, "medium": 0.15, "low": 0.05}

# Placeholder task text the session layer reports when it knows nothing.
GENERIC_TASKS = frozenset({"", "작업 진행 중", "working", "in progress"})


def calculate_calibrated_confidence(factors: ConfidenceFactors) -> float:
    confidence = (
        factors.classification_confidence * _WEIGHTS["classification"]
        + (factors.dimensions_improved / 6) * _WEIGHTS["dimensions"]
        + factors.anti_pattern_free * _WEIGHTS["anti_pattern_free"]
        + factors.template_match * _WEIGHTS["template"]
        + factors.context_richness * _WEIGHTS["context"]
    )
    return max(_FLOOR, min(_CEILING, confidence))


def count_improved_dimensions(scores: GOLDENScore) -> int:
    return sum(1 for value in scores.dimensions().values() if value < _IMPROVABLE_BELOW)


def anti_pattern_free_score(anti_patterns: Iterable[AntiPattern]) -> float:
    penalty = sum(_SEVERITY_PENALTY.get(ap.severity, 0.05) for ap in anti_patterns)
    return max(0.0, 1.0 - penalty)


def has_meaningful_task(context: SessionContext) -> bool:
    return context.current_task.strip().lower() not in GENERIC_TASKS


def context_richness(context: SessionContext | None) -> float:
    if context is None:
        return 0.2

    richness = 0.3
    if context.tech_stack:
        richness += 0.2
    if has_meaningful_task(context):
        richness += 0.15
    if context.recent_files:
        richness += 0.15
    if context.last_exchange is not None:
        richness += 0.1
    if context.git_branch:
        richness += 0.1
    return min(1.0, richness)
