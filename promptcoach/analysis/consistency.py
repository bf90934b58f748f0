"""
GOLDEN cross-dimension consistency checks and quality-density correction.

Raw dimension scores are produced independently, so they can disagree with
each other: a prompt cannot have a clear goal it never says how to deliver.
The rules below penalize such combinations. Conditions are evaluated on the
incoming scores; penalties on the same dimension compound and floor at 0.

Quality density counters the length bias of keyword scoring: long prompts
hit more keywords without being better. Structure and GOLDEN indicators per
ten words earn a small bonus; long, sparse prompts earn a penalty instead.
"""
import re
from bisect import bisect_left
from dataclasses import dataclass
from typing import Callable

from promptcoach.analysis.features import count_words
from promptcoach.types import ConsistencyResult, ConsistencyViolation, GOLDENScore


@dataclass(frozen=True)
class ConsistencyRule:
    id: str
    description: str
    condition: Callable[[GOLDENScore], bool]
    dimension: str
    penalty: float


CONSISTENCY_RULES: tuple[ConsistencyRule, ...] = (
    ConsistencyRule(
        id="goal-without-output",
        description="Clear goal but no expected output",
        condition=lambda s: s.goal > 0.7 and s.output < 0.3,
        dimension="goal",
        penalty=0.10,
    ),
    ConsistencyRule(
        id="limits-without-data",
        description="Constraints without the context they apply to",
        condition=lambda s: s.limits > 0.7 and s.data < 0.3,
        dimension="limits",
        penalty=0.10,
    ),
    ConsistencyRule(
        id="evaluation-without-goal",
        description="Success criteria for an unclear goal",
        condition=lambda s: s.evaluation > 0.5 and s.goal < 0.4,
        dimension="evaluation",
        penalty=0.15,
    ),
    ConsistencyRule(
        id="next-without-evaluation",
        description="Next steps with no completion check",
        condition=lambda s: s.next > 0.6 and s.evaluation < 0.3,
        dimension="next",
        penalty=0.10,
    ),
    ConsistencyRule(
        id="output-without-goal",
        description="Output format for an unclear goal",
        condition=lambda s: s.output > 0.6 and s.goal < 0.3,
        dimension="output",
        penalty=0.10,
    ),
    ConsistencyRule(
        id="data-without-goal",
        description="Plenty of context but no goal",
        condition=lambda s: s.data > 0.7 and s.goal < 0.3,
        dimension="data",
        penalty=0.08,
    ),
)

# Keeps 0.8 - 0.1 at 0.7 instead of 0.7000000000000001.
_PRECISION = 6


def validate_golden_consistency(
    scores: GOLDENScore, rules: tuple[ConsistencyRule, ...] = CONSISTENCY_RULES
) -> ConsistencyResult:
    adjusted = scores.dimensions()
    violations: list[ConsistencyViolation] = []

    for rule in rules:
        if not rule.condition(scores):
            continue
        before = adjusted[rule.dimension]
        after = round(max(0.0, before - rule.penalty), _PRECISION)
        adjusted[rule.dimension] = after
        violations.append(ConsistencyViolation(
            rule_id=rule.id,
            dimension=rule.dimension,
            original_value=before,
            adjusted_value=after,
        ))

    if not violations:
        return ConsistencyResult(adjusted_scores=scores)
    return ConsistencyResult(
        adjusted_scores=GOLDENScore.from_mapping(adjusted),
        violations=tuple(violations),
    )


# ── quality density ───────────────────────────────────────────────────────────

_STRUCTURE_MARKERS: tuple[tuple[re.Pattern, int], ...] = (
    (re.compile(r"```[\s\S]*?```"), 4),
    (re.compile(r"^#+\s", re.MULTILINE), 2),
    (re.compile(r"^[-*]\s|^\d+\.\s", re.MULTILINE), 1),
)

# Paired XML tags are counted by a scan instead of a backreference regex,
# which backtracks quadratically over many unclosed tags.
_OPEN_TAG = re.compile(r"<([a-z][\w-]*)[^<>]*>", re.IGNORECASE)
_CLOSE_TAG = re.compile(r"</([a-z][\w-]*)>", re.IGNORECASE)
_TAG_PAIR_WEIGHT = 3

_GOLDEN_INDICATORS: dict[str, re.Pattern] = {
    "goal": re.compile(r"목표|목적|goal|objective|want|need|원하는|필요", re.IGNORECASE),
    "output": re.compile(r"형식|포맷|format|JSON|table|list|출력", re.IGNORECASE),
    "limits": re.compile(r"제약|constraint|only|without|except|하지\s*마|제외", re.IGNORECASE),
    "data": re.compile(r"현재|상황|context|environment|using|사용|환경", re.IGNORECASE),
    "evaluation": re.compile(r"확인|검증|verify|success|테스트|test|성공", re.IGNORECASE),
    "next": re.compile(r"다음|then|after|next|이후|단계|step", re.IGNORECASE),
}

_DENSITY_BONUS_RATE = 0.15
_DENSITY_BONUS_CAP = 0.10

# (min words, density below which the penalty applies, penalty); strictest first.
_VERBOSITY_PENALTIES: tuple[tuple[int, float, float], ...] = (
    (400, 0.4, -0.10),
    (200, 0.3, -0.05),
)


def count_tag_pairs(text: str) -> int:
    """Non-overlapping <name ...>...</name> pairs, each closed by its nearest closing tag."""
    closings: dict[str, list[tuple[int, int]]] = {}
    for match in _CLOSE_TAG.finditer(text):
        closings.setdefault(match.group(1).lower(), []).append((match.start(), match.end()))

    pairs = 0
    pos = 0
    while True:
        opening = _OPEN_TAG.search(text, pos)
        if opening is None:
            return pairs
        candidates = closings.get(opening.group(1).lower(), [])
        i = bisect_left(candidates, (opening.end(), 0))
        if i == len(candidates):
            pos = opening.end()
            continue
        pairs += 1
        pos = candidates[i][1]


def measure_density(text: str) -> float:
    """Weighted structural and GOLDEN-indicator hits per ten words, capped at 1."""
    words = count_words(text)
    if words == 0:
        return 0.0

    elements = count_tag_pairs(text) * _TAG_PAIR_WEIGHT
    for pattern, weight in _STRUCTURE_MARKERS:
        elements += len(pattern.findall(text)) * weight
    for pattern in _GOLDEN_INDICATORS.values():
        elements += len(pattern.findall(text))

    return min(elements / (words / 10), 1.0)


def calculate_quality_density(text: str) -> float:
    """Adjustment to add to each GOLDEN dimension, never negative."""
    density = measure_density(text)
    words = count_words(text)

    bonus = min(density * _DENSITY_BONUS_RATE, _DENSITY_BONUS_CAP)
    penalty = 0.0
    for min_words, max_density, value in _VERBOSITY_PENALTIES:
        if words > min_words and density < max_density:
            penalty = value
            break

    return max(0.0, bonus + penalty)


def apply_quality_density(scores: GOLDENScore, adjustment: float) -> GOLDENScore:
    if adjustment <= 0:
        return scores
    return GOLDENScore.from_mapping({
        name: round(min(1.0, value + adjustment), _PRECISION)
        for name, value in scores.dimensions().items()
    })
