import logging

from promptcoach.analysis.classifier import classify_prompt
from promptcoach.analysis.consistency import (
    apply_quality_density,
    calculate_quality_density,
    validate_golden_consistency,
)
from promptcoach.analysis.golden import detect_anti_patterns, evaluate_guidelines, score_golden
from promptcoach.analysis.patterns import PatternTables
from promptcoach.types import GOLDENScore, PromptAnalysis

logger = logging.getLogger(__name__)


def analyze_prompt(
    text: str,
    tables: PatternTables | None = None,
    raw_golden: GOLDENScore | None = None,
) -> PromptAnalysis:
    """Classify and score a prompt.

    ``raw_golden`` lets a caller supply scores from another scorer; the density
    correction and consistency rules are applied to it the same way.
    """
    classification = classify_prompt(text, tables)
    raw = raw_golden if raw_golden is not None else score_golden(text)

    density = calculate_quality_density(text)
    consistency = validate_golden_consistency(apply_quality_density(raw, density))
    if consistency.violations:
        logger.debug(
            "Consistency rules fired: %s",
            ", ".join(v.rule_id for v in consistency.violations),
        )

    anti_patterns = detect_anti_patterns(text)
    return PromptAnalysis(
        text=text,
        classification=classification,
        raw_golden=raw,
        quality_density=density,
        golden=consistency.adjusted_scores,
        violations=consistency.violations,
        anti_patterns=tuple(anti_patterns),
        guidelines=evaluate_guidelines(text, anti_patterns),
    )
