"""Records shared by the analysis engine, the rewriter and the provider layer."""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Intent = Literal[
    "command", "question", "instruction", "feedback", "context", "clarification", "unknown",
]

TaskCategory = Literal[
    "code-generation",
    "code-review",
    "bug-fix",
    "refactoring",
    "explanation",
    "documentation",
    "testing",
    "architecture",
    "deployment",
    "data-analysis",
    "general",
    "unknown",
]

ProviderType = Literal["claude", "openai", "gemini"]

Severity = Literal["high", "medium", "low"]

VariantType = Literal["conservative", "balanced", "comprehensive", "ai"]

GOLDEN_DIMENSIONS: tuple[str, ...] = ("goal", "output", "limits", "data", "evaluation", "next")


# ── classification ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PromptFeatures:
    length: int
    word_count: int
    has_code_block: bool
    has_url: bool
    has_file_path: bool
    has_question_mark: bool
    has_exclamation_mark: bool
    language_hint: Literal["ko", "en", "mixed"]
    complexity: Literal["simple", "moderate", "complex"]


@dataclass(frozen=True)
class IntentResult:
    intent: Intent
    confidence: float
    matched_keywords: tuple[str, ...]
    scores: dict[str, float] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class CategoryResult:
    category: TaskCategory
    confidence: float
    scores: dict[str, float] = field(default_factory=dict, compare=False)
    secondary: tuple[tuple[TaskCategory, float], ...] = ()
    is_multi_intent: bool = False


@dataclass(frozen=True)
class ClassificationResult:
    intent: Intent
    intent_confidence: float
    task_category: TaskCategory
    category_confidence: float
    matched_keywords: tuple[str, ...]
    features: PromptFeatures
    secondary_categories: tuple[tuple[TaskCategory, float], ...] = ()


# ── GOLDEN ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GOLDENScore:
    """Six GOLDEN dimensions in [0, 1]; ``total`` is always their mean.

    ``total`` is not an init argument. It is derived on construction, so
    ``dataclasses.replace`` and ``with_dimension`` recompute it too.
    """

    goal: float
    output: float
    limits: float
    data: float
    evaluation: float
    next: float
    total: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "total", sum(self.dimensions().values()) / len(GOLDEN_DIMENSIONS))

    def dimensions(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in GOLDEN_DIMENSIONS}

    def with_dimension(self, name: str, value: float) -> "GOLDENScore":
        return replace(self, **{name: value})

    def as_percentages(self) -> dict[str, int]:
        return {name: round(value * 100) for name, value in self.dimensions().items()}

    @classmethod
    def from_mapping(cls, values: dict[str, float]) -> "GOLDENScore":
        return cls(**{name: float(values.get(name, 0.0)) for name in GOLDEN_DIMENSIONS})


@dataclass(frozen=True)
class ConsistencyViolation:
    rule_id: str
    dimension: str
    original_value: float
    adjusted_value: float


@dataclass(frozen=True)
class ConsistencyResult:
    adjusted_scores: GOLDENScore
    violations: tuple[ConsistencyViolation, ...] = ()


@dataclass(frozen=True)
class AntiPattern:
    id: str
    name: str
    severity: Severity
    description: str
    fix: str
    example: str = ""


@dataclass(frozen=True)
class GuidelineScore:
    guideline: str
    name: str
    description: str
    score: float
    weight: float
    evidence: tuple[str, ...]
    suggestion: str


@dataclass(frozen=True)
class GuidelineEvaluation:
    overall_score: float
    guideline_scores: tuple[GuidelineScore, ...]
    recommendations: tuple[str, ...]
    grade: Literal["A", "B", "C", "D", "F"]


@dataclass(frozen=True)
class PromptAnalysis:
    """Everything the engine knows about one prompt, handed to collaborators as-is."""

    text: str
    classification: ClassificationResult
    raw_golden: GOLDENScore
    quality_density: float
    golden: GOLDENScore
    violations: tuple[ConsistencyViolation, ...]
    anti_patterns: tuple[AntiPattern, ...]
    guidelines: GuidelineEvaluation


# ── rewriting ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ConfidenceFactors:
    classification_confidence: float
    dimensions_improved: int
    anti_pattern_free: float
    template_match: float
    context_richness: float


@dataclass(frozen=True)
class LastExchange:
    user_message: str = ""
    assistant_summary: str = ""
    assistant_tools: tuple[str, ...] = ()
    assistant_files: tuple[str, ...] = ()


@dataclass(frozen=True)
class SessionContext:
    project_name: str = ""
    tech_stack: tuple[str, ...] = ()
    current_task: str = ""
    recent_files: tuple[str, ...] = ()
    recent_tools: tuple[str, ...] = ()
    git_branch: str = ""
    last_exchange: LastExchange | None = None


@dataclass(frozen=True)
class RewriteIssue:
    severity: str
    category: str
    message: str
    suggestion: str = ""


@dataclass(frozen=True)
class RewriteRequest:
    original_prompt: str
    golden_scores: dict[str, int]
    issues: tuple[RewriteIssue, ...] = ()
    session_context: SessionContext | None = None


@dataclass(frozen=True)
class RewriteVariant:
    rewritten_prompt: str
    key_changes: tuple[str, ...]
    confidence: float
    variant: VariantType
    label: str
    is_ai_generated: bool = False
    ai_explanation: str | None = None
    needs_setup: bool = False
    provider: ProviderType | None = None
    was_fallback: bool = False
    fallback_reason: str | None = None


# ── providers ─────────────────────────────────────────────────────────────────

class ProviderErrorKind(str, Enum):
    MISSING_KEY = "missing_key"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    NETWORK = "network"
    EMPTY_RESPONSE = "empty_response"
    API = "api"


class ProviderConfig(BaseModel):
    """One configured vendor. Written by the settings surface, read-only here."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderType
    api_key: str = ""
    is_enabled: bool = True
    is_primary: bool = False
    priority: int = Field(default=1, ge=1)
    model_id: str | None = None


@dataclass(frozen=True)
class ProviderRewriteResult:
    success: bool
    rewritten_prompt: str | None = None
    explanation: str | None = None
    improvements: tuple[str, ...] = ()
    error: str | None = None
    error_kind: ProviderErrorKind | None = None


@dataclass(frozen=True)
class RewriteResultWithProvider(ProviderRewriteResult):
    provider: ProviderType | None = None
    was_fallback: bool = False
    fallback_reason: str | None = None
    attempts: tuple[ProviderType, ...] = ()
