"""
Rule-based GOLDEN scoring, anti-pattern detection and guideline evaluation.

Each GOLDEN dimension collects weighted regex evidence (Korean and English)
and is capped at 1. The total is the plain mean; length bias is handled
separately by the quality-density correction in consistency.py.
"""
import re
from dataclasses import dataclass
from typing import Callable

from promptcoach.analysis.features import extract_features
from promptcoach.types import (
    AntiPattern,
    GOLDENScore,
    GuidelineEvaluation,
    GuidelineScore,
    PromptFeatures,
)


def _re(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


# ── GOLDEN ────────────────────────────────────────────────────────────────────
# Per dimension: (pattern, weight). Data also scores code blocks and file paths.

_GOLDEN_EVIDENCE: dict[str, tuple[tuple[re.Pattern, float], ...]] = {
    "goal": (
        (_re(r"목표|목적|원하는|goal|want|need|purpose|요청|기능"), 0.3),
        (_re(r"해\s?줘|해\s?주세요|해주시|하세요|합니다|해야|"
             r"create|make|build|implement|generate|develop"), 0.3),
        (_re(r"구현|작성|개발|생성|추가|수정|변경|설계|분석|리팩토링|구축|적용|설정|연동"), 0.2),
        (_re(r"기능|컴포넌트|모듈|시스템|API|페이지|화면|폼|버튼|로그인|회원가입|인증"), 0.2),
    ),
    "output": (
        (_re(r"형식|포맷|format|JSON|table|list|구조|타입|인터페이스"), 0.4),
        (_re(r"예시|example|샘플|sample|템플릿|template"), 0.3),
        (_re(r"\.tsx?|\.jsx?|\.py|\.java|\.go|코드|component|function|class"), 0.3),
    ),
    "limits": (
        (_re(r"하지\s?마|제외|without|except|don't|not|금지|불가"), 0.3),
        (_re(r"만|only|just|specific|특정|한정"), 0.2),
        (_re(r"React|TypeScript|Firebase|Node|Python|Java|버전|version"), 0.2),
        (_re(r"최대|최소|이상|이하|범위|사이|까지|부터"), 0.3),
    ),
    "data": (
        (_re(r"현재|상황|background|context|환경|프로젝트|시스템|아키텍처"), 0.25),
        (_re(r"사용|using|스택|stack|라이브러리|library|프레임워크|framework"), 0.25),
    ),
    "evaluation": (
        (_re(r"확인|검증|verify|validate|check|보장|ensure"), 0.3),
        (_re(r"테스트|test|성공|success|품질|quality|요구사항|requirement"), 0.35),
        (_re(r"성능|performance|보안|security|안전|안정|에러|error|예외"), 0.35),
    ),
    "next": (
        (_re(r"그다음|다음|then|after|next|이후|완료\s?후"), 0.35),
        (_re(r"단계|step|순서|절차|프로세스|워크플로우|workflow"), 0.35),
        (_re(r"추가로|또한|그리고|추후|향후|확장"), 0.3),
    ),
}

_CODE_BLOCK_DATA = 0.25
_FILE_PATH_DATA = 0.25


def score_golden(text: str) -> GOLDENScore:
    features = extract_features(text)
    raw = {
        name: sum(weight for pattern, weight in evidence if pattern.search(text))
        for name, evidence in _GOLDEN_EVIDENCE.items()
    }
    if features.has_code_block:
        raw["data"] += _CODE_BLOCK_DATA
    if features.has_file_path:
        raw["data"] += _FILE_PATH_DATA
    return GOLDENScore.from_mapping({name: min(round(value, 6), 1.0) for name, value in raw.items()})


# ── anti-patterns ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _AntiPatternRule:
    id: str
    name: str
    severity: str
    description: str
    fix: str
    matches: Callable[[str], bool]


_VAGUE_OBJECTIVE = re.compile(r".{1,15}")
_UNSTRUCTURED_CONTEXT = re.compile(r"[^\n]{200,}")
_IMPLICIT_CONSTRAINTS = _re(r"^(?!.*(?:만|without|제외|don't|not)).*(?:해줘|create|make)")
_MISSING_OUTPUT_FORMAT = _re(r"^(?!.*(?:형식|format|JSON|table|list|markdown)).*(?:알려줘|tell|show|explain)")
_VAGUE_REFERENCE = _re(r"이거|저거|그거|\b(?:this|that|it)\b(?!\s+is)")
_RETRY_WITHOUT_CONTEXT = _re(r"^(?:다시|again|retry|한번 더).{0,20}$")

ANTI_PATTERN_RULES: tuple[_AntiPatternRule, ...] = (
    _AntiPatternRule(
        id="vague-objective",
        name="Vague objective",
        severity="high",
        description="Prompt is too short to state a goal",
        fix="State the concrete goal and the result you expect.",
        matches=lambda t: bool(_VAGUE_OBJECTIVE.fullmatch(t)),
    ),
    _AntiPatternRule(
        id="unstructured-context",
        name="Unstructured context",
        severity="medium",
        description="Long run of text without any structure",
        fix="Split the context with markdown headings, lists or XML tags.",
        matches=lambda t: bool(_UNSTRUCTURED_CONTEXT.search(t)),
    ),
    _AntiPatternRule(
        id="implicit-constraints",
        name="Implicit constraints",
        severity="low",
        description="Open-ended request with no constraints",
        fix="Spell out constraints or preferences.",
        matches=lambda t: bool(_IMPLICIT_CONSTRAINTS.match(t)),
    ),
    _AntiPatternRule(
        id="missing-output-format",
        name="Missing output format",
        severity="low",
        description="No output format requested",
        fix="Say which output format you want (JSON, table, list...).",
        matches=lambda t: bool(_MISSING_OUTPUT_FORMAT.match(t)),
    ),
    _AntiPatternRule(
        id="vague-reference",
        name="Vague reference",
        severity="medium",
        description="Pronouns instead of concrete names",
        fix='Name the target explicitly, e.g. "the UserService class" instead of "this".',
        matches=lambda t: bool(_VAGUE_REFERENCE.search(t)),
    ),
    _AntiPatternRule(
        id="retry-without-context",
        name="Retry without context",
        severity="high",
        description="Asks to retry without saying what went wrong",
        fix="Explain what was wrong and how the next attempt should differ.",
        matches=lambda t: bool(_RETRY_WITHOUT_CONTEXT.match(t)),
    ),
)

_EXAMPLE_LIMIT = 50


def detect_anti_patterns(text: str) -> list[AntiPattern]:
    example = text if len(text) <= _EXAMPLE_LIMIT else text[:_EXAMPLE_LIMIT] + "..."
    return [
        AntiPattern(
            id=rule.id,
            name=rule.name,
            severity=rule.severity,
            description=rule.description,
            fix=rule.fix,
            example=example,
        )
        for rule in ANTI_PATTERN_RULES
        if rule.matches(text)
    ]


# ── guidelines ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _Check:
    pattern: re.Pattern | None
    weight: float
    evidence: str
    feature: Callable[[PromptFeatures], bool] | None = None
    predicate: Callable[[str], bool] | None = None


@dataclass(frozen=True)
class _Guideline:
    key: str
    name: str
    description: str
    weight: float
    checks: tuple[_Check, ...]
    suggestion: str


_OPEN_TAG = _re(r"<[a-z][^<>]*>")
_CLOSE_TAG = _re(r"</[a-z][^<>]*>")


def has_xml_tags(text: str) -> bool:
    """An opening tag somewhere before a closing tag."""
    opening = _OPEN_TAG.search(text)
    return opening is not None and _CLOSE_TAG.search(text, opening.end()) is not None


GUIDELINES: tuple[_Guideline, ...] = (
    _Guideline(
        key="beExplicit",
        name="Explicit instructions",
        description="Concrete verbs and targets",
        weight=0.20,
        checks=(
            _Check(_re(r"만들|생성|작성|수정|추가|삭제|변경|확인|"
                       r"create|make|build|write|update|add|remove|change|check"), 0.3, "Action verb"),
            _Check(None, 0.3, "File path", feature=lambda f: f.has_file_path),
            _Check(None, 0.2, "Enough detail", feature=lambda f: f.length >= 20),
            _Check(None, 0.2, "Code block", feature=lambda f: f.has_code_block),
        ),
        suggestion='Name the action and its target, e.g. "add a login method to the UserService class".',
    ),
    _Guideline(
        key="addContext",
        name="Context",
        description="Background that explains the request",
        weight=0.20,
        checks=(
            _Check(_re(r"현재|지금|상황|배경|currently|right now|situation|background"), 0.3,
                   "Current situation"),
            _Check(_re(r"목표|목적|원하는|필요|goal|want|need|purpose"), 0.3, "Goal or purpose"),
            _Check(_re(r"버전|환경|version|environment|react|vue|node|typescript|python"), 0.2,
                   "Environment or version"),
            _Check(None, 0.2, "Related code or file",
                   feature=lambda f: f.has_file_path or f.has_code_block),
        ),
        suggestion='Describe the situation, goal and stack, e.g. "our React 18 app loses state on reload".',
    ),
    _Guideline(
        key="useXMLTags",
        name="Structure",
        description="XML tags or markdown to separate parts of the prompt",
        weight=0.15,
        checks=(
            _Check(None, 0.5, "XML tags", predicate=has_xml_tags),
            _Check(re.compile(r"^#+\s|^\*\s|^-\s|^\d+\.\s", re.MULTILINE), 0.3, "Markdown structure"),
            _Check(re.compile(r"```[\s\S]*```"), 0.2, "Code fence"),
        ),
        suggestion="Structure the prompt with tags such as <context>, <requirement> and <output_format>.",
    ),
    _Guideline(
        key="chainOfThought",
        name="Step-by-step reasoning",
        description="Asks for a staged approach or reasoning",
        weight=0.15,
        checks=(
            _Check(_re(r"단계|step|순서|차례|먼저|그다음|step by step|one by one"), 0.4, "Step-by-step request"),
            _Check(_re(r"설명|이유|왜|explain|reason|why"), 0.3, "Asks for reasons"),
            _Check(_re(r"생각|think|consider|분석|analyze"), 0.3, "Asks for analysis"),
        ),
        suggestion='Ask for steps or reasons, e.g. "explain step by step why this approach works".',
    ),
    _Guideline(
        key="specificOutput",
        name="Output format",
        description="Defines the shape of the result",
        weight=0.15,
        checks=(
            _Check(_re(r"형식|포맷|format|JSON|YAML|markdown|표|table|리스트|list"), 0.4, "Output format"),
            _Check(_re(r"예시|example|예를 들어|like this|such as"), 0.3, "Example"),
            _Check(_re(r"간단히|짧게|자세히|상세히|brief|short|detailed|concise"), 0.3, "Length"),
        ),
        suggestion='State the output format, e.g. "return JSON" or "summarize in three lines".',
    ),
    _Guideline(
        key="constraints",
        name="Constraints",
        description="Boundaries the answer must respect",
        weight=0.15,
        checks=(
            _Check(_re(r"하지 마|제외|않고|only|without|except|don't|not|avoid"), 0.4, "Explicit constraint"),
            _Check(_re(r"만|만을|only|just|specific|특정"), 0.3, "Limited scope"),
            _Check(_re(r"경우|조건|if|when|unless|condition"), 0.3, "Conditions"),
        ),
        suggestion='Add constraints, e.g. "without external libraries" or "standard library only".',
    ),
)

_GRADES: tuple[tuple[float, str], ...] = ((0.9, "A"), (0.75, "B"), (0.6, "C"), (0.4, "D"))
_WEAK_GUIDELINE = 0.5
_MAX_RECOMMENDATIONS = 5


def grade_for(score: float) -> str:
    for threshold, grade in _GRADES:
        if score >= threshold:
            return grade
    return "F"


def _score_guideline(guideline: _Guideline, text: str, features: PromptFeatures) -> GuidelineScore:
    score = 0.0
    evidence: list[str] = []
    for check in guideline.checks:
        if check.feature:
            hit = check.feature(features)
        elif check.predicate:
            hit = check.predicate(text)
        else:
            hit = bool(check.pattern.search(text))
        if hit:
            score += check.weight
            evidence.append(check.evidence)
    return GuidelineScore(
        guideline=guideline.key,
        name=guideline.name,
        description=guideline.description,
        score=min(round(score, 6), 1.0),
        weight=guideline.weight,
        evidence=tuple(evidence),
        suggestion=guideline.suggestion,
    )


def _recommendations(scores: list[GuidelineScore], anti_patterns: list[AntiPattern]) -> list[str]:
    urgent = [f"[Urgent] {ap.name}: {ap.fix}" for ap in anti_patterns if ap.severity == "high"]
    rest = [f"[{gs.name}] {gs.suggestion}" for gs in scores if gs.score < _WEAK_GUIDELINE]
    rest.extend(f"[{ap.name}] {ap.fix}" for ap in anti_patterns if ap.severity != "high")
    return (urgent + rest)[:_MAX_RECOMMENDATIONS]


def evaluate_guidelines(text: str, anti_patterns: list[AntiPattern] | None = None) -> GuidelineEvaluation:
    """Weighted guideline adherence, grade and the top recommendations."""
    features = extract_features(text)
    if anti_patterns is None:
        anti_patterns = detect_anti_patterns(text)

    scores = [_score_guideline(g, text, features) for g in GUIDELINES]
    overall = round(sum(gs.score * gs.weight for gs in scores), 6)

    return GuidelineEvaluation(
        overall_score=overall,
        guideline_scores=tuple(scores),
        recommendations=tuple(_recommendations(scores, anti_patterns)),
        grade=grade_for(overall),
    )
