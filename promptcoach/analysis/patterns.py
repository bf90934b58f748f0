"""
Static keyword and rule tables for intent and task-category classification.

Every table is immutable after import (tuples and read-only mappings), so the
classifier can be called from any number of callers without locking. Tests
that need a smaller rule set build their own PatternTables and pass it in.

Keyword lists are split by script:
  ko: matched as substrings (see keywords.py)
  en: matched on word boundaries
"""
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class LanguagePatterns:
    ko: tuple[str, ...] = ()
    en: tuple[str, ...] = ()


@dataclass(frozen=True)
class Resolution:
    pattern: re.Pattern
    category: str
    bonus: float


@dataclass(frozen=True)
class DisambiguationRule:
    """A keyword shared by several categories and the patterns that settle it."""

    keyword: str
    conflicting: tuple[str, ...]
    resolutions: tuple[Resolution, ...]


@dataclass(frozen=True)
class CooccurrenceRule:
    keywords: tuple[str, ...]
    category: str
    bonus: float


@dataclass(frozen=True)
class NegationRule:
    pattern: re.Pattern
    intents: tuple[str, ...]
    penalty: float


def _frozen(table: dict) -> Mapping:
    return MappingProxyType(table)


def _re(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


# ── intents ───────────────────────────────────────────────────────────────────
# Order matters: it breaks ties between equal scores.

INTENT_PATTERNS: Mapping[str, LanguagePatterns] = _frozen({
    "command": LanguagePatterns(
        ko=("해줘", "해주세요", "만들어", "작성해", "생성해", "추가해",
            "삭제해", "수정해", "변경해", "바꿔", "고쳐", "실행해"),
        en=("create", "make", "build", "write", "add", "remove", "delete",
            "update", "modify", "change", "fix", "run", "execute", "implement"),
    ),
    "question": LanguagePatterns(
        ko=("어떻게", "왜", "뭐", "무엇", "언제", "어디", "누가",
            "할 수 있나", "가능한가", "어떤가요", "인가요"),
        en=("how", "why", "what", "when", "where", "who", "which", "can",
            "could", "would", "is it possible", "do you know"),
    ),
    "instruction": LanguagePatterns(
        ko=("먼저", "다음", "그리고", "이후", "나중에", "순서대로",
            "단계별로", "과정", "절차", "방법"),
        en=("first", "then", "next", "after", "finally", "step", "process",
            "procedure", "method", "approach", "way to"),
    ),
    "feedback": LanguagePatterns(
        ko=("감사", "고마워", "완벽", "좋아", "아니", "틀렸", "잘못",
            "안돼", "에러", "문제", "대박", "최고"),
        en=("thank", "thanks", "perfect", "great", "awesome", "no", "wrong",
            "incorrect", "error", "issue", "problem", "excellent"),
    ),
    "context": LanguagePatterns(
        ko=("현재", "지금", "상황", "환경", "사용 중", "프로젝트",
            "목표", "원하는", "필요한", "조건"),
        en=("currently", "right now", "situation", "environment", "using",
            "project", "goal", "need", "want", "require", "condition"),
    ),
    "clarification": LanguagePatterns(
        ko=("무슨 뜻", "이해가 안", "다시 설명", "예를 들어", "예시",
            "구체적으로", "자세히", "명확하게"),
        en=("what do you mean", "don't understand", "explain again", "for example",
            "example", "specifically", "more detail", "clarify", "elaborate"),
    ),
})

# ── task categories ───────────────────────────────────────────────────────────

CATEGORY_PATTERNS: Mapping[str, LanguagePatterns] = _frozen({
    "code-generation": LanguagePatterns(
        ko=("만들어", "생성", "구현", "작성", "새로운", "추가"),
        en=("create", "generate", "implement", "write", "new", "add", "build"),
    ),
    "code-review": LanguagePatterns(
        ko=("리뷰", "검토", "확인", "봐줘", "어떤가", "괜찮"),
        en=("review", "check", "look at", "examine", "assess", "evaluate"),
    ),
    "bug-fix": LanguagePatterns(
        ko=("버그", "오류", "에러", "문제", "안돼", "안됨", "수정", "고쳐"),
        en=("bug", "error", "issue", "problem", "not working", "fix", "debug"),
    ),
    "refactoring": LanguagePatterns(
        ko=("리팩토링", "리팩터", "개선", "정리", "최적화", "구조"),
        en=("refactor", "improve", "clean", "optimize", "restructure", "simplify"),
    ),
    "explanation": LanguagePatterns(
        ko=("설명", "알려줘", "뭐야", "이해", "의미", "작동", "원리"),
        en=("explain", "tell me", "what is", "understand", "meaning", "how does", "work"),
    ),
    "documentation": LanguagePatterns(
        ko=("문서", "주석", "설명", "README", "가이드", "매뉴얼"),
        en=("document", "comment", "readme", "guide", "manual", "docs", "docstring"),
    ),
    "testing": LanguagePatterns(
        ko=("테스트", "검증", "단위", "통합", "커버리지", "pytest", "jest"),
        en=("test", "tests", "spec", "unit", "integration", "coverage", "pytest", "jest", "e2e"),
    ),
    "architecture": LanguagePatterns(
        ko=("설계", "아키텍처", "구조", "패턴", "디자인", "시스템"),
        en=("architecture", "design", "structure", "pattern", "system", "schema"),
    ),
    "deployment": LanguagePatterns(
        ko=("배포", "빌드", "도커", "서버", "호스팅"),
        en=("deploy", "build", "docker", "ci", "cd", "server", "hosting", "kubernetes"),
    ),
    "data-analysis": LanguagePatterns(
        ko=("데이터", "분석", "쿼리", "통계", "그래프"),
        en=("data", "analysis", "query", "sql", "statistics", "chart", "graph"),
    ),
})

# ── disambiguation ────────────────────────────────────────────────────────────

DISAMBIGUATION_RULES: tuple[DisambiguationRule, ...] = (
    DisambiguationRule(
        keyword="fix",
        conflicting=("bug-fix", "code-generation"),
        resolutions=(
            Resolution(_re(r"error|bug|exception|crash|fail|broken|issue|problem|"
                           r"TypeError|ReferenceError|에러|오류|버그"), "bug-fix", 0.4),
            Resolution(_re(r"add|new|create|feature|implement|만들어|생성|추가"), "code-generation", 0.3),
        ),
    ),
    DisambiguationRule(
        keyword="test",
        conflicting=("testing", "code-review"),
        resolutions=(
            Resolution(_re(r"unit|spec|pytest|jest|mocha|coverage|테스트\s*코드|테스트\s*작성|"
                           r"e2e|integration"), "testing", 0.5),
            Resolution(_re(r"check|review|verify|validate|확인|검토|검증"), "code-review", 0.3),
        ),
    ),
    DisambiguationRule(
        keyword="create",
        conflicting=("code-generation", "documentation"),
        resolutions=(
            Resolution(_re(r"doc|readme|guide|comment|문서|주석|설명서|가이드"), "documentation", 0.3),
            Resolution(_re(r"function|class|component|module|api|service|함수|클래스|컴포넌트"),
                       "code-generation", 0.4),
        ),
    ),
    DisambiguationRule(
        keyword="수정",
        conflicting=("bug-fix", "refactoring", "code-generation"),
        resolutions=(
            Resolution(_re(r"에러|오류|버그|문제|안됨|안돼"), "bug-fix", 0.4),
            Resolution(_re(r"리팩토링|개선|정리|구조|clean"), "refactoring", 0.35),
            Resolution(_re(r"추가|새로|기능"), "code-generation", 0.3),
        ),
    ),
    DisambiguationRule(
        keyword="improve",
        conflicting=("refactoring", "bug-fix"),
        resolutions=(
            Resolution(_re(r"performance|speed|optimize|성능|최적화|빠르게"), "refactoring", 0.4),
            Resolution(_re(r"error|bug|fix|에러|버그"), "bug-fix", 0.35),
        ),
    ),
    DisambiguationRule(
        keyword="설명",
        conflicting=("explanation", "documentation"),
        resolutions=(
            Resolution(_re(r"뭐야|왜|어떻게|이해|의미|작동|원리|what|how|why"), "explanation", 0.4),
            Resolution(_re(r"문서|readme|주석|comment|doc"), "documentation", 0.35),
        ),
    ),
)

# ── co-occurrence ─────────────────────────────────────────────────────────────

COOCCURRENCE_RULES: tuple[CooccurrenceRule, ...] = (
    CooccurrenceRule(("fix", "bug"), "bug-fix", 0.3),
    CooccurrenceRule(("fix", "error"), "bug-fix", 0.3),
    CooccurrenceRule(("수정", "버그"), "bug-fix", 0.3),
    CooccurrenceRule(("수정", "에러"), "bug-fix", 0.3),
    CooccurrenceRule(("고쳐", "오류"), "bug-fix", 0.3),

    CooccurrenceRule(("write", "test"), "testing", 0.3),
    CooccurrenceRule(("write", "tests"), "testing", 0.3),
    CooccurrenceRule(("add", "test"), "testing", 0.25),
    CooccurrenceRule(("테스트", "작성"), "testing", 0.3),
    CooccurrenceRule(("unit", "test"), "testing", 0.35),

    CooccurrenceRule(("create", "component"), "code-generation", 0.3),
    CooccurrenceRule(("implement", "feature"), "code-generation", 0.3),
    CooccurrenceRule(("만들어", "기능"), "code-generation", 0.3),
    CooccurrenceRule(("구현", "컴포넌트"), "code-generation", 0.3),

    CooccurrenceRule(("refactor", "code"), "refactoring", 0.25),
    CooccurrenceRule(("리팩토링", "코드"), "refactoring", 0.25),
    CooccurrenceRule(("clean", "up"), "refactoring", 0.2),
    CooccurrenceRule(("정리", "코드"), "refactoring", 0.25),

    CooccurrenceRule(("write", "documentation"), "documentation", 0.3),
    CooccurrenceRule(("add", "comment"), "documentation", 0.25),
    CooccurrenceRule(("문서", "작성"), "documentation", 0.3),

    CooccurrenceRule(("design", "system"), "architecture", 0.3),
    CooccurrenceRule(("설계", "시스템"), "architecture", 0.3),
    CooccurrenceRule(("architecture", "pattern"), "architecture", 0.35),
)

# ── negation ──────────────────────────────────────────────────────────────────

NEGATION_RULES: tuple[NegationRule, ...] = (
    NegationRule(_re(r"don't|doesn't|didn't|won't|하지\s*마|하지\s*마세요|않|말고|no\s+need"),
                 ("command", "instruction"), -0.3),
    NegationRule(_re(r"not\s+asking|질문\s*아니|묻는\s*게\s*아니"), ("question",), -0.4),
    NegationRule(_re(r"don't\s+create|don't\s+make|만들지\s*마|생성하지\s*마"), ("command",), -0.5),
)


@dataclass(frozen=True)
class PatternTables:
    intents: Mapping[str, LanguagePatterns] = field(default_factory=lambda: INTENT_PATTERNS)
    categories: Mapping[str, LanguagePatterns] = field(default_factory=lambda: CATEGORY_PATTERNS)
    disambiguation: tuple[DisambiguationRule, ...] = DISAMBIGUATION_RULES
    cooccurrence: tuple[CooccurrenceRule, ...] = COOCCURRENCE_RULES
    negation: tuple[NegationRule, ...] = NEGATION_RULES


DEFAULT_TABLES = PatternTables()
