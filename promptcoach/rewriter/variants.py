"""
Rule-based rewrite variants.

Three strengths, all built from the analysis of the original prompt:
  conservative:  patch the single weakest GOLDEN dimension
  balanced:      context + request + the two weakest of output/limits
  comprehensive: full GOLDEN structure with output and completion criteria

Section headings follow the prompt's language: Korean for Korean prompts,
English for everything else.
"""
import re

from promptcoach.analysis.classifier import CATEGORY_LABELS
from promptcoach.rewriter.confidence import (
    anti_pattern_free_score,
    calculate_calibrated_confidence,
    context_richness,
    count_improved_dimensions,
    has_meaningful_task,
)
from promptcoach.types import ConfidenceFactors, PromptAnalysis, RewriteVariant, SessionContext

# Guideline score at which the prompt is left as it is.
WELL_WRITTEN_THRESHOLD = 0.85

_TEMPLATE_MATCH = 0.85
_NO_TEMPLATE_MATCH = 0.6

_BALANCED_WEAK_BELOW = 0.6
_MAX_KEY_CHANGES = 5

# ── language tables ───────────────────────────────────────────────────────────

_HEADINGS = {
    "ko": {
        "request": "요청", "output": "출력 형식", "limits": "제약조건", "context": "상황",
        "data": "컨텍스트", "done": "완료 조건", "error": "에러", "code": "참조 코드",
        "project": "프로젝트", "stack": "환경", "files": "관련 파일", "branch": "브랜치",
        "task": "작업", "recent": "방금 수정", "previous": "직전 작업",
    },
    "en": {
        "request": "Request", "output": "Output format", "limits": "Constraints", "context": "Situation",
        "data": "Context", "done": "Done when", "error": "Error", "code": "Reference code",
        "project": "Project", "stack": "Stack", "files": "Related files", "branch": "Branch",
        "task": "Task", "recent": "Just edited", "previous": "Previous step",
    },
}

_OUTPUT_FORMATS = {
    "ko": {
        "code-generation": ("전체 구현 코드 (import 포함)", "주요 로직 설명"),
        "bug-fix": ("에러 원인 분석", "수정된 코드", "재발 방지 방법"),
        "code-review": ("문제점과 심각도", "개선된 코드 예시"),
        "refactoring": ("리팩토링된 코드", "변경 이유 설명"),
        "explanation": ("단계별 설명", "코드 예시"),
        "testing": ("테스트 코드", "커버리지 고려사항"),
        "general": ("구체적인 결과물",),
    },
    "en": {
        "code-generation": ("Complete implementation including imports", "Short explanation of the main logic"),
        "bug-fix": ("Root cause analysis", "Fixed code", "How to prevent a regression"),
        "code-review": ("Issues with severity", "Improved code example"),
        "refactoring": ("Refactored code", "Reason for each change"),
        "explanation": ("Step-by-step explanation", "Code example"),
        "testing": ("Test code", "Coverage considerations"),
        "general": ("A concrete deliverable",),
    },
}

_SUCCESS_CRITERIA = {
    "ko": {
        "code-generation": "코드 실행 및 기능 동작 확인",
        "bug-fix": "에러 해결 및 재현 테스트 통과",
        "code-review": "모든 지적 사항 검토 완료",
        "refactoring": "기존 기능 유지 + 품질 개선",
        "explanation": "개념 이해 및 적용 가능",
        "testing": "테스트 통과 및 커버리지 달성",
        "general": "요청 사항 충족",
    },
    "en": {
        "code-generation": "Code runs and the feature works",
        "bug-fix": "Error is gone and a reproduction test passes",
        "code-review": "Every finding has been reviewed",
        "refactoring": "Behaviour unchanged, quality improved",
        "explanation": "Concept understood well enough to apply",
        "testing": "Tests pass with the target coverage",
        "general": "Request fully satisfied",
    },
}

_TECH_CONSTRAINTS = {
    "ko": {
        "TypeScript": ("타입 안전성 유지", "strict 모드 호환"),
        "React": ("함수형 컴포넌트 사용", "hooks 패턴 준수"),
        "Vue": ("Composition API 스타일",),
        "Next.js": ("App Router 호환", "SSR 고려"),
        "Node.js": ("async/await 패턴",),
        "Python": ("타입 힌트 유지",),
        "Django": ("ORM 쿼리 사용",),
        "FastAPI": ("pydantic 모델 사용",),
    },
    "en": {
        "TypeScript": ("Keep type safety", "Compatible with strict mode"),
        "React": ("Function components", "Follow hooks rules"),
        "Vue": ("Composition API style",),
        "Next.js": ("App Router compatible", "Consider SSR"),
        "Node.js": ("async/await style",),
        "Python": ("Keep type hints",),
        "Django": ("Use the ORM for queries",),
        "FastAPI": ("Use pydantic models",),
    },
}
_MAX_CONSTRAINTS = 3

# (pattern, ko verb, ko action, en verb, en action); first match wins.
_PRIMARY_VERBS: tuple[tuple[re.Pattern, str, str, str, str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), *labels)
    for pattern, *labels in (
        (r"만들어|생성|구현|개발|작성|create|implement|build|write", "생성", "구현해주세요", "Create", "Please implement"),
        (r"수정|고쳐|바꿔|변경|업데이트|modify|change|update", "수정", "수정해주세요", "Modify", "Please modify"),
        (r"에러|오류|버그|fix|error|bug", "해결", "해결해주세요", "Fix", "Please fix"),
        (r"설명|알려|이해|왜|어떻게|explain|why|how", "설명", "설명해주세요", "Explain", "Please explain"),
        (r"리뷰|검토|봐줘|체크|확인|review|check", "검토", "검토해주세요", "Review", "Please review"),
        (r"최적화|개선|향상|빠르게|optimi[sz]e|improve", "최적화", "최적화해주세요", "Optimize", "Please optimize"),
        (r"추가|넣어|포함|add|include", "추가", "추가해주세요", "Add", "Please add"),
        (r"삭제|제거|지워|remove|delete", "삭제", "삭제해주세요", "Remove", "Please remove"),
        (r"테스트|검증|test|verify", "테스트", "테스트해주세요", "Test", "Please test"),
    )
)

_GREETING = re.compile(r"^(?:안녕하세요|안녕|hi|hello|hey)[\s,!.]*", re.IGNORECASE)
_LEADING_CONJUNCTION = re.compile(r"^(?:그래서|그리고|그런데|근데|그럼|so|and|but)[\s,]+", re.IGNORECASE)
_FENCED_CODE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`[^`]+`")
_ERROR_LINE = re.compile(r"(?:Error|에러|오류|TypeError|SyntaxError|ReferenceError|Traceback)[:\s][^\n]+",
                         re.IGNORECASE)
_DEFAULT_BRANCHES = ("main", "master")


def _lang(analysis: PromptAnalysis) -> str:
    return "ko" if analysis.classification.features.language_hint == "ko" else "en"


def _template_category(category: str) -> str:
    return category if category in _OUTPUT_FORMATS["en"] else "general"


def _basename(path: str) -> str:
    return path.rstrip("/").split("/")[-1] or path


def _bullets(items) -> str:
    return "\n".join(f"- {item}" for item in items)


# ── text helpers ──────────────────────────────────────────────────────────────

def infer_output_format(category: str, lang: str = "en") -> tuple[str, ...]:
    return _OUTPUT_FORMATS[lang][_template_category(category)]


def success_criteria(category: str, lang: str = "en") -> str:
    return _SUCCESS_CRITERIA[lang][_template_category(category)]


def tech_stack_constraints(tech_stack, lang: str = "en") -> list[str]:
    constraints: list[str] = []
    for tech in tech_stack:
        constraints.extend(_TECH_CONSTRAINTS[lang].get(tech, ()))
    return constraints[:_MAX_CONSTRAINTS]


def extract_core_request(text: str) -> str:
    """Drop greetings and a leading conjunction."""
    cleaned = _GREETING.sub("", text.strip())
    return _LEADING_CONJUNCTION.sub("", cleaned).strip()


def detect_primary_verb(text: str, lang: str = "en") -> tuple[str, str]:
    for pattern, ko_verb, ko_action, en_verb, en_action in _PRIMARY_VERBS:
        if pattern.search(text):
            return (ko_verb, ko_action) if lang == "ko" else (en_verb, en_action)
    return ("처리", "처리해주세요") if lang == "ko" else ("Handle", "Please handle this")


def extract_code(text: str) -> str | None:
    fenced = _FENCED_CODE.search(text)
    if fenced:
        return fenced.group()
    inline = _INLINE_CODE.findall(text)
    return ", ".join(inline) if inline else None


def extract_error(text: str) -> str | None:
    match = _ERROR_LINE.search(text)
    return match.group().strip() if match else None


def build_minimal_context(context: SessionContext | None, lang: str = "en") -> str | None:
    """One-line project summary for the conservative variant."""
    if context is None:
        return None
    h = _HEADINGS[lang]
    project = context.project_name or "project"
    parts = [f"{project} ({', '.join(context.tech_stack[:3])})" if context.tech_stack else project]

    if has_meaningful_task(context) and len(context.current_task) > 5:
        parts.append(f"{h['task']}: {context.current_task[:50]}")
    if context.recent_files:
        parts.append(f"{h['files']}: {_basename(context.recent_files[0])}")
    exchange = context.last_exchange
    if exchange is not None:
        if exchange.assistant_files:
            parts.append(f"{h['recent']}: {_basename(exchange.assistant_files[0])}")
        elif exchange.assistant_summary:
            parts.append(f"{h['previous']}: {exchange.assistant_summary[:30]}...")
    return " | ".join(parts)


# ── sections ──────────────────────────────────────────────────────────────────

def _context_section(context: SessionContext | None, lang: str) -> str | None:
    if context is None:
        return None
    h = _HEADINGS[lang]
    project = context.project_name or "project"
    lines = []
    if context.tech_stack:
        lines.append(f"- {h['stack']}: {project} ({' + '.join(context.tech_stack)})")
    else:
        lines.append(f"- {h['project']}: {project}")
    if has_meaningful_task(context) and len(context.current_task) > 5:
        lines.append(f"- {h['task']}: {context.current_task[:60]}")
    if context.recent_files:
        lines.append(f"- {h['files']}: {_basename(context.recent_files[0])}")
    if context.git_branch and context.git_branch not in _DEFAULT_BRANCHES:
        lines.append(f"- {h['branch']}: {context.git_branch}")
    exchange = context.last_exchange
    if exchange is not None:
        if exchange.assistant_files:
            lines.append(f"- {h['recent']}: {', '.join(_basename(f) for f in exchange.assistant_files[:2])}")
        if len(exchange.assistant_summary) > 10:
            lines.append(f"- {h['previous']}: {exchange.assistant_summary[:50]}")
    return f"{h['context']}:\n" + "\n".join(lines)


def _output_section(category: str, context: SessionContext | None, lang: str) -> str:
    items = list(infer_output_format(category, lang))
    if context is not None and "TypeScript" in context.tech_stack:
        items.append("타입 정의 포함" if lang == "ko" else "Include type definitions")
    return f"{_HEADINGS[lang]['output']}:\n{_bullets(items)}"


def _limits_section(context: SessionContext | None, lang: str) -> str | None:
    if context is None:
        return None
    constraints = tech_stack_constraints(context.tech_stack, lang)
    if not constraints:
        return None
    return f"{_HEADINGS[lang]['limits']}:\n{_bullets(constraints)}"


def _data_section(original: str, context: SessionContext | None, lang: str) -> str | None:
    h = _HEADINGS[lang]
    lines: list[str] = []
    if context is not None:
        lines.append(f"{h['project']}: {context.project_name or 'project'}")
        if context.tech_stack:
            lines.append(f"{h['stack']}: {', '.join(context.tech_stack)}")
        if context.recent_files:
            lines.append(f"{h['files']}: {', '.join(_basename(f) for f in context.recent_files[:3])}")
        if context.git_branch and context.git_branch not in _DEFAULT_BRANCHES:
            lines.append(f"{h['branch']}: {context.git_branch}")
        if has_meaningful_task(context):
            lines.append(f"{h['task']}: {context.current_task[:80]}")

    error = extract_error(original)
    if error:
        if lines:
            lines.append("")
        lines.append(f"{h['error']}: {error}")

    code = extract_code(original)
    if code and "```" in code:
        if lines:
            lines.append("")
        lines.append(f"{h['code']}:\n{code}")

    if not lines:
        return None
    return f"{h['data']}:\n" + "\n".join(lines)


# ── variants ──────────────────────────────────────────────────────────────────

def _confidence(analysis: PromptAnalysis, context: SessionContext | None) -> float:
    category = analysis.classification.task_category
    factors = ConfidenceFactors(
        classification_confidence=analysis.classification.category_confidence,
        dimensions_improved=count_improved_dimensions(analysis.golden),
        anti_pattern_free=anti_pattern_free_score(analysis.anti_patterns),
        template_match=_TEMPLATE_MATCH if _template_category(category) != "general" else _NO_TEMPLATE_MATCH,
        context_richness=context_richness(context),
    )
    return calculate_calibrated_confidence(factors)


def _weakest_dimension(analysis: PromptAnalysis) -> str:
    # min() keeps the first of equal scores, so ties resolve in GOLDEN order.
    dims = analysis.golden.dimensions()
    return min(dims, key=dims.get)


def generate_conservative(analysis: PromptAnalysis, context: SessionContext | None = None) -> RewriteVariant:
    lang = _lang(analysis)
    original = analysis.text
    category = analysis.classification.task_category
    rewritten = extract_core_request(original)
    weakest = _weakest_dimension(analysis)
    changes: list[str] = []

    if weakest == "goal":
        verb, action = detect_primary_verb(original, lang)
        if lang == "ko" and not re.search(r"해주세요|해줘|하세요", rewritten):
            rewritten = f"{rewritten}을(를) {action}"
        else:
            rewritten = f"[{verb}] {rewritten}"
        changes.append("목표 명확화" if lang == "ko" else "Clarified goal")
    elif weakest == "output":
        rewritten += f"\n\n→ {_HEADINGS[lang]['output']}: {infer_output_format(category, lang)[0]}"
        changes.append("출력 형식 추가" if lang == "ko" else "Added output format")
    elif weakest == "data":
        summary = build_minimal_context(context, lang)
        code = extract_code(original)
        if summary:
            rewritten = f"[{summary}]\n\n{rewritten}"
            changes.append("프로젝트 컨텍스트" if lang == "ko" else "Added project context")
        elif code and code not in rewritten:
            rewritten += f"\n\n{_HEADINGS[lang]['code']}: {code}"
            changes.append("참조 코드 정리" if lang == "ko" else "Collected reference code")
        else:
            label = CATEGORY_LABELS.get(category, "General")
            rewritten = f"[{label}] {rewritten}"
            changes.append("카테고리 태그" if lang == "ko" else "Added category tag")
    elif weakest == "limits":
        constraints = tech_stack_constraints(context.tech_stack, lang) if context else []
        if constraints:
            rewritten += f"\n\n({constraints[0]})"
            changes.append("기술 제약 추가" if lang == "ko" else "Added stack constraint")
        else:
            rewritten += " (간결하게)" if lang == "ko" else " (keep it concise)"
            changes.append("간결함 제약" if lang == "ko" else "Added brevity constraint")
    elif weakest == "evaluation":
        rewritten += f"\n\n{_HEADINGS[lang]['done']}: {success_criteria(category, lang)}"
        changes.append("성공 기준 추가" if lang == "ko" else "Added success criteria")
    else:
        rewritten += "\n\n(이후 테스트 예정)" if lang == "ko" else "\n\n(Tests will follow.)"
        changes.append("후속 작업 언급" if lang == "ko" else "Mentioned next step")

    return RewriteVariant(
        rewritten_prompt=rewritten,
        key_changes=tuple(changes),
        confidence=_confidence(analysis, context),
        variant="conservative",
        label="보수적" if lang == "ko" else "Conservative",
    )


def generate_balanced(analysis: PromptAnalysis, context: SessionContext | None = None) -> RewriteVariant:
    lang = _lang(analysis)
    h = _HEADINGS[lang]
    category = analysis.classification.task_category
    parts: list[str] = []
    changes: list[str] = []

    situation = _context_section(context, lang)
    if situation:
        parts.append(situation)
        changes.append("상황 정보" if lang == "ko" else "Situation")

    parts.append(f"{h['request']}:\n{extract_core_request(analysis.text)}")

    dims = analysis.golden.dimensions()
    weak = [
        name for name, _ in sorted(
            ((n, v) for n, v in dims.items() if v < _BALANCED_WEAK_BELOW),
            key=lambda item: item[1],
        )[:2]
    ]
    if "output" in weak:
        parts.append(_output_section(category, context, lang))
        changes.append(h["output"])
    if "limits" in weak:
        limits = _limits_section(context, lang)
        if limits:
            parts.append(limits)
            changes.append(h["limits"])

    if not changes:
        parts.insert(0, f"[{CATEGORY_LABELS.get(category, 'General')}]")
        changes.append("구조화" if lang == "ko" else "Structured")

    return RewriteVariant(
        rewritten_prompt="\n\n".join(parts),
        key_changes=tuple(changes),
        confidence=_confidence(analysis, context),
        variant="balanced",
        label="균형" if lang == "ko" else "Balanced",
    )


def generate_comprehensive(analysis: PromptAnalysis, context: SessionContext | None = None) -> RewriteVariant:
    lang = _lang(analysis)
    h = _HEADINGS[lang]
    original = analysis.text
    category = analysis.classification.task_category
    verb, _ = detect_primary_verb(original, lang)
    changes = ["목표 명확화" if lang == "ko" else "Clarified goal"]

    sections = [f"[{CATEGORY_LABELS.get(category, 'General')} - {verb}]"]

    data = _data_section(original, context, lang)
    if data:
        sections.append(data)
        changes.append("컨텍스트 구조화" if lang == "ko" else "Structured context")

    sections.append(f"{h['request']}:\n{extract_core_request(original)}")

    limits = _limits_section(context, lang)
    if limits:
        sections.append(limits)
        changes.append(h["limits"])

    sections.append(f"{h['output']}:\n{_bullets(infer_output_format(category, lang))}")
    changes.append(h["output"])

    sections.append(f"{h['done']}:\n- {success_criteria(category, lang)}")
    changes.append(h["done"])

    return RewriteVariant(
        rewritten_prompt="\n\n".join(sections),
        key_changes=tuple(changes[:_MAX_KEY_CHANGES]),
        confidence=_confidence(analysis, context),
        variant="comprehensive",
        label="적극적" if lang == "ko" else "Comprehensive",
    )


def generate_prompt_variants(
    analysis: PromptAnalysis, context: SessionContext | None = None
) -> list[RewriteVariant]:
    """Conservative, balanced and comprehensive rewrites, in that order."""
    if analysis.guidelines.overall_score >= WELL_WRITTEN_THRESHOLD:
        lang = _lang(analysis)
        conservative = RewriteVariant(
            rewritten_prompt=analysis.text,
            key_changes=("이미 잘 작성됨" if lang == "ko" else "Already well written",),
            confidence=_confidence(analysis, context),
            variant="conservative",
            label="보수적" if lang == "ko" else "Conservative",
        )
    else:
        conservative = generate_conservative(analysis, context)

    return [
        conservative,
        generate_balanced(analysis, context),
        generate_comprehensive(analysis, context),
    ]
