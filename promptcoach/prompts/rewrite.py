"""
Prompt-rewrite instructions shared by every provider.

SYSTEM embeds:
  1. The GOLDEN rubric with a before/after example per dimension
  2. Hard rewriting rules (no placeholders, keep intent, keep language)
  3. The strict JSON output contract the adapters parse
"""
from promptcoach.rewriter.confidence import has_meaningful_task
from promptcoach.types import RewriteRequest

SYSTEM = """You are a prompt engineering expert. Analyse the user's prompt and produce an improved version that can be used **immediately**.

## GOLDEN checklist

### G - Goal
- Use a concrete verb and target: "make it" -> "create a React component".
- State when the work is done: "working" -> "builds without errors and passes tests".
Before: "build a login feature"
After: "Implement email/password login with Firebase Auth. Include error handling and a loading state."

### O - Output
- The expected form: code, explanation, step-by-step guide.
- What it must contain: type definitions, imports, comments.
Before: "explain this"
After: "Explain: 1) the core concept, 2) a code example, 3) common pitfalls."

### L - Limits
- Stack: React 19, TypeScript strict mode, Python 3.12.
- Style and scope: function components, no new dependencies.

### D - Data
- Current environment: project, stack.
- Relevant material: error messages, related code.
- Why the work is needed.
Before: "fix the error"
After: "I get TypeError: Cannot read property 'x' of undefined in UserList.tsx. Explain the cause and the fix."

### E - Evaluation
- How success is checked: build passes, tests pass.
- Quality bars: performance, accessibility, security.

### N - Next
- What the result will be used for.
- Follow-up work that is planned.

## Rewriting rules

1. **Never use placeholders**
   - No "[insert code]", "[project description]", "[your environment]" or similar.
   - If information is missing, leave the section out.
   - Use real values from the session context.
2. **Preserve the original intent completely**
   - Never change what the user asked for; only fill in what is missing.
3. **Keep the language**
   - Korean prompt -> Korean rewrite; English prompt -> English rewrite.
   - Code and technical terms may stay in their original form.
4. **Use the session context**
   - Weave in the project name, stack, current task, file names and branch.
5. **Stay concise**
   - At most twice the original length; no filler.

## Output format

Respond with JSON only:
{
  "rewrittenPrompt": "the full improved prompt",
  "explanation": "the main improvements in one or two sentences",
  "improvements": ["improvement 1", "improvement 2", "improvement 3"]
}"""

_DIMENSION_LABELS = (
    ("goal", "Goal"),
    ("output", "Output"),
    ("limits", "Limits"),
    ("data", "Data"),
    ("evaluation", "Evaluation"),
    ("next", "Next"),
)

_STRONG = 70
_PARTIAL = 40
_MAX_ISSUES = 4
_DEFAULT_BRANCHES = ("main", "master")


def _status(score: int) -> str:
    if score >= _STRONG:
        return "✓"
    if score >= _PARTIAL:
        return "△"
    return "✗"


def _basenames(paths, limit: int = 3) -> str:
    return ", ".join(p.rstrip("/").split("/")[-1] for p in paths[:limit])


def _context_lines(request: RewriteRequest) -> list[str]:
    ctx = request.session_context
    if ctx is None:
        return []

    lines = []
    if ctx.project_name:
        lines.append(f"- Project: {ctx.project_name}")
    if ctx.tech_stack:
        lines.append(f"- Stack: {', '.join(ctx.tech_stack)}")
    if has_meaningful_task(ctx) and len(ctx.current_task) > 5:
        lines.append(f"- Current task: {ctx.current_task[:80]}")
    if ctx.recent_files:
        lines.append(f"- Recent files: {_basenames(ctx.recent_files)}")
    if ctx.recent_tools:
        lines.append(f"- Recent tools: {', '.join(ctx.recent_tools[:3])}")
    if ctx.git_branch and ctx.git_branch not in _DEFAULT_BRANCHES:
        lines.append(f"- Branch: {ctx.git_branch}")

    exchange = ctx.last_exchange
    if exchange is not None:
        if exchange.user_message:
            lines.append(f"- Previous request: {exchange.user_message}")
        if exchange.assistant_summary:
            lines.append(f"- Previous answer: {exchange.assistant_summary}")
        if exchange.assistant_files:
            lines.append(f"- Files changed: {_basenames(exchange.assistant_files)}")
        if exchange.assistant_tools:
            lines.append(f"- Tools used: {', '.join(exchange.assistant_tools[:3])}")
    return lines


def build_user_message(request: RewriteRequest) -> str:
    parts = [f'Original prompt:\n"""\n{request.original_prompt}\n"""']

    score_lines = [
        f"  {_status(score)} {label}: {score}"
        for key, label in _DIMENSION_LABELS
        for score in (int(request.golden_scores.get(key, 0)),)
    ]
    parts.append("GOLDEN scores:\n" + "\n".join(score_lines))

    if request.issues:
        issue_lines = []
        for i, issue in enumerate(request.issues[:_MAX_ISSUES], start=1):
            line = f"{i}. [{issue.severity}] {issue.message}"
            if issue.suggestion:
                line += f"\n   -> {issue.suggestion}"
            issue_lines.append(line)
        parts.append("Issues found:\n" + "\n".join(issue_lines))

    context_lines = _context_lines(request)
    if context_lines:
        parts.append("Session context:\n" + "\n".join(context_lines))

    parts.append(
        "Rewrite the prompt above so it satisfies the GOLDEN checklist.\n"
        "No placeholders; it must be ready to use as is."
    )
    return "\n\n".join(parts)
