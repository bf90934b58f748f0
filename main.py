"""prompt-coach - command-line entry point."""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from pydantic import ValidationError

from promptcoach import formatter
from promptcoach.analysis.classifier import classify_prompt
from promptcoach.file_parser import read_prompt_file
from promptcoach.modules.analyze import analyze_prompt
from promptcoach.modules.rewrite import build_rewrite_request, generate_all_variants
from promptcoach.rewriter.variants import generate_prompt_variants
from promptcoach.types import SessionContext

logger = logging.getLogger(__name__)


def _read_prompt(args: argparse.Namespace) -> str:
    if args.file:
        return read_prompt_file(args.file)
    if args.text:
        return " ".join(args.text)
    if not sys.stdin.isatty():
        return sys.stdin.read().strip()
    raise ValueError("No prompt given. Pass it as an argument, with --file, or on stdin.")


def _session_context(args: argparse.Namespace) -> SessionContext | None:
    if not (args.project or args.stack or args.task or args.branch or args.recent_file):
        return None
    return SessionContext(
        project_name=args.project or "",
        tech_stack=tuple(s.strip() for s in (args.stack or "").split(",") if s.strip()),
        current_task=args.task or "",
        recent_files=tuple(args.recent_file or ()),
        git_branch=args.branch or "",
    )


def _dump(obj) -> str:
    return json.dumps(asdict(obj), ensure_ascii=False, indent=2, default=str)


# ── commands ──────────────────────────────────────────────────────────────────

def cmd_analyze(args: argparse.Namespace, settings) -> int:
    analysis = analyze_prompt(_read_prompt(args))
    print(_dump(analysis) if args.json else formatter.format_analysis(analysis))
    return 0


def cmd_classify(args: argparse.Namespace, settings) -> int:
    result = classify_prompt(_read_prompt(args))
    print(_dump(result) if args.json else formatter.format_classification(result))
    return 0


def cmd_rewrite(args: argparse.Namespace, settings) -> int:
    analysis = analyze_prompt(_read_prompt(args))
    context = _session_context(args)

    if args.ai_only:
        from promptcoach.llm.manager import rewrite_with_fallback
        result = asyncio.run(rewrite_with_fallback(
            build_rewrite_request(analysis, context),
            settings.provider_configs(),
            max_retries=settings.max_retries,
        ))
        print(_dump(result) if args.json else formatter.format_rewrite_result(result))
        return 0 if result.success else 1

    if args.no_ai:
        variants = generate_prompt_variants(analysis, context)
    else:
        variants = asyncio.run(generate_all_variants(
            analysis,
            settings.provider_configs(),
            context,
            max_retries=settings.max_retries,
        ))

    if args.json:
        print(json.dumps([asdict(v) for v in variants], ensure_ascii=False, indent=2, default=str))
    else:
        print(formatter.format_variants(variants))
    return 0


async def _check_keys(settings) -> dict[str, bool | None]:
    from promptcoach.llm.manager import validate_provider_key

    results: dict[str, bool | None] = {}
    for config in settings.provider_configs():
        if not config.api_key.strip():
            results[config.provider] = None
            continue
        results[config.provider] = await validate_provider_key(config.provider, config.api_key)
    return results


def cmd_check_keys(args: argparse.Namespace, settings) -> int:
    results = asyncio.run(_check_keys(settings))
    print(formatter.format_key_check(results))
    return 0 if any(results.values()) else 1


# ── parser ────────────────────────────────────────────────────────────────────

def _add_input_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("text", nargs="*", help="Prompt text (default: read stdin)")
    parser.add_argument("-f", "--file", help="Read the prompt from a .txt, .md or .json file")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prompt-coach",
        description="Score prompts against the GOLDEN checklist and rewrite them.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="Classify and score a prompt")
    _add_input_args(p)
    p.set_defaults(handler=cmd_analyze)

    p = sub.add_parser("classify", help="Intent and task category only")
    _add_input_args(p)
    p.set_defaults(handler=cmd_classify)

    p = sub.add_parser("rewrite", help="Generate improved versions of a prompt")
    _add_input_args(p)
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--no-ai", action="store_true", help="Rule-based variants only")
    mode.add_argument("--ai-only", action="store_true", help="AI rewrite only, with provider details")
    p.add_argument("--project", help="Project name for session context")
    p.add_argument("--stack", help="Comma-separated tech stack, e.g. React,TypeScript")
    p.add_argument("--task", help="What you are currently working on")
    p.add_argument("--branch", help="Current git branch")
    p.add_argument("--recent-file", action="append", help="Recently edited file (repeatable)")
    p.set_defaults(handler=cmd_rewrite)

    p = sub.add_parser("check-keys", help="Validate configured provider API keys")
    p.set_defaults(handler=cmd_check_keys)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        from config import settings
    except ValidationError as e:
        print(f"Configuration error:\n{e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=getattr(logging, settings.log_level),
        stream=sys.stderr,
    )

    try:
        return args.handler(args, settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
