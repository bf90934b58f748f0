"""Structural features of a raw prompt.

Pure and total: any string, including the empty one, yields a PromptFeatures.
"""
import re

from promptcoach.types import PromptFeatures

_FENCED_CODE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`[^`]+`")
_URL = re.compile(r"https?://\S+")
_FILE_PATH = re.compile(r"[/\\][\w.-]+\.[a-z]+", re.IGNORECASE)
_FILE_HINT = re.compile(r"src/|\.tsx?|\.jsx?")
_HANGUL = re.compile(r"[가-힣]")
_LATIN = re.compile(r"[a-zA-Z]")

# One script must outnumber the other by more than this factor to win the hint.
_SCRIPT_RATIO = 2


def count_words(text: str) -> int:
    return len(text.split())


def detect_language(text: str) -> str:
    ko = len(_HANGUL.findall(text))
    en = len(_LATIN.findall(text))
    if ko > en * _SCRIPT_RATIO:
        return "ko"
    if en > ko * _SCRIPT_RATIO:
        return "en"
    return "mixed"


def has_code_block(text: str) -> bool:
    return bool(_FENCED_CODE.search(text) or _INLINE_CODE.search(text))


def extract_features(text: str) -> PromptFeatures:
    word_count = count_words(text)
    code = has_code_block(text)

    if word_count < 10 and not code:
        complexity = "simple"
    elif word_count < 50 or (code and word_count < 100):
        complexity = "moderate"
    else:
        complexity = "complex"

    return PromptFeatures(
        length=len(text),
        word_count=word_count,
        has_code_block=code,
        has_url=bool(_URL.search(text)),
        has_file_path=bool(_FILE_PATH.search(text) or _FILE_HINT.search(text)),
        has_question_mark="?" in text,
        has_exclamation_mark="!" in text,
        language_hint=detect_language(text),
        complexity=complexity,
    )
