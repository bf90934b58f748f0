"""Per-script keyword matching.

Korean is agglutinative: particles and endings attach directly to the
keyword ("수정해줘", "버그가"), so Korean keywords match as substrings.
English keywords need word boundaries so "fix" does not fire inside "prefix".
Boundaries are ASCII-only, which lets "fix버그" still match "fix".
"""
import re
from functools import lru_cache

_HANGUL = re.compile(r"[가-힣]")


def is_korean(keyword: str) -> bool:
    return bool(_HANGUL.search(keyword))


@lru_cache(maxsize=1024)
def _boundary_pattern(keyword: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE | re.ASCII)


def contains_substring(text: str, keyword: str) -> bool:
    return keyword.lower() in text.lower()


def contains_word(text: str, keyword: str) -> bool:
    return bool(_boundary_pattern(keyword).search(text))


def contains_keyword(text: str, keyword: str) -> bool:
    """Match a keyword of either script using that script's convention."""
    if is_korean(keyword):
        return contains_substring(text, keyword)
    return contains_word(text, keyword)


def find_matches(text: str, ko: tuple[str, ...], en: tuple[str, ...]) -> list[str]:
    """Return matched keywords, Korean list first, each in table order."""
    lowered = text.lower()
    matched = [kw for kw in ko if kw.lower() in lowered]
    matched.extend(kw for kw in en if contains_word(text, kw))
    return matched
