import re
from typing import Iterable, List

from bs4 import BeautifulSoup

# Only real rich-text tags count as markup, so plain text such as
# "<python, go>" or "a < b > c" is matched as written.
_MARKUP_RE = re.compile(
    r"</?(?:p|b|i|u|a|ul|ol|li|br|hr|div|span|strong|em|h[1-6]|table|tr|td|th|pre|code|blockquote)"
    r"""(?:\s+[\w-]+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+))*\s*/?>"""
    r"|<!--",
    re.IGNORECASE,
)
_PHRASE_SPLIT_RE = re.compile(r"[.,;!?]\s+")

MAX_DESCRIPTION_PHRASES = 5
MAX_WORDS_PER_PHRASE = 3


def normalize_text(s: str) -> str:
    """Lowercase and collapse runs of whitespace."""
    return " ".join(s.strip().lower().split())


def html_to_text(s: str) -> str:
    """Strip markup from rich-text descriptions and CVs; plain text is returned as is."""
    if not s or not _MARKUP_RE.search(s):
        return s or ""
    return BeautifulSoup(s, "html.parser").get_text(" ")


def significant_words(text: str, min_length: int = 3) -> List[str]:
    """Whitespace tokens of at least `min_length` characters, in order."""
    return [w for w in text.split() if len(w) >= min_length]


def dedupe(items: Iterable[str]) -> List[str]:
    """Deduplicate while preserving first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def title_terms(title: str) -> List[str]:
    return significant_words(normalize_text(title or ""))


def skill_terms(skills: Iterable[str]) -> List[str]:
    terms = [normalize_text(s) for s in skills or []]
    return [t for t in terms if t]


def description_terms(description: str) -> List[str]:
    # Key terms: up to 3 longer words from each of the first 5 phrases
    text = html_to_text(description or "").lower()
    phrases = _PHRASE_SPLIT_RE.split(text)[:MAX_DESCRIPTION_PHRASES]
    words = []
    for phrase in phrases:
        words.extend(significant_words(phrase, min_length=4)[:MAX_WORDS_PER_PHRASE])
    return dedupe(words)
