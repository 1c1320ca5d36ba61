"""
Term Matcher.

Responsibilities:
- Decide whether a word or phrase occurs in a candidate text, and at which
  confidence tier (exact phrase, all words, fuzzy/stemmed, synonym).

Non-Responsibilities:
- No weighting or aggregation.
- No persistence.

Invariant:
The first satisfied rule decides the tier, in the fixed order
EXACT_PHRASE, ALL_WORDS, FUZZY_STEM, SYNONYM. A missing term is NONE,
never an error.
"""

import enum
import re
from typing import Dict, Pattern

from .normalize import significant_words
from .synonyms import EMPTY_INDEX, SynonymIndex

# Suffixes stripped for stem matching, and how many word characters may
# follow a stem (e.g. "develop" -> "developers").
STEM_SUFFIX_RE = re.compile(r"(ing|ed|er|s|ment|tion|ly)$")
MIN_STEM_LENGTH = 3
MAX_STEM_TAIL = 4


class Tier(enum.Enum):
    EXACT_PHRASE = "exact_phrase"
    ALL_WORDS = "all_words"
    FUZZY_STEM = "fuzzy_stem"
    SYNONYM = "synonym"
    NONE = "none"


class TermMatcher:
    """
    Tiered term lookup against candidate texts.

    One matcher is created per matching run. Compiled patterns are cached on
    the instance and reused for every candidate; the cache only ever gains
    entries for pure functions of the term, so workers can share it.
    """

    def __init__(self, index: SynonymIndex = EMPTY_INDEX):
        self.index = index
        self._patterns: Dict[str, Pattern] = {}

    def _compile(self, source: str) -> Pattern:
        pattern = self._patterns.get(source)
        if pattern is None:
            pattern = re.compile(source, re.IGNORECASE)
            self._patterns[source] = pattern
        return pattern

    def whole_word(self, phrase: str, text: str) -> bool:
        """Case-insensitive word-boundary match of the literal phrase."""
        return self._compile(rf"\b{re.escape(phrase)}\b").search(text) is not None

    def fuzzy_match(self, word: str, text: str) -> bool:
        """Match `word` as is, with its plural toggled, or by its stem."""
        normalized = word.strip().lower()

        if self.whole_word(normalized, text):
            return True

        toggled = normalized[:-1] if normalized.endswith("s") else normalized + "s"
        if self.whole_word(toggled, text):
            return True

        stem = STEM_SUFFIX_RE.sub("", normalized, count=1)
        if len(stem) >= MIN_STEM_LENGTH:
            pattern = self._compile(rf"\b{re.escape(stem)}\w{{0,{MAX_STEM_TAIL}}}\b")
            if pattern.search(text):
                return True

        return False

    def synonym_match(self, word: str, text: str) -> bool:
        return any(self.fuzzy_match(r, text) for r in self.index.related_terms(word))

    def term_present(self, term: str, text: str) -> Tier:
        term = term.strip()
        if not term:
            return Tier.NONE
        # Short acronyms ("ml", "qa") have no significant words; they stand for themselves
        words = significant_words(term) or [term]

        if self.whole_word(term, text):
            return Tier.EXACT_PHRASE
        if len(words) > 1 and all(self.whole_word(w, text) for w in words):
            return Tier.ALL_WORDS
        if any(self.fuzzy_match(w, text) for w in words):
            return Tier.FUZZY_STEM
        if any(self.synonym_match(w, text) for w in words):
            return Tier.SYNONYM
        return Tier.NONE
