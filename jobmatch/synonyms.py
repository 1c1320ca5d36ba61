"""
Synonym Index.

Responsibilities:
- Build a bidirectional term <-> synonym lookup from synonym table rows.
- Answer one-hop related-term queries for the term matcher.

Non-Responsibilities:
- No text matching.
- No loading from a backend.

Invariant:
`reverse` is exactly the inverse of `forward`; both are lowercased and
trimmed, and neither changes after the index is built.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Set


def _norm(s: str) -> str:
    return s.strip().lower()


class SynonymIndex:
    """Immutable pair of adjacency maps; safe to share between scoring workers."""

    def __init__(self, forward: Mapping[str, frozenset], reverse: Mapping[str, frozenset]):
        self.forward = MappingProxyType(dict(forward))
        self.reverse = MappingProxyType(dict(reverse))

    @classmethod
    def build(cls, records: Iterable[Mapping[str, Any]]) -> "SynonymIndex":
        """
        Build the index from `{term, synonyms}` rows.

        Repeated terms merge their synonym lists. Blank or non-string terms
        and synonyms (e.g. nulls in an array column) are ignored.
        """
        forward: Dict[str, Set[str]] = {}
        reverse: Dict[str, Set[str]] = {}

        for row in records:
            if not isinstance(row, Mapping):
                continue
            term = row.get("term")
            if not isinstance(term, str) or not _norm(term):
                continue
            term = _norm(term)
            syns = forward.setdefault(term, set())
            synonyms = row.get("synonyms")
            if not isinstance(synonyms, (list, tuple)):
                continue
            for synonym in synonyms:
                if not isinstance(synonym, str):
                    continue
                s = _norm(synonym)
                if not s:
                    continue
                syns.add(s)
                reverse.setdefault(s, set()).add(term)

        return cls(
            {k: frozenset(v) for k, v in forward.items()},
            {k: frozenset(v) for k, v in reverse.items()},
        )

    def related_terms(self, word: str) -> Set[str]:
        """
        Direct synonyms of `word`, plus every term listing `word` as a
        synonym together with that term's own synonyms. One hop only.
        """
        normalized = _norm(word or "")
        related = set(self.forward.get(normalized, ()))
        for term in self.reverse.get(normalized, ()):
            related.add(term)
            related.update(self.forward.get(term, ()))
        return related

    def __len__(self) -> int:
        return len(self.forward)


EMPTY_INDEX = SynonymIndex({}, {})
