"""
Synonym lookup for topic grouping

@file_name: synonyms.py
@date: 2026-10-02
@description: Explicit canonical-term table with normalized membership lookup

A term's synonym keys are its normalized form plus the canonical term of every
whole term, single word or two-word phrase of it found in the table. Two term
lists match when their key sets intersect. There is no substring containment:
"pop" matches "Pop" and "my pop" but not "popular".

Example:
    index = SynonymIndex(config.SYNONYMS)
    index.keys_for("Dad's")                  # {"dad", "father"}
    index.keys_for("Mount Sinai Hospital")   # {"mount sinai hospital", "hospital"}
    index.share_key(["Dad"], ["Father"])     # True
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Set

from story_keeper.utils.text import normalize_term

from ..config import config


class SynonymIndex:
    """Normalized synonym -> canonical term lookup"""

    def __init__(self, table: Optional[Mapping[str, Iterable[str]]] = None):
        self._lookup: Dict[str, str] = {}
        for canonical, synonyms in (table if table is not None else config.SYNONYMS).items():
            self._lookup[normalize_term(canonical)] = canonical
            for synonym in synonyms:
                self._lookup[normalize_term(synonym)] = canonical

    @staticmethod
    def _candidates(normalized: str) -> List[str]:
        words = normalized.split()
        bigrams = [" ".join(words[i:i + 2]) for i in range(len(words) - 1)]
        return [normalized, *words, *bigrams]

    def canonical(self, term: str) -> Optional[str]:
        """Canonical term for a whole term, or None"""
        return self._lookup.get(normalize_term(term))

    def keys_for(self, term: str) -> Set[str]:
        normalized = normalize_term(term)
        if not normalized:
            return set()

        keys = {normalized}
        for candidate in self._candidates(normalized):
            canonical = self._lookup.get(candidate)
            if canonical:
                keys.add(canonical)
        return keys

    def keys_for_terms(self, terms: Iterable[str]) -> Set[str]:
        keys: Set[str] = set()
        for term in terms:
            keys |= self.keys_for(term)
        return keys

    def share_key(self, terms_a: Iterable[str], terms_b: Iterable[str]) -> bool:
        return bool(self.keys_for_terms(terms_a) & self.keys_for_terms(terms_b))
