# services/matching/similarity.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from services.domain import IdentityProfile, MatchResult

logger = logging.getLogger(__name__)


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost insert/delete/substitute edit distance."""
    return int(Levenshtein.distance(a, b))


def similarity(a: str, b: str) -> float:
    """
    (max_len - distance) / max_len, in [0, 1].

    Symmetric; similarity(a, a) == 1 and similarity("", "") == 1.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def _key(name: str) -> str:
    return " ".join((name or "").lower().split())


class SimilarityMatcher:
    """
    Match an extracted name against the active entries of a roster.

    Exact (case-insensitive) equality wins outright. Otherwise a structured
    match accepts equal first and last words (middle names / OCR noise in
    between), or one name containing the other. Failing both, entries
    scoring above ``threshold`` are offered as suggestions.
    """

    def __init__(self, threshold: float = 0.6, max_suggestions: int = 3) -> None:
        self.threshold = float(threshold)
        self.max_suggestions = int(max_suggestions)

    @staticmethod
    def _active(roster: Iterable[IdentityProfile]) -> List[IdentityProfile]:
        return [p for p in roster if p.is_active]

    @staticmethod
    def _structured_match(candidate: str, entry: str) -> bool:
        cw, ew = candidate.split(), entry.split()
        if len(cw) >= 2 and len(ew) >= 2 and cw[0] == ew[0] and cw[-1] == ew[-1]:
            return True
        return candidate in entry or entry in candidate

    def _scores(self, candidate: str, roster: List[IdentityProfile]) -> Dict[str, float]:
        return {p.id: similarity(candidate, _key(p.full_name)) for p in roster}

    def match(self, candidate_name: Optional[str], roster: Iterable[IdentityProfile]) -> MatchResult:
        candidate = _key(candidate_name or "")
        if not candidate:
            return MatchResult()

        active = self._active(roster)

        for p in active:
            if _key(p.full_name) == candidate:
                return MatchResult(matched_profile=p, similarity_scores={p.id: 1.0}, match_kind="exact")

        scores = self._scores(candidate, active)

        for p in active:
            entry = _key(p.full_name)
            if entry and self._structured_match(candidate, entry):
                logger.debug("structured match %r -> %r", candidate_name, p.full_name)
                return MatchResult(matched_profile=p, similarity_scores=scores, match_kind="structured")

        ranked: List[Tuple[float, IdentityProfile]] = sorted(
            ((scores[p.id], p) for p in active if scores[p.id] > self.threshold),
            key=lambda sp: sp[0],
            reverse=True,
        )
        suggestions = tuple(p.full_name for _, p in ranked[: self.max_suggestions])
        return MatchResult(suggestions=suggestions, similarity_scores=scores)
