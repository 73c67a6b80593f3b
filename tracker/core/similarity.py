from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence, Tuple, TypeVar

from rapidfuzz.distance import Levenshtein

from .normalize import normalize_company_name

T = TypeVar("T")


def levenshtein_distance(a: str, b: str) -> int:
    """Single-character insert/delete/substitute distance, unit costs."""
    return Levenshtein.distance(a, b)


def similarity(
    a: Optional[str],
    b: Optional[str],
    normalizer: Callable[[Optional[str]], str] = normalize_company_name,
) -> float:
    """Score in [0, 1] between two raw names, 1.0 meaning the same canonical key.

    Advisory only: creation is gated on exact key equality, never on this score.
    """
    s1 = normalizer(a)
    s2 = normalizer(b)
    if s1 == s2:
        return 1.0

    longest = max(len(s1), len(s2))
    distance = levenshtein_distance(s1, s2)
    return (longest - distance) / longest


def rank_by_similarity(
    name: str,
    candidates: Iterable[T],
    *,
    key: Callable[[T], str],
    threshold: float,
    limit: Optional[int] = None,
    normalizer: Callable[[Optional[str]], str] = normalize_company_name,
) -> Sequence[Tuple[T, float]]:
    """Return (candidate, score) pairs scoring at least ``threshold``, best first."""
    scored = []
    for candidate in candidates:
        score = similarity(name, key(candidate), normalizer)
        if score >= threshold:
            scored.append((candidate, score))
    # stable: ties keep input order
    scored.sort(key=lambda pair: pair[1], reverse=True)
    if limit is not None:
        scored = scored[:limit]
    return scored
