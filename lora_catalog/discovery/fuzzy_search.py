"""
Fuzzy Search
============

Ranks logical paths against a typed query. Scores come from fixed tiers
(exact, prefix, substring) with an in-order subsequence match as the
last resort. Tiers are exclusive, never summed.
"""

from typing import Iterable, List, Tuple

EXACT_SCORE = 10000
PREFIX_SCORE = 5000
SUBSTRING_SCORE = 2000
SUBSEQUENCE_CHAR_SCORE = 10


def fuzzy_score(candidate: str, query: str) -> int:
    """Score one candidate against an already lower-cased query.

    Returns:
        0 when the query characters do not all appear in order.
    """
    text = candidate.lower()

    if text == query:
        return EXACT_SCORE
    if text.startswith(query):
        return PREFIX_SCORE
    if query in text:
        return SUBSTRING_SCORE

    score = 0
    cursor = 0
    for char in text:
        if cursor == len(query):
            break
        if char == query[cursor]:
            cursor += 1
            score += SUBSEQUENCE_CHAR_SCORE

    if cursor < len(query):
        return 0
    return score


def fuzzy_rank(candidates: Iterable[str], query: str) -> List[Tuple[str, int]]:
    """Return ``(candidate, score)`` pairs with positive scores, best first.

    Equal scores keep their input order.
    """
    query = query.lower()
    scored = []
    for candidate in candidates:
        score = fuzzy_score(candidate, query)
        if score > 0:
            scored.append((candidate, score))
    # sorted() is stable
    return sorted(scored, key=lambda item: item[1], reverse=True)


def fuzzy_search(candidates: Iterable[str], query: str) -> List[str]:
    """Filter and rank candidates by fuzzy match against ``query``.

    A blank query returns every candidate in its original order.
    """
    candidates = list(candidates)
    if not query or not query.strip():
        return candidates
    return [candidate for candidate, _score in fuzzy_rank(candidates, query)]
