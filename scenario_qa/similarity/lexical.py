"""Lexical title score.

Tiers:
    - identical titles: 1.0
    - identical after normalization (case, spacing, ``" (N)"`` suffix): 0.95
    - otherwise token overlap, capped at 0.9

Token overlap walks the smaller token set.  Each token shared exactly
with the other title earns 2 points (1 if it is two characters or
shorter); a synonym or substring-contained token earns 1.  With ``p``
points and token counts ``n <= m``::

    raw   = min(p / (2 * n), 1)
    score = raw * (0.7 + 0.3 * n / m)

The second factor keeps a short title that is fully contained in a
long one from scoring like an identical title.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from scenario_qa.similarity.text import is_partial_match
from scenario_qa.similarity.vocabulary import are_synonyms

if TYPE_CHECKING:
    from scenario_qa.models import Scenario

EXACT_TITLE_SCORE = 1.0
NORMALIZED_TITLE_SCORE = 0.95
MAX_OVERLAP_SCORE = 0.9


def _points(tokens: Sequence[str], others: Sequence[str]) -> int:
    other_set = set(others)
    points = 0
    for token in tokens:
        if token in other_set:
            points += 2 if len(token) > 2 else 1
        elif any(are_synonyms(token, o) or is_partial_match(token, o) for o in others):
            points += 1
    return points


def token_overlap(a_tokens: Sequence[str], b_tokens: Sequence[str]) -> float:
    """Symmetric token-overlap score in [0, 0.9]."""
    if not a_tokens or not b_tokens:
        return 0.0

    n, m = sorted((len(a_tokens), len(b_tokens)))
    if len(a_tokens) < len(b_tokens):
        points = _points(a_tokens, b_tokens)
    elif len(b_tokens) < len(a_tokens):
        points = _points(b_tokens, a_tokens)
    else:
        points = max(_points(a_tokens, b_tokens), _points(b_tokens, a_tokens))

    raw = min(points / (2 * n), 1.0)
    score = raw * (0.7 + 0.3 * n / m)
    return min(score, MAX_OVERLAP_SCORE)


def lexical_score(a: Scenario, b: Scenario) -> float:
    if a.title == b.title:
        return EXACT_TITLE_SCORE
    if a.normalized_title == b.normalized_title:
        return NORMALIZED_TITLE_SCORE
    return token_overlap(a.title_tokens, b.title_tokens)
