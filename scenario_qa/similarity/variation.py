"""Data-variation score.

Picks out role, environment, dataset and permission keywords in reading
order and compares the two scenarios on which values they use per kind
and on whether the kinds line up position by position.  Scenarios that
specify no variation at all have nothing to disagree on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from scenario_qa.similarity.text import jaccard
from scenario_qa.similarity.vocabulary import VariationKind

if TYPE_CHECKING:
    from scenario_qa.models import Scenario

NEITHER_SCORE = 1.0
ONE_SIDED_SCORE = 0.5
_VALUE_WEIGHT = 0.6
_POSITION_WEIGHT = 0.4

Variation = tuple[VariationKind, str]


def extract_variations(scenario: Scenario) -> tuple[Variation, ...]:
    """Variation keywords in reading order, first occurrence only."""
    seen: dict[Variation, None] = {}
    for token in scenario.ordered_tokens:
        for kind in VariationKind:
            if token in kind.keywords:
                seen.setdefault((kind, token), None)
    return tuple(seen)


def has_variations(scenario: Scenario) -> bool:
    return bool(extract_variations(scenario))


def variation_score(a: Scenario, b: Scenario) -> float:
    va = extract_variations(a)
    vb = extract_variations(b)
    if not va and not vb:
        return NEITHER_SCORE
    if not va or not vb:
        return ONE_SIDED_SCORE

    kinds = [k for k in VariationKind if any(v[0] is k for v in va + vb)]
    value_overlap = sum(
        jaccard(
            frozenset(value for kind, value in va if kind is k),
            frozenset(value for kind, value in vb if kind is k),
        )
        for k in kinds
    ) / len(kinds)

    positional = sum(1 for x, y in zip(va, vb) if x[0] is y[0]) / max(len(va), len(vb))
    return _VALUE_WEIGHT * value_overlap + _POSITION_WEIGHT * positional
