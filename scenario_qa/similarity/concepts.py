"""Business-concept score.

Both scenarios are reduced to typed concepts (entity, action, outcome,
condition, data variation) by keyword lookup over title and steps.
Concepts of the same type are then matched with a tiered scorer and
averaged over the larger concept set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from scenario_qa.similarity.text import is_partial_match
from scenario_qa.similarity.vocabulary import ConceptType, are_synonyms

if TYPE_CHECKING:
    from scenario_qa.models import Scenario

EXACT_MATCH = 1.0
SYNONYM_MATCH = 0.8
PARTIAL_MATCH = 0.5


@dataclass(frozen=True)
class Concept:
    kind: ConceptType
    value: str


def extract_concepts(scenario: Scenario) -> tuple[Concept, ...]:
    """Typed concepts found in title and steps, sorted for stable iteration."""
    found: set[Concept] = set()
    for token in scenario.token_set:
        for kind in ConceptType:
            if token in kind.keywords:
                found.add(Concept(kind, token))
    return tuple(sorted(found, key=lambda c: (c.kind.label, c.value)))


def match_concepts(a: Concept, b: Concept) -> float:
    if a.kind is not b.kind:
        return 0.0
    if a.value == b.value:
        return EXACT_MATCH
    if are_synonyms(a.value, b.value):
        return SYNONYM_MATCH
    if is_partial_match(a.value, b.value):
        return PARTIAL_MATCH
    return 0.0


def _directional(larger: Sequence[Concept], smaller: Sequence[Concept]) -> float:
    total = sum(max(match_concepts(c, o) for o in smaller) for c in larger)
    return total / len(larger)


def concept_score(a: Scenario, b: Scenario) -> float:
    """Average best-match over the larger concept set; 0.0 if either is empty."""
    ca = extract_concepts(a)
    cb = extract_concepts(b)
    if not ca or not cb:
        return 0.0
    if len(ca) > len(cb):
        return _directional(ca, cb)
    if len(cb) > len(ca):
        return _directional(cb, ca)
    return (_directional(ca, cb) + _directional(cb, ca)) / 2
