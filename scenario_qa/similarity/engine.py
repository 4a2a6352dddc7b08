"""Composite scenario similarity.

``similarity(a, b)`` combines six bounded sub-scores (lexical title,
business concepts, functional flow, context, domain state, data
variation) with a weight profile picked per pair by the rule table in
:mod:`scenario_qa.similarity.weighting`, then adds a small capped boost
for convergent evidence.

Short-circuits, in order:
    1. identical titles score 1.0
    2. no shared evidence at all (no common or synonymous tokens, no
       shared concepts, no toggle or variation language) scores 0.0
    3. titles identical after normalization never score below 0.95

``fast_similarity`` is the cheap variant for large sets: title tiers
and token overlap only, blended with the domain-state score when both
scenarios are toggle-like.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from scenario_qa.similarity.concepts import concept_score
from scenario_qa.similarity.context import context_score
from scenario_qa.similarity.domain_state import domain_state_score, is_domain_state
from scenario_qa.similarity.flow import flow_score
from scenario_qa.similarity.lexical import (
    EXACT_TITLE_SCORE,
    NORMALIZED_TITLE_SCORE,
    lexical_score,
    token_overlap,
)
from scenario_qa.similarity.variation import has_variations, variation_score
from scenario_qa.similarity.vocabulary import canonical
from scenario_qa.similarity.weighting import confidence_boost, select_rule

if TYPE_CHECKING:
    from scenario_qa.models import Scenario

Scorer = Callable[["Scenario", "Scenario"], float]

_PRECISION = 4
_FAST_DOMAIN_WEIGHT = 0.3


@dataclass
class SimilarityBreakdown:
    """Every intermediate value behind one similarity judgment."""

    score: float
    reason: str  # exact_title | no_shared_evidence | composite
    sub_scores: dict[str, float] = field(default_factory=dict)
    profile: str = ""
    composite: float = 0.0
    boost: float = 0.0


def _shares_evidence(a: Scenario, b: Scenario, sub_scores: dict[str, float]) -> bool:
    if sub_scores["lexical"] > 0 or sub_scores["concept"] > 0:
        return True
    if a.token_set & b.token_set:
        return True
    if {canonical(t) for t in a.token_set} & {canonical(t) for t in b.token_set}:
        return True
    return any(
        check(s)
        for check in (is_domain_state, has_variations)
        for s in (a, b)
    )


def _clamp(value: float) -> float:
    return round(max(0.0, min(1.0, value)), _PRECISION)


def explain_similarity(a: Scenario, b: Scenario) -> SimilarityBreakdown:
    """Compute the full six-factor similarity and keep the working."""
    if a.title == b.title:
        return SimilarityBreakdown(score=EXACT_TITLE_SCORE, reason="exact_title")

    sub_scores = {
        "lexical": lexical_score(a, b),
        "concept": concept_score(a, b),
        "flow": flow_score(a.steps, b.steps),
        "context": context_score(a, b),
        "domain_state": domain_state_score(a, b),
        "variation": variation_score(a, b),
    }
    same_normalized = a.normalized_title == b.normalized_title

    if not same_normalized and not _shares_evidence(a, b, sub_scores):
        return SimilarityBreakdown(score=0.0, reason="no_shared_evidence", sub_scores=sub_scores)

    rule = select_rule(a, b)
    weights = rule.profile.weights()
    composite = sum(weights[key] * value for key, value in sub_scores.items())
    boost = confidence_boost(sub_scores, a, b)

    total = composite + boost
    if same_normalized:
        total = max(total, NORMALIZED_TITLE_SCORE)

    return SimilarityBreakdown(
        score=_clamp(total),
        reason="composite",
        sub_scores=sub_scores,
        profile=rule.profile.name,
        composite=composite,
        boost=boost,
    )


def similarity(a: Scenario, b: Scenario) -> float:
    """Composite similarity in [0, 1]; deterministic and symmetric."""
    return explain_similarity(a, b).score


def fast_similarity(a: Scenario, b: Scenario) -> float:
    """Cheap similarity: title tiers, token overlap and toggle agreement."""
    if a.title == b.title:
        return EXACT_TITLE_SCORE
    if a.normalized_title == b.normalized_title:
        return NORMALIZED_TITLE_SCORE

    score = token_overlap(a.title_tokens, b.title_tokens)
    if is_domain_state(a) and is_domain_state(b):
        score = (1 - _FAST_DOMAIN_WEIGHT) * score + _FAST_DOMAIN_WEIGHT * domain_state_score(a, b)
    return _clamp(score)


def select_scorer(source_count: int, qa_count: int, fast_path_threshold: int) -> tuple[str, Scorer]:
    """Use the cheap scorer once either set grows past *fast_path_threshold*."""
    if max(source_count, qa_count) > fast_path_threshold:
        return "fast", fast_similarity
    return "full", similarity
