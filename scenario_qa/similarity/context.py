"""Derived classification and the contextual sub-score.

``classify_workflow`` and ``summarize_business_impact`` run once per
scenario when it is built.  ``context_score`` then compares those
derived fields plus environment, user and data-shape hints found in
the free text, and any priority keywords in tags or title.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from scenario_qa.similarity.text import content_tokens, jaccard, stem
from scenario_qa.similarity.vocabulary import (
    PRIORITY_KEYWORDS,
    ContextIndicator,
    ImpactLevel,
    WorkflowCategory,
)

if TYPE_CHECKING:
    from scenario_qa.models import Scenario

_WORKFLOW_WEIGHT = 0.35
_IMPACT_WEIGHT = 0.25
_INDICATOR_WEIGHT = 0.25
_PRIORITY_WEIGHT = 0.15

_NEUTRAL = 0.5


# ── Derived fields ──────────────────────────────────────────────────


def classify_workflow(title: str, steps: Sequence[str]) -> WorkflowCategory:
    """Pick the workflow category with the most keyword hits.

    Title hits count double.  Ties go to the category declared first;
    no hits at all fall back to ``GENERAL``.
    """
    title_tokens = set(content_tokens(title))
    step_tokens = {t for step in steps for t in content_tokens(step)}

    best = WorkflowCategory.GENERAL
    best_hits = 0
    for category in WorkflowCategory:
        if not category.keywords:
            continue
        hits = 2 * len(title_tokens & category.keywords) + len(step_tokens & category.keywords)
        if hits > best_hits:
            best, best_hits = category, hits
    return best


def assess_impact(title: str, steps: Sequence[str]) -> ImpactLevel:
    """First impact level (most severe first) whose keywords appear."""
    tokens = set(content_tokens(title))
    for step in steps:
        tokens.update(content_tokens(step))
    for level in ImpactLevel:
        if tokens & level.keywords:
            return level
    return ImpactLevel.LOW


def summarize_business_impact(title: str, steps: Sequence[str]) -> str:
    return assess_impact(title, steps).summary_text


def impact_level(summary: str) -> ImpactLevel:
    """Recover the level behind a ``business_impact`` summary string."""
    label = summary.split(":", 1)[0].strip().lower()
    for level in ImpactLevel:
        if level.label == label:
            return level
    return ImpactLevel.LOW


# ── Contextual score ────────────────────────────────────────────────


def extract_indicators(scenario: Scenario) -> dict[ContextIndicator, frozenset[str]]:
    tokens = scenario.token_set
    return {kind: frozenset(tokens & kind.keywords) for kind in ContextIndicator}


def _priority_markers(scenario: Scenario) -> frozenset[str]:
    tag_tokens = {stem(t.lower().lstrip("@")) for t in scenario.tags}
    return frozenset((tag_tokens | set(scenario.title_tokens)) & PRIORITY_KEYWORDS)


def _workflow_component(a: Scenario, b: Scenario) -> float:
    if a.workflow_category is not b.workflow_category:
        return 0.0
    if a.workflow_category is WorkflowCategory.GENERAL:
        return _NEUTRAL
    return 1.0


def _indicator_component(a: Scenario, b: Scenario) -> float:
    ind_a = extract_indicators(a)
    ind_b = extract_indicators(b)
    scores = [
        jaccard(ind_a[kind], ind_b[kind])
        for kind in ContextIndicator
        if ind_a[kind] or ind_b[kind]
    ]
    if not scores:
        return _NEUTRAL
    return sum(scores) / len(scores)


def _priority_component(a: Scenario, b: Scenario) -> float:
    pa = _priority_markers(a)
    pb = _priority_markers(b)
    if not pa and not pb:
        return _NEUTRAL
    return jaccard(pa, pb)


def context_score(a: Scenario, b: Scenario) -> float:
    """Weighted agreement of workflow, impact, indicators and priority."""
    impact = 1.0 if a.business_impact == b.business_impact else 0.0
    score = (
        _WORKFLOW_WEIGHT * _workflow_component(a, b)
        + _IMPACT_WEIGHT * impact
        + _INDICATOR_WEIGHT * _indicator_component(a, b)
        + _PRIORITY_WEIGHT * _priority_component(a, b)
    )
    return max(0.0, min(1.0, score))
