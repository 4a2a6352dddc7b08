"""Weight profiles, the rule table that selects one, and the confidence boost.

The rule table is evaluated top to bottom and the first rule whose
predicate holds for the pair wins:

    1. domain_state    either scenario toggles a named capability
    2. security        either scenario uses security language
    3. error_handling  either scenario uses error-handling language
    4. performance     either scenario uses performance language
    5. data_variation  either scenario specifies role/env/dataset/permission variations
    6. default         always

Every predicate is symmetric in its two arguments, so the selected
profile does not depend on argument order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from scenario_qa.similarity.domain_state import is_domain_state
from scenario_qa.similarity.variation import has_variations
from scenario_qa.similarity.vocabulary import SignalKind, WorkflowCategory

if TYPE_CHECKING:
    from scenario_qa.models import Scenario

SUB_SCORES = ("lexical", "concept", "flow", "context", "domain_state", "variation")

BOOST_CAP = 0.15
STRONG_SCORE = 0.8
_PER_STRONG_SCORE = 0.02
_CATEGORY_MATCH_BOOST = 0.03
_STEP_COUNT_BOOST = 0.02


@dataclass(frozen=True)
class WeightProfile:
    name: str
    lexical: float
    concept: float
    flow: float
    context: float
    domain_state: float
    variation: float

    def weights(self) -> dict[str, float]:
        """Weights keyed by sub-score name, renormalized to sum to 1.0."""
        raw = {key: getattr(self, key) for key in SUB_SCORES}
        total = sum(raw.values())
        if total <= 0:
            return {key: 1.0 / len(raw) for key in raw}
        return {key: value / total for key, value in raw.items()}


BALANCED = WeightProfile("balanced", 0.30, 0.25, 0.20, 0.10, 0.05, 0.10)
DOMAIN_STATE = WeightProfile("domain_state", 0.20, 0.15, 0.15, 0.10, 0.30, 0.10)
DATA_VARIATION = WeightProfile("data_variation", 0.20, 0.20, 0.15, 0.10, 0.05, 0.30)
ERROR_HANDLING = WeightProfile("error_handling", 0.25, 0.25, 0.30, 0.10, 0.05, 0.05)
PERFORMANCE = WeightProfile("performance", 0.25, 0.30, 0.15, 0.20, 0.05, 0.05)
SECURITY = WeightProfile("security", 0.25, 0.30, 0.20, 0.15, 0.05, 0.05)

PROFILES: dict[str, WeightProfile] = {
    p.name: p
    for p in (BALANCED, DOMAIN_STATE, DATA_VARIATION, ERROR_HANDLING, PERFORMANCE, SECURITY)
}


# ── Rule table ──────────────────────────────────────────────────────

Predicate = Callable[["Scenario", "Scenario"], bool]


@dataclass(frozen=True)
class WeightRule:
    name: str
    predicate: Predicate
    profile: WeightProfile


def mentions(scenario: Scenario, signal: SignalKind) -> bool:
    return bool(scenario.token_set & signal.keywords)


def _either(check: Callable[[Scenario], bool]) -> Predicate:
    return lambda a, b: check(a) or check(b)


def _either_mentions(signal: SignalKind) -> Predicate:
    return _either(lambda s: mentions(s, signal))


WEIGHT_RULES: tuple[WeightRule, ...] = (
    WeightRule("domain_state", _either(is_domain_state), DOMAIN_STATE),
    WeightRule("security", _either_mentions(SignalKind.SECURITY), SECURITY),
    WeightRule("error_handling", _either_mentions(SignalKind.ERROR_HANDLING), ERROR_HANDLING),
    WeightRule("performance", _either_mentions(SignalKind.PERFORMANCE), PERFORMANCE),
    WeightRule("data_variation", _either(has_variations), DATA_VARIATION),
    WeightRule("default", lambda a, b: True, BALANCED),
)


def select_rule(a: Scenario, b: Scenario, rules: tuple[WeightRule, ...] = WEIGHT_RULES) -> WeightRule:
    """First rule whose predicate holds for the pair."""
    for rule in rules:
        if rule.predicate(a, b):
            return rule
    return rules[-1]


# ── Confidence boost ────────────────────────────────────────────────


def confidence_boost(sub_scores: dict[str, float], a: Scenario, b: Scenario) -> float:
    """Reward convergent evidence, capped at ``BOOST_CAP``.

    - ``+0.02`` per sub-score above 0.8, once at least two are
    - ``+0.03`` when workflow (other than the catch-all) and impact both match
    - ``+0.02`` when both have steps and the counts differ by at most one
    """
    boost = 0.0

    strong = sum(1 for value in sub_scores.values() if value > STRONG_SCORE)
    if strong >= 2:
        boost += _PER_STRONG_SCORE * strong

    if (
        a.workflow_category is b.workflow_category
        and a.workflow_category is not WorkflowCategory.GENERAL
        and a.business_impact == b.business_impact
    ):
        boost += _CATEGORY_MATCH_BOOST

    if a.steps and b.steps and abs(len(a.steps) - len(b.steps)) <= 1:
        boost += _STEP_COUNT_BOOST

    return min(boost, BOOST_CAP)
