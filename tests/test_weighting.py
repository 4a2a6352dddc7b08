"""Tests for weight profiles, the profile rule table and the confidence boost."""

import pytest

from scenario_qa.models import Scenario
from scenario_qa.similarity.context import classify_workflow, context_score, impact_level
from scenario_qa.similarity.vocabulary import ImpactLevel, WorkflowCategory
from scenario_qa.similarity.weighting import (
    BOOST_CAP,
    PROFILES,
    WEIGHT_RULES,
    WeightProfile,
    confidence_boost,
    select_rule,
)


def _make(title: str, steps: tuple[str, ...] = ()) -> Scenario:
    return Scenario.build(title, steps)


def _sub_scores(value: float) -> dict[str, float]:
    return {k: value for k in ("lexical", "concept", "flow", "context", "domain_state", "variation")}


# ── Profiles ─────────────────────────────────────────────────────────


class TestProfiles:
    @pytest.mark.parametrize("name", sorted(PROFILES))
    def test_weights_sum_to_one(self, name):
        assert sum(PROFILES[name].weights().values()) == pytest.approx(1.0)

    def test_unnormalized_profile_is_rescaled(self):
        profile = WeightProfile("custom", 2, 2, 0, 0, 0, 0)
        weights = profile.weights()
        assert weights["lexical"] == pytest.approx(0.5)
        assert weights["flow"] == 0.0

    def test_zero_profile_falls_back_to_uniform(self):
        weights = WeightProfile("zero", 0, 0, 0, 0, 0, 0).weights()
        assert all(w == pytest.approx(1 / 6) for w in weights.values())


# ── Rule table ───────────────────────────────────────────────────────


class TestSelectRule:
    def test_default_is_last(self):
        assert WEIGHT_RULES[-1].name == "default"

    def test_plain_pair_uses_default(self):
        rule = select_rule(_make("Add item to cart"), _make("Remove item from cart"))
        assert rule.name == "default"
        assert rule.profile.name == "balanced"

    def test_toggle_wins_first(self):
        rule = select_rule(_make("Enable dark mode feature flag"), _make("Login fails with invalid password"))
        assert rule.name == "domain_state"

    def test_error_language(self):
        rule = select_rule(_make("Login fails with invalid password"), _make("User logs in"))
        assert rule.name == "error_handling"

    def test_security_language(self):
        rule = select_rule(_make("Unauthorized user is rejected"), _make("User logs in"))
        assert rule.name == "security"

    def test_performance_language(self):
        rule = select_rule(_make("Search latency under load"), _make("Search products"))
        assert rule.name == "performance"

    def test_variation_language(self):
        rule = select_rule(_make("Admin exports report"), _make("Viewer exports report"))
        assert rule.name == "data_variation"

    def test_selection_is_symmetric(self):
        a = _make("Login fails with invalid password")
        b = _make("Admin exports report")
        assert select_rule(a, b).name == select_rule(b, a).name


# ── Confidence boost ─────────────────────────────────────────────────


class TestConfidenceBoost:
    def test_capped(self):
        a = _make("User login", ("Given a registered user", "When they log in"))
        assert confidence_boost(_sub_scores(0.9), a, a) == pytest.approx(BOOST_CAP)

    def test_no_convergent_evidence(self):
        a, b = _make("Alpha beta"), _make("Gamma delta")
        assert confidence_boost(_sub_scores(0.5), a, b) == 0.0

    def test_single_strong_score_not_rewarded(self):
        a, b = _make("Alpha beta"), _make("Gamma delta")
        scores = _sub_scores(0.5)
        scores["lexical"] = 0.95
        assert confidence_boost(scores, a, b) == 0.0

    def test_step_count_agreement(self):
        a = _make("Alpha beta", ("Given one", "When two"))
        b = _make("Gamma delta", ("Given three",))
        assert confidence_boost(_sub_scores(0.5), a, b) == pytest.approx(0.02)


# ── Context ──────────────────────────────────────────────────────────


class TestContext:
    def test_title_hits_count_double(self):
        assert classify_workflow("Refund order payment", ()) is WorkflowCategory.PAYMENT

    def test_general_fallback(self):
        assert classify_workflow("Alpha beta", ()) is WorkflowCategory.GENERAL

    def test_impact_level_roundtrip(self):
        for level in ImpactLevel:
            assert impact_level(level.summary_text) is level
        assert impact_level("") is ImpactLevel.LOW

    def test_context_prefers_same_workflow(self):
        login = _make("User login")
        same = _make("Login with password")
        other = _make("Export quarterly report")
        assert context_score(login, same) > context_score(login, other)
