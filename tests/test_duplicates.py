"""Tests for redundancy clustering of QA scenarios."""

import pytest

from scenario_qa.config import DuplicateConfig
from scenario_qa.matching.duplicates import (
    find_duplicates,
    pair_score,
    positional_step_similarity,
    step_overlap,
)
from scenario_qa.models import DuplicateTier, Scenario
from scenario_qa.parsers.scenario_parser import parse


CART_STEPS = (
    "Given the cart is empty",
    "When the user adds a book",
    "Then the cart shows one item",
)


def _make(title: str, steps: tuple[str, ...] = ()) -> Scenario:
    return Scenario.build(title, steps)


# ── Pair signals ─────────────────────────────────────────────────────


class TestPairSignals:
    def test_positional_both_empty(self):
        assert positional_step_similarity((), ()) is None

    def test_positional_one_empty(self):
        assert positional_step_similarity(CART_STEPS, ()) == 0.0

    def test_positional_identical(self):
        assert positional_step_similarity(CART_STEPS, CART_STEPS) == pytest.approx(100.0)

    def test_positional_averages_over_longer(self):
        assert positional_step_similarity(("Given a", "When b"), ("Given a",)) == pytest.approx(50.0)

    def test_positional_case_insensitive(self):
        assert positional_step_similarity(("GIVEN A CART",), ("given a cart",)) == pytest.approx(100.0)

    def test_step_overlap_without_steps(self):
        assert step_overlap(_make("A b"), _make("C d")) == 100.0

    def test_pair_without_steps_uses_title_score(self):
        score = pair_score(_make("Checkout"), _make("Checkout flow for guest buyers"))
        assert score.steps == score.title
        assert score.composite == pytest.approx(77.5)


# ── Tiers ────────────────────────────────────────────────────────────


class TestFindDuplicates:
    def test_identical_titles_exact_tier(self):
        qa = [_make("Feature Flag Toggle - Admin"), _make("Feature Flag Toggle - Admin")]
        report = find_duplicates(qa)
        (group,) = report.groups
        assert group.tier is DuplicateTier.EXACT
        assert group.similarity == 100.0
        assert group.size == 2
        assert report.duplicate_count == 1

    def test_parsed_duplicates_exact_tier(self):
        text = "Scenario: Feature Flag Toggle - Admin\nScenario: Feature Flag Toggle - Admin\n"
        report = find_duplicates(parse(text))
        (group,) = report.groups
        assert group.tier is DuplicateTier.EXACT
        assert group.titles == ("Feature Flag Toggle - Admin", "Feature Flag Toggle - Admin (2)")
        assert group.keeper == "Feature Flag Toggle - Admin"

    def test_high_tier(self):
        qa = [_make("Add item to cart", CART_STEPS), _make("Add an item to the cart", CART_STEPS)]
        (group,) = find_duplicates(qa).groups
        assert group.tier is DuplicateTier.HIGH
        assert group.similarity == pytest.approx(95.0)
        assert group.reason == "Near-identical titles and steps"
        assert "Scenario Outline" in group.insight

    def test_medium_tier(self):
        qa = [_make("Checkout"), _make("Checkout flow for guest buyers")]
        (group,) = find_duplicates(qa).groups
        assert group.tier is DuplicateTier.MEDIUM
        assert group.similarity == pytest.approx(77.5)
        assert group.insight.startswith("Review whether")

    def test_medium_tier_needs_step_gate(self):
        cfg = DuplicateConfig(medium_step_gate=101.0)
        qa = [_make("Checkout"), _make("Checkout flow for guest buyers")]
        assert find_duplicates(qa, cfg).groups == []

    def test_distinct_scenarios(self):
        qa = [_make("Add item to cart"), _make("Export quarterly invoice")]
        report = find_duplicates(qa)
        assert report.groups == []
        assert report.optimization_potential == 0.0

    def test_each_scenario_in_one_group(self):
        qa = [
            _make("Add item to cart", CART_STEPS),
            _make("Add item to cart", CART_STEPS),
            _make("Add an item to the cart", CART_STEPS),
        ]
        report = find_duplicates(qa)
        assert [g.tier for g in report.groups] == [DuplicateTier.EXACT]
        titles = [t for g in report.groups for t in g.titles]
        assert titles == ["Add item to cart", "Add item to cart"]
        assert "Add an item to the cart" not in titles

    def test_keeper_is_first_in_input_order(self):
        qa = [_make("Export invoice"), _make("ADD ITEM TO CART"), _make("add item to cart")]
        (group,) = find_duplicates(qa).groups
        assert group.keeper == "ADD ITEM TO CART"

    def test_optimization_potential_capped(self):
        qa = [_make("Login")] * 4
        report = find_duplicates(qa)
        assert report.duplicate_count == 3
        assert report.optimization_potential == 50.0

    def test_optimization_potential_uncapped(self):
        qa = [_make("Login"), _make("Login"), _make("Export invoice"), _make("Delete account")]
        assert find_duplicates(qa).optimization_potential == 25.0

    def test_empty_and_single(self):
        assert find_duplicates([]).groups == []
        assert find_duplicates([_make("Login")]).total_scenarios == 1
