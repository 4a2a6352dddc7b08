"""Tests for coverage matching and the dynamic threshold."""

import pytest

from scenario_qa.config import MatchingConfig
from scenario_qa.matching.coverage import (
    compute_dynamic_threshold,
    distinct_title_count,
    match_coverage,
)
from scenario_qa.models import MatchPolicy, MatchStatus, Scenario
from scenario_qa.similarity.engine import fast_similarity


def _make(title: str) -> Scenario:
    return Scenario.build(title)


def _constant(value: float):
    def _scorer(a, b):
        return value
    return _scorer


def _table(scores: dict[tuple[str, str], float]):
    def _scorer(a, b):
        return scores[(a.title, b.title)]
    return _scorer


PLAIN = _make("Add item to cart")
TOGGLE = _make("Enable dark mode feature flag")


# ── Dynamic threshold ────────────────────────────────────────────────


class TestDynamicThreshold:
    def test_balanced_sets_use_base(self):
        assert compute_dynamic_threshold(PLAIN, 10, 10) == pytest.approx(0.70)

    @pytest.mark.parametrize(
        "qa_count, expected",
        [
            (4, 0.60),   # under half
            (6, 0.65),   # under 0.8x
            (8, 0.70),
            (15, 0.70),  # exactly 1.5x
            (18, 0.73),  # over 1.5x
            (30, 0.75),  # over 2x
        ],
    )
    def test_ratio_adjustments(self, qa_count, expected):
        assert compute_dynamic_threshold(PLAIN, 10, qa_count) == pytest.approx(expected)

    def test_toggle_scenarios_get_lower_bar(self):
        assert compute_dynamic_threshold(TOGGLE, 10, 10) == pytest.approx(0.65)

    def test_clamped_to_floor(self):
        assert compute_dynamic_threshold(TOGGLE, 10, 1) == pytest.approx(0.55)

    def test_clamped_to_ceiling(self):
        cfg = MatchingConfig(base_threshold=0.79)
        assert compute_dynamic_threshold(PLAIN, 1, 10, cfg) == pytest.approx(0.80)

    def test_empty_source_uses_base(self):
        assert compute_dynamic_threshold(PLAIN, 0, 5) == pytest.approx(0.70)

    def test_distinct_titles(self):
        qa = [_make("Add item to cart"), _make("Add item to cart (2)"), _make("User logs out")]
        assert distinct_title_count(qa) == 2


# ── Matching ─────────────────────────────────────────────────────────


class TestMatchCoverage:
    def test_empty_source(self):
        result = match_coverage([], [PLAIN])
        assert result.matches == []
        assert result.coverage_percent == 0
        assert result.unmatched_qa == ["Add item to cart"]

    def test_empty_qa_all_missing(self):
        result = match_coverage([PLAIN, TOGGLE], [])
        assert [m.status for m in result.matches] == [MatchStatus.MISSING] * 2
        assert all(m.qa_title is None for m in result.matches)
        assert result.coverage_percent == 0

    def test_exact_title_matched(self):
        qa = [_make("Add item to cart"), _make("Export quarterly invoice")]
        result = match_coverage([PLAIN], qa)
        (match,) = result.matches
        assert match.status is MatchStatus.MATCHED
        assert match.qa_title == "Add item to cart"
        assert match.similarity == 1.0
        assert result.unmatched_qa == ["Export quarterly invoice"]
        assert result.coverage_percent == 100
        assert result.scorer == "full"

    def test_paraphrase_below_threshold_is_missing(self):
        source = [_make("User logs in with valid credentials")]
        qa = [_make("User Login - Success")]
        result = match_coverage(source, qa, scorer=fast_similarity)
        (match,) = result.matches
        assert match.similarity == pytest.approx(0.6167)
        assert match.threshold == pytest.approx(0.70)
        assert match.status is MatchStatus.MISSING
        assert match.qa_title == "User Login - Success"
        assert result.unmatched_qa == ["User Login - Success"]
        assert result.coverage_percent == 0

    def test_threshold_must_be_exceeded(self):
        qa = [_make("Anything")]
        assert match_coverage([PLAIN], qa, scorer=_constant(0.70)).matched_count == 0
        assert match_coverage([PLAIN], qa, scorer=_constant(0.7001)).matched_count == 1

    def test_ties_keep_earliest_qa(self):
        qa = [_make("First"), _make("Second")]
        result = match_coverage([PLAIN], qa, scorer=_constant(0.9))
        assert result.matches[0].qa_title == "First"
        assert result.unmatched_qa == ["Second"]

    def test_many_to_one_shares_qa(self):
        source = [_make("Alpha"), _make("Beta")]
        result = match_coverage(source, [_make("Xray")], scorer=_constant(0.9))
        assert result.matched_count == 2
        assert {m.qa_title for m in result.matches} == {"Xray"}
        assert result.unmatched_qa == []
        assert result.policy is MatchPolicy.MANY_TO_ONE

    def test_one_to_one_uses_each_qa_once(self):
        cfg = MatchingConfig(policy="one_to_one")
        source = [_make("Alpha"), _make("Beta")]
        result = match_coverage(source, [_make("Xray")], cfg, scorer=_constant(0.9))
        assert [m.status for m in result.matches] == [MatchStatus.MATCHED, MatchStatus.MISSING]
        assert result.coverage_percent == 50
        assert result.policy is MatchPolicy.ONE_TO_ONE

    def test_one_to_one_assigns_globally(self):
        scores = {
            ("Alpha", "Xray"): 0.90, ("Alpha", "Yankee"): 0.85,
            ("Beta", "Xray"): 0.95, ("Beta", "Yankee"): 0.20,
        }
        cfg = MatchingConfig(policy="one_to_one")
        source = [_make("Alpha"), _make("Beta")]
        qa = [_make("Xray"), _make("Yankee")]
        result = match_coverage(source, qa, cfg, scorer=_table(scores))
        assert [(m.source_title, m.qa_title) for m in result.matches] == [
            ("Alpha", "Yankee"),
            ("Beta", "Xray"),
        ]
        assert result.coverage_percent == 100

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            match_coverage([PLAIN], [PLAIN], MatchingConfig(policy="greedy"))

    def test_duplicate_qa_does_not_lower_coverage(self):
        source = [PLAIN, _make("User logs out")]
        qa = [_make("Add item to cart"), _make("Export quarterly invoice")]
        before = match_coverage(source, qa).coverage_percent
        after = match_coverage(source, qa + [_make("Export quarterly invoice")]).coverage_percent
        assert after >= before

    def test_duplicate_qa_at_fast_path_boundary(self):
        steps = [
            "Given a registered user on the login page",
            "When they submit valid credentials",
            "Then the dashboard is displayed",
        ]
        source = [Scenario.build("User logs in with valid credentials", steps)]
        qa = [Scenario.build("User Login - Success", steps), _make("Export Invoice As Pdf")]
        cfg = MatchingConfig(fast_path_threshold=2)
        before = match_coverage(source, qa, cfg)
        after = match_coverage(source, qa + [_make("Export Invoice As Pdf")], cfg)
        assert before.scorer == after.scorer == "full"
        assert after.coverage_percent >= before.coverage_percent
        assert after.matches[0].similarity == before.matches[0].similarity

    def test_toggle_threshold_recorded(self):
        result = match_coverage([TOGGLE], [_make("Dark mode flag is enabled")])
        assert result.matches[0].threshold == pytest.approx(0.65)

    def test_fast_scorer_above_size_limit(self):
        cfg = MatchingConfig(fast_path_threshold=0)
        result = match_coverage([PLAIN], [PLAIN], cfg)
        assert result.scorer == "fast"
        assert result.matched_count == 1

    def test_coverage_rounds_half_up(self):
        source = [_make("Alpha"), _make("Beta"), _make("Gamma")]
        scores = {("Alpha", "Xray"): 0.9, ("Beta", "Xray"): 0.9, ("Gamma", "Xray"): 0.1}
        result = match_coverage(source, [_make("Xray")], scorer=_table(scores))
        assert result.coverage_percent == 67
