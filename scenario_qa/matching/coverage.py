"""Coverage matching of source scenarios against QA scenarios.

Every source scenario is compared with the whole QA set; the best
candidate is accepted when its similarity strictly exceeds a threshold
computed for that scenario:

    base (0.70)
      - 0.10  QA set under half the size of the source set
      - 0.05  QA set under 0.8x the source set
      + 0.05  QA set over 2x the source set
      + 0.03  QA set over 1.5x the source set
      - 0.05  the scenario toggles a named capability
    clamped to [0.55, 0.80]

QA size counts distinct normalized titles, so padding the QA set with
copies of an existing test cannot move the thresholds or switch scorers.
"""

from __future__ import annotations

import logging
from typing import Sequence

from scenario_qa.config import MatchingConfig
from scenario_qa.models import CoverageResult, MatchPolicy, MatchResult, MatchStatus, Scenario
from scenario_qa.similarity.domain_state import is_domain_state
from scenario_qa.similarity.engine import Scorer, select_scorer

logger = logging.getLogger(__name__)


def distinct_title_count(scenarios: Sequence[Scenario]) -> int:
    return len({s.normalized_title for s in scenarios})


def _ratio_adjustment(ratio: float) -> float:
    """Lower the bar for sparse QA sets, raise it for dense ones."""
    if ratio < 0.5:
        return -0.10
    if ratio < 0.8:
        return -0.05
    if ratio > 2.0:
        return 0.05
    if ratio > 1.5:
        return 0.03
    return 0.0


def compute_dynamic_threshold(
    scenario: Scenario,
    source_count: int,
    qa_count: int,
    config: MatchingConfig | None = None,
) -> float:
    """Similarity a QA candidate must exceed to cover *scenario*.

    Args:
        scenario: The source scenario being matched.
        source_count: Size of the source set.
        qa_count: Number of distinct QA titles.
        config: Threshold bounds; defaults when ``None``.

    Returns:
        Threshold in ``[config.min_threshold, config.max_threshold]``.
    """
    cfg = config or MatchingConfig()
    threshold = cfg.base_threshold
    if source_count > 0:
        threshold += _ratio_adjustment(qa_count / source_count)
    if is_domain_state(scenario):
        threshold -= cfg.domain_state_discount
    return round(max(cfg.min_threshold, min(cfg.max_threshold, threshold)), 4)


def _best(row: Sequence[float]) -> tuple[int, float]:
    """Index and value of the maximum; earliest index wins ties."""
    best_j, best = -1, -1.0
    for j, value in enumerate(row):
        if value > best:
            best_j, best = j, value
    return best_j, best


def _many_to_one(
    source: Sequence[Scenario],
    qa: Sequence[Scenario],
    thresholds: list[float],
    scorer: Scorer,
) -> tuple[list[MatchResult], set[int]]:
    results: list[MatchResult] = []
    chosen: set[int] = set()
    for s, threshold in zip(source, thresholds):
        j, best = _best([scorer(s, q) for q in qa])
        matched = best > threshold
        if matched:
            chosen.add(j)
        results.append(
            MatchResult(
                source_title=s.title,
                qa_title=qa[j].title,
                similarity=best,
                threshold=threshold,
                status=MatchStatus.MATCHED if matched else MatchStatus.MISSING,
            )
        )
    return results, chosen


def _one_to_one(
    source: Sequence[Scenario],
    qa: Sequence[Scenario],
    thresholds: list[float],
    scorer: Scorer,
) -> tuple[list[MatchResult], set[int]]:
    """Greedy global assignment by descending similarity; each QA scenario used once."""
    rows = [[scorer(s, q) for q in qa] for s in source]
    pairs = sorted(
        ((value, i, j) for i, row in enumerate(rows) for j, value in enumerate(row)),
        key=lambda p: (-p[0], p[1], p[2]),
    )

    assigned: dict[int, tuple[int, float]] = {}
    claimed: set[int] = set()
    for value, i, j in pairs:
        if i in assigned or j in claimed:
            continue
        if value > thresholds[i]:
            assigned[i] = (j, value)
            claimed.add(j)

    results: list[MatchResult] = []
    for i, s in enumerate(source):
        if i in assigned:
            j, value = assigned[i]
            status = MatchStatus.MATCHED
        else:
            j, value = _best(rows[i])
            status = MatchStatus.MISSING
        results.append(
            MatchResult(
                source_title=s.title,
                qa_title=qa[j].title,
                similarity=value,
                threshold=thresholds[i],
                status=status,
            )
        )
    return results, claimed


def match_coverage(
    source: Sequence[Scenario],
    qa: Sequence[Scenario],
    config: MatchingConfig | None = None,
    scorer: Scorer | None = None,
) -> CoverageResult:
    """Classify every source scenario as covered by the QA set or missing.

    Args:
        source: Scenarios describing implemented behavior.
        qa: Scenarios describing existing tests.
        config: Thresholds, policy and fast-path size; defaults when ``None``.
        scorer: Override the similarity function (chosen by set size otherwise).

    Returns:
        A :class:`CoverageResult` with one :class:`MatchResult` per source
        scenario, in source order.  For missing scenarios the closest QA
        candidate is still reported.
    """
    cfg = config or MatchingConfig()
    policy = cfg.match_policy
    qa_distinct = distinct_title_count(qa)
    if scorer is None:
        scorer_name, scorer = select_scorer(len(source), qa_distinct, cfg.fast_path_threshold)
    else:
        scorer_name = getattr(scorer, "__name__", "custom")

    thresholds = [compute_dynamic_threshold(s, len(source), qa_distinct, cfg) for s in source]

    if not qa:
        matches = [
            MatchResult(s.title, None, 0.0, t, MatchStatus.MISSING)
            for s, t in zip(source, thresholds)
        ]
        chosen: set[int] = set()
    elif policy is MatchPolicy.ONE_TO_ONE:
        matches, chosen = _one_to_one(source, qa, thresholds, scorer)
    else:
        matches, chosen = _many_to_one(source, qa, thresholds, scorer)

    for m in matches:
        logger.debug(
            "%s: %r -> %r (%.4f vs threshold %.2f)",
            m.status.value, m.source_title, m.qa_title, m.similarity, m.threshold,
        )

    result = CoverageResult(
        matches=matches,
        unmatched_qa=[q.title for j, q in enumerate(qa) if j not in chosen],
        policy=policy,
        scorer=scorer_name,
    )
    logger.info(
        "Coverage: %d/%d source scenarios matched (%d%%), %d QA unmatched "
        "[scorer=%s, policy=%s].",
        result.matched_count, len(source), result.coverage_percent,
        len(result.unmatched_qa), scorer_name, policy.value,
    )
    return result
