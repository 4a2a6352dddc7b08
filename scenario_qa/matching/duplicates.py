"""Redundancy clustering of QA scenarios.

Three passes, each over the scenarios no earlier pass has grouped:

1. exact  - identical normalized titles (similarity 100)
2. high   - composite >= 80
3. medium - composite >= 70 and step-token overlap >= 60

where ``composite = 0.5 * title score + 0.5 * positional step score``,
all on a 0-100 scale.  Pairwise scores live in numpy matrices; groups
are the connected components of qualifying pairs (union-find), so a
scenario ends up in at most one group.
"""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from scenario_qa.config import DuplicateConfig
from scenario_qa.models import DuplicateGroup, DuplicateReport, DuplicateTier, Scenario
from scenario_qa.similarity.lexical import token_overlap
from scenario_qa.similarity.text import jaccard

logger = logging.getLogger(__name__)

_TITLE_WEIGHT = 0.5
_STEP_WEIGHT = 0.5

_INSIGHTS: dict[DuplicateTier, str] = {
    DuplicateTier.EXACT: (
        "Keep '{keeper}' and remove the {extra} identical cop{plural}. "
        "If they differ only in data, merge them into one Scenario Outline."
    ),
    DuplicateTier.HIGH: (
        "Merge into '{keeper}' or parameterize: these scenarios share most of "
        "their wording and steps, so one Scenario Outline with an Examples "
        "table can replace {size} tests."
    ),
    DuplicateTier.MEDIUM: (
        "Review whether these {size} scenarios are truly distinct. They overlap "
        "in wording and steps but may exercise different conditions."
    ),
}


@dataclass(frozen=True)
class PairScore:
    """Duplicate signals for one pair of scenarios, each on a 0-100 scale."""

    title: float
    steps: float
    composite: float
    step_overlap: float


def title_score(a: Scenario, b: Scenario) -> float:
    return token_overlap(a.title_tokens, b.title_tokens) * 100


def positional_step_similarity(
    a_steps: Sequence[str],
    b_steps: Sequence[str],
    quick: bool = False,
) -> float | None:
    """Average text similarity of steps at the same position.

    Steps missing on the shorter side count as 0, so the average runs
    over the longer list.  ``None`` when neither side has steps.
    """
    if not a_steps and not b_steps:
        return None
    if not a_steps or not b_steps:
        return 0.0
    total = 0.0
    for x, y in zip(a_steps, b_steps):
        matcher = difflib.SequenceMatcher(None, x.lower(), y.lower())
        total += matcher.quick_ratio() if quick else matcher.ratio()
    return total / max(len(a_steps), len(b_steps)) * 100


def step_overlap(a: Scenario, b: Scenario) -> float:
    """Jaccard overlap of step vocabulary; 100 when neither has steps."""
    if not a.step_token_set and not b.step_token_set:
        return 100.0
    return jaccard(a.step_token_set, b.step_token_set) * 100


def pair_score(a: Scenario, b: Scenario, quick: bool = False) -> PairScore:
    title = title_score(a, b)
    steps = positional_step_similarity(a.steps, b.steps, quick=quick)
    if steps is None:
        steps = title
    composite = _TITLE_WEIGHT * title + _STEP_WEIGHT * steps
    return PairScore(
        title=round(title, 2),
        steps=round(steps, 2),
        composite=round(composite, 2),
        step_overlap=round(step_overlap(a, b), 2),
    )


# ── Union-find ──────────────────────────────────────────────────────


class _UnionFind:
    def __init__(self, size: int) -> None:
        self._parent = list(range(size))

    def find(self, x: int) -> int:
        while self._parent[x] != x:
            self._parent[x] = self._parent[self._parent[x]]
            x = self._parent[x]
        return x

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # Lowest index stays root so the keeper is the earliest scenario.
            self._parent[max(ra, rb)] = min(ra, rb)

    def components(self, members: Sequence[int]) -> list[list[int]]:
        """Components among *members* with two or more entries, earliest first."""
        by_root: dict[int, list[int]] = {}
        for m in sorted(members):
            by_root.setdefault(self.find(m), []).append(m)
        return sorted((g for g in by_root.values() if len(g) >= 2), key=lambda g: g[0])


def _cluster(n: int, pairs: np.ndarray, available: set[int]) -> list[list[int]]:
    """Connected components of *pairs* restricted to *available* indices."""
    uf = _UnionFind(n)
    for i, j in pairs:
        i, j = int(i), int(j)
        if i in available and j in available:
            uf.union(i, j)
    return uf.components(sorted(available))


def _pairs(mask: np.ndarray) -> np.ndarray:
    """Index pairs ``(i, j)`` with ``i < j`` where *mask* holds."""
    return np.argwhere(np.triu(mask, k=1))


def _average(matrix: np.ndarray, members: list[int]) -> float:
    idx = np.array(members)
    block = matrix[np.ix_(idx, idx)]
    upper = block[np.triu_indices(len(members), k=1)]
    return round(float(upper.mean()), 1)


def _reason(tier: DuplicateTier, title: float, steps: float) -> str:
    if tier is DuplicateTier.EXACT:
        return "Identical titles after normalization"
    if title >= 80 and steps >= 80:
        return "Near-identical titles and steps"
    if title >= steps:
        return "Highly similar titles with overlapping steps"
    return "Similar step sequences under differently worded titles"


def _insight(tier: DuplicateTier, titles: tuple[str, ...]) -> str:
    extra = len(titles) - 1
    return _INSIGHTS[tier].format(
        keeper=titles[0],
        extra=extra,
        plural="y" if extra == 1 else "ies",
        size=len(titles),
    )


# ── Public API ──────────────────────────────────────────────────────


def find_duplicates(
    qa: Sequence[Scenario],
    config: DuplicateConfig | None = None,
) -> DuplicateReport:
    """Group redundant QA scenarios into exact, high and medium tiers.

    Args:
        qa: QA scenarios, in document order.  The first scenario of each
            group (in this order) is its keeper.
        config: Tier thresholds and optimization cap; defaults when ``None``.

    Returns:
        A :class:`DuplicateReport`.  Every scenario appears in at most one
        group; groups are ordered by tier, then by keeper position.
    """
    cfg = config or DuplicateConfig()
    n = len(qa)
    report = DuplicateReport(total_scenarios=n, optimization_cap=cfg.optimization_cap)
    if n < 2:
        return report

    quick = n > cfg.fast_path_threshold
    title_m = np.zeros((n, n))
    steps_m = np.zeros((n, n))
    composite_m = np.zeros((n, n))
    overlap_m = np.zeros((n, n))
    for i in range(n):
        for j in range(i + 1, n):
            score = pair_score(qa[i], qa[j], quick=quick)
            title_m[i, j] = title_m[j, i] = score.title
            steps_m[i, j] = steps_m[j, i] = score.steps
            composite_m[i, j] = composite_m[j, i] = score.composite
            overlap_m[i, j] = overlap_m[j, i] = score.step_overlap

    available = set(range(n))

    def _emit(tier: DuplicateTier, groups: list[list[int]], similarity: Callable[[list[int]], float]) -> None:
        for members in groups:
            titles = tuple(qa[m].title for m in members)
            report.groups.append(
                DuplicateGroup(
                    tier=tier,
                    titles=titles,
                    similarity=similarity(members),
                    reason=_reason(tier, _average(title_m, members), _average(steps_m, members)),
                    insight=_insight(tier, titles),
                )
            )
            available.difference_update(members)

    codes: dict[str, int] = {}
    title_ids = np.array([codes.setdefault(s.normalized_title, len(codes)) for s in qa])
    exact_mask = title_ids[:, None] == title_ids[None, :]
    _emit(DuplicateTier.EXACT, _cluster(n, _pairs(exact_mask), available), lambda _: 100.0)

    high_mask = composite_m >= cfg.high_threshold
    _emit(
        DuplicateTier.HIGH,
        _cluster(n, _pairs(high_mask), available),
        lambda members: _average(composite_m, members),
    )

    medium_mask = (composite_m >= cfg.medium_threshold) & (overlap_m >= cfg.medium_step_gate)
    _emit(
        DuplicateTier.MEDIUM,
        _cluster(n, _pairs(medium_mask), available),
        lambda members: _average(composite_m, members),
    )

    logger.info(
        "Duplicates: %d groups (%d exact, %d high, %d medium), %d redundant of %d "
        "scenarios, optimization potential %.1f%%.",
        len(report.groups),
        len(report.tier(DuplicateTier.EXACT)),
        len(report.tier(DuplicateTier.HIGH)),
        len(report.tier(DuplicateTier.MEDIUM)),
        report.duplicate_count, n, report.optimization_potential,
    )
    return report
