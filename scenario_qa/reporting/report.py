"""Analysis report assembly: gap register, dashboard series, JSON export.

The report is plain data built from a coverage result and a duplicate
report.  Prose insights come from an optional caller-supplied provider;
the report is complete and deterministic without one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from scenario_qa.config import ReportConfig
from scenario_qa.models import CoverageResult, DuplicateReport, Scenario
from scenario_qa.similarity.context import impact_level
from scenario_qa.similarity.vocabulary import ImpactLevel

logger = logging.getLogger(__name__)

InsightProvider = Callable[[dict[str, Any]], str]

_SEVERITY_ORDER = {level: rank for rank, level in enumerate(ImpactLevel)}


class SequenceGenerator:
    """Issues ``PREFIX-001``, ``PREFIX-002``, ... for one report.

    Each report gets its own generator, so IDs restart per analysis run.
    """

    def __init__(self, prefix: str = "GAP", width: int = 3, start: int = 1) -> None:
        self._prefix = prefix
        self._width = width
        self._next = start

    def next_id(self) -> str:
        value = self._next
        self._next += 1
        return f"{self._prefix}-{value:0{self._width}d}"


@dataclass(frozen=True)
class Gap:
    """A source behavior with no covering QA scenario."""

    id: str
    title: str
    severity: ImpactLevel
    business_impact: str
    closest_qa: str | None
    similarity: float
    threshold: float
    location: str


@dataclass(frozen=True)
class DashboardSeries:
    """Counts behind the coverage bar chart and ring."""

    covered: int
    missing: int
    overlap: int
    unmatched_qa: int
    coverage_percent: int
    remainder_percent: int

    def bars(self) -> list[dict[str, Any]]:
        return [
            {"label": "Covered", "value": self.covered},
            {"label": "Missing", "value": self.missing},
            {"label": "Overlap", "value": self.overlap},
        ]


@dataclass
class AnalysisReport:
    source_count: int
    qa_count: int
    coverage: CoverageResult
    duplicates: DuplicateReport
    gaps: list[Gap] = field(default_factory=list)
    dashboard: DashboardSeries | None = None
    insights: str | None = None


def build_dashboard(coverage: CoverageResult, duplicates: DuplicateReport) -> DashboardSeries:
    percent = max(0, min(100, coverage.coverage_percent))
    return DashboardSeries(
        covered=coverage.matched_count,
        missing=coverage.missing_count,
        overlap=duplicates.duplicate_count,
        unmatched_qa=len(coverage.unmatched_qa),
        coverage_percent=percent,
        remainder_percent=100 - percent,
    )


def build_gap_register(
    source: Sequence[Scenario],
    coverage: CoverageResult,
    ids: SequenceGenerator,
) -> list[Gap]:
    """One :class:`Gap` per missing source scenario, most severe first.

    IDs are issued in source order, before sorting, so a gap keeps its
    ID regardless of severity.
    """
    by_title = {s.title: s for s in source}
    gaps: list[Gap] = []
    for result in coverage.missing:
        scenario = by_title.get(result.source_title)
        impact = scenario.business_impact if scenario else ""
        gaps.append(
            Gap(
                id=ids.next_id(),
                title=result.source_title,
                severity=impact_level(impact),
                business_impact=impact,
                closest_qa=result.qa_title,
                similarity=result.similarity,
                threshold=result.threshold,
                location=str(scenario.source_location) if scenario else "",
            )
        )
    gaps.sort(key=lambda g: _SEVERITY_ORDER[g.severity])
    return gaps


def build_report(
    source: Sequence[Scenario],
    qa: Sequence[Scenario],
    coverage: CoverageResult,
    duplicates: DuplicateReport,
    config: ReportConfig | None = None,
    ids: SequenceGenerator | None = None,
    insight_provider: InsightProvider | None = None,
) -> AnalysisReport:
    """Assemble the full analysis report.

    Args:
        source: Source scenarios that were matched.
        qa: QA scenarios that were matched and clustered.
        coverage: Result of :func:`~scenario_qa.matching.coverage.match_coverage`.
        duplicates: Result of :func:`~scenario_qa.matching.duplicates.find_duplicates`.
        config: Gap ID format; defaults when ``None``.
        ids: Gap ID generator; a fresh one from *config* when ``None``.
        insight_provider: Optional callable turning the report payload into
            prose.  Failures are logged and leave ``insights`` unset.

    Returns:
        The populated :class:`AnalysisReport`.
    """
    cfg = config or ReportConfig()
    if ids is None:
        ids = SequenceGenerator(prefix=cfg.gap_id_prefix, width=cfg.gap_id_width)

    report = AnalysisReport(
        source_count=len(source),
        qa_count=len(qa),
        coverage=coverage,
        duplicates=duplicates,
        gaps=build_gap_register(source, coverage, ids),
        dashboard=build_dashboard(coverage, duplicates),
    )

    if insight_provider is not None:
        try:
            insights = insight_provider(report_to_dict(report))
            report.insights = str(insights) if insights is not None else None
        except Exception:
            logger.exception("Insight provider failed; report returned without insights.")

    return report


# ── JSON export ─────────────────────────────────────────────────────


def report_to_dict(report: AnalysisReport) -> dict[str, Any]:
    """Render *report* as JSON-compatible data."""
    coverage = report.coverage
    duplicates = report.duplicates
    dashboard = report.dashboard or build_dashboard(coverage, duplicates)
    return {
        "summary": {
            "source_scenarios": report.source_count,
            "qa_scenarios": report.qa_count,
            "coverage_percent": coverage.coverage_percent,
            "matched": coverage.matched_count,
            "missing": coverage.missing_count,
            "unmatched_qa": len(coverage.unmatched_qa),
            "duplicate_count": duplicates.duplicate_count,
            "optimization_potential": duplicates.optimization_potential,
            "policy": coverage.policy.value,
            "scorer": coverage.scorer,
        },
        "matches": [
            {
                "source": m.source_title,
                "qa": m.qa_title,
                "similarity": m.similarity,
                "threshold": m.threshold,
                "status": m.status.value,
            }
            for m in coverage.matches
        ],
        "unmatched_qa": list(coverage.unmatched_qa),
        "duplicate_groups": [
            {
                "tier": g.tier.value,
                "titles": list(g.titles),
                "keeper": g.keeper,
                "similarity": g.similarity,
                "reason": g.reason,
                "insight": g.insight,
            }
            for g in duplicates.groups
        ],
        "gaps": [
            {
                "id": gap.id,
                "title": gap.title,
                "severity": gap.severity.label,
                "business_impact": gap.business_impact,
                "closest_qa": gap.closest_qa,
                "similarity": gap.similarity,
                "threshold": gap.threshold,
                "location": gap.location,
            }
            for gap in report.gaps
        ],
        "dashboard": {
            "bars": dashboard.bars(),
            "coverage_percent": dashboard.coverage_percent,
            "remainder_percent": dashboard.remainder_percent,
        },
        "insights": report.insights,
    }
