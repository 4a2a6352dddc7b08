"""End-to-end analysis: parse both texts, match coverage, cluster duplicates."""

from __future__ import annotations

import logging
import time

from scenario_qa.config import AppConfig
from scenario_qa.matching.coverage import match_coverage
from scenario_qa.matching.duplicates import find_duplicates
from scenario_qa.parsers.scenario_parser import parse
from scenario_qa.reporting.report import AnalysisReport, InsightProvider, build_report

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """One coverage analysis run over a source text and a QA text.

    Each :meth:`run` starts from scratch; nothing is kept between runs.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        insight_provider: InsightProvider | None = None,
    ) -> None:
        self._config = config or AppConfig()
        self._insight_provider = insight_provider

    @property
    def config(self) -> AppConfig:
        return self._config

    def run(
        self,
        source_text: str,
        qa_text: str,
        source_name: str = "source",
        qa_name: str = "qa",
    ) -> AnalysisReport:
        """Analyze how well *qa_text* covers *source_text*.

        Raises:
            TypeError: If either text is not a string.
        """
        for name, value in (("source_text", source_text), ("qa_text", qa_text)):
            if not isinstance(value, str):
                raise TypeError(f"{name} must be str, got {type(value).__name__}")

        t0 = time.perf_counter()
        heuristics = self._config.parser.heuristic_titles
        source = parse(source_text, document=source_name, heuristic_titles=heuristics)
        qa = parse(qa_text, document=qa_name, heuristic_titles=heuristics)

        coverage = match_coverage(source, qa, self._config.matching)
        duplicates = find_duplicates(qa, self._config.duplicates)
        report = build_report(
            source,
            qa,
            coverage,
            duplicates,
            config=self._config.report,
            insight_provider=self._insight_provider,
        )

        logger.info(
            "Analysis complete in %.2fs: %d source, %d QA, coverage %d%%, %d gaps, "
            "%d duplicate groups.",
            time.perf_counter() - t0,
            len(source), len(qa), coverage.coverage_percent,
            len(report.gaps), len(duplicates.groups),
        )
        return report
