"""Tests for report assembly, the gap register and JSON export."""

import json
import logging

from scenario_qa.config import ReportConfig
from scenario_qa.matching.coverage import match_coverage
from scenario_qa.matching.duplicates import find_duplicates
from scenario_qa.models import Scenario
from scenario_qa.reporting.report import (
    SequenceGenerator,
    build_dashboard,
    build_report,
    report_to_dict,
)
from scenario_qa.similarity.vocabulary import ImpactLevel


def _make(title: str) -> Scenario:
    return Scenario.build(title)


def _report(source, qa, **kwargs):
    coverage = match_coverage(source, qa)
    duplicates = find_duplicates(qa)
    return build_report(source, qa, coverage, duplicates, **kwargs)


SOURCE = [
    _make("Change avatar color"),
    _make("Refund payment for cancelled order"),
    _make("Add item to cart"),
]
QA = [_make("Add item to cart"), _make("Add item to cart")]


# ── Sequence generator ───────────────────────────────────────────────


class TestSequenceGenerator:
    def test_default_format(self):
        ids = SequenceGenerator()
        assert [ids.next_id() for _ in range(3)] == ["GAP-001", "GAP-002", "GAP-003"]

    def test_custom_format(self):
        ids = SequenceGenerator(prefix="MISS", width=4, start=7)
        assert ids.next_id() == "MISS-0007"

    def test_generators_are_independent(self):
        a, b = SequenceGenerator(), SequenceGenerator()
        a.next_id()
        assert b.next_id() == "GAP-001"


# ── Gap register ─────────────────────────────────────────────────────


class TestGapRegister:
    def test_one_gap_per_missing_scenario(self):
        report = _report(SOURCE, QA)
        assert {g.title for g in report.gaps} == {
            "Change avatar color",
            "Refund payment for cancelled order",
        }

    def test_severity_from_business_impact(self):
        gaps = {g.title: g for g in _report(SOURCE, QA).gaps}
        assert gaps["Refund payment for cancelled order"].severity is ImpactLevel.CRITICAL
        assert gaps["Change avatar color"].severity is ImpactLevel.LOW

    def test_ids_follow_source_order_and_survive_sorting(self):
        report = _report(SOURCE, QA)
        assert [(g.id, g.title) for g in report.gaps] == [
            ("GAP-002", "Refund payment for cancelled order"),
            ("GAP-001", "Change avatar color"),
        ]

    def test_ids_restart_per_report(self):
        first = _report(SOURCE, QA)
        second = _report(SOURCE, QA)
        assert [g.id for g in first.gaps] == [g.id for g in second.gaps]

    def test_configured_prefix(self):
        report = _report(SOURCE, QA, config=ReportConfig(gap_id_prefix="MISS", gap_id_width=2))
        assert sorted(g.id for g in report.gaps) == ["MISS-01", "MISS-02"]


# ── Dashboard ────────────────────────────────────────────────────────


class TestDashboard:
    def test_series(self):
        report = _report(SOURCE, QA)
        dashboard = report.dashboard
        assert (dashboard.covered, dashboard.missing, dashboard.overlap) == (1, 2, 1)
        assert dashboard.coverage_percent == 33
        assert dashboard.remainder_percent == 67
        assert [b["label"] for b in dashboard.bars()] == ["Covered", "Missing", "Overlap"]

    def test_empty_inputs(self):
        dashboard = build_dashboard(match_coverage([], []), find_duplicates([]))
        assert dashboard.coverage_percent == 0
        assert dashboard.remainder_percent == 100


# ── Insight provider ─────────────────────────────────────────────────


class TestInsightProvider:
    def test_absent_provider(self):
        assert _report(SOURCE, QA).insights is None

    def test_provider_receives_payload(self):
        seen = {}

        def provider(payload):
            seen.update(payload)
            return "Two behaviors have no tests."

        report = _report(SOURCE, QA, insight_provider=provider)
        assert report.insights == "Two behaviors have no tests."
        assert seen["summary"]["coverage_percent"] == 33

    def test_failing_provider_is_logged(self, caplog):
        def provider(payload):
            raise RuntimeError("service unavailable")

        with caplog.at_level(logging.ERROR, logger="scenario_qa.reporting.report"):
            report = _report(SOURCE, QA, insight_provider=provider)
        assert report.insights is None
        assert len(report.gaps) == 2
        assert "Insight provider failed" in caplog.text


# ── JSON export ──────────────────────────────────────────────────────


class TestReportToDict:
    def test_json_serializable(self):
        data = report_to_dict(_report(SOURCE, QA))
        decoded = json.loads(json.dumps(data))
        assert decoded["summary"]["matched"] == 1
        assert decoded["summary"]["duplicate_count"] == 1
        assert decoded["summary"]["policy"] == "many_to_one"

    def test_sections(self):
        data = report_to_dict(_report(SOURCE, QA))
        assert set(data) == {
            "summary", "matches", "unmatched_qa", "duplicate_groups", "gaps", "dashboard", "insights",
        }
        assert data["duplicate_groups"][0]["tier"] == "exact"
        assert data["gaps"][0]["severity"] == "critical"
        assert [m["status"] for m in data["matches"]] == ["missing", "missing", "matched"]
