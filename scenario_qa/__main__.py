"""CLI entry point for scenario-qa."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from scenario_qa.config import load_config

logger = logging.getLogger(__name__)


def _read_text(path_arg: str) -> str:
    path = Path(path_arg)
    if not path.is_file():
        print(f"Error: '{path}' is not a readable file.", file=sys.stderr)
        sys.exit(1)
    return path.read_text(encoding="utf-8", errors="replace")


def cmd_parse(args: argparse.Namespace) -> None:
    """List the scenarios recovered from a document."""
    from scenario_qa.parsers.scenario_parser import parse

    config = load_config(Path(args.config) if args.config else None)
    text = _read_text(args.file)
    scenarios = parse(text, document=Path(args.file).name, heuristic_titles=config.parser.heuristic_titles)

    if not scenarios:
        print("No scenarios found.")
        return

    for i, s in enumerate(scenarios, 1):
        tags = f"  [{', '.join(sorted(s.tags))}]" if s.tags else ""
        print(f"[{i}] {s.title}{tags}")
        print(f"    {s.workflow_category.label} | {s.business_impact} | {len(s.steps)} steps | {s.source_location}")
    print(f"\n{len(scenarios)} scenarios.")


def cmd_duplicates(args: argparse.Namespace) -> None:
    """Report redundant scenarios in a QA document."""
    from scenario_qa.matching.duplicates import find_duplicates
    from scenario_qa.parsers.scenario_parser import parse

    config = load_config(Path(args.config) if args.config else None)
    text = _read_text(args.file)
    scenarios = parse(text, document=Path(args.file).name, heuristic_titles=config.parser.heuristic_titles)
    report = find_duplicates(scenarios, config.duplicates)

    if not report.groups:
        print(f"No duplicates among {report.total_scenarios} scenarios.")
        return

    for group in report.groups:
        print(f"[{group.tier.value}] {group.similarity:.1f}% - {group.reason}")
        for title in group.titles:
            marker = "*" if title == group.keeper else " "
            print(f"  {marker} {title}")
        print(f"    {group.insight}")
    print(
        f"\n{report.duplicate_count} redundant of {report.total_scenarios} scenarios "
        f"(optimization potential {report.optimization_potential:.1f}%)."
    )


def cmd_analyze(args: argparse.Namespace) -> None:
    """Measure how well a QA document covers a source document."""
    from scenario_qa.pipeline import AnalysisPipeline
    from scenario_qa.reporting.report import report_to_dict

    config = load_config(Path(args.config) if args.config else None)
    if args.policy:
        config.matching.policy = args.policy

    source_text = _read_text(args.source)
    qa_text = _read_text(args.qa)

    pipeline = AnalysisPipeline(config)
    report = pipeline.run(
        source_text,
        qa_text,
        source_name=Path(args.source).name,
        qa_name=Path(args.qa).name,
    )

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
        return

    coverage = report.coverage
    print(f"Coverage: {coverage.coverage_percent}% ({coverage.matched_count}/{report.source_count} scenarios)")
    print(f"QA scenarios: {report.qa_count}, unmatched: {len(coverage.unmatched_qa)}")

    if report.gaps:
        print("\n--- Gaps ---")
        for gap in report.gaps:
            closest = f" (closest: {gap.closest_qa}, {gap.similarity:.2f} <= {gap.threshold:.2f})" if gap.closest_qa else ""
            print(f"  {gap.id} [{gap.severity.label}] {gap.title}{closest}")

    if coverage.unmatched_qa:
        print("\n--- Unmatched QA ---")
        for title in coverage.unmatched_qa:
            print(f"  {title}")

    duplicates = report.duplicates
    if duplicates.groups:
        print("\n--- Duplicates ---")
        for group in duplicates.groups:
            print(f"  [{group.tier.value}] {', '.join(group.titles)} ({group.similarity:.1f}%)")
        print(f"  Optimization potential: {duplicates.optimization_potential:.1f}%")


def cmd_init_config(args: argparse.Namespace) -> None:
    """Write the effective configuration to a YAML file."""
    from scenario_qa.config import save_config

    config = load_config(Path(args.config) if args.config else None)
    output = Path(args.output)
    if output.exists() and not args.force:
        print(f"Error: '{output}' already exists (use --force to overwrite).", file=sys.stderr)
        sys.exit(1)
    save_config(config, output)
    print(f"Wrote {output}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="scenario-qa",
        description="Scenario coverage and redundancy analysis for QA test suites",
    )
    parser.add_argument("--config", help="Path to config.yaml", default=None)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level (default: WARNING)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # parse command
    p_parse = sub.add_parser("parse", help="List scenarios recovered from a document")
    p_parse.add_argument("file", help="Path to a text or feature file")
    p_parse.set_defaults(func=cmd_parse)

    # duplicates command
    p_dup = sub.add_parser("duplicates", help="Find redundant scenarios in a QA document")
    p_dup.add_argument("file", help="Path to the QA scenario file")
    p_dup.set_defaults(func=cmd_duplicates)

    # analyze command
    p_analyze = sub.add_parser("analyze", help="Measure QA coverage of a source document")
    p_analyze.add_argument("source", help="Path to the source scenario file")
    p_analyze.add_argument("qa", help="Path to the QA scenario file")
    p_analyze.add_argument("--json", action="store_true", help="Print the report as JSON")
    p_analyze.add_argument(
        "--policy",
        choices=["many_to_one", "one_to_one"],
        default=None,
        help="Override the match policy from config.yaml",
    )
    p_analyze.set_defaults(func=cmd_analyze)

    # init-config command
    p_init = sub.add_parser("init-config", help="Write the effective configuration to YAML")
    p_init.add_argument("--output", default="config.yaml", help="Destination path (default: config.yaml)")
    p_init.add_argument("--force", action="store_true", help="Overwrite an existing file")
    p_init.set_defaults(func=cmd_init_config)

    args = parser.parse_args(argv)

    # Console: respect --log-level (default WARNING to keep terminal clean)
    console_level = getattr(logging, args.log_level)
    logging.basicConfig(
        level=console_level,
        format="%(asctime)s [%(levelname)-8s] %(name)s — %(message)s",
    )
    for handler in logging.root.handlers:
        handler.setLevel(console_level)

    # File handler: WARNING+ only
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    from logging.handlers import RotatingFileHandler
    file_handler = RotatingFileHandler(
        log_dir / "scenario_qa.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)-8s] %(name)s — %(message)s"
    ))
    logging.root.addHandler(file_handler)

    logger.info("Log file: %s", (log_dir / "scenario_qa.log").resolve())
    args.func(args)


if __name__ == "__main__":
    main()
