"""Scenario recovery from loosely formatted behavior documents.

Accepts any text: Gherkin feature files, numbered test lists, ID-prefixed
test registers, or pasted prose with title-case headings.  A single
forward pass over the lines drives a small state machine::

    NONE ──title──▶ IN_SCENARIO ──Examples:──▶ IN_EXAMPLES
      │                 ▲   │
      │ Background:     │   └──Feature:/Rule:/Background:──▶ (finalize)
      ▼                 │
    IN_BACKGROUND ─title┘           IN_RULE ──title──▶ IN_SCENARIO

A new title, a section marker or the end of input finalizes the scenario
in progress.  Lines that fit nowhere are skipped; parsing never fails.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from scenario_qa.models import Scenario, SourceLocation
from scenario_qa.parsers.gherkin import (
    SectionMarker,
    is_blank_or_comment,
    is_step,
    is_table_row,
    is_table_separator,
    is_tag_line,
    match_title,
    numbered_step,
    parse_tags,
    section_marker,
    table_cells,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"<([^<>]+)>")


class ParserState(enum.Enum):
    NONE = "none"
    IN_SCENARIO = "in_scenario"
    IN_BACKGROUND = "in_background"
    IN_RULE = "in_rule"
    IN_EXAMPLES = "in_examples"


class TitleRegistry:
    """Hands out unique titles, suffixing ``" (N)"`` on collision."""

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._counters: dict[str, int] = {}

    def claim(self, title: str) -> str:
        if title not in self._seen:
            self._seen.add(title)
            return title
        n = self._counters.get(title, 1)
        while True:
            n += 1
            candidate = f"{title} ({n})"
            if candidate not in self._seen:
                break
        self._counters[title] = n
        self._seen.add(candidate)
        return candidate


@dataclass
class _Draft:
    """A scenario whose steps are still being collected."""

    title: str
    line: int
    is_outline: bool
    tags: list[str]
    steps: list[str] = field(default_factory=list)
    example_header: list[str] | None = None
    example_rows: list[list[str]] = field(default_factory=list)


def _substitute(text: str, values: dict[str, str]) -> str:
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1).strip(), m.group(0)), text)


def _recover(text: str, document: str, heuristic_titles: bool) -> Iterator[Scenario]:
    """Generator behind :class:`ScenarioStream`; one pass, no backtracking."""
    registry = TitleRegistry()
    state = ParserState.NONE
    draft: _Draft | None = None
    pending_tags: list[str] = []
    feature_tags: list[str] = []
    background: list[str] = []

    def _flush(current: _Draft | None) -> list[Scenario]:
        if current is None:
            return []
        location = SourceLocation(document=document, line=current.line)
        tags = list(dict.fromkeys(current.tags))
        title = registry.claim(current.title)
        flushed = [
            Scenario.build(title, current.steps, tags, location, background)
        ]
        if current.is_outline and current.example_header and current.example_rows:
            for n, row in enumerate(current.example_rows, 1):
                values = dict(zip(current.example_header, row))
                derived = registry.claim(f"{_substitute(title, values)} (Example {n})")
                flushed.append(
                    Scenario.build(
                        derived,
                        [_substitute(s, values) for s in current.steps],
                        tags,
                        location,
                        background,
                    )
                )
        return flushed

    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if is_blank_or_comment(line):
            continue

        if is_tag_line(line):
            tags = parse_tags(line)
            if state is ParserState.IN_SCENARIO and draft is not None and not draft.steps:
                draft.tags.extend(tags)
            else:
                pending_tags.extend(tags)
            continue

        marker = section_marker(line)
        if marker is not None:
            kind = marker[0]
            if kind is SectionMarker.EXAMPLES:
                if draft is not None and draft.is_outline:
                    state = ParserState.IN_EXAMPLES
                    # A second Examples block brings its own header row.
                    draft.example_header = None
                pending_tags = []
                continue

            yield from _flush(draft)
            draft = None
            if kind is SectionMarker.FEATURE:
                feature_tags, pending_tags = pending_tags, []
                background = []
                state = ParserState.NONE
            elif kind is SectionMarker.BACKGROUND:
                background = []
                state = ParserState.IN_BACKGROUND
            else:
                state = ParserState.IN_RULE
            continue

        step = line if is_step(line) else numbered_step(line)
        if step is not None:
            if state is ParserState.IN_SCENARIO and draft is not None:
                draft.steps.append(step)
            elif state is ParserState.IN_BACKGROUND:
                background.append(step)
            continue

        if is_table_row(line):
            if state is ParserState.IN_EXAMPLES and draft is not None and not is_table_separator(line):
                cells = table_cells(line)
                if draft.example_header is None:
                    draft.example_header = cells
                else:
                    draft.example_rows.append(cells)
            continue

        title = match_title(line, heuristics=heuristic_titles)
        if title is not None:
            yield from _flush(draft)
            draft = _Draft(
                title=title.title,
                line=lineno,
                is_outline=title.is_outline,
                tags=feature_tags + pending_tags + list(title.tags),
            )
            pending_tags = []
            state = ParserState.IN_SCENARIO
            continue

        # Free-text description, stray step outside a scenario, etc.

    yield from _flush(draft)


class ScenarioStream:
    """Lazy, finite, restartable sequence of scenarios from one text.

    Iterating twice re-runs the parse and yields equal scenarios in the
    same order.
    """

    def __init__(self, text: str, document: str = "", heuristic_titles: bool = True) -> None:
        if not isinstance(text, str):
            raise TypeError(f"expected text as str, got {type(text).__name__}")
        self._text = text
        self._document = document
        self._heuristic_titles = heuristic_titles

    def __iter__(self) -> Iterator[Scenario]:
        return _recover(self._text, self._document, self._heuristic_titles)


def parse(text: str, document: str = "", heuristic_titles: bool = True) -> list[Scenario]:
    """Recover every scenario in *text*, in document order.

    Args:
        text: Raw document text, from any upstream source.
        document: Name recorded in each scenario's ``source_location``.
        heuristic_titles: Whether bare title-case lines start scenarios.

    Returns:
        Scenarios with unique titles.  Empty for text with no recognizable
        scenario headers.

    Raises:
        TypeError: If *text* is not a string.
    """
    scenarios = list(ScenarioStream(text, document=document, heuristic_titles=heuristic_titles))
    logger.info(
        "Parsed %s: %d scenarios",
        document or "<text>",
        len(scenarios),
    )
    return scenarios


def render_scenarios(scenarios: Iterable[Scenario]) -> str:
    """Re-serialize scenarios as plain Gherkin that :func:`parse` reads back."""
    blocks: list[str] = []
    for scenario in scenarios:
        lines: list[str] = []
        if scenario.tags:
            lines.append(" ".join(f"@{tag}" for tag in sorted(scenario.tags)))
        lines.append(f"Scenario: {scenario.title}")
        for step in scenario.steps:
            lines.append(f"  {step}" if is_step(step) else f"  And {step}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n" if blocks else ""
