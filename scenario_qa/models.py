"""Scenario records and the result records produced by an analysis run.

Result records (matches, duplicate groups) refer to scenarios by title,
by value, so that two independently parsed sets can be compared without
sharing objects.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterable

from scenario_qa.similarity.context import classify_workflow, summarize_business_impact
from scenario_qa.similarity.text import content_tokens, normalize_title, unique
from scenario_qa.similarity.vocabulary import WorkflowCategory


@dataclass(frozen=True)
class SourceLocation:
    """Where a scenario came from.  Diagnostic only, never scored."""

    document: str = ""
    line: int = 0

    def __str__(self) -> str:
        if self.document:
            return f"{self.document}:{self.line}"
        return f"line {self.line}"


@dataclass(frozen=True)
class Scenario:
    """One behavior: a title, ordered steps, tags and derived classification.

    Instances are immutable.  Build them through :meth:`build`, which
    computes ``business_impact`` and ``workflow_category`` exactly once.
    """

    title: str
    steps: tuple[str, ...] = ()
    tags: frozenset[str] = frozenset()
    source_location: SourceLocation = field(default_factory=SourceLocation)
    background: tuple[str, ...] = ()
    business_impact: str = ""
    workflow_category: WorkflowCategory = WorkflowCategory.GENERAL

    @classmethod
    def build(
        cls,
        title: str,
        steps: Iterable[str] = (),
        tags: Iterable[str] = (),
        source_location: SourceLocation | None = None,
        background: Iterable[str] = (),
    ) -> Scenario:
        """Create a scenario and compute its derived fields.

        Raises:
            ValueError: If *title* is empty after trimming.
        """
        clean_title = title.strip()
        if not clean_title:
            raise ValueError("Scenario title must not be empty")
        step_tuple = tuple(steps)
        return cls(
            title=clean_title,
            steps=step_tuple,
            tags=frozenset(tags),
            source_location=source_location or SourceLocation(),
            background=tuple(background),
            business_impact=summarize_business_impact(clean_title, step_tuple),
            workflow_category=classify_workflow(clean_title, step_tuple),
        )

    # ── Cached text views (filled lazily, never part of equality) ──

    @cached_property
    def normalized_title(self) -> str:
        return normalize_title(self.title)

    @cached_property
    def title_tokens(self) -> tuple[str, ...]:
        return unique(content_tokens(normalize_title(self.title)))

    @cached_property
    def ordered_tokens(self) -> tuple[str, ...]:
        """Title then step stems, in reading order, repeats kept."""
        tokens = content_tokens(normalize_title(self.title))
        for step in self.steps:
            tokens.extend(content_tokens(step))
        return tuple(tokens)

    @cached_property
    def token_set(self) -> frozenset[str]:
        return frozenset(self.ordered_tokens)

    @cached_property
    def step_token_set(self) -> frozenset[str]:
        return frozenset(t for step in self.steps for t in content_tokens(step))

    @property
    def full_text(self) -> str:
        if self.steps:
            return self.title + "\n" + "\n".join(self.steps)
        return self.title


# ---------------------------------------------------------------------------
# Coverage results
# ---------------------------------------------------------------------------


class MatchStatus(enum.Enum):
    MATCHED = "matched"
    MISSING = "missing"


class MatchPolicy(enum.Enum):
    """How many source scenarios one QA scenario may cover."""

    MANY_TO_ONE = "many_to_one"
    ONE_TO_ONE = "one_to_one"

    @classmethod
    def from_name(cls, name: str) -> MatchPolicy:
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown match policy '{name}' (expected one of: {valid})") from None


@dataclass(frozen=True)
class MatchResult:
    """Best QA candidate for one source scenario."""

    source_title: str
    qa_title: str | None
    similarity: float
    threshold: float
    status: MatchStatus

    @property
    def is_matched(self) -> bool:
        return self.status is MatchStatus.MATCHED


@dataclass
class CoverageResult:
    """Outcome of matching a source set against a QA set."""

    matches: list[MatchResult] = field(default_factory=list)
    unmatched_qa: list[str] = field(default_factory=list)
    policy: MatchPolicy = MatchPolicy.MANY_TO_ONE
    scorer: str = "full"

    @property
    def matched(self) -> list[MatchResult]:
        return [m for m in self.matches if m.is_matched]

    @property
    def missing(self) -> list[MatchResult]:
        return [m for m in self.matches if not m.is_matched]

    @property
    def matched_count(self) -> int:
        return sum(1 for m in self.matches if m.is_matched)

    @property
    def missing_count(self) -> int:
        return len(self.matches) - self.matched_count

    @property
    def coverage_percent(self) -> int:
        """Matched over source count, rounded half-up; 0 for an empty source set."""
        total = len(self.matches)
        if total == 0:
            return 0
        return int(self.matched_count * 100 / total + 0.5)


# ---------------------------------------------------------------------------
# Duplicate results
# ---------------------------------------------------------------------------


class DuplicateTier(enum.Enum):
    EXACT = "exact"
    HIGH = "high"
    MEDIUM = "medium"


@dataclass(frozen=True)
class DuplicateGroup:
    """Two or more QA scenarios judged redundant with each other."""

    tier: DuplicateTier
    titles: tuple[str, ...]
    similarity: float
    reason: str
    insight: str

    @property
    def keeper(self) -> str:
        return self.titles[0]

    @property
    def size(self) -> int:
        return len(self.titles)


@dataclass
class DuplicateReport:
    groups: list[DuplicateGroup] = field(default_factory=list)
    total_scenarios: int = 0
    optimization_cap: float = 50.0

    @property
    def duplicate_count(self) -> int:
        """Scenarios that could be dropped, keeping one per group."""
        return sum(g.size - 1 for g in self.groups)

    @property
    def optimization_potential(self) -> float:
        if self.total_scenarios == 0:
            return 0.0
        pct = self.duplicate_count * 100 / self.total_scenarios
        return round(min(pct, self.optimization_cap), 1)

    def tier(self, tier: DuplicateTier) -> list[DuplicateGroup]:
        return [g for g in self.groups if g.tier is tier]
