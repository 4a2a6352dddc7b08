"""Functional-flow score.

Each step is reduced to a typed pattern: its structural role (setup,
trigger, outcome, additional), the kind of action it performs and the
kind of validation it makes.  Two step sequences are then compared on
four independently weighted components:

    - structural alignment: position-wise keyword overlap (plus role)
    - sequence similarity: LCS over the pattern values
    - action overlap: Jaccard over action types used
    - validation overlap: Jaccard over validation types used
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Sequence

from scenario_qa.similarity.text import content_tokens, raw_tokens, stem

_STRUCTURE_WEIGHT = 0.35
_SEQUENCE_WEIGHT = 0.30
_ACTION_WEIGHT = 0.20
_VALIDATION_WEIGHT = 0.15

# Both scenarios use no typed action (or validation) at all.
_NEUTRAL = 0.5


class StepRole(enum.Enum):
    SETUP = "setup"
    TRIGGER = "trigger"
    OUTCOME = "outcome"
    ADDITIONAL = "additional"


_ROLE_BY_KEYWORD = {
    "given": StepRole.SETUP,
    "when": StepRole.TRIGGER,
    "then": StepRole.OUTCOME,
    "and": StepRole.ADDITIONAL,
    "but": StepRole.ADDITIONAL,
    "*": StepRole.ADDITIONAL,
}


class ActionType(enum.Enum):
    """Kind of action a step performs, checked in declaration order."""

    SUBMISSION = ("submission", ("submit", "save", "send", "confirm", "apply", "publish", "checkout"))
    INPUT = ("input", ("enter", "type", "fill", "input", "provide", "upload", "paste", "choose"))
    NAVIGATION = ("navigation", ("navigate", "go", "open", "visit", "access", "browse", "return", "land"))
    INTERACTION = ("interaction", ("click", "tap", "press", "select", "toggle", "check", "drag", "hover", "scroll", "switch"))
    NONE = ("none", ())

    def __init__(self, label: str, keywords: tuple[str, ...]) -> None:
        self.label = label
        self.keywords = frozenset(stem(k) for k in keywords)


class ValidationType(enum.Enum):
    """Kind of check a step makes; negative language wins over positive."""

    NEGATIVE = ("negative", (
        "error", "fail", "failure", "invalid", "denied", "not", "cannot",
        "unable", "reject", "incorrect", "wrong", "forbidden", "unauthorized",
        "blocked", "never",
    ))
    POSITIVE = ("positive", (
        "success", "successful", "successfully", "displayed", "visible",
        "created", "saved", "updated", "confirmed", "welcome", "see", "should",
        "must", "redirected",
    ))
    RESULT = ("result", ("result", "return", "receive", "show", "list", "count", "total", "contain", "response"))
    NONE = ("none", ())

    def __init__(self, label: str, keywords: tuple[str, ...]) -> None:
        self.label = label
        self.keywords = frozenset(stem(k) for k in keywords)


@dataclass(frozen=True)
class StepPattern:
    role: StepRole
    action: ActionType
    validation: ValidationType
    keywords: frozenset[str]

    @property
    def value(self) -> str:
        return f"{self.role.value}:{self.action.label}:{self.validation.label}"


def _classify(tokens: set[str], kinds) -> enum.Enum:
    for kind in kinds:
        if tokens & kind.keywords:
            return kind
    return kinds.NONE


def step_pattern(step: str) -> StepPattern:
    """Reduce one step line to its typed pattern."""
    words = raw_tokens(step)
    stripped = step.lstrip()
    first = "*" if stripped.startswith("*") else (words[0] if words else "")
    # Stemmed, but with stopwords kept: "not" and "should" carry meaning here.
    all_stems = {stem(w) for w in words}

    action = _classify(all_stems, ActionType)
    validation = _classify(all_stems, ValidationType)
    role = _ROLE_BY_KEYWORD.get(first)
    if role is None:
        role = StepRole.OUTCOME if validation is not ValidationType.NONE else StepRole.TRIGGER

    return StepPattern(
        role=role,
        action=action,
        validation=validation,
        keywords=frozenset(content_tokens(step)),
    )


def extract_flow(steps: Sequence[str]) -> tuple[StepPattern, ...]:
    return tuple(step_pattern(s) for s in steps)


def _lcs_length(a: Sequence[str], b: Sequence[str]) -> int:
    """Classic dynamic-programming longest common subsequence, two rows."""
    if not a or not b:
        return 0
    prev = [0] * (len(b) + 1)
    for x in a:
        curr = [0] * (len(b) + 1)
        for j, y in enumerate(b, 1):
            curr[j] = prev[j - 1] + 1 if x == y else max(prev[j], curr[j - 1])
        prev = curr
    return prev[-1]


def _set_overlap(a: set, b: set) -> float:
    if not a and not b:
        return _NEUTRAL
    return len(a & b) / len(a | b)


def _structural_alignment(fa: Sequence[StepPattern], fb: Sequence[StepPattern]) -> float:
    longest = max(len(fa), len(fb))
    total = 0.0
    for pa, pb in zip(fa, fb):
        if pa.keywords or pb.keywords:
            kw = len(pa.keywords & pb.keywords) / len(pa.keywords | pb.keywords)
        else:
            kw = 0.0
        total += 0.8 * kw + 0.2 * (1.0 if pa.role is pb.role else 0.0)
    return total / longest


def flow_components(steps_a: Sequence[str], steps_b: Sequence[str]) -> dict[str, float]:
    """The four flow components, each in [0, 1].  Empty input yields zeros."""
    if not steps_a or not steps_b:
        return {"structure": 0.0, "sequence": 0.0, "actions": 0.0, "validations": 0.0}

    fa = extract_flow(steps_a)
    fb = extract_flow(steps_b)
    longest = max(len(fa), len(fb))

    actions_a = {p.action for p in fa if p.action is not ActionType.NONE}
    actions_b = {p.action for p in fb if p.action is not ActionType.NONE}
    checks_a = {p.validation for p in fa if p.validation is not ValidationType.NONE}
    checks_b = {p.validation for p in fb if p.validation is not ValidationType.NONE}

    return {
        "structure": _structural_alignment(fa, fb),
        "sequence": _lcs_length([p.value for p in fa], [p.value for p in fb]) / longest,
        "actions": _set_overlap(actions_a, actions_b),
        "validations": _set_overlap(checks_a, checks_b),
    }


def flow_score(steps_a: Sequence[str], steps_b: Sequence[str]) -> float:
    """Weighted flow similarity of two step sequences; 0.0 if either is empty."""
    c = flow_components(steps_a, steps_b)
    return (
        _STRUCTURE_WEIGHT * c["structure"]
        + _SEQUENCE_WEIGHT * c["sequence"]
        + _ACTION_WEIGHT * c["actions"]
        + _VALIDATION_WEIGHT * c["validations"]
    )
