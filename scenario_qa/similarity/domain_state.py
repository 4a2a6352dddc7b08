"""Domain-state score for toggle-like scenarios.

A domain-state scenario is about a named, stateful on/off capability:
a feature flag, a setting, a switch.  Two such scenarios agree when
they name the same capability in the same state, and strongly disagree
when they name the same capability in opposite states.  Scenarios that
are not about toggles get a neutral score rather than zero, since the
other sub-scores already penalize unrelated content.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from scenario_qa.similarity.text import content_tokens, jaccard, stem

if TYPE_CHECKING:
    from scenario_qa.models import Scenario

NEITHER_SCORE = 0.5
ONE_SIDED_SCORE = 0.4
SAME_STATE_FLOOR = 0.9
OPPOSITE_STATE_SCORE = 0.1

_TOGGLE_RE = re.compile(
    r"\b(?:feature[\s_-]?(?:flags?|toggles?|switch(?:es)?)|toggl\w*|flags?"
    r"|kill[\s-]?switch|enabl\w*|disabl\w*|activat\w*|deactivat\w*"
    r"|(?:turn|switch)(?:s|ed|ing)?\s+(?:on|off))\b",
    re.IGNORECASE,
)
_TOGGLE_TAG_RE = re.compile(r"(?:feature[-_]?flag|toggle|flag)", re.IGNORECASE)

_ON_RE = re.compile(
    r"\b(?:enabl\w*|activat\w*|(?:turn|switch)(?:s|ed|ing)?\s+on"
    r"|(?:is|are|set\s+to|toggled)\s+on)\b",
    re.IGNORECASE,
)
_OFF_RE = re.compile(
    r"\b(?:disabl\w*|deactivat\w*|(?:turn|switch)(?:s|ed|ing)?\s+off"
    r"|(?:is|are|set\s+to|toggled)\s+off)\b",
    re.IGNORECASE,
)
_QUOTED_RE = re.compile(r"[\"“]([^\"”]{2,60})[\"”]")

# Words that describe the toggling itself rather than the capability.
_NOISE = frozenset(stem(w) for w in (
    "feature", "flag", "toggle", "toggled", "switch", "kill", "enable",
    "enabled", "disable", "disabled", "activate", "deactivate", "turn",
    "turned", "on", "off", "setting", "state", "status", "verify", "check",
    "when", "user",
))


class ToggleState(enum.Enum):
    ON = "on"
    OFF = "off"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DomainState:
    """The capability a scenario toggles and the state it puts it in."""

    name: frozenset[str]
    state: ToggleState


def _state_of(text: str) -> ToggleState:
    on = len(_ON_RE.findall(text))
    off = len(_OFF_RE.findall(text))
    if on > off:
        return ToggleState.ON
    if off > on:
        return ToggleState.OFF
    return ToggleState.UNKNOWN


def _name_of(scenario: Scenario) -> frozenset[str]:
    quoted = _QUOTED_RE.search(scenario.full_text)
    source = quoted.group(1) if quoted else scenario.normalized_title
    return frozenset(t for t in content_tokens(source) if t not in _NOISE)


def detect_domain_state(scenario: Scenario) -> DomainState | None:
    """Return the toggled capability, or ``None`` if the scenario is not toggle-like."""
    tagged = any(_TOGGLE_TAG_RE.search(tag) for tag in scenario.tags)
    if not tagged and not _TOGGLE_RE.search(scenario.full_text):
        return None

    state = _state_of(scenario.title)
    if state is ToggleState.UNKNOWN:
        state = _state_of("\n".join(scenario.steps))
    return DomainState(name=_name_of(scenario), state=state)


def is_domain_state(scenario: Scenario) -> bool:
    return detect_domain_state(scenario) is not None


def domain_state_score(a: Scenario, b: Scenario) -> float:
    da = detect_domain_state(a)
    db = detect_domain_state(b)
    if da is None and db is None:
        return NEITHER_SCORE
    if da is None or db is None:
        return ONE_SIDED_SCORE

    name_sim = jaccard(da.name, db.name) if da.name and db.name else 0.5

    if ToggleState.UNKNOWN in (da.state, db.state):
        state_factor = 0.7
    elif da.state is db.state:
        state_factor = 1.0
    else:
        state_factor = 0.0

    if state_factor == 1.0 and name_sim >= 0.5:
        return SAME_STATE_FLOOR + 0.1 * name_sim
    if state_factor == 0.0 and name_sim >= 0.5:
        return OPPOSITE_STATE_SCORE
    return 0.3 + 0.4 * name_sim * state_factor
