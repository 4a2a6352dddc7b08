"""Line classifiers for the informal Gherkin-like dialect.

Each helper looks at one stripped line and answers a single question;
the parser decides what to do with the answer.  Title detection is an
ordered rule list, tried strictly in order, first match wins.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Callable

STEP_KEYWORDS = ("Given", "When", "Then", "And", "But")

_KEYWORD_ALTERNATION = "|".join(k.lower() for k in STEP_KEYWORDS)
_STEP_RE = re.compile(rf"^(?:(?:{_KEYWORD_ALTERNATION})\b|\*\s)", re.IGNORECASE)
_STEP_WORD_RE = re.compile(rf"\b(?:{_KEYWORD_ALTERNATION})\b", re.IGNORECASE)
_TAG_LINE_RE = re.compile(r"^@\S")
_TAG_RE = re.compile(r"@([^\s@]+)")
_COMMENT_RE = re.compile(r"^#")
_TABLE_ROW_RE = re.compile(r"^\|.*\|$")
_TABLE_SEPARATOR_RE = re.compile(r"^\|[\s:|-]*\|$")

_FEATURE_RE = re.compile(r"^(?:feature|ability|business\s+need)\s*:\s*(.*)$", re.IGNORECASE)
_BACKGROUND_RE = re.compile(r"^background\s*:\s*(.*)$", re.IGNORECASE)
_RULE_RE = re.compile(r"^rule\s*:\s*(.*)$", re.IGNORECASE)
_EXAMPLES_RE = re.compile(r"^(?:examples|scenarios)\s*:\s*(.*)$", re.IGNORECASE)

_KEYWORD_TITLE_RE = re.compile(
    r"^(scenario\s+outline|scenario\s+template|scenario|example|test\s+case|test)\s*:\s*(.+)$",
    re.IGNORECASE,
)
_NUMBERED_RE = re.compile(r"^(\d+)[.)]\s+(.+)$")
_ID_PREFIX_RE = re.compile(r"^([A-Z]{2,3}-\d+)\s+[-–—:]\s+(.+)$")
_WORD_RE = re.compile(r"[A-Za-z][A-Za-z'’-]*")

_MIN_HEURISTIC_WORDS = 2
_MAX_HEURISTIC_WORDS = 12
_CAPITALIZED_RATIO = 0.6


class SectionMarker(enum.Enum):
    FEATURE = "feature"
    BACKGROUND = "background"
    RULE = "rule"
    EXAMPLES = "examples"


@dataclass(frozen=True)
class TitleMatch:
    """A recognized scenario header line."""

    title: str
    rule: str  # keyword | numbered | id_prefix | heuristic
    is_outline: bool = False
    tags: tuple[str, ...] = ()


def is_blank_or_comment(line: str) -> bool:
    return not line or bool(_COMMENT_RE.match(line))


def is_step(line: str) -> bool:
    return bool(_STEP_RE.match(line))


def is_tag_line(line: str) -> bool:
    return bool(_TAG_LINE_RE.match(line))


def parse_tags(line: str) -> list[str]:
    return _TAG_RE.findall(line)


def is_table_row(line: str) -> bool:
    return bool(_TABLE_ROW_RE.match(line))


def is_table_separator(line: str) -> bool:
    return bool(_TABLE_SEPARATOR_RE.match(line))


def table_cells(line: str) -> list[str]:
    return [cell.strip() for cell in line.strip().strip("|").split("|")]


def section_marker(line: str) -> tuple[SectionMarker, str] | None:
    for marker, pattern in (
        (SectionMarker.FEATURE, _FEATURE_RE),
        (SectionMarker.BACKGROUND, _BACKGROUND_RE),
        (SectionMarker.RULE, _RULE_RE),
        (SectionMarker.EXAMPLES, _EXAMPLES_RE),
    ):
        m = pattern.match(line)
        if m:
            return marker, m.group(1).strip()
    return None


def numbered_step(line: str) -> str | None:
    """``"3. Given the cart is empty"`` is a step, not a title."""
    m = _NUMBERED_RE.match(line)
    if m and is_step(m.group(2)):
        return m.group(2).strip()
    return None


# ── Title rules, tried in order ─────────────────────────────────────


def _keyword_title(line: str, heuristics: bool) -> TitleMatch | None:
    m = _KEYWORD_TITLE_RE.match(line)
    if not m:
        return None
    keyword = m.group(1).lower()
    return TitleMatch(
        title=m.group(2).strip(),
        rule="keyword",
        is_outline=keyword.endswith(("outline", "template")),
    )


def _numbered_title(line: str, heuristics: bool) -> TitleMatch | None:
    m = _NUMBERED_RE.match(line)
    if not m or is_step(m.group(2)):
        return None
    return TitleMatch(title=m.group(2).strip(), rule="numbered")


def _id_prefix_title(line: str, heuristics: bool) -> TitleMatch | None:
    m = _ID_PREFIX_RE.match(line)
    if not m:
        return None
    return TitleMatch(title=m.group(2).strip(), rule="id_prefix", tags=(m.group(1).lower(),))


def _heuristic_title(line: str, heuristics: bool) -> TitleMatch | None:
    if not heuristics or is_step(line) or "|" in line or line.endswith((".", ":", ",", ";")):
        return None
    if _STEP_WORD_RE.search(line):
        return None
    words = _WORD_RE.findall(line)
    if not (_MIN_HEURISTIC_WORDS <= len(words) <= _MAX_HEURISTIC_WORDS):
        return None
    if len(line.split()) > _MAX_HEURISTIC_WORDS:
        return None
    capitalized = sum(1 for w in words if w[0].isupper())
    if capitalized / len(words) < _CAPITALIZED_RATIO:
        return None
    return TitleMatch(title=line.strip(), rule="heuristic")


TITLE_RULES: tuple[Callable[[str, bool], TitleMatch | None], ...] = (
    _keyword_title,
    _numbered_title,
    _id_prefix_title,
    _heuristic_title,
)


def match_title(line: str, heuristics: bool = True) -> TitleMatch | None:
    """Apply the title rules in priority order; ``None`` if none match."""
    for rule in TITLE_RULES:
        result = rule(line, heuristics)
        if result is not None:
            return result
    return None
