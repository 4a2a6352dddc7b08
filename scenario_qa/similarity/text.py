"""Tokenization and title normalization shared by every scorer.

All scorers compare *stems*, not raw words: lower-cased alphanumeric
runs with a light suffix stripper applied, so that "logs", "logged"
and "logging" collapse onto the same token.  The stripper is
deliberately tiny; it only has to make keyword tables and token
overlap agree with each other, not produce dictionary roots.
"""

from __future__ import annotations

import re
from functools import lru_cache

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")

# Trailing " (N)" added by the parser when a title collides.
_DISAMBIGUATION_SUFFIX_RE = re.compile(r"\s*\(\d+\)$")

STOPWORDS = frozenset({
    "a", "an", "the", "in", "on", "at", "to", "of", "for", "with", "is",
    "are", "be", "by", "or", "as", "it", "its", "into", "from", "that",
    "this", "i", "my", "me", "has", "have", "was", "were", "can", "will",
    "should", "so", "do", "does", "am",
})

# Gherkin step keywords are structure, not content.
STEP_WORDS = frozenset({"given", "when", "then", "and", "but"})

_SUFFIXES: tuple[tuple[str, int], ...] = (
    ("ing", 6),
    ("ed", 5),
    ("es", 5),
    ("s", 4),
)


@lru_cache(maxsize=8192)
def stem(token: str) -> str:
    """Strip a common English suffix from a lower-cased token."""
    for suffix, min_len in _SUFFIXES:
        if len(token) >= min_len and token.endswith(suffix) and not token.endswith("ss"):
            token = token[: -len(suffix)]
            # submitting -> submitt -> submit
            if (
                suffix in ("ing", "ed")
                and len(token) > 3
                and token[-1] == token[-2]
                and token[-1] not in "lsz"
            ):
                token = token[:-1]
            break
    if len(token) > 3 and token.endswith("e"):
        token = token[:-1]
    return token


def raw_tokens(text: str) -> list[str]:
    """Lower-cased alphanumeric runs, in order, without filtering."""
    return _TOKEN_RE.findall(text.lower())


def content_tokens(text: str) -> list[str]:
    """Ordered stems of *text* with stopwords and step keywords removed.

    Duplicates are kept; use :func:`unique` when set semantics with a
    stable order are needed.
    """
    return [
        stem(t)
        for t in raw_tokens(text)
        if t not in STOPWORDS and t not in STEP_WORDS
    ]


def unique(tokens: list[str]) -> tuple[str, ...]:
    """Drop repeated tokens, keeping first-seen order."""
    return tuple(dict.fromkeys(tokens))


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_title(title: str) -> str:
    """Case-fold, collapse whitespace and drop a disambiguation suffix.

    Two titles that only differ by case, spacing, or the ``" (2)"``
    suffix the parser adds on collision normalize to the same string.
    """
    collapsed = normalize_whitespace(title).lower()
    return _DISAMBIGUATION_SUFFIX_RE.sub("", collapsed)


def jaccard(a: frozenset[str] | set[str], b: frozenset[str] | set[str]) -> float:
    """Jaccard overlap; two empty sets count as no overlap."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def is_partial_match(a: str, b: str, min_len: int = 3) -> bool:
    """True when the shorter token is contained in the longer one."""
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    return len(shorter) >= min_len and shorter in longer
