"""
Text helpers shared by the detectors, validators and budgeter:
requirement-statement splitting, tokenization, edit distance and
bounded truncation.
"""

from __future__ import annotations

import re
from typing import Iterable

_MARKER_RE = re.compile(r"^(?:[-•*+]|\d+[.)])\s+")
_HEADING_RE = re.compile(r"^(?:#{1,6}\s|={3,}|-{3,}$)")
_NON_ALNUM_RE = re.compile(r"[^0-9a-z]+")
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")

TRUNCATION_MARKER = "\n...(truncated)"


# ── Requirement statements ───────────────────────────────

def split_requirement_statements(text: str) -> list[str]:
    """
    Split free text into discrete requirement statements.

    A bullet (-, •, *, +) or numbered item (1. / 2)) followed by
    whitespace starts a new statement; following unmarked lines are soft-wrapped continuations.
    Blank lines and markdown headings end the current statement.
    """
    statements: list[str] = []
    current = ""

    for line in text.splitlines():
        trimmed = line.strip()

        if not trimmed or _HEADING_RE.match(trimmed):
            if current:
                statements.append(current)
                current = ""
            continue

        if _MARKER_RE.match(trimmed):
            if current:
                statements.append(current)
            current = _MARKER_RE.sub("", trimmed, count=1).strip()
        elif current:
            current += " " + trimmed
        else:
            current = trimmed

    if current:
        statements.append(current)

    return [s for s in statements if s]


def chunk(items: list[str], size: int) -> list[list[str]]:
    """Partition *items* into consecutive batches of at most *size*."""
    size = max(1, size)
    return [items[i:i + size] for i in range(0, len(items), size)]


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lower = text.lower()
    return any(keyword.lower() in lower for keyword in keywords)


# ── Tokenization ─────────────────────────────────────────

def extract_key_terms(
    text: str,
    stopwords: Iterable[str],
    min_length: int = 4,
) -> list[str]:
    """Lowercased alphanumeric tokens of at least *min_length* chars, minus stopwords."""
    stop = {w.lower() for w in stopwords}
    return [
        token
        for token in _NON_ALNUM_RE.split(text.lower())
        if len(token) >= min_length and token not in stop
    ]


def term_overlap_ratio(terms: list[str], source_lower: str) -> float:
    """Fraction of *terms* found in the (already lowercased) source. 0.0 when empty."""
    if not terms:
        return 0.0
    found = sum(1 for term in terms if term in source_lower)
    return found / len(terms)


def normalize_question(text: str) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace."""
    cleaned = _PUNCTUATION_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def normalize_key(text: str) -> str:
    """Case- and whitespace-insensitive key for deduplication."""
    return _WHITESPACE_RE.sub(" ", text.strip().lower())


# ── Similarity ───────────────────────────────────────────

def levenshtein_distance(first: str, second: str) -> int:
    """Classic edit distance (insert / delete / substitute, unit cost)."""
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    previous = list(range(len(second) + 1))
    for i, ch1 in enumerate(first, start=1):
        current = [i]
        for j, ch2 in enumerate(second, start=1):
            cost = 0 if ch1 == ch2 else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def edit_similarity(first: str, second: str) -> float:
    """1 - distance / max(len); 1.0 for two empty strings."""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(first, second) / longest


def jaccard_similarity(first: set[str], second: set[str]) -> float:
    if not first or not second:
        return 0.0
    return len(first & second) / len(first | second)


# ── Truncation ───────────────────────────────────────────

def truncate_if_needed(text: str, max_length: int) -> str:
    """
    Bound *text* to *max_length* characters, ending with a truncation
    marker when anything was cut. The result never exceeds max_length.
    """
    if max_length <= 0:
        return ""
    if len(text) <= max_length:
        return text
    if max_length <= len(TRUNCATION_MARKER):
        return text[:max_length]
    return text[:max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER
