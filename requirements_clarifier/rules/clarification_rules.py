"""
Clarification Rules — merge question lists without asking the same
thing twice.

Two questions are duplicates when their normalized text is close in edit
distance OR their significant words overlap strongly. Both metrics are
always computed; either one is enough.
"""

from __future__ import annotations

import logging
from typing import Optional

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.utils.text import (
    edit_similarity,
    jaccard_similarity,
    normalize_question,
)

logger = logging.getLogger(__name__)


class ClarificationRules:
    """Dual-metric question deduplication."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.rules = self.settings.clarification_rules
        self._stopwords = {w.lower() for w in self.rules.stopwords}

    def significant_words(self, question: str) -> set[str]:
        """Expanded, stopword-free words longer than three characters."""
        words = set()
        for token in normalize_question(question).split():
            token = self.rules.abbreviations.get(token, token)
            if len(token) > 3 and token not in self._stopwords:
                words.add(token)
        return words

    def are_duplicates(self, first: str, second: str) -> bool:
        edit = edit_similarity(normalize_question(first), normalize_question(second))
        overlap = jaccard_similarity(
            self.significant_words(first),
            self.significant_words(second),
        )
        return (
            edit > self.settings.clarification_edit_similarity
            or overlap > self.settings.clarification_word_overlap
        )

    def _is_known(self, question: str, accepted: list[str]) -> bool:
        return any(self.are_duplicates(question, existing) for existing in accepted)

    def merge(self, primary: list[str], secondary: list[str]) -> list[str]:
        """
        One ordered list with duplicates removed. Entries from *primary*
        come first and win over similar entries from *secondary*.
        """
        merged: list[str] = []
        dropped = 0
        for question in [*primary, *secondary]:
            if not question.strip():
                continue
            if self._is_known(question, merged):
                dropped += 1
                continue
            merged.append(question)

        if dropped:
            logger.info(
                f"[DEDUP] Merged {len(primary)} + {len(secondary)} questions → "
                f"{len(merged)} ({dropped} duplicates removed)"
            )
        return merged

    def merge_answers(
        self,
        primary: dict[str, str],
        secondary: dict[str, str],
    ) -> dict[str, str]:
        """Merge question → answer maps on the same rule; primary answers win."""
        merged: dict[str, str] = {}
        for source in (primary, secondary):
            for question, answer in source.items():
                if self._is_known(question, list(merged)):
                    continue
                merged[question] = answer
        return merged
