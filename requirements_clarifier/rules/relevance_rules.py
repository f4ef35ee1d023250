"""
Relevance Rules — keep only conflicts and challenges that trace back to
the analyzed text.

A detected item survives when its requirement spans are quoted from the
source (case-insensitive) or, failing that, when enough of their key
terms appear in the source. Validation rejects; it never rewrites items.
"""

from __future__ import annotations

import logging
from typing import Optional

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.models.schemas import (
    ArchitecturalConflict,
    GenericIssueReport,
    TechnicalChallenge,
)
from requirements_clarifier.utils.text import (
    extract_key_terms,
    normalize_key,
    term_overlap_ratio,
)

logger = logging.getLogger(__name__)


class RelevanceRules:
    """Statistical grounding checks for detector output."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.rules = self.settings.relevance_rules

    # ── Primitive checks ─────────────────────────────────

    def key_terms(self, text: str) -> list[str]:
        return extract_key_terms(
            text,
            self.rules.stopwords,
            min_length=self.settings.key_term_min_length,
        )

    @staticmethod
    def is_verbatim(span: str, source: str) -> bool:
        span_key = normalize_key(span)
        return bool(span_key) and span_key in normalize_key(source)

    def contains_invented_example(self, text: str, source: str) -> bool:
        """A denylisted boilerplate phrase in *text* that the source never mentions."""
        text_lower = normalize_key(text)
        source_lower = normalize_key(source)
        return any(
            pattern in text_lower and pattern not in source_lower
            for pattern in self.rules.denylist_patterns
        )

    def is_grounded(self, span: str, source: str, threshold: float) -> bool:
        if self.is_verbatim(span, source):
            return True
        ratio = term_overlap_ratio(self.key_terms(span), source.lower())
        return ratio >= threshold

    # ── Conflicts ────────────────────────────────────────

    def is_conflict_relevant(self, conflict: ArchitecturalConflict, source: str) -> bool:
        spans = (conflict.requirement1, conflict.requirement2)
        if any(self.contains_invented_example(span, source) for span in spans):
            return False
        threshold = self.settings.conflict_term_overlap
        return all(self.is_grounded(span, source, threshold) for span in spans)

    def validate_conflicts(
        self,
        conflicts: list[ArchitecturalConflict],
        source: str,
    ) -> list[ArchitecturalConflict]:
        kept = [c for c in conflicts if self.is_conflict_relevant(c, source)]
        if len(kept) < len(conflicts):
            logger.info(
                f"[RELEVANCE] Conflicts: kept {len(kept)}/{len(conflicts)} "
                f"(rejected {len(conflicts) - len(kept)} ungrounded)"
            )
        return kept

    # ── Challenges ───────────────────────────────────────

    def is_challenge_relevant(self, challenge: TechnicalChallenge, source: str) -> bool:
        texts = [challenge.title, challenge.description]
        if challenge.related_requirement:
            texts.append(challenge.related_requirement)
        if any(self.contains_invented_example(text, source) for text in texts):
            return False

        threshold = self.settings.challenge_term_overlap
        if challenge.related_requirement:
            return self.is_grounded(challenge.related_requirement, source, threshold)
        ratio = term_overlap_ratio(self.key_terms(challenge.description), source.lower())
        return ratio >= threshold

    def validate_challenges(
        self,
        challenges: list[TechnicalChallenge],
        source: str,
    ) -> list[TechnicalChallenge]:
        kept = [c for c in challenges if self.is_challenge_relevant(c, source)]
        if len(kept) < len(challenges):
            logger.info(
                f"[RELEVANCE] Challenges: kept {len(kept)}/{len(challenges)} "
                f"(rejected {len(challenges) - len(kept)} ungrounded)"
            )
        return kept

    # ── Aggregate checks ─────────────────────────────────

    def calculate_relevance_score(
        self,
        conflicts: list[ArchitecturalConflict],
        challenges: list[TechnicalChallenge],
        source: str,
    ) -> float:
        """Fraction of detected items that survive validation (1.0 when nothing was detected)."""
        total = len(conflicts) + len(challenges)
        if total == 0:
            return 1.0
        survivors = (
            len(self.validate_conflicts(conflicts, source))
            + len(self.validate_challenges(challenges, source))
        )
        return survivors / total

    def detect_generic_issues(
        self,
        conflicts: list[ArchitecturalConflict],
        challenges: list[TechnicalChallenge],
        source: str,
    ) -> GenericIssueReport:
        source_lower = source.lower()

        def _generic(text: str, patterns: list[str]) -> bool:
            lower = text.lower()
            return any(p in lower and p not in source_lower for p in patterns)

        generic_conflicts = [
            f"{c.requirement1} ↔ {c.requirement2}"
            for c in conflicts
            if _generic(
                f"{c.requirement1} {c.requirement2}",
                self.rules.generic_conflict_patterns,
            )
        ]
        generic_challenges = [
            c.title
            for c in challenges
            if _generic(
                f"{c.title} {c.description}",
                self.rules.generic_challenge_patterns,
            )
        ]

        report = GenericIssueReport(
            generic_conflicts=generic_conflicts,
            generic_challenges=generic_challenges,
        )
        if report.total:
            logger.warning(
                f"[RELEVANCE] {report.total} generic issue(s) not found in the input: "
                f"{len(generic_conflicts)} conflicts, {len(generic_challenges)} challenges"
            )
        return report
