"""
Confidence Rules — threshold checks and confidence-based filtering.
Applied after the initial analysis and again when the final record is built.
"""

from __future__ import annotations

import logging
from typing import Optional

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.models.schemas import RequirementsAnalysis

logger = logging.getLogger(__name__)


class ConfidenceRules:
    """Stateless comparisons against the configured confidence thresholds."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # ── Threshold checks ─────────────────────────────────

    def is_below_minimum_viability(self, confidence: int) -> bool:
        return confidence < self.settings.confidence_non_viable

    def needs_refinement(self, confidence: int) -> bool:
        return confidence < self.settings.confidence_needs_refinement

    def needs_clarification(self, confidence: int) -> bool:
        return confidence < self.settings.confidence_needs_clarification

    def has_high_confidence(self, confidence: int) -> bool:
        return confidence >= self.settings.confidence_high

    def should_force_clarifications(
        self,
        requirements_confidence: int,
        stack_confidence: int,
    ) -> bool:
        """Clarifications are offered even when no question was generated."""
        return (
            self.needs_clarification(requirements_confidence)
            or self.needs_clarification(stack_confidence)
        )

    # ── Filtering ────────────────────────────────────────

    def filter_weak_assumptions(self, assumptions: list[str]) -> list[str]:
        weak = [w.lower() for w in self.settings.weak_language_indicators]
        return [
            assumption
            for assumption in assumptions
            if not any(word in assumption.lower() for word in weak)
        ]

    def filter_by_confidence(self, analysis: RequirementsAnalysis) -> RequirementsAnalysis:
        """
        Below non-viable → drop clarifications and assumptions, keep gaps.
        Needs-refinement band → keep the top clarifications and drop
        assumptions phrased in weak language.
        Otherwise the analysis is returned unchanged.
        """
        confidence = analysis.confidence

        if self.is_below_minimum_viability(confidence):
            logger.info(
                f"[CONFIDENCE] {confidence}% below viability — "
                f"dropping clarifications and assumptions"
            )
            return analysis.model_copy(
                update={"clarifications_needed": [], "assumptions": []}
            )

        if self.needs_refinement(confidence):
            limit = self.settings.max_clarifications_medium_confidence
            kept_assumptions = self.filter_weak_assumptions(analysis.assumptions)
            logger.info(
                f"[CONFIDENCE] {confidence}% needs refinement — "
                f"clarifications {len(analysis.clarifications_needed)} → "
                f"{min(limit, len(analysis.clarifications_needed))}, "
                f"assumptions {len(analysis.assumptions)} → {len(kept_assumptions)}"
            )
            return analysis.model_copy(
                update={
                    "clarifications_needed": analysis.clarifications_needed[:limit],
                    "assumptions": kept_assumptions,
                }
            )

        return analysis

    # ── Aggregation ──────────────────────────────────────

    def calculate_overall_confidence(
        self,
        requirements_confidence: int,
        stack_confidence: int,
        clarifications_provided: bool,
    ) -> int:
        overall = (requirements_confidence + stack_confidence) // 2
        if clarifications_provided:
            overall = min(100, overall + self.settings.confidence_clarification_bonus)
        return overall
