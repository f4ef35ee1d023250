"""
Requirements enrichment — fold collected answers and validated
assumptions back into the input text as markdown sections.
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


def _format_qa(question: str, answer: str) -> str:
    return f"\n**Q:** {question}\n**A:** {answer}\n"


class RequirementsEnricher:

    def enrich_input(
        self,
        original: str,
        requirements_clarifications: dict[str, str],
        stack_clarifications: dict[str, str],
        assumptions: list[str],
        stack_assumptions: list[str],
    ) -> str:
        enriched = original

        if requirements_clarifications:
            enriched += "\n\n## Requirements Clarifications\n"
            for question, answer in requirements_clarifications.items():
                enriched += _format_qa(question, answer)

        if stack_clarifications:
            enriched += "\n\n## Technical Stack Clarifications\n"
            for question, answer in stack_clarifications.items():
                enriched += _format_qa(question, answer)

        all_assumptions = [*assumptions, *stack_assumptions]
        if all_assumptions:
            enriched += "\n\n## Validated Assumptions\n"
            for assumption in all_assumptions:
                enriched += f"- {assumption}\n"

        logger.debug(
            f"[ENRICH] {len(original)} → {len(enriched)} chars "
            f"({len(requirements_clarifications)} requirement answers, "
            f"{len(stack_clarifications)} stack answers, "
            f"{len(all_assumptions)} assumptions)"
        )
        return enriched

    def enrich_with_essentials(self, original: str, essential_responses: dict[str, str]) -> str:
        enriched = original + "\n\n## Essential Information Provided\n"
        for question, answer in essential_responses.items():
            enriched += _format_qa(question, answer)
        return enriched

    @staticmethod
    def create_context_summary(
        clarifications_count: int,
        assumptions_count: int,
        confidence_improvement: Optional[int] = None,
    ) -> str:
        summary = "\n## Context Enhancement Summary\n"
        if clarifications_count > 0:
            summary += f"- {clarifications_count} clarifications provided\n"
        if assumptions_count > 0:
            summary += f"- {assumptions_count} assumptions validated\n"
        if confidence_improvement is not None and confidence_improvement > 0:
            summary += f"- Confidence improved by {confidence_improvement}%\n"
        return summary

    @staticmethod
    def merge_clarifications(clarification_sets: list[dict[str, str]]) -> dict[str, str]:
        """Later sets overwrite earlier answers to the same question."""
        merged: dict[str, str] = {}
        for clarifications in clarification_sets:
            merged.update(clarifications)
        return merged

    @staticmethod
    def format_gaps_as_context(gaps: list[str]) -> str:
        if not gaps:
            return ""
        formatted = "\n\n## Known Gaps to Address\n"
        formatted += "The following areas need consideration during implementation:\n"
        for gap in gaps:
            formatted += f"- {gap}\n"
        return formatted
