"""
Clarification collection — present questions to the user and gather
answers through a UserInteractionHandler.
"""

from __future__ import annotations

import logging
from typing import Optional

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.rules.clarification_rules import ClarificationRules
from requirements_clarifier.services.interaction import UserInteractionHandler

logger = logging.getLogger(__name__)

REQUIREMENTS_HEADER = "\n📋 Requirements Clarifications:"
STACK_HEADER = "\n🛠️  Technical Stack Clarifications:"


class ClarificationCollector:
    """Asks clarification questions and records non-empty answers."""

    def __init__(
        self,
        interaction: UserInteractionHandler,
        settings: Optional[Settings] = None,
    ):
        self.interaction = interaction
        self.settings = settings or get_settings()
        self.dedup = ClarificationRules(self.settings)

    async def collect_clarifications(
        self,
        questions: list[str],
        category: Optional[str] = None,
    ) -> dict[str, str]:
        """Ask every question in order; blank answers are skipped."""
        if category:
            self.interaction.show_info(category)

        responses: dict[str, str] = {}
        for question in questions:
            answer = (await self.interaction.ask_question(question)).strip()
            if answer:
                responses[question] = answer

        logger.info(f"[COLLECT] {len(responses)}/{len(questions)} questions answered")
        return responses

    async def collect_batched_clarifications(
        self,
        requirements_questions: list[str],
        stack_questions: list[str],
    ) -> tuple[dict[str, str], dict[str, str]]:
        """Collect requirement answers first, then stack answers not already covered."""
        requirements_questions, stack_questions = self.split_deduplicated(
            requirements_questions, stack_questions
        )

        requirement_answers: dict[str, str] = {}
        stack_answers: dict[str, str] = {}
        if requirements_questions:
            requirement_answers = await self.collect_clarifications(
                requirements_questions, REQUIREMENTS_HEADER
            )
        if stack_questions:
            stack_answers = await self.collect_clarifications(
                stack_questions, STACK_HEADER
            )
        return requirement_answers, stack_answers

    async def collect_essential_clarifications(self) -> dict[str, str]:
        """
        Confidence is too low to continue without the basics: every
        essential question must get an answer.
        """
        questions = self.settings.essential_questions

        self.interaction.show_info(
            f"\n❌ Confidence is below {self.settings.confidence_non_viable}% — "
            f"the request is too vague to analyze."
        )
        self.interaction.show_warning("Essential information is required:")
        for index, question in enumerate(questions, start=1):
            self.interaction.show_info(f"  {index}. {question}")
        self.interaction.show_warning("Cannot proceed without this information.")

        responses: dict[str, str] = {}
        for question in questions:
            responses[question] = await self._collect_required_answer(question)
        return responses

    async def present_clarifications_for_approval(
        self,
        requirements_questions: list[str],
        stack_questions: list[str],
        requirements_confidence: int,
        stack_confidence: int,
        conflict_count: int = 0,
        challenge_count: int = 0,
    ) -> bool:
        self.interaction.show_info("\n🤔 Some clarifications would improve the analysis.")

        if conflict_count or challenge_count:
            self.interaction.show_warning("\n🔍 Architectural Analysis Results:")
            if conflict_count:
                self.interaction.show_warning(
                    f"  ⚠️ {conflict_count} architectural conflicts detected"
                )
            if challenge_count:
                self.interaction.show_warning(
                    f"  🚨 {challenge_count} technical challenges predicted"
                )
            self.interaction.show_info(
                "\nClarifying these issues will significantly improve the result."
            )

        self.interaction.show_info("\n📊 Confidence levels:")
        self.interaction.show_info(f"  Requirements: {requirements_confidence}%")
        self.interaction.show_info(f"  Technical stack: {stack_confidence}%")

        requirements_questions, stack_questions = self.split_deduplicated(
            requirements_questions, stack_questions
        )
        if requirements_questions:
            self.interaction.show_info(REQUIREMENTS_HEADER)
            for index, question in enumerate(requirements_questions, start=1):
                self.interaction.show_info(f"  {index}. {question}")
        if stack_questions:
            self.interaction.show_info(STACK_HEADER)
            for index, question in enumerate(stack_questions, start=1):
                self.interaction.show_info(f"  {index}. {question}")

        return await self.interaction.ask_yes_no(
            "\nWould you like to provide clarifications now for a more accurate analysis?"
        )

    # ── Helpers ──────────────────────────────────────────

    def split_deduplicated(
        self,
        requirements_questions: list[str],
        stack_questions: list[str],
    ) -> tuple[list[str], list[str]]:
        requirements = self.dedup.merge(requirements_questions, [])
        stack = [
            q for q in self.dedup.merge(requirements, stack_questions)
            if q not in requirements
        ]
        return requirements, stack

    async def _collect_required_answer(self, question: str) -> str:
        answer = (await self.interaction.ask_question(question)).strip()
        if answer:
            return answer

        self.interaction.show_warning("An answer is required for this question.")
        answer = (await self.interaction.ask_question(question)).strip()
        return answer or self.settings.essential_fallback_answer
