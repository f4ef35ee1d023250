"""
Tests: Clarification collection, enrichment and the completion-service
boundary.

Run with:
    pytest requirements_clarifier/tests/test_services.py -v
"""

import asyncio

import pytest

from requirements_clarifier.models.enums import MessageRole
from requirements_clarifier.models.schemas import ChatMessage
from requirements_clarifier.services.clarification_service import (
    REQUIREMENTS_HEADER,
    STACK_HEADER,
    ClarificationCollector,
)
from requirements_clarifier.services.enrichment_service import RequirementsEnricher
from requirements_clarifier.services.interaction import ScriptedInteractionHandler
from requirements_clarifier.services.llm_service import (
    CompletionServiceError,
    GroqCompletionService,
)


# ── Clarification collection ─────────────────────────────


class TestClarificationCollector:
    def test_blank_answers_skipped(self, settings):
        handler = ScriptedInteractionHandler(answers=["Students", "  "])
        collector = ClarificationCollector(handler, settings)

        answers = asyncio.run(collector.collect_clarifications(
            ["Who are the users?", "What is the budget?"], category=REQUIREMENTS_HEADER
        ))

        assert answers == {"Who are the users?": "Students"}
        assert handler.infos == [REQUIREMENTS_HEADER]
        assert handler.questions == ["Who are the users?", "What is the budget?"]

    def test_batched_collection_drops_stack_duplicates(self, settings):
        handler = ScriptedInteractionHandler(answers=["Postgres", "AWS"])
        collector = ClarificationCollector(handler, settings)

        requirement_answers, stack_answers = asyncio.run(collector.collect_batched_clarifications(
            ["What database should we use?"],
            ["Which DB to pick?", "Where do we deploy?"],
        ))

        assert requirement_answers == {"What database should we use?": "Postgres"}
        assert stack_answers == {"Where do we deploy?": "AWS"}
        assert STACK_HEADER in handler.infos

    def test_essential_answers_retry_then_fall_back(self, settings):
        handler = ScriptedInteractionHandler(
            answers=["A todo app", "", "", "Tasks, reminders", "", "Python", "Two weeks"]
        )
        collector = ClarificationCollector(handler, settings)

        answers = asyncio.run(collector.collect_essential_clarifications())

        questions = settings.essential_questions
        assert answers[questions[0]] == "A todo app"
        assert answers[questions[1]] == "Not specified"
        assert answers[questions[2]] == "Tasks, reminders"
        assert answers[questions[3]] == "Python"
        assert answers[questions[4]] == "Two weeks"
        assert len(handler.questions) == 7
        assert "An answer is required for this question." in handler.warnings

    def test_approval_shows_issue_counts_and_questions(self, settings):
        handler = ScriptedInteractionHandler(confirmations=[True])
        collector = ClarificationCollector(handler, settings)

        accepted = asyncio.run(collector.present_clarifications_for_approval(
            ["Who are the users?"],
            ["What database should we use?"],
            requirements_confidence=55,
            stack_confidence=80,
            conflict_count=2,
            challenge_count=1,
        ))

        assert accepted is True
        assert "  ⚠️ 2 architectural conflicts detected" in handler.warnings
        assert "  🚨 1 technical challenges predicted" in handler.warnings
        assert "  Requirements: 55%" in handler.infos
        assert "  1. Who are the users?" in handler.infos
        assert "  1. What database should we use?" in handler.infos
        assert len(handler.confirmation_prompts) == 1

    def test_approval_without_issues_has_no_warnings(self, settings):
        handler = ScriptedInteractionHandler()
        collector = ClarificationCollector(handler, settings)

        accepted = asyncio.run(collector.present_clarifications_for_approval(
            ["Who are the users?"], [], 65, 90
        ))

        assert accepted is False
        assert handler.warnings == []

    def test_split_deduplicated(self, settings):
        collector = ClarificationCollector(ScriptedInteractionHandler(), settings)
        requirements, stack = collector.split_deduplicated(
            ["What database should we use?", "What database should we use."],
            ["Which DB to pick?", "Where do we deploy?"],
        )
        assert requirements == ["What database should we use?"]
        assert stack == ["Where do we deploy?"]


# ── Enrichment ───────────────────────────────────────────


class TestRequirementsEnricher:
    def test_sections_in_order(self):
        enriched = RequirementsEnricher().enrich_input(
            "Build a todo app",
            {"Who are the users?": "Students"},
            {"What database?": "Postgres"},
            ["Single user"],
            ["Python backend"],
        )

        assert enriched.startswith("Build a todo app\n\n## Requirements Clarifications\n")
        assert "**Q:** Who are the users?\n**A:** Students\n" in enriched
        assert enriched.index("## Requirements Clarifications") < enriched.index(
            "## Technical Stack Clarifications"
        ) < enriched.index("## Validated Assumptions")
        assert enriched.endswith("- Single user\n- Python backend\n")

    def test_nothing_to_add(self):
        assert RequirementsEnricher().enrich_input("Build a todo app", {}, {}, [], []) == (
            "Build a todo app"
        )

    def test_essentials_section(self):
        enriched = RequirementsEnricher().enrich_with_essentials(
            "app", {"Who are the target users?": "Students"}
        )
        assert enriched == (
            "app\n\n## Essential Information Provided\n"
            "\n**Q:** Who are the target users?\n**A:** Students\n"
        )

    def test_context_summary_and_gaps(self):
        summary = RequirementsEnricher.create_context_summary(2, 0, confidence_improvement=15)
        assert "- 2 clarifications provided" in summary
        assert "assumptions validated" not in summary
        assert "- Confidence improved by 15%" in summary

        assert RequirementsEnricher.format_gaps_as_context([]) == ""
        assert "- No budget\n" in RequirementsEnricher.format_gaps_as_context(["No budget"])

    def test_merge_clarifications_later_wins(self):
        merged = RequirementsEnricher.merge_clarifications([
            {"Who?": "Students", "When?": "Soon"},
            {"Who?": "Teachers"},
        ])
        assert merged == {"Who?": "Teachers", "When?": "Soon"}


# ── Completion service ───────────────────────────────────


class TestGroqCompletionService:
    def test_missing_api_key_raises_service_error(self, settings):
        service = GroqCompletionService(settings)
        messages = [ChatMessage(role=MessageRole.USER, content="hello")]
        with pytest.raises(CompletionServiceError):
            asyncio.run(service.complete(messages))
