"""
Tests: Context budgeting for per-section generation prompts.

Run with:
    pytest requirements_clarifier/tests/test_context.py -v
"""

from requirements_clarifier.models.schemas import EnrichedRequirements, StackContext
from requirements_clarifier.services.context_service import ContextBudgeter
from requirements_clarifier.utils.text import TRUNCATION_MARKER


def _enriched(clarifications: dict[str, str]) -> EnrichedRequirements:
    return EnrichedRequirements(
        original_input="Build a todo app",
        enriched_input="Build a todo app",
        clarifications=clarifications,
        overall_confidence=80,
    )


class TestBudget:
    def test_provider_limits(self, settings):
        budgeter = ContextBudgeter(settings)
        assert budgeter.token_limit("default") == 8000
        assert budgeter.token_limit("Apple-Foundation") == 3500
        assert budgeter.token_limit("groq") == 8000
        assert budgeter.max_chars("default") == 32000

    def test_token_estimate(self, settings):
        budgeter = ContextBudgeter(settings)
        assert budgeter.estimate_token_count("a" * 400) == 100
        assert budgeter.is_within_limit("a" * 32000)
        assert not budgeter.is_within_limit("a" * 32004)


class TestSectionExtraction:
    def test_long_input_truncated_to_budget(self, settings):
        budgeter = ContextBudgeter(settings)
        context = budgeter.extract_context_for_section("Overview", "x" * 100_000)
        assert len(context) <= 32000
        assert TRUNCATION_MARKER in context

    def test_smaller_provider_budget(self, settings):
        budgeter = ContextBudgeter(settings)
        context = budgeter.extract_context_for_section(
            "Overview", "x" * 100_000, provider_name="apple-on-device"
        )
        assert len(context) <= 14000

    def test_only_matching_clarifications_included(self, settings):
        budgeter = ContextBudgeter(settings)
        enriched = _enriched({
            "Which API endpoints are needed?": "REST for tasks",
            "Who are the users?": "Students",
        })
        context = budgeter.extract_context_for_section(
            "API Specification", "Build a todo app", enriched=enriched
        )
        assert "REST for tasks" in context
        assert "Students" not in context

    def test_falls_back_to_first_clarifications(self, settings):
        budgeter = ContextBudgeter(settings)
        enriched = _enriched({
            "Database?": "Postgres",
            "Hosting?": "AWS",
            "Colors?": "Blue",
        })
        context = budgeter.extract_context_for_section(
            "Overview", "Build a todo app", enriched=enriched
        )
        assert "Q: Database?\nA: Postgres" in context
        assert "Q: Hosting?\nA: AWS" in context
        assert "Blue" not in context

    def test_stack_summary_only_for_stack_sections(self, settings):
        budgeter = ContextBudgeter(settings)
        stack = StackContext(language="Python", database="Postgres")

        data_model = budgeter.extract_context_for_section(
            "Data Model", "Build a todo app", stack=stack
        )
        overview = budgeter.extract_context_for_section(
            "Overview", "Build a todo app", stack=stack
        )

        assert "- Language: Python" in data_model
        assert "- Database: Postgres" in data_model
        assert "### Tech Stack" not in overview
