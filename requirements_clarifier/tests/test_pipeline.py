"""
Tests: End-to-end runs of the requirements-analysis state machine with a
fake completion service and scripted user answers.

Run with:
    pytest requirements_clarifier/tests/test_pipeline.py -v
"""

import asyncio

import pytest

from conftest import (
    CHALLENGES,
    CONFLICTS,
    NO_CHALLENGES,
    NO_CONFLICTS,
    REANALYSIS,
    REQUIREMENTS,
    STACK,
    STRICT,
    FakeCompletionService,
    analysis_response,
    fenced,
)
from requirements_clarifier.main import run
from requirements_clarifier.models.enums import AnalysisStage
from requirements_clarifier.orchestration.graph import RequirementsAnalysisStateMachine
from requirements_clarifier.services.interaction import ScriptedInteractionHandler
from requirements_clarifier.services.llm_service import CompletionServiceError

INPUT = (
    "- Must support offline editing\n"
    "- Real-time collaboration for 50 users\n"
    "- Data encrypted end to end"
)


def _routes(requirements: str, stack: str, **overrides) -> dict:
    routes = {
        REANALYSIS: analysis_response(70),
        REQUIREMENTS: requirements,
        STACK: stack,
        CONFLICTS: NO_CONFLICTS,
        CHALLENGES: NO_CHALLENGES,
    }
    routes.update(overrides)
    return routes


def _stages(final_state: dict) -> list[AnalysisStage]:
    return [entry.stage for entry in final_state["audit_trail"]]


def _run_graph(machine: RequirementsAnalysisStateMachine, text: str = INPUT) -> dict:
    return asyncio.run(machine.run_graph(text, request_id="req-1"))


# ── Critically low confidence ────────────────────────────


def test_critically_low_confidence_collects_essentials(settings):
    fake = FakeCompletionService(_routes(
        analysis_response(25),
        analysis_response(60),
        **{REANALYSIS: analysis_response(65, assumptions=["Students only"], gaps=["No budget"])},
    ))
    handler = ScriptedInteractionHandler(
        answers=["A todo app", "Students", "Tasks, reminders", "Python", "Two weeks"]
    )
    machine = RequirementsAnalysisStateMachine(handler, fake, settings)

    final_state = _run_graph(machine, "Build an app")
    result = final_state["result"]

    assert _stages(final_state) == [AnalysisStage.ANALYZING_INITIAL, AnalysisStage.CRITICALLY_LOW]
    assert final_state["stage"] == AnalysisStage.COMPLETED
    assert result.overall_confidence == 65
    assert result.assumptions == ["Students only"]
    assert result.gaps == ["No budget"]
    assert result.professional_analysis is None
    assert len(result.clarifications) == len(settings.essential_questions)
    assert "## Essential Information Provided" in result.enriched_input
    assert handler.confirmation_prompts == []
    assert len(fake.prompts_for(REANALYSIS)) == 1
    assert "Students" in fake.prompts_for(REANALYSIS)[0]


# ── Nothing to clarify ───────────────────────────────────


def test_confident_input_finalizes_without_questions(settings):
    fake = FakeCompletionService(_routes(
        analysis_response(90, assumptions=["Web app"]),
        analysis_response(90),
    ))
    handler = ScriptedInteractionHandler()

    result = asyncio.run(run(INPUT, handler, completion=fake, settings=settings))

    assert result.overall_confidence == 90
    assert result.clarifications == {}
    assert result.was_clarified is False
    assert result.input_for_generation == INPUT
    assert result.assumptions == ["Web app"]
    assert result.professional_analysis.relevance_score == 1.0
    assert result.professional_analysis.executive_summary.startswith("No architectural conflicts")
    assert handler.confirmation_prompts == []
    assert fake.prompts_for(REANALYSIS) == []


def test_audit_trail_for_direct_path(settings):
    fake = FakeCompletionService(_routes(analysis_response(90), analysis_response(90)))
    machine = RequirementsAnalysisStateMachine(ScriptedInteractionHandler(), fake, settings)

    final_state = _run_graph(machine)

    assert _stages(final_state) == [
        AnalysisStage.ANALYZING_INITIAL,
        AnalysisStage.FILTERING_BY_CONFIDENCE,
        AnalysisStage.DETECTING_ARCHITECTURAL_ISSUES,
        AnalysisStage.PRESENTING_CLARIFICATIONS,
        AnalysisStage.FINALIZING,
    ]
    assert final_state["stage"] == AnalysisStage.COMPLETED


# ── Clarification round ──────────────────────────────────


def test_clarifications_enrich_input_and_rerun_detection(settings):
    fake = FakeCompletionService(_routes(
        analysis_response(
            55,
            clarifications=["What database should we use?", "Who are the users?"],
            assumptions=["Single user"],
        ),
        analysis_response(80, clarifications=["Which DB to pick?"], assumptions=["Python backend"]),
    ))
    handler = ScriptedInteractionHandler(answers=["Postgres", "Students"], confirmations=[True])
    machine = RequirementsAnalysisStateMachine(handler, fake, settings)

    final_state = _run_graph(machine)
    result = final_state["result"]

    # the stack question duplicates a requirements question and is never asked
    assert handler.questions == ["What database should we use?", "Who are the users?"]
    assert result.clarifications == {
        "What database should we use?": "Postgres",
        "Who are the users?": "Students",
    }
    assert result.overall_confidence == 82
    assert result.assumptions == ["Single user", "Python backend"]
    assert "**Q:** What database should we use?\n**A:** Postgres" in result.enriched_input
    assert result.input_for_generation == result.enriched_input

    assert len(fake.prompts_for(REANALYSIS)) == 1
    assert any("Postgres" in prompt for prompt in fake.prompts_for(CONFLICTS))
    assert _stages(final_state) == [
        AnalysisStage.ANALYZING_INITIAL,
        AnalysisStage.FILTERING_BY_CONFIDENCE,
        AnalysisStage.DETECTING_ARCHITECTURAL_ISSUES,
        AnalysisStage.PRESENTING_CLARIFICATIONS,
        AnalysisStage.COLLECTING_CLARIFICATIONS,
        AnalysisStage.REANALYZING,
        AnalysisStage.DETECTING_ARCHITECTURAL_ISSUES,
        AnalysisStage.FINALIZING,
    ]


def test_confident_answers_skip_reanalysis(settings):
    fake = FakeCompletionService(_routes(
        analysis_response(65, clarifications=["Who are the users?"]),
        analysis_response(80),
    ))
    handler = ScriptedInteractionHandler(answers=["Students"], confirmations=[True])
    machine = RequirementsAnalysisStateMachine(handler, fake, settings)

    final_state = _run_graph(machine)

    assert AnalysisStage.REANALYZING not in _stages(final_state)
    assert _stages(final_state).count(AnalysisStage.DETECTING_ARCHITECTURAL_ISSUES) == 2
    assert final_state["result"].overall_confidence == 87


def test_declined_clarifications_finalize_immediately(settings):
    fake = FakeCompletionService(_routes(
        analysis_response(55, clarifications=["Who are the users?"]),
        analysis_response(90),
    ))
    handler = ScriptedInteractionHandler(confirmations=[False])
    machine = RequirementsAnalysisStateMachine(handler, fake, settings)

    result = asyncio.run(machine.run(INPUT))

    assert len(handler.confirmation_prompts) == 1
    assert handler.questions == []
    assert result.clarifications == {}
    assert result.overall_confidence == 72


def test_unanswered_clarifications_finalize(settings):
    fake = FakeCompletionService(_routes(
        analysis_response(55, clarifications=["Who are the users?"]),
        analysis_response(90),
    ))
    handler = ScriptedInteractionHandler(answers=[""], confirmations=[True])
    machine = RequirementsAnalysisStateMachine(handler, fake, settings)

    final_state = _run_graph(machine)

    assert _stages(final_state)[-2:] == [
        AnalysisStage.COLLECTING_CLARIFICATIONS,
        AnalysisStage.FINALIZING,
    ]
    assert final_state["result"].overall_confidence == 72


def test_low_confidence_forces_presentation_without_questions(settings):
    fake = FakeCompletionService(_routes(analysis_response(65), analysis_response(90)))
    handler = ScriptedInteractionHandler(confirmations=[False])
    machine = RequirementsAnalysisStateMachine(handler, fake, settings)

    asyncio.run(machine.run(INPUT))

    assert len(handler.confirmation_prompts) == 1


# ── Relevance-driven strict re-run ───────────────────────


def test_ungrounded_detection_triggers_one_strict_rerun(settings):
    invented = fenced({
        "conflicts": [{
            "requirement1": "Blockchain ledger for audit",
            "requirement2": "Sub-millisecond latency globally",
            "conflict_reason": "Consensus is slow",
            "forced_tradeoff": "Drop the ledger",
            "severity": "critical",
        }]
    })

    def conflicts(prompt: str) -> str:
        return NO_CONFLICTS if STRICT in prompt else invented

    fake = FakeCompletionService(_routes(
        analysis_response(90),
        analysis_response(90),
        **{CONFLICTS: conflicts},
    ))
    machine = RequirementsAnalysisStateMachine(ScriptedInteractionHandler(), fake, settings)

    final_state = _run_graph(machine)
    result = final_state["result"]

    assert _stages(final_state).count(AnalysisStage.DETECTING_ARCHITECTURAL_ISSUES) == 2
    strict_temperatures = fake.temperatures_for(STRICT)
    assert strict_temperatures
    assert all(t == settings.strict_detection_temperature for t in strict_temperatures)
    assert result.professional_analysis.conflicts == []
    assert result.professional_analysis.relevance_score == 1.0
    assert result.blocking_issues == []


def test_strict_rerun_happens_at_most_once(settings):
    invented = fenced({
        "conflicts": [{
            "requirement1": "Blockchain ledger for audit",
            "requirement2": "Sub-millisecond latency globally",
            "conflict_reason": "Consensus is slow",
            "forced_tradeoff": "Drop the ledger",
        }]
    })
    fake = FakeCompletionService(_routes(
        analysis_response(90),
        analysis_response(90),
        **{CONFLICTS: invented},
    ))
    machine = RequirementsAnalysisStateMachine(ScriptedInteractionHandler(), fake, settings)

    final_state = _run_graph(machine)

    assert _stages(final_state).count(AnalysisStage.DETECTING_ARCHITECTURAL_ISSUES) == 2
    assert final_state["result"].professional_analysis.relevance_score == 0.0
    assert final_state["result"].professional_analysis.conflicts == []


# ── Blocking issues ──────────────────────────────────────


def test_critical_grounded_conflict_is_blocking(settings):
    grounded = fenced({
        "conflicts": [{
            "requirement1": "Must support offline editing",
            "requirement2": "Real-time collaboration for 50 users",
            "conflict_reason": "Offline edits diverge from the live session",
            "forced_tradeoff": "Accept merge conflicts",
            "impact": "Use CRDT-based sync",
            "severity": "critical",
        }]
    })
    fake = FakeCompletionService(_routes(
        analysis_response(90),
        analysis_response(90),
        **{CONFLICTS: grounded},
    ))
    handler = ScriptedInteractionHandler(confirmations=[False])
    machine = RequirementsAnalysisStateMachine(handler, fake, settings)

    result = asyncio.run(machine.run(INPUT))

    assert result.has_critical_issues
    assert result.blocking_issues == [
        'Conflict: "Must support offline editing" vs "Real-time collaboration for 50 users"'
    ]
    assert "  ⚠️ 1 architectural conflicts detected" in handler.warnings
    assert any("Which one should take priority?" in info for info in handler.infos)
    assert result.professional_analysis.executive_summary.endswith("1 are blocking.")


# ── Failures and telemetry ───────────────────────────────


def test_completion_service_error_propagates(settings):
    fake = FakeCompletionService(_routes(
        CompletionServiceError("quota exceeded"),
        analysis_response(90),
    ))
    machine = RequirementsAnalysisStateMachine(ScriptedInteractionHandler(), fake, settings)

    with pytest.raises(CompletionServiceError):
        asyncio.run(machine.run(INPUT))


@pytest.mark.parametrize("enabled", [True, False])
def test_telemetry_events_follow_handler_support(settings, enabled):
    fake = FakeCompletionService(_routes(analysis_response(90), analysis_response(90)))
    handler = ScriptedInteractionHandler(telemetry=enabled)
    machine = RequirementsAnalysisStateMachine(handler, fake, settings)

    asyncio.run(machine.run(INPUT, request_id="req-telemetry"))

    if not enabled:
        assert handler.telemetry_events == []
        return
    started = [e for e in handler.telemetry_events if e["event"] == "stage_started"]
    completed = [e for e in handler.telemetry_events if e["event"] == "stage_completed"]
    assert started[0] == {
        "event": "stage_started",
        "stage": "analyzing_initial",
        "request_id": "req-telemetry",
    }
    assert len(started) == len(completed) == 5
