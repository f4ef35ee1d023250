"""
LangGraph State Machine — requirements analysis and clarification.

This module defines the full graph: nodes, edges and conditional routing.

  analyzing_initial ─┬─► critically_low ─► END
                     └─► filtering_by_confidence ─► detecting_architectural_issues ◄─┐
                                                      │  (strict re-run loop) ───────┘
                         presenting_clarifications ◄──┘
                           │
                           ├─► collecting_clarifications ─┬─► reanalyzing ─► detecting…
                           │                              └─► detecting… (post-clarification pass)
                           └─► finalizing ─► END

Every node is wrapped by `_stage_node`, which logs start/finish banners
with timing, appends an audit entry and re-raises failures.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from langgraph.graph import END, StateGraph

from requirements_clarifier.agents import AnalysisAgent, ChallengeAgent, ConflictAgent
from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.models.enums import AnalysisStage, Priority, Severity
from requirements_clarifier.models.schemas import (
    ArchitecturalConflict,
    AuditEntry,
    EnrichedRequirements,
    GenericIssueReport,
    ProfessionalAnalysis,
    RequirementsAnalysis,
    TechnicalChallenge,
)
from requirements_clarifier.models.state import AnalysisGraphState
from requirements_clarifier.orchestration.transitions import (
    ANALYZING_INITIAL,
    COLLECTING_CLARIFICATIONS,
    CRITICALLY_LOW,
    DETECTING_ARCHITECTURAL_ISSUES,
    FILTERING_BY_CONFIDENCE,
    FINALIZING,
    PRESENTING_CLARIFICATIONS,
    REANALYZING,
    route_after_collection,
    route_after_detection,
    route_after_initial_analysis,
    route_after_presentation,
)
from requirements_clarifier.rules.clarification_rules import ClarificationRules
from requirements_clarifier.rules.confidence_rules import ConfidenceRules
from requirements_clarifier.rules.relevance_rules import RelevanceRules
from requirements_clarifier.services.clarification_service import ClarificationCollector
from requirements_clarifier.services.enrichment_service import RequirementsEnricher
from requirements_clarifier.services.interaction import UserInteractionHandler
from requirements_clarifier.services.llm_service import CompletionService

logger = logging.getLogger(__name__)

NodeHandler = Callable[[AnalysisGraphState], Awaitable[dict[str, Any]]]


class RequirementsAnalysisStateMachine:
    """
    Drives one product request from raw text to EnrichedRequirements.
    Collaborators are created once; the graph is compiled per run and
    no state is kept between runs.
    """

    def __init__(
        self,
        interaction: UserInteractionHandler,
        completion: Optional[CompletionService] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.interaction = interaction

        self.analysis = AnalysisAgent(completion, self.settings)
        self.conflicts = ConflictAgent(completion, self.settings)
        self.challenges = ChallengeAgent(completion, self.settings)

        self.confidence = ConfidenceRules(self.settings)
        self.relevance = RelevanceRules(self.settings)
        self.dedup = ClarificationRules(self.settings)
        self.collector = ClarificationCollector(interaction, self.settings)
        self.enricher = RequirementsEnricher()

    # ── Public entry points ──────────────────────────────

    async def run(self, input_text: str, request_id: str = "") -> EnrichedRequirements:
        final_state = await self.run_graph(input_text, request_id)
        return EnrichedRequirements.model_validate(final_state["result"])

    async def run_graph(self, input_text: str, request_id: str = "") -> dict[str, Any]:
        """Run the compiled graph and return the final state values."""
        compiled = self.build_graph()
        initial = AnalysisGraphState(input_text=input_text, request_id=request_id)

        logger.info("═" * 60)
        logger.info(f"  REQUIREMENTS ANALYSIS STARTING  request_id={request_id or '-'}")
        logger.info("═" * 60)

        final_state = await compiled.ainvoke(initial)

        logger.info("═" * 60)
        logger.info(
            f"  ANALYSIS FINISHED — stage: {final_state.get('stage')} | "
            f"{len(final_state.get('audit_trail', []))} audit entries"
        )
        logger.info("═" * 60)
        return final_state

    def build_graph(self):
        """Construct and compile the state machine."""
        graph = StateGraph(AnalysisGraphState)

        # ── Add nodes ────────────────────────────────────
        graph.add_node(ANALYZING_INITIAL, self._stage_node(
            AnalysisStage.ANALYZING_INITIAL, self._analyzing_initial))
        graph.add_node(CRITICALLY_LOW, self._stage_node(
            AnalysisStage.CRITICALLY_LOW, self._critically_low))
        graph.add_node(FILTERING_BY_CONFIDENCE, self._stage_node(
            AnalysisStage.FILTERING_BY_CONFIDENCE, self._filtering_by_confidence))
        graph.add_node(DETECTING_ARCHITECTURAL_ISSUES, self._stage_node(
            AnalysisStage.DETECTING_ARCHITECTURAL_ISSUES, self._detecting_architectural_issues))
        graph.add_node(PRESENTING_CLARIFICATIONS, self._stage_node(
            AnalysisStage.PRESENTING_CLARIFICATIONS, self._presenting_clarifications))
        graph.add_node(COLLECTING_CLARIFICATIONS, self._stage_node(
            AnalysisStage.COLLECTING_CLARIFICATIONS, self._collecting_clarifications))
        graph.add_node(REANALYZING, self._stage_node(
            AnalysisStage.REANALYZING, self._reanalyzing))
        graph.add_node(FINALIZING, self._stage_node(
            AnalysisStage.FINALIZING, self._finalizing))

        # ── Entry point ──────────────────────────────────
        graph.set_entry_point(ANALYZING_INITIAL)

        # ── Edges ────────────────────────────────────────
        graph.add_conditional_edges(
            ANALYZING_INITIAL,
            lambda state: route_after_initial_analysis(state, self.settings),
            {
                CRITICALLY_LOW: CRITICALLY_LOW,
                FILTERING_BY_CONFIDENCE: FILTERING_BY_CONFIDENCE,
            },
        )
        graph.add_edge(FILTERING_BY_CONFIDENCE, DETECTING_ARCHITECTURAL_ISSUES)

        graph.add_conditional_edges(
            DETECTING_ARCHITECTURAL_ISSUES,
            route_after_detection,
            {
                DETECTING_ARCHITECTURAL_ISSUES: DETECTING_ARCHITECTURAL_ISSUES,  # strict re-run
                PRESENTING_CLARIFICATIONS: PRESENTING_CLARIFICATIONS,
                FINALIZING: FINALIZING,
            },
        )
        graph.add_conditional_edges(
            PRESENTING_CLARIFICATIONS,
            route_after_presentation,
            {
                COLLECTING_CLARIFICATIONS: COLLECTING_CLARIFICATIONS,
                FINALIZING: FINALIZING,
            },
        )
        graph.add_conditional_edges(
            COLLECTING_CLARIFICATIONS,
            lambda state: route_after_collection(state, self.settings),
            {
                REANALYZING: REANALYZING,
                DETECTING_ARCHITECTURAL_ISSUES: DETECTING_ARCHITECTURAL_ISSUES,
                FINALIZING: FINALIZING,
            },
        )
        graph.add_edge(REANALYZING, DETECTING_ARCHITECTURAL_ISSUES)

        # Terminal edges → END
        graph.add_edge(CRITICALLY_LOW, END)
        graph.add_edge(FINALIZING, END)

        return graph.compile()

    # ── Node wrapper ─────────────────────────────────────

    def _stage_node(self, stage: AnalysisStage, handler: NodeHandler):
        async def node(state: AnalysisGraphState) -> dict[str, Any]:
            t0 = time.perf_counter()
            separator = "═" * 70
            logger.info(f"\n{separator}")
            logger.info(f"▶ [{stage.value}] STARTING")
            logger.info(separator)
            self.interaction.emit_telemetry({
                "event": "stage_started",
                "stage": stage.value,
                "request_id": state.request_id,
            })

            try:
                update = await handler(state)
            except Exception as exc:
                elapsed = time.perf_counter() - t0
                logger.exception(f"✘ [{stage.value}] FAILED after {elapsed:.3f}s: {exc}")
                logger.info(f"{separator}\n")
                raise

            elapsed = time.perf_counter() - t0
            details = update.pop("audit_details", "")
            update["stage"] = AnalysisStage.COMPLETED if "result" in update else stage
            update["audit_trail"] = [
                AuditEntry(stage=stage, action="completed", details=details)
            ]
            _log_update_summary(stage, update)
            logger.info(f"✔ [{stage.value}] COMPLETED in {elapsed:.3f}s")
            logger.info(f"{separator}\n")

            self.interaction.emit_telemetry({
                "event": "stage_completed",
                "stage": stage.value,
                "request_id": state.request_id,
                "elapsed_seconds": round(elapsed, 3),
            })
            return update

        node.__name__ = stage.value
        return node

    # ── Nodes ────────────────────────────────────────────

    async def _analyzing_initial(self, state: AnalysisGraphState) -> dict[str, Any]:
        text = state.input_text
        self.interaction.show_progress("Analyzing requirements completeness…")

        requirements, stack, conflicts, challenges = await asyncio.gather(
            self.analysis.analyze_requirements(text),
            self.analysis.analyze_technical_stack(text),
            self.conflicts.detect(text),
            self.challenges.detect(text),
        )

        return {
            "requirements_analysis": requirements,
            "stack_analysis": stack,
            "conflicts": conflicts,
            "challenges": challenges,
            "audit_details": (
                f"requirements={requirements.confidence}% stack={stack.confidence}% "
                f"conflicts={len(conflicts)} challenges={len(challenges)}"
            ),
        }

    async def _critically_low(self, state: AnalysisGraphState) -> dict[str, Any]:
        confidence = state.requirements_analysis.confidence
        logger.warning(f"[{CRITICALLY_LOW}] Requirements confidence {confidence}% — collecting essentials")
        self.interaction.show_warning(
            f"Requirements confidence is only {confidence}%. Essential information is needed."
        )

        essentials = await self.collector.collect_essential_clarifications()
        enriched = self.enricher.enrich_with_essentials(state.input_text, essentials)

        self.interaction.show_progress("Re-analyzing with essential information…")
        improved = await self.analysis.reanalyze(enriched)
        self.interaction.show_info(
            f"📈 Confidence: {confidence}% → {improved.confidence}%"
        )

        result = EnrichedRequirements(
            original_input=state.input_text,
            enriched_input=enriched,
            clarifications=essentials,
            assumptions=improved.assumptions,
            gaps=improved.gaps,
            overall_confidence=improved.confidence,
        )
        return {
            "clarifications": essentials,
            "enriched_input": enriched,
            "reanalysis": improved,
            "result": result,
            "audit_details": f"essentials={len(essentials)} confidence {confidence}% → {improved.confidence}%",
        }

    async def _filtering_by_confidence(self, state: AnalysisGraphState) -> dict[str, Any]:
        filtered_requirements = self.confidence.filter_by_confidence(state.requirements_analysis)
        filtered_stack = self.confidence.filter_by_confidence(state.stack_analysis)
        return {
            "filtered_requirements": filtered_requirements,
            "filtered_stack": filtered_stack,
            "audit_details": (
                f"clarifications kept: requirements="
                f"{len(filtered_requirements.clarifications_needed)} "
                f"stack={len(filtered_stack.clarifications_needed)}"
            ),
        }

    async def _detecting_architectural_issues(self, state: AnalysisGraphState) -> dict[str, Any]:
        source = state.analysis_text
        conflicts = state.conflicts
        challenges = state.challenges

        if state.detection_pending:
            strict = state.strict_detection
            logger.info(
                f"[{DETECTING_ARCHITECTURAL_ISSUES}] Running detection "
                f"(strict={strict}, post_clarification={state.post_clarification_pass}) "
                f"over {len(source)} chars"
            )
            if state.post_clarification_pass and not strict:
                self.interaction.show_progress("Re-checking architecture against your answers…")
            conflicts, challenges = await asyncio.gather(
                self.conflicts.detect(source, strict=strict),
                self.challenges.detect(source, strict=strict),
            )

        validated_conflicts = self.relevance.validate_conflicts(conflicts, source)
        validated_challenges = self.relevance.validate_challenges(challenges, source)
        relevance_score = self.relevance.calculate_relevance_score(conflicts, challenges, source)
        generic_issues = self.relevance.detect_generic_issues(conflicts, challenges, source)

        update: dict[str, Any] = {
            "conflicts": conflicts,
            "challenges": challenges,
            "validated_conflicts": validated_conflicts,
            "validated_challenges": validated_challenges,
            "relevance_score": relevance_score,
            "generic_issues": generic_issues,
            "detection_pending": False,
            "strict_detection": False,
            "detection_passes": state.detection_passes + 1,
            "audit_details": (
                f"relevance={relevance_score:.2f} "
                f"conflicts={len(validated_conflicts)}/{len(conflicts)} "
                f"challenges={len(validated_challenges)}/{len(challenges)}"
            ),
        }

        if relevance_score < self.settings.min_relevance_score and not state.strict_retry_used:
            logger.warning(
                f"[{DETECTING_ARCHITECTURAL_ISSUES}] Relevance {relevance_score:.2f} < "
                f"{self.settings.min_relevance_score} — discarding pass, re-running strictly"
            )
            update.update({
                "detection_pending": True,
                "strict_detection": True,
                "strict_retry_used": True,
            })
        return update

    async def _presenting_clarifications(self, state: AnalysisGraphState) -> dict[str, Any]:
        issue_questions = self.issue_questions(state.validated_conflicts, state.validated_challenges)
        requirement_questions, stack_questions = self.collector.split_deduplicated(
            [*state.filtered_requirements.clarifications_needed, *issue_questions],
            state.filtered_stack.clarifications_needed,
        )

        requirements_confidence = state.requirements_analysis.confidence
        stack_confidence = state.stack_analysis.confidence
        should_present = (
            bool(requirement_questions or stack_questions)
            or self.confidence.should_force_clarifications(requirements_confidence, stack_confidence)
        )

        accepted = False
        if should_present:
            accepted = await self.collector.present_clarifications_for_approval(
                requirement_questions,
                stack_questions,
                requirements_confidence,
                stack_confidence,
                conflict_count=len(state.validated_conflicts),
                challenge_count=len(state.validated_challenges),
            )
        else:
            logger.info(f"[{PRESENTING_CLARIFICATIONS}] Nothing to clarify")

        return {
            "requirement_questions": requirement_questions,
            "stack_questions": stack_questions,
            "clarifications_accepted": accepted,
            "audit_details": (
                f"questions={len(requirement_questions) + len(stack_questions)} "
                f"presented={should_present} accepted={accepted}"
            ),
        }

    async def _collecting_clarifications(self, state: AnalysisGraphState) -> dict[str, Any]:
        requirement_answers, stack_answers = await self.collector.collect_batched_clarifications(
            state.requirement_questions, state.stack_questions
        )
        clarifications = self.dedup.merge_answers(requirement_answers, stack_answers)
        if not clarifications:
            logger.info(f"[{COLLECTING_CLARIFICATIONS}] No answers collected")
            return {"clarifications": {}, "audit_details": "answers=0"}

        enriched = self.enricher.enrich_input(
            state.input_text,
            requirement_answers,
            {q: a for q, a in stack_answers.items() if q in clarifications},
            state.filtered_requirements.assumptions,
            state.filtered_stack.assumptions,
        )
        return {
            "clarifications": clarifications,
            "enriched_input": enriched,
            "post_clarification_pass": True,
            "detection_pending": True,
            "strict_detection": False,
            "strict_retry_used": False,
            "audit_details": f"answers={len(clarifications)}",
        }

    async def _reanalyzing(self, state: AnalysisGraphState) -> dict[str, Any]:
        self.interaction.show_progress("Re-analyzing with your clarifications…")
        original = state.requirements_analysis.confidence
        refined = await self.analysis.reanalyze(state.enriched_input)

        if refined.confidence > original:
            self.interaction.show_info(f"📈 Confidence improved: {original}% → {refined.confidence}%")
        logger.info(f"[{REANALYZING}] Confidence {original}% → {refined.confidence}% (informational)")
        return {
            "reanalysis": refined,
            "audit_details": f"confidence {original}% → {refined.confidence}%",
        }

    async def _finalizing(self, state: AnalysisGraphState) -> dict[str, Any]:
        filtered_requirements = state.filtered_requirements or RequirementsAnalysis()
        filtered_stack = state.filtered_stack or RequirementsAnalysis()

        overall = self.confidence.calculate_overall_confidence(
            state.requirements_analysis.confidence,
            state.stack_analysis.confidence,
            clarifications_provided=bool(state.clarifications),
        )
        professional = build_professional_analysis(
            state.validated_conflicts,
            state.validated_challenges,
            state.relevance_score,
            state.generic_issues,
        )

        result = EnrichedRequirements(
            original_input=state.input_text,
            enriched_input=state.enriched_input or state.input_text,
            clarifications=state.clarifications,
            assumptions=[*filtered_requirements.assumptions, *filtered_stack.assumptions],
            gaps=[*filtered_requirements.gaps, *filtered_stack.gaps],
            overall_confidence=overall,
            professional_analysis=professional,
        )
        if result.has_critical_issues:
            self.interaction.show_warning(
                f"{len(result.blocking_issues)} blocking issue(s) must be resolved before implementation."
            )
        return {
            "result": result,
            "audit_details": (
                f"overall_confidence={overall}% clarifications={len(state.clarifications)} "
                f"blocking={len(result.blocking_issues)}"
            ),
        }

    # ── Helpers ──────────────────────────────────────────

    @staticmethod
    def issue_questions(
        conflicts: list[ArchitecturalConflict],
        challenges: list[TechnicalChallenge],
    ) -> list[str]:
        questions = [conflict.clarification_question() for conflict in conflicts]
        for challenge in challenges:
            questions.extend(challenge.clarification_questions())
        return questions


def build_professional_analysis(
    conflicts: list[ArchitecturalConflict],
    challenges: list[TechnicalChallenge],
    relevance_score: float,
    generic_issues: GenericIssueReport,
) -> ProfessionalAnalysis:
    """Summarize validated findings; critical items become blocking issues."""
    blocking = [
        f"Conflict: \"{c.requirement1}\" vs \"{c.requirement2}\""
        for c in conflicts
        if c.severity == Severity.CRITICAL
    ] + [
        f"Challenge: {c.title}"
        for c in challenges
        if c.priority == Priority.CRITICAL
    ]

    if not conflicts and not challenges:
        summary = "No architectural conflicts or technical challenges were found in the stated requirements."
    else:
        summary = (
            f"{len(conflicts)} architectural conflict(s) and {len(challenges)} technical "
            f"challenge(s) were traced to the stated requirements"
        )
        summary += f"; {len(blocking)} are blocking." if blocking else "."

    return ProfessionalAnalysis(
        conflicts=conflicts,
        challenges=challenges,
        relevance_score=relevance_score,
        generic_issues=generic_issues,
        blocking_issues=blocking,
        executive_summary=summary,
    )


# ── Debug helpers (module-level) ─────────────────────────

def _log_update_summary(stage: AnalysisStage, update: dict[str, Any]) -> None:
    """Log which fields a node wrote and their approximate sizes."""
    lines = [f"  ┌─ [{stage.value}] STATE UPDATE"]
    for key in sorted(update):
        value = update[key]
        if isinstance(value, str):
            lines.append(f"  │  {key}: str({len(value)} chars)")
        elif isinstance(value, (list, dict)):
            lines.append(f"  │  {key}: {type(value).__name__}({len(value)})")
        else:
            lines.append(f"  │  {key}: {type(value).__name__}")
    lines.append(f"  └─ ({len(update)} fields)")
    logger.debug("\n".join(lines))
