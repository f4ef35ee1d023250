"""
Routing functions for LangGraph conditional edges.

Each function inspects the current state and returns the name of the
next node to execute. Thresholds come from Settings so routing and the
nodes always agree.
"""

from __future__ import annotations

from typing import Optional

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.models.enums import AnalysisStage
from requirements_clarifier.models.state import AnalysisGraphState
from requirements_clarifier.rules.confidence_rules import ConfidenceRules

ANALYZING_INITIAL = AnalysisStage.ANALYZING_INITIAL.value
CRITICALLY_LOW = AnalysisStage.CRITICALLY_LOW.value
FILTERING_BY_CONFIDENCE = AnalysisStage.FILTERING_BY_CONFIDENCE.value
DETECTING_ARCHITECTURAL_ISSUES = AnalysisStage.DETECTING_ARCHITECTURAL_ISSUES.value
PRESENTING_CLARIFICATIONS = AnalysisStage.PRESENTING_CLARIFICATIONS.value
COLLECTING_CLARIFICATIONS = AnalysisStage.COLLECTING_CLARIFICATIONS.value
REANALYZING = AnalysisStage.REANALYZING.value
FINALIZING = AnalysisStage.FINALIZING.value


# ── After initial analysis ───────────────────────────────

def route_after_initial_analysis(
    state: AnalysisGraphState,
    settings: Optional[Settings] = None,
) -> str:
    """
    Requirements confidence below the viability threshold → essential
    checklist. Otherwise → confidence filtering.
    """
    rules = ConfidenceRules(settings or get_settings())
    analysis = state.requirements_analysis
    confidence = analysis.confidence if analysis else 0

    if rules.is_below_minimum_viability(confidence):
        return CRITICALLY_LOW
    return FILTERING_BY_CONFIDENCE


# ── After detection + validation ─────────────────────────

def route_after_detection(state: AnalysisGraphState) -> str:
    """
    Strict re-run scheduled → loop back to detection.
    Post-clarification pass → finalize.
    First pass → present clarifications.
    """
    if state.detection_pending:
        return DETECTING_ARCHITECTURAL_ISSUES
    if state.post_clarification_pass:
        return FINALIZING
    return PRESENTING_CLARIFICATIONS


# ── After presenting clarifications ──────────────────────

def route_after_presentation(state: AnalysisGraphState) -> str:
    if state.clarifications_accepted:
        return COLLECTING_CLARIFICATIONS
    return FINALIZING


# ── After collecting clarifications ──────────────────────

def route_after_collection(
    state: AnalysisGraphState,
    settings: Optional[Settings] = None,
) -> str:
    """
    Nothing answered → finalize.
    Either original confidence below the refinement threshold → reanalyze.
    Otherwise → re-run detection against the enriched input.
    """
    if not state.clarifications:
        return FINALIZING
    if needs_reanalysis(state, settings):
        return REANALYZING
    return DETECTING_ARCHITECTURAL_ISSUES


def needs_reanalysis(state: AnalysisGraphState, settings: Optional[Settings] = None) -> bool:
    rules = ConfidenceRules(settings or get_settings())
    confidences = [
        analysis.confidence
        for analysis in (state.requirements_analysis, state.stack_analysis)
        if analysis is not None
    ]
    return any(rules.needs_refinement(c) for c in confidences)
