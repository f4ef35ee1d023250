"""
LangGraph shared state — the single object that flows through every node.

Design rules:
  1. Nodes return partial updates; LangGraph merges them into the state.
  2. Detection results are replaced wholesale by each pass, never patched.
  3. The audit trail is append-only (operator.add reducer).
"""

from __future__ import annotations

from operator import add
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from .enums import AnalysisStage
from .schemas import (
    ArchitecturalConflict,
    AuditEntry,
    EnrichedRequirements,
    GenericIssueReport,
    RequirementsAnalysis,
    TechnicalChallenge,
)


class AnalysisGraphState(BaseModel):
    """State passed through the requirements-analysis state machine."""

    # ── Input ────────────────────────────────────────────
    input_text: str = ""
    request_id: str = ""
    stage: AnalysisStage = AnalysisStage.RECEIVED

    # ── Initial analysis ─────────────────────────────────
    requirements_analysis: Optional[RequirementsAnalysis] = None
    stack_analysis: Optional[RequirementsAnalysis] = None

    # ── Confidence filtering ─────────────────────────────
    filtered_requirements: Optional[RequirementsAnalysis] = None
    filtered_stack: Optional[RequirementsAnalysis] = None

    # ── Detection (current pass) ─────────────────────────
    conflicts: list[ArchitecturalConflict] = Field(default_factory=list)
    challenges: list[TechnicalChallenge] = Field(default_factory=list)
    detection_pending: bool = False
    strict_detection: bool = False
    strict_retry_used: bool = False
    detection_passes: int = 0

    # ── Validation (current pass) ────────────────────────
    validated_conflicts: list[ArchitecturalConflict] = Field(default_factory=list)
    validated_challenges: list[TechnicalChallenge] = Field(default_factory=list)
    relevance_score: float = 1.0
    generic_issues: GenericIssueReport = Field(default_factory=GenericIssueReport)

    # ── Clarifications ───────────────────────────────────
    requirement_questions: list[str] = Field(default_factory=list)
    stack_questions: list[str] = Field(default_factory=list)
    clarifications_accepted: bool = False
    clarifications: dict[str, str] = Field(default_factory=dict)
    enriched_input: str = ""
    post_clarification_pass: bool = False

    # ── Re-analysis (logging only) ───────────────────────
    reanalysis: Optional[RequirementsAnalysis] = None

    # ── Output ───────────────────────────────────────────
    result: Optional[EnrichedRequirements] = None

    # ── Audit trail (append-only) ────────────────────────
    audit_trail: Annotated[list[AuditEntry], add] = Field(default_factory=list)

    @property
    def analysis_text(self) -> str:
        """Text the current detection pass is grounded against."""
        if self.post_clarification_pass and self.enriched_input:
            return self.enriched_input
        return self.input_text
