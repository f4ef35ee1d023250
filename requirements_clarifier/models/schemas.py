"""
Data schemas for the analysis pipeline.
Analysis results and detected issues are immutable once built: later
passes replace them rather than patching them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    AnalysisStage,
    ChallengeCategory,
    ConflictType,
    DetectionPoint,
    ImpactSeverity,
    MessageRole,
    Priority,
    Severity,
)


# ── Completion service messages ──────────────────────────


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str


# ── Analysis ─────────────────────────────────────────────


class RequirementsAnalysis(BaseModel):
    """Result of one completeness analysis call."""
    model_config = ConfigDict(frozen=True)

    confidence: int = Field(default=50, ge=0, le=100)
    clarifications_needed: list[str] = []
    assumptions: list[str] = []
    gaps: list[str] = []


class StackContext(BaseModel):
    """Technical stack facts known about the product."""
    model_config = ConfigDict(frozen=True)

    language: str
    database: Optional[str] = None
    test_framework: Optional[str] = None
    cicd_pipeline: Optional[str] = None
    deployment: Optional[str] = None
    security: Optional[str] = None
    performance: Optional[str] = None
    integrations: list[str] = []


# ── Architectural conflicts ──────────────────────────────


class ResolutionStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)

    approach: str = ""
    tradeoffs: list[str] = []
    recommendation: str = ""


class RealWorldExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    company: str = ""
    product: str = ""
    solution: str = ""
    outcome: str = ""


class ArchitecturalConflict(BaseModel):
    """Two stated requirements that cannot both be fully satisfied."""
    model_config = ConfigDict(frozen=True)

    requirement1: str
    requirement2: str
    conflict_type: ConflictType = ConflictType.MUTUALLY_EXCLUSIVE
    severity: Severity = Severity.HIGH
    resolution: ResolutionStrategy = Field(default_factory=ResolutionStrategy)
    real_world_examples: list[RealWorldExample] = []

    def clarification_question(self) -> str:
        return (
            f"\"{self.requirement1}\" and \"{self.requirement2}\" cannot both be fully "
            f"satisfied. Which one should take priority?"
        )

    def pair_key(self) -> frozenset[str]:
        """Order-insensitive identity of the requirement pair."""
        return frozenset(
            " ".join(text.strip().lower().split())
            for text in (self.requirement1, self.requirement2)
        )


# ── Technical challenges ─────────────────────────────────


class ChallengeImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: ImpactSeverity = ImpactSeverity.MODERATE
    description: str = ""


class PreventiveMeasure(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str
    complexity: int = 5  # story points
    effectiveness: str = "moderate"


class TechnicalChallenge(BaseModel):
    """An implementation difficulty implied by an explicitly stated requirement."""
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    category: ChallengeCategory = ChallengeCategory.COMPLEXITY
    priority: Priority = Priority.MEDIUM
    probability: float = Field(default=0.5, ge=0.0, le=1.0)
    impact: ChallengeImpact = Field(default_factory=ChallengeImpact)
    detection_point: DetectionPoint = DetectionPoint.PLANNING
    preventive_measures: list[PreventiveMeasure] = []
    related_requirement: Optional[str] = None
    critical_questions: list[str] = []

    def clarification_questions(self) -> list[str]:
        if self.critical_questions:
            return list(self.critical_questions)
        return [f"How should we address this challenge: {self.title}?"]


def probability_score(probability: float) -> int:
    """Map a 0–1 probability onto a 1–5 level."""
    if probability < 0.25:
        return 1
    if probability < 0.5:
        return 2
    if probability < 0.75:
        return 3
    if probability < 0.9:
        return 4
    return 5


def priority_from_risk(probability: float, severity: ImpactSeverity) -> Priority:
    """Risk = probability level × impact level, scaled to 0–100."""
    risk = probability_score(probability) * severity.score * 4
    if risk <= 25:
        return Priority.LOW
    if risk <= 50:
        return Priority.MEDIUM
    if risk <= 75:
        return Priority.HIGH
    return Priority.CRITICAL


# ── Validation output ────────────────────────────────────


class GenericIssueReport(BaseModel):
    """Detected items that look like habitual, non-grounded model answers."""
    model_config = ConfigDict(frozen=True)

    generic_conflicts: list[str] = []
    generic_challenges: list[str] = []

    @property
    def total(self) -> int:
        return len(self.generic_conflicts) + len(self.generic_challenges)


class ProfessionalAnalysis(BaseModel):
    """Validated architectural findings attached to the final record."""
    model_config = ConfigDict(frozen=True)

    conflicts: list[ArchitecturalConflict] = []
    challenges: list[TechnicalChallenge] = []
    relevance_score: float = 1.0
    generic_issues: GenericIssueReport = Field(default_factory=GenericIssueReport)
    blocking_issues: list[str] = []
    executive_summary: str = ""

    @property
    def has_critical_issues(self) -> bool:
        return bool(self.blocking_issues)


# ── Final record ─────────────────────────────────────────


class EnrichedRequirements(BaseModel):
    """Requirements after analysis, clarification and validation."""
    model_config = ConfigDict(frozen=True)

    original_input: str
    enriched_input: str
    clarifications: dict[str, str] = {}
    assumptions: list[str] = []
    gaps: list[str] = []
    overall_confidence: int = Field(default=0, ge=0, le=100)
    professional_analysis: Optional[ProfessionalAnalysis] = None

    @property
    def input_for_generation(self) -> str:
        return self.enriched_input or self.original_input

    @property
    def was_clarified(self) -> bool:
        return bool(self.clarifications)

    @property
    def has_critical_issues(self) -> bool:
        return self.professional_analysis is not None and self.professional_analysis.has_critical_issues

    @property
    def blocking_issues(self) -> list[str]:
        if self.professional_analysis is None:
            return []
        return list(self.professional_analysis.blocking_issues)


# ── Audit ────────────────────────────────────────────────


class AuditEntry(BaseModel):
    stage: AnalysisStage
    action: str
    details: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
