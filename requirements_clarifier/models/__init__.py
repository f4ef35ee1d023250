"""Models — enums, pydantic schemas and the LangGraph state."""

from .enums import AnalysisStage, ConflictType, Priority, Severity
from .schemas import (
    ArchitecturalConflict,
    EnrichedRequirements,
    RequirementsAnalysis,
    StackContext,
    TechnicalChallenge,
)
from .state import AnalysisGraphState

__all__ = [
    "AnalysisStage",
    "ConflictType",
    "Priority",
    "Severity",
    "ArchitecturalConflict",
    "EnrichedRequirements",
    "RequirementsAnalysis",
    "StackContext",
    "TechnicalChallenge",
    "AnalysisGraphState",
]
