from .base_agent import BaseAgent
from .detection_agent import BatchedDetectionAgent
from .analysis_agent import AnalysisAgent
from .conflict_agent import ConflictAgent
from .challenge_agent import ChallengeAgent

__all__ = [
    "BaseAgent",
    "BatchedDetectionAgent",
    "AnalysisAgent",
    "ConflictAgent",
    "ChallengeAgent",
]
