"""Orchestration — the LangGraph state machine and its routing functions."""

from .graph import RequirementsAnalysisStateMachine

__all__ = ["RequirementsAnalysisStateMachine"]
