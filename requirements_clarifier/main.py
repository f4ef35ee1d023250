"""
Requirements Clarifier — Main Entry Point

Import and run programmatically:
    import asyncio
    from requirements_clarifier.main import run
    from requirements_clarifier.services.interaction import ConsoleInteractionHandler

    result = asyncio.run(run("Build a todo app…", ConsoleInteractionHandler()))
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.models.schemas import EnrichedRequirements
from requirements_clarifier.orchestration.graph import RequirementsAnalysisStateMachine
from requirements_clarifier.services.interaction import UserInteractionHandler
from requirements_clarifier.services.llm_service import CompletionService
from requirements_clarifier.utils.logger import setup_logging


async def run(
    text: str,
    interaction: UserInteractionHandler,
    completion: Optional[CompletionService] = None,
    settings: Optional[Settings] = None,
    request_id: str = "",
) -> EnrichedRequirements:
    """Analyze and clarify one product request; return the enriched requirements."""
    settings = settings or get_settings()
    setup_logging(settings)
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info(f"  {settings.app_name.upper()}")
    logger.info(f"  Model: {settings.llm_model} | Started: {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)

    machine = RequirementsAnalysisStateMachine(interaction, completion, settings)
    result = await machine.run(text, request_id=request_id)

    _print_summary(result)
    return result


def _print_summary(result: EnrichedRequirements) -> None:
    """Log a human-readable summary of the analysis result."""
    logger = logging.getLogger(__name__)
    analysis = result.professional_analysis

    logger.info("")
    logger.info("-" * 60)
    logger.info("  ANALYSIS RESULT SUMMARY")
    logger.info("-" * 60)
    logger.info(f"  Confidence:     {result.overall_confidence}%")
    logger.info(f"  Clarified:      {'yes' if result.was_clarified else 'no'} ({len(result.clarifications)} answers)")
    logger.info(f"  Assumptions:    {len(result.assumptions)}")
    logger.info(f"  Gaps:           {len(result.gaps)}")
    if analysis is not None:
        logger.info(f"  Conflicts:      {len(analysis.conflicts)}")
        logger.info(f"  Challenges:     {len(analysis.challenges)}")
        logger.info(f"  Relevance:      {analysis.relevance_score:.2f}")
        logger.info(f"  Summary:        {analysis.executive_summary}")
    for issue in result.blocking_issues:
        logger.info(f"  BLOCKING:       {issue}")
    logger.info("-" * 60)
