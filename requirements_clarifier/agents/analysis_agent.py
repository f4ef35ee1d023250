"""
Analysis Agent
Responsibility: Score how complete a product request is, and list the
                clarifications, assumptions and gaps behind that score.

Three entry points share one response format: the requirements analysis,
the technical-stack analysis and the re-analysis of enriched input.
Format drift never raises; it falls back to neutral defaults.
"""

from __future__ import annotations

import logging
from typing import Any

from requirements_clarifier.agents.base_agent import BaseAgent, load_prompt
from requirements_clarifier.models.schemas import RequirementsAnalysis
from requirements_clarifier.services.response_parsing import structured_dict

logger = logging.getLogger(__name__)


class AnalysisAgent(BaseAgent):
    name = "ANALYSIS"

    async def analyze_requirements(self, text: str) -> RequirementsAnalysis:
        return await self._analyze("requirements", "requirements_analysis_prompt.txt", text)

    async def analyze_technical_stack(self, text: str) -> RequirementsAnalysis:
        return await self._analyze("stack", "stack_analysis_prompt.txt", text)

    async def reanalyze(self, enriched_text: str) -> RequirementsAnalysis:
        return await self._analyze("reanalysis", "reanalysis_prompt.txt", enriched_text)

    # ── Internals ────────────────────────────────────────

    async def _analyze(self, kind: str, template_name: str, text: str) -> RequirementsAnalysis:
        prompt = load_prompt(template_name).format(input_text=text)
        logger.info(f"[{self.name}] Running {kind} analysis ({len(text)} chars of input)")

        raw = await self._complete(
            load_prompt("analysis_system_prompt.txt"),
            prompt,
            temperature=self.settings.analysis_temperature,
        )
        analysis = self.parse_analysis(raw)

        logger.info(
            f"[{self.name}] {kind}: confidence={analysis.confidence}%, "
            f"{len(analysis.clarifications_needed)} clarifications, "
            f"{len(analysis.assumptions)} assumptions, {len(analysis.gaps)} gaps"
        )
        return analysis

    def parse_analysis(self, raw: str) -> RequirementsAnalysis:
        data = structured_dict(raw)
        if not data:
            logger.warning(f"[{self.name}] No structured analysis in response — using defaults")
            return RequirementsAnalysis(confidence=self.settings.confidence_default)

        return RequirementsAnalysis(
            confidence=self._coerce_confidence(data.get("confidence")),
            clarifications_needed=_string_list(data.get("clarifications_needed")),
            assumptions=_string_list(data.get("assumptions")),
            gaps=_string_list(data.get("gaps")),
        )

    def _coerce_confidence(self, value: Any) -> int:
        if isinstance(value, bool):
            return self.settings.confidence_default
        if isinstance(value, str):
            value = value.strip().rstrip("%")
        try:
            confidence = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"[{self.name}] Unusable confidence value {value!r} — using default")
            return self.settings.confidence_default
        return max(0, min(100, confidence))


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
