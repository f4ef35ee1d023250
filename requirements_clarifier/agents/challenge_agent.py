"""
Challenge Agent
Responsibility: Predict implementation challenges implied by explicitly
                stated requirements, ranked by risk.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from requirements_clarifier.agents.detection_agent import BatchedDetectionAgent, quoted_spans
from requirements_clarifier.models.enums import ChallengeCategory, DetectionPoint, ImpactSeverity
from requirements_clarifier.models.schemas import (
    ChallengeImpact,
    PreventiveMeasure,
    TechnicalChallenge,
    priority_from_risk,
)
from requirements_clarifier.services.response_parsing import structured_dict
from requirements_clarifier.utils.text import contains_any

logger = logging.getLogger(__name__)

_CATEGORY_MAP = {
    "platform_limitation": ChallengeCategory.COMPATIBILITY,
    "performance": ChallengeCategory.PERFORMANCE,
    "security": ChallengeCategory.SECURITY,
    "integration": ChallengeCategory.INTEGRATION,
    "scaling": ChallengeCategory.SCALABILITY,
    "scalability": ChallengeCategory.SCALABILITY,
}

_PROBABILITY_BY_SEVERITY = {
    "critical": 0.9,
    "high": 0.7,
    "medium": 0.5,
}

_DETECTION_POINTS = {
    "development": DetectionPoint.DEVELOPMENT,
    "testing": DetectionPoint.TESTING,
    "production": DetectionPoint.PRODUCTION,
    "scale": DetectionPoint.SCALE,
}

_TITLE_MAX_CHARS = 50


class ChallengeAgent(BatchedDetectionAgent[TechnicalChallenge]):
    name = "CHALLENGES"
    prompt_name = "challenge_prediction_prompt.txt"

    @property
    def batch_size(self) -> int:
        return self.settings.challenge_batch_size

    @property
    def statement_max_chars(self) -> int:
        return self.settings.challenge_statement_max_chars

    @property
    def rules(self):
        return self.settings.detection_rules

    # ── Parsing ──────────────────────────────────────────

    def parse_items(self, raw: str) -> list[TechnicalChallenge]:
        if contains_any(raw, self.rules.no_challenge_signals):
            return []

        data = structured_dict(raw)
        if isinstance(data.get("technical_challenges"), list):
            return self._from_structured(data["technical_challenges"])
        return self._from_prose(raw)

    def _from_structured(self, entries: list[Any]) -> list[TechnicalChallenge]:
        challenges = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            category = entry.get("category")
            description = entry.get("description")
            severity = entry.get("severity")
            if not all(isinstance(v, str) and v.strip() for v in (category, description, severity)):
                continue

            probability = _PROBABILITY_BY_SEVERITY.get(severity.lower(), 0.3)
            cost = entry.get("cost_to_fix_late") if isinstance(entry.get("cost_to_fix_late"), str) else ""
            impact = ChallengeImpact(severity=_impact_severity(severity, cost), description=cost)
            mitigation = entry.get("mitigation") if isinstance(entry.get("mitigation"), str) else ""
            related = entry.get("related_requirement")
            questions = entry.get("critical_questions")

            challenges.append(TechnicalChallenge(
                title=extract_title(description),
                description=description.strip(),
                category=_CATEGORY_MAP.get(category.lower(), ChallengeCategory.COMPLEXITY),
                priority=priority_from_risk(probability, impact.severity),
                probability=probability,
                impact=impact,
                detection_point=_DETECTION_POINTS.get(
                    str(entry.get("when_surfaced", "")).lower(), DetectionPoint.PLANNING
                ),
                preventive_measures=(
                    [PreventiveMeasure(action=mitigation, effectiveness="high")]
                    if mitigation.strip() else []
                ),
                related_requirement=related.strip() if isinstance(related, str) and related.strip() else None,
                critical_questions=(
                    [q for q in questions if isinstance(q, str) and q.strip()]
                    if isinstance(questions, list) else []
                ),
            ))
        return challenges

    def _from_prose(self, raw: str) -> list[TechnicalChallenge]:
        """A quoted requirement, then a challenge line, optionally followed by a mitigation line."""
        challenges = []
        requirement: Optional[str] = None
        pending: Optional[dict[str, Any]] = None

        def _flush() -> None:
            if pending is not None:
                challenges.append(self._prose_challenge(**pending))

        for line in raw.splitlines():
            trimmed = line.strip()
            if not trimmed:
                continue

            if pending is not None and contains_any(trimmed, self.rules.challenge_mitigation_markers):
                pending["mitigation"] = trimmed
                continue

            quotes = quoted_spans(trimmed)
            if contains_any(trimmed, self.rules.challenge_description_markers):
                _flush()
                pending = {
                    "description": trimmed,
                    "requirement": quotes[0] if quotes else requirement,
                    "mitigation": None,
                }
                requirement = None
            elif quotes:
                requirement = quotes[0]

        _flush()
        return challenges

    def _prose_challenge(
        self,
        description: str,
        requirement: Optional[str],
        mitigation: Optional[str],
    ) -> TechnicalChallenge:
        severity = ImpactSeverity.MODERATE
        return TechnicalChallenge(
            title=extract_title(description),
            description=description,
            category=self.classify(description),
            priority=priority_from_risk(0.5, severity),
            probability=0.5,
            impact=ChallengeImpact(severity=severity, description=description),
            detection_point=DetectionPoint.DEVELOPMENT,
            preventive_measures=[PreventiveMeasure(action=mitigation)] if mitigation else [],
            related_requirement=requirement,
        )

    def classify(self, text: str) -> ChallengeCategory:
        lower = text.lower()
        for keyword, category in self.rules.challenge_category_keywords:
            if keyword in lower:
                return ChallengeCategory(category)
        return ChallengeCategory.COMPLEXITY

    # ── Dedup + ranking ──────────────────────────────────

    def deduplicate(self, items: list[TechnicalChallenge]) -> list[TechnicalChallenge]:
        seen: set[str] = set()
        unique = []
        for challenge in items:
            key = f"{challenge.category.value}|{challenge.title.strip().lower()}"
            if key in seen:
                continue
            seen.add(key)
            unique.append(challenge)
        return sorted(unique, key=lambda c: (c.priority.rank, c.title))


def extract_title(description: str) -> str:
    """Up to the first period, at most 50 characters."""
    text = description.strip()
    end = text.find(".")
    if end == -1 or end > _TITLE_MAX_CHARS:
        end = min(_TITLE_MAX_CHARS, len(text))
    return text[:end].strip() or text[:_TITLE_MAX_CHARS]


def _impact_severity(severity: str, cost_to_fix_late: str) -> ImpactSeverity:
    severity = severity.lower()
    if "10x" in cost_to_fix_late or severity == "critical":
        return ImpactSeverity.CRITICAL
    if "5x" in cost_to_fix_late or severity == "high":
        return ImpactSeverity.HIGH
    return ImpactSeverity.MODERATE
