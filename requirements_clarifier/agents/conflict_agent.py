"""
Conflict Agent
Responsibility: Find pairs of stated requirements that one architecture
                cannot fully satisfy at the same time.

Batches of three statements are checked concurrently. When the input is
longer than one batch, statements mentioning a critical keyword get one
extra cross-batch pass so conflicts that straddle batches are not missed.
"""

from __future__ import annotations

import logging
from typing import Any

from requirements_clarifier.agents.detection_agent import BatchedDetectionAgent, quoted_spans
from requirements_clarifier.models.enums import ConflictType, Severity
from requirements_clarifier.models.schemas import (
    ArchitecturalConflict,
    RealWorldExample,
    ResolutionStrategy,
)
from requirements_clarifier.services.response_parsing import structured_dict
from requirements_clarifier.utils.text import contains_any

logger = logging.getLogger(__name__)


class ConflictAgent(BatchedDetectionAgent[ArchitecturalConflict]):
    name = "CONFLICTS"
    prompt_name = "conflict_detection_prompt.txt"

    @property
    def batch_size(self) -> int:
        return self.settings.conflict_batch_size

    @property
    def statement_max_chars(self) -> int:
        return self.settings.conflict_statement_max_chars

    @property
    def rules(self):
        return self.settings.detection_rules

    # ── Cross-batch pass ─────────────────────────────────

    def critical_statements(self, statements: list[str]) -> list[str]:
        return [s for s in statements if contains_any(s, self.rules.critical_keywords)]

    async def extra_batches(self, statements: list[str], strict: bool) -> list[ArchitecturalConflict]:
        if len(statements) <= self.batch_size:
            return []
        critical = self.critical_statements(statements)
        if not critical:
            return []
        logger.info(f"[{self.name}] Cross-batch pass over {len(critical)} critical statements")
        return await self._run_batch_safely(
            "\n".join(s[: self.statement_max_chars] for s in critical),
            strict,
            label="cross-batch pass",
        )

    # ── Parsing ──────────────────────────────────────────

    def parse_items(self, raw: str) -> list[ArchitecturalConflict]:
        if contains_any(raw, self.rules.no_conflict_signals):
            return []

        data = structured_dict(raw)
        if isinstance(data.get("conflicts"), list):
            return self._from_structured(data["conflicts"])
        return self._from_prose(raw)

    def _from_structured(self, entries: list[Any]) -> list[ArchitecturalConflict]:
        conflicts = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            requirement1 = entry.get("requirement1")
            requirement2 = entry.get("requirement2")
            reason = entry.get("conflict_reason")
            tradeoff = entry.get("forced_tradeoff")
            if not all(isinstance(v, str) and v.strip() for v in (requirement1, requirement2, reason, tradeoff)):
                continue

            conflicts.append(ArchitecturalConflict(
                requirement1=requirement1.strip(),
                requirement2=requirement2.strip(),
                conflict_type=self.classify(reason),
                severity=_severity(entry.get("severity")),
                resolution=ResolutionStrategy(
                    approach=tradeoff,
                    tradeoffs=[tradeoff],
                    recommendation=entry.get("impact") if isinstance(entry.get("impact"), str) else "",
                ),
                real_world_examples=parse_examples(entry.get("examples")),
            ))
        return conflicts

    def _from_prose(self, raw: str) -> list[ArchitecturalConflict]:
        """Pair the first two quoted spans with the nearest conflict-reason line."""
        conflicts = []
        spans: list[str] = []
        reason = ""

        for line in raw.splitlines():
            trimmed = line.strip()
            quotes = quoted_spans(trimmed)
            if len(quotes) >= 2:
                spans = quotes[:2]
            if contains_any(trimmed, self.rules.conflict_reason_markers):
                reason = trimmed

            if spans and reason:
                conflicts.append(ArchitecturalConflict(
                    requirement1=spans[0],
                    requirement2=spans[1],
                    conflict_type=self.classify(reason),
                    resolution=ResolutionStrategy(
                        approach="Choose one approach over the other",
                        recommendation=reason,
                    ),
                ))
                spans, reason = [], ""
        return conflicts

    def classify(self, reason: str) -> ConflictType:
        lower = reason.lower()
        for keyword, conflict_type in self.rules.conflict_type_keywords:
            if keyword in lower:
                return ConflictType(conflict_type)
        return ConflictType.MUTUALLY_EXCLUSIVE

    # ── Dedup ────────────────────────────────────────────

    def deduplicate(self, items: list[ArchitecturalConflict]) -> list[ArchitecturalConflict]:
        seen: set[frozenset[str]] = set()
        unique = []
        for conflict in items:
            key = conflict.pair_key()
            if key in seen:
                continue
            seen.add(key)
            unique.append(conflict)
        return unique


def parse_examples(value: Any) -> list[RealWorldExample]:
    """Parse "<Company> chose <solution>" strings."""
    if not isinstance(value, list):
        return []
    examples = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            continue
        company, _, solution = item.partition(" chose ")
        examples.append(RealWorldExample(
            company=company.strip(),
            solution=solution.strip() or company.strip(),
        ))
    return examples


def _severity(value: Any) -> Severity:
    try:
        return Severity(str(value).lower())
    except ValueError:
        return Severity.HIGH
