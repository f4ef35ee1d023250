"""
Batched detection — shared fan-out / fan-in for the conflict detector
and the challenge predictor.

The input is split into requirement statements, partitioned into small
batches and one completion request is sent per batch. Requests run
concurrently under a semaphore; a failed batch is logged and contributes
nothing. Results are reduced in submission order, then deduplicated by
the subclass.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from requirements_clarifier.agents.base_agent import BaseAgent, load_prompt
from requirements_clarifier.utils.text import chunk, split_requirement_statements

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BatchedDetectionAgent(BaseAgent, ABC, Generic[T]):
    """Template for detectors that scan requirement statements in batches."""

    prompt_name: str  # set in each subclass

    @property
    @abstractmethod
    def batch_size(self) -> int:
        ...

    @property
    @abstractmethod
    def statement_max_chars(self) -> int:
        ...

    @abstractmethod
    def parse_items(self, raw: str) -> list[T]:
        """Turn one completion response into detected items."""

    @abstractmethod
    def deduplicate(self, items: list[T]) -> list[T]:
        ...

    async def extra_batches(self, statements: list[str], strict: bool) -> list[T]:
        """Hook for additional cross-batch passes; none by default."""
        return []

    # ── Public entry point ───────────────────────────────

    async def detect(self, text: str, strict: bool = False) -> list[T]:
        if not text.strip():
            return []
        statements = split_requirement_statements(text)

        if len(statements) < 2:
            logger.info(f"[{self.name}] {len(statements)} statement(s) — analyzing input as a whole")
            items = await self._run_batch_safely(text, strict, label="whole input")
            return self.deduplicate(items)

        batches = [
            "\n".join(s[: self.statement_max_chars] for s in batch)
            for batch in chunk(statements, self.batch_size)
        ]
        logger.info(
            f"[{self.name}] {len(statements)} statements → {len(batches)} batches "
            f"(size={self.batch_size}, strict={strict})"
        )

        semaphore = asyncio.Semaphore(max(1, self.settings.detection_max_concurrency))

        async def _bounded(index: int, batch_text: str) -> list[T]:
            async with semaphore:
                return await self._run_batch_safely(
                    batch_text, strict, label=f"batch {index + 1}/{len(batches)}"
                )

        results = await asyncio.gather(
            *(_bounded(i, batch_text) for i, batch_text in enumerate(batches))
        )
        items: list[T] = [item for batch_items in results for item in batch_items]
        items.extend(await self.extra_batches(statements, strict))

        unique = self.deduplicate(items)
        logger.info(f"[{self.name}] {len(items)} raw → {len(unique)} unique items")
        return unique

    # ── Batch execution ──────────────────────────────────

    async def _run_batch_safely(self, batch_text: str, strict: bool, label: str) -> list[T]:
        try:
            return await self._run_batch(batch_text, strict)
        except Exception as exc:
            logger.error(f"[{self.name}] {label} failed: {exc} — contributing no items")
            return []

    async def _run_batch(self, batch_text: str, strict: bool) -> list[T]:
        prompt = load_prompt(self.prompt_name).format(requirements=batch_text)
        temperature = self.settings.detection_temperature
        if strict:
            prompt += load_prompt("strict_detection_addendum.txt")
            temperature = self.settings.strict_detection_temperature

        raw = await self._complete(
            load_prompt("detection_system_prompt.txt"),
            prompt,
            temperature=temperature,
        )
        return self.parse_items(raw)


# ── Prose helpers ────────────────────────────────────────

_SMART_QUOTES = str.maketrans({"“": '"', "”": '"'})


def quoted_spans(line: str) -> list[str]:
    """Text between pairs of double quotes (ASCII or typographic) on one line."""
    parts = line.translate(_SMART_QUOTES).split('"')
    closed = (len(parts) - 1) // 2
    return [part.strip() for part in parts[1::2][:closed] if part.strip()]
