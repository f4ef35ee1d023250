"""
Context budgeting — build the smallest useful context for one document
section so a downstream generation call stays inside the provider's
context window.
"""

from __future__ import annotations

import logging
from typing import Optional

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.models.schemas import EnrichedRequirements, StackContext
from requirements_clarifier.utils.text import truncate_if_needed

logger = logging.getLogger(__name__)


class ContextBudgeter:
    """Per-section context extraction under a per-provider token budget."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.rules = self.settings.context_rules

    # ── Budget ───────────────────────────────────────────

    def token_limit(self, provider_name: str) -> int:
        limits = self.settings.context_token_limits
        provider = provider_name.lower()
        for name, limit in limits.items():
            if name != "default" and name.lower() in provider:
                return limit
        return limits.get("default", 8000)

    def max_chars(self, provider_name: str) -> int:
        return self.token_limit(provider_name) * self.settings.context_chars_per_token

    def estimate_token_count(self, text: str) -> int:
        return len(text) // self.settings.context_chars_per_token

    def is_within_limit(self, text: str, provider_name: str = "default") -> bool:
        return self.estimate_token_count(text) <= self.token_limit(provider_name)

    # ── Extraction ───────────────────────────────────────

    def extract_context_for_section(
        self,
        section_name: str,
        full_input: str,
        enriched: Optional[EnrichedRequirements] = None,
        stack: Optional[StackContext] = None,
        provider_name: str = "default",
    ) -> str:
        max_chars = self.max_chars(provider_name)
        parts = [f"### Core Request\n{truncate_if_needed(full_input, max_chars // 3)}"]

        if enriched is not None and enriched.clarifications:
            selected = self.select_relevant_clarifications(
                section_name, enriched.clarifications, max_chars // 4
            )
            if selected:
                parts.append(f"### Clarifications\n{selected}")

        if stack is not None and self.is_stack_relevant(section_name):
            parts.append(f"### Tech Stack\n{self.summarize_stack(stack, max_chars // 6)}")

        context = truncate_if_needed("\n\n".join(parts), max_chars)
        logger.debug(
            f"[CONTEXT] {section_name}: {len(context)} chars "
            f"(budget {max_chars}, provider={provider_name})"
        )
        return context

    def section_keywords(self, section_name: str) -> list[str]:
        for key, keywords in self.rules.section_keywords:
            if key in section_name:
                return keywords
        return self.rules.default_keywords

    def is_stack_relevant(self, section_name: str) -> bool:
        return any(name in section_name for name in self.rules.stack_relevant_sections)

    def select_relevant_clarifications(
        self,
        section_name: str,
        clarifications: dict[str, str],
        max_length: int,
    ) -> str:
        keywords = [k.lower() for k in self.section_keywords(section_name)]
        selected: list[str] = []
        total = 0

        for question, answer in clarifications.items():
            haystack = f"{question}\n{answer}".lower()
            if not any(keyword in haystack for keyword in keywords):
                continue
            entry = f"Q: {question}\nA: {answer}"
            if total + len(entry) > max_length:
                break
            selected.append(entry)
            total += len(entry)

        if not selected:
            fallback = list(clarifications.items())[: self.rules.fallback_clarification_count]
            selected = [f"Q: {q}\nA: {a}" for q, a in fallback]
            return truncate_if_needed("\n".join(selected), max_length)

        return "\n".join(selected)

    @staticmethod
    def summarize_stack(stack: StackContext, max_length: int) -> str:
        lines = [f"- Language: {stack.language}"]
        if stack.database:
            lines.append(f"- Database: {stack.database}")
        if stack.test_framework:
            lines.append(f"- Testing: {stack.test_framework}")
        if stack.deployment:
            lines.append(f"- Deployment: {stack.deployment}")
        return truncate_if_needed("\n".join(lines), max_length)
