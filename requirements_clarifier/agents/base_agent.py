"""
Base agent class that every analyzer inherits.

Design:
  - Each agent owns one concern (analysis, conflicts, challenges).
  - `_complete()` is the single path to the completion service: it builds
    the system + user exchange and logs prompt size and timing.
  - Completion-service failures propagate; parsing is the subclass's job.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.models.enums import MessageRole
from requirements_clarifier.models.schemas import ChatMessage
from requirements_clarifier.services.llm_service import (
    CompletionService,
    get_completion_service,
)

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


def load_prompt(name: str) -> str:
    """Read an instructional template from the prompts directory."""
    return (_PROMPTS_DIR / name).read_text(encoding="utf-8")


class BaseAgent:
    """Shared plumbing for agents that talk to the completion service."""

    name: str = "agent"  # log prefix, set in each subclass

    def __init__(
        self,
        completion: Optional[CompletionService] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self._completion = completion

    @property
    def completion(self) -> CompletionService:
        if self._completion is None:
            self._completion = get_completion_service()
        return self._completion

    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
    ) -> str:
        messages = [
            ChatMessage(role=MessageRole.SYSTEM, content=system_prompt),
            ChatMessage(role=MessageRole.USER, content=user_prompt),
        ]
        logger.debug(
            f"[{self.name}] Calling completion service "
            f"({len(system_prompt) + len(user_prompt)} char prompt, "
            f"temperature={temperature})"
        )

        t0 = time.perf_counter()
        response = await self.completion.complete(messages, temperature=temperature)
        elapsed = time.perf_counter() - t0

        logger.debug(
            f"[{self.name}] Response ({len(response)} chars) in {elapsed:.2f}s:\n"
            f"{response[:2000]}"
        )
        return response
