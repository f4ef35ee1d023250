"""
User interaction — how the pipeline asks questions and reports progress.

UserInteractionHandler is the abstract surface; the console handler talks
to a terminal and the scripted handler replays pre-seeded answers (used
by automation and by the test-suite).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

_YES = {"y", "yes"}
_NO = {"n", "no"}


class UserInteractionHandler(ABC):
    """Questions, confirmations and status messages."""

    def __init__(self, telemetry: bool = False):
        self._telemetry = telemetry

    @property
    def supports_telemetry(self) -> bool:
        return self._telemetry

    @abstractmethod
    async def ask_question(self, prompt: str) -> str:
        ...

    @abstractmethod
    async def ask_yes_no(self, prompt: str) -> bool:
        ...

    @abstractmethod
    def show_info(self, message: str) -> None:
        ...

    @abstractmethod
    def show_warning(self, message: str) -> None:
        ...

    @abstractmethod
    def show_progress(self, message: str) -> None:
        ...

    def show_telemetry(self, event: dict[str, Any]) -> None:
        """Stage / transition events; ignored unless telemetry was enabled."""

    def emit_telemetry(self, event: dict[str, Any]) -> None:
        if self.supports_telemetry:
            self.show_telemetry(event)


class ConsoleInteractionHandler(UserInteractionHandler):
    """stdin / stdout handler; blocking reads run in a worker thread."""

    async def ask_question(self, prompt: str) -> str:
        print(f"\n❓ {prompt}")
        answer = await asyncio.to_thread(input, "> ")
        return answer.strip()

    async def ask_yes_no(self, prompt: str) -> bool:
        while True:
            answer = await asyncio.to_thread(input, f"{prompt} (y/n): ")
            normalized = answer.strip().lower()
            if normalized in _YES:
                return True
            if normalized in _NO:
                return False
            print("Please answer 'y' or 'n'.")

    def show_info(self, message: str) -> None:
        print(message)

    def show_warning(self, message: str) -> None:
        print(f"⚠️  {message}")

    def show_progress(self, message: str) -> None:
        print(f"⏳ {message}")

    def show_telemetry(self, event: dict[str, Any]) -> None:
        logger.info(f"[TELEMETRY] {event}")


class ScriptedInteractionHandler(UserInteractionHandler):
    """
    Replays pre-seeded answers and records everything shown.
    An exhausted answer queue yields "" (the user skipped); an exhausted
    confirmation queue yields *default_confirmation*.
    """

    def __init__(
        self,
        answers: Optional[Iterable[str]] = None,
        confirmations: Optional[Iterable[bool]] = None,
        default_confirmation: bool = False,
        telemetry: bool = False,
    ):
        super().__init__(telemetry=telemetry)
        self._answers = deque(answers or [])
        self._confirmations = deque(confirmations or [])
        self.default_confirmation = default_confirmation
        self.questions: list[str] = []
        self.confirmation_prompts: list[str] = []
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.progress: list[str] = []
        self.telemetry_events: list[dict[str, Any]] = []

    async def ask_question(self, prompt: str) -> str:
        self.questions.append(prompt)
        return self._answers.popleft() if self._answers else ""

    async def ask_yes_no(self, prompt: str) -> bool:
        self.confirmation_prompts.append(prompt)
        if self._confirmations:
            return self._confirmations.popleft()
        return self.default_confirmation

    def show_info(self, message: str) -> None:
        self.infos.append(message)

    def show_warning(self, message: str) -> None:
        self.warnings.append(message)

    def show_progress(self, message: str) -> None:
        self.progress.append(message)

    def show_telemetry(self, event: dict[str, Any]) -> None:
        self.telemetry_events.append(event)
