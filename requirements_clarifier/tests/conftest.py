"""
Shared fixtures: isolated settings and a routing fake completion service.
"""

import json
from typing import Any, Callable, Optional, Union

import pytest

from requirements_clarifier.config import Settings
from requirements_clarifier.services.llm_service import CompletionService

REQUIREMENTS = "Analyze Requirements Completeness"
STACK = "Analyze Technical Stack Completeness"
REANALYSIS = "Re-analyze Requirements"
CONFLICTS = "Detect Architectural Conflicts"
CHALLENGES = "Predict Technical Challenges"
STRICT = "<strictMode>"

NO_CONFLICTS = "No architectural conflicts detected."
NO_CHALLENGES = "No significant technical challenges identified."

Response = Union[str, Exception, Callable[[str], str]]


def fenced(data: Any) -> str:
    return "Here is the analysis:\n```json\n" + json.dumps(data) + "\n```"


def analysis_response(
    confidence: int,
    clarifications: Optional[list] = None,
    assumptions: Optional[list] = None,
    gaps: Optional[list] = None,
) -> str:
    return fenced({
        "confidence": confidence,
        "clarifications_needed": clarifications or [],
        "assumptions": assumptions or [],
        "gaps": gaps or [],
    })


class FakeCompletionService(CompletionService):
    """Answers by the first route whose marker appears in the user prompt."""

    def __init__(self, routes: Optional[dict[str, Response]] = None, default: str = ""):
        self.routes = dict(routes or {})
        self.default = default
        self.calls: list[tuple[str, Optional[float]]] = []

    async def complete(self, messages, temperature=None):
        prompt = messages[-1].content
        self.calls.append((prompt, temperature))
        for marker, response in self.routes.items():
            if marker in prompt:
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response(prompt)
                return response
        return self.default

    def prompts_for(self, marker: str) -> list[str]:
        return [prompt for prompt, _ in self.calls if marker in prompt]

    def temperatures_for(self, marker: str) -> list[Optional[float]]:
        return [temp for prompt, temp in self.calls if marker in prompt]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, groq_api_key="")
