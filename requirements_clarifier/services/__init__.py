"""Services — completion client, interaction surfaces and text assembly."""

from .llm_service import (
    CompletionService,
    CompletionServiceError,
    GroqCompletionService,
    get_completion_service,
)
from .interaction import (
    ConsoleInteractionHandler,
    ScriptedInteractionHandler,
    UserInteractionHandler,
)

__all__ = [
    "CompletionService",
    "CompletionServiceError",
    "GroqCompletionService",
    "get_completion_service",
    "ConsoleInteractionHandler",
    "ScriptedInteractionHandler",
    "UserInteractionHandler",
]
