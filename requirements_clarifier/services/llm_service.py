"""
LLM Service — the text-completion boundary of the pipeline.

Every analyzer talks to a CompletionService. Provides:
  - CompletionService          → abstract async completion contract
  - GroqCompletionService      → langchain-groq ChatGroq implementation
  - get_completion_service()   → configured singleton
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from requirements_clarifier.config import Settings, get_settings
from requirements_clarifier.models.enums import MessageRole
from requirements_clarifier.models.schemas import ChatMessage

logger = logging.getLogger(__name__)

_service_instance: Optional["CompletionService"] = None


class CompletionServiceError(RuntimeError):
    """Transport, authentication or quota failure of the completion service."""


class CompletionService(ABC):
    """Send an ordered message list, get back text."""

    @abstractmethod
    async def complete(
        self,
        messages: list[ChatMessage],
        temperature: Optional[float] = None,
    ) -> str:
        ...


def _to_langchain(message: ChatMessage) -> BaseMessage:
    if message.role == MessageRole.SYSTEM:
        return SystemMessage(content=message.content)
    if message.role == MessageRole.ASSISTANT:
        return AIMessage(content=message.content)
    return HumanMessage(content=message.content)


class GroqCompletionService(CompletionService):
    """CompletionService backed by Groq Cloud through langchain-groq."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._llm = None

    def _get_llm(self):
        if self._llm is not None:
            return self._llm

        if not self.settings.groq_api_key:
            raise CompletionServiceError(
                "GROQ_API_KEY is not set in environment / .env file"
            )

        from langchain_groq import ChatGroq

        self._llm = ChatGroq(
            api_key=self.settings.groq_api_key,
            model=self.settings.llm_model,
            temperature=self.settings.llm_temperature,
            max_tokens=self.settings.llm_max_tokens,
        )
        logger.info(f"Initialized Groq LLM: {self.settings.llm_model}")
        return self._llm

    async def complete(
        self,
        messages: list[ChatMessage],
        temperature: Optional[float] = None,
    ) -> str:
        prompt_chars = sum(len(m.content) for m in messages)
        logger.debug(
            f"[LLM-TEXT] {len(messages)} messages, {prompt_chars} chars, "
            f"temperature={temperature}"
        )

        llm = self._get_llm()
        if temperature is not None:
            llm = llm.bind(temperature=temperature)
        payload = [_to_langchain(m) for m in messages]

        attempts = self.settings.llm_empty_response_retries + 1
        content = ""
        for attempt in range(1, attempts + 1):
            t0 = time.perf_counter()
            try:
                response = await llm.ainvoke(payload)
            except Exception as exc:
                raise CompletionServiceError(f"Completion request failed: {exc}") from exc
            elapsed = time.perf_counter() - t0
            content = response.content if isinstance(response.content, str) else ""

            meta = getattr(response, "response_metadata", {}) or {}
            finish_reason = meta.get("finish_reason", "unknown")
            usage = meta.get("token_usage") or meta.get("usage", {})
            logger.info(
                f"[LLM-TEXT] Response received in {elapsed:.2f}s | "
                f"Response length: {len(content)} chars | "
                f"finish_reason={finish_reason} | "
                f"tokens={usage}"
            )
            logger.debug(f"[LLM-TEXT] Full response:\n{content}")

            if content.strip():
                return content

            logger.warning(
                f"[LLM-TEXT] Empty response on attempt {attempt}/{attempts} "
                f"(finish_reason={finish_reason}). "
                f"{'Retrying…' if attempt < attempts else 'No retries left.'}"
            )

        return content


def get_completion_service() -> CompletionService:
    """Return the configured completion service (singleton)."""
    global _service_instance
    if _service_instance is None:
        settings = get_settings()
        if settings.llm_provider != "groq":
            raise CompletionServiceError(
                f"Unsupported llm_provider: {settings.llm_provider!r}"
            )
        _service_instance = GroqCompletionService(settings)
    return _service_instance
