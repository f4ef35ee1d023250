"""
Application configuration using Pydantic Settings.
All thresholds, limits and rule catalogs are centralized here.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field

from requirements_clarifier.rules.rules_config import (
    ClarificationRulesConfig,
    ContextRulesConfig,
    DetectionRulesConfig,
    RelevanceRulesConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Requirements Clarifier"

    # ── LLM ──────────────────────────────────────────────
    llm_provider: str = "groq"
    groq_api_key: str = ""
    llm_model: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 4096
    llm_empty_response_retries: int = 1
    analysis_temperature: float = 0.4
    detection_temperature: float = 0.3
    strict_detection_temperature: float = 0.1

    # ── Confidence thresholds ────────────────────────────
    confidence_non_viable: int = 40
    confidence_needs_refinement: int = 60
    confidence_needs_clarification: int = 70
    confidence_high: int = 85
    confidence_clarification_bonus: int = 15
    confidence_default: int = 50
    max_clarifications_medium_confidence: int = 3
    weak_language_indicators: list[str] = [
        "might", "possibly", "could be", "maybe", "perhaps", "probably",
    ]

    # ── Detection ────────────────────────────────────────
    conflict_batch_size: int = 3
    conflict_statement_max_chars: int = 150
    challenge_batch_size: int = 2
    challenge_statement_max_chars: int = 200
    detection_max_concurrency: int = 4

    # ── Relevance ────────────────────────────────────────
    conflict_term_overlap: float = 0.75
    challenge_term_overlap: float = 0.5
    min_relevance_score: float = 0.5
    key_term_min_length: int = 4

    # ── Clarifications ───────────────────────────────────
    clarification_edit_similarity: float = 0.7
    clarification_word_overlap: float = 0.6
    essential_questions: list[str] = [
        "What is the main purpose/goal of this product?",
        "Who are the target users?",
        "What are the core features (top 3-5)?",
        "What technology stack should be used?",
        "What is the expected timeline/scope?",
    ]
    essential_fallback_answer: str = "Not specified"

    # ── Context budgeting ────────────────────────────────
    context_chars_per_token: int = 4
    context_token_limits: dict[str, int] = {
        "apple": 3500,
        "default": 8000,
    }

    # ── Rule catalogs ────────────────────────────────────
    detection_rules: DetectionRulesConfig = Field(default_factory=DetectionRulesConfig)
    relevance_rules: RelevanceRulesConfig = Field(default_factory=RelevanceRulesConfig)
    clarification_rules: ClarificationRulesConfig = Field(
        default_factory=ClarificationRulesConfig
    )
    context_rules: ContextRulesConfig = Field(default_factory=ContextRulesConfig)

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = (
        "\n%(asctime)s │ %(levelname)-8s │ %(name)s │ %(funcName)s:%(lineno)d\n"
        "  %(message)s"
    )
    log_date_format: str = "%H:%M:%S"
    log_file: str = ""  # empty → stdout only
    library_log_levels: dict[str, str] = {
        "httpx": "WARNING",
        "httpcore": "WARNING",
        "groq": "WARNING",
        "langchain": "INFO",
        "langchain_core": "INFO",
        "langchain_groq": "INFO",
        "langgraph": "INFO",
    }

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
