"""
Rule catalogs — keyword lists and pattern sets used by the detectors,
the relevance validator, the clarification deduplicator and the context
budgeter.

Each catalog is a pydantic model with sensible defaults and is embedded
in Settings, so a single settings object carries every rule and every
list can be overridden from the environment (JSON) or in code.
"""

from __future__ import annotations

from pydantic import BaseModel


# ── Detection ────────────────────────────────────────────

class DetectionRulesConfig(BaseModel):
    """Keyword sets for the conflict detector and challenge predictor."""
    critical_keywords: list[str] = [
        "real-time",
        "offline",
        "encryption",
        "e2e",
        "scale",
        "concurrent",
        "blockchain",
        "distributed",
        "sync",
        "latency",
        "performance",
        "secure",
        "privacy",
    ]
    no_conflict_signals: list[str] = [
        "no architectural conflicts",
        "no conflicts detected",
        "no conflicts exist",
        "no conflicts identified",
        "no conflicts found",
    ]
    no_challenge_signals: list[str] = [
        "no technical challenges",
        "no significant technical challenges",
        "no challenges identified",
        "no challenges detected",
        "no challenges found",
    ]
    # Checked in order; first keyword contained in the reason wins.
    conflict_type_keywords: list[tuple[str, str]] = [
        ("performance", "performance_vs_feature"),
        ("security", "security_vs_usability"),
        ("scale", "scale_vs_simplicity"),
        ("offline", "realtime_vs_offline"),
        ("privacy", "privacy_vs_functionality"),
    ]
    challenge_category_keywords: list[tuple[str, str]] = [
        ("performance", "performance"),
        ("security", "security"),
        ("scal", "scalability"),
        ("integration", "integration"),
        ("compatibility", "compatibility"),
    ]
    conflict_reason_markers: list[str] = ["conflict", "contradict"]
    challenge_description_markers: list[str] = ["challenge:", "issue:", "problem:"]
    challenge_mitigation_markers: list[str] = ["mitigation:", "solution:", "approach:"]


# ── Relevance ────────────────────────────────────────────

class RelevanceRulesConfig(BaseModel):
    """Patterns that mark model output as boilerplate rather than grounded."""
    denylist_patterns: list[str] = [
        "think different",
        "crazy ones",
        "misfits",
        "rebels",
        "apple.com",
        "round pegs",
        "square holes",
    ]
    generic_conflict_patterns: list[str] = [
        "real-time collaboration",
        "offline-first",
        "end-to-end encryption",
        "microservices",
        "acid transactions",
        "eventually consistent",
        "multi-tenant",
        "custom schemas",
        "blockchain",
        "distributed",
        "synchronization",
        "consistency",
        "performance vs security",
        "scalability",
        "latency",
        "privacy",
    ]
    generic_challenge_patterns: list[str] = [
        "oauth setup",
        "payment processor",
        "csv export",
        "1m rows",
        "n+1 queries",
        "memory leaks",
        "30 seconds",
        "ios background",
        "rate limiting",
        "caching",
        "database optimization",
        "connection pooling",
        "authentication",
        "authorization",
        "data migration",
        "backwards compatibility",
    ]
    stopwords: list[str] = [
        "with", "from", "that", "this", "have", "will", "should", "could",
        "would", "when", "where", "what", "which", "while", "about", "after",
        "before", "between", "during", "through", "under", "over", "into",
    ]


# ── Clarification ────────────────────────────────────────

class ClarificationRulesConfig(BaseModel):
    """Word lists for the clarification deduplicator."""
    stopwords: list[str] = [
        "what", "which", "when", "where", "should", "could", "would",
        "will", "with", "have", "that", "this", "from", "been", "being",
        "about", "into", "through", "during", "before", "after", "above",
        "below", "between", "under", "again", "further", "then", "once",
        "here", "there", "both", "each", "more", "most", "other", "some",
        "such", "only", "same", "than", "very", "just", "used", "using",
        "specific", "need", "needs", "needed", "method",
        # question verbs carry no topic
        "pick", "choose", "select", "prefer", "preferred", "want", "like",
    ]
    abbreviations: dict[str, str] = {
        "db": "database",
        "dbs": "database",
        "databases": "database",
        "auth": "authentication",
        "authn": "authentication",
        "authz": "authorization",
        "perf": "performance",
        "infra": "infrastructure",
        "env": "environment",
        "config": "configuration",
        "repo": "repository",
        "k8s": "kubernetes",
        "ux": "experience",
    }


# ── Context budgeting ────────────────────────────────────

class ContextRulesConfig(BaseModel):
    """Section → keyword map and the sections that need stack facts."""
    # Checked in order; first key contained in the section name wins.
    section_keywords: list[tuple[str, list[str]]] = [
        ("Overview", ["purpose", "goal", "problem", "overview"]),
        ("User Stories", ["user", "persona", "role", "actor"]),
        ("Feature", ["feature", "functionality", "capability"]),
        ("Data Model", ["data", "model", "schema", "entity", "table"]),
        ("API", ["api", "endpoint", "request", "response", "rest"]),
        ("Test", ["test", "testing", "validation", "quality"]),
        ("Constraint", ["performance", "security", "constraint", "limit"]),
        ("Validation", ["success", "criteria", "acceptance", "validation"]),
    ]
    default_keywords: list[str] = ["feature", "requirement"]
    stack_relevant_sections: list[str] = [
        "API Specification",
        "Test Requirements",
        "Performance & Security Constraints",
        "Technical Stack Context",
        "Data Model",
    ]
    fallback_clarification_count: int = 2
