from enum import Enum


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class AnalysisStage(str, Enum):
    RECEIVED = "received"
    ANALYZING_INITIAL = "analyzing_initial"
    CRITICALLY_LOW = "critically_low"
    FILTERING_BY_CONFIDENCE = "filtering_by_confidence"
    DETECTING_ARCHITECTURAL_ISSUES = "detecting_architectural_issues"
    PRESENTING_CLARIFICATIONS = "presenting_clarifications"
    COLLECTING_CLARIFICATIONS = "collecting_clarifications"
    REANALYZING = "reanalyzing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"


class ConflictType(str, Enum):
    PERFORMANCE_VS_FEATURE = "performance_vs_feature"
    SECURITY_VS_USABILITY = "security_vs_usability"
    SCALE_VS_SIMPLICITY = "scale_vs_simplicity"
    REALTIME_VS_OFFLINE = "realtime_vs_offline"
    PRIVACY_VS_FUNCTIONALITY = "privacy_vs_functionality"
    MUTUALLY_EXCLUSIVE = "mutually_exclusive"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


class ChallengeCategory(str, Enum):
    PERFORMANCE = "performance"
    SECURITY = "security"
    SCALABILITY = "scalability"
    INTEGRATION = "integration"
    COMPLIANCE = "compliance"
    COMPLEXITY = "complexity"
    MAINTENANCE = "maintenance"
    COMPATIBILITY = "compatibility"
    RELIABILITY = "reliability"
    USABILITY = "usability"


class ImpactSeverity(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def score(self) -> int:
        return list(ImpactSeverity).index(self) + 1


class DetectionPoint(str, Enum):
    PLANNING = "planning"
    DESIGN = "design"
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    DEPLOYMENT = "deployment"
    PRODUCTION = "production"
    SCALE = "scale"
