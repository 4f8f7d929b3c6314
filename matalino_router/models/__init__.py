"""Data models for the routing core."""

from .conversation_types import ConversationMessage, TurnRole
from .generation import (
    AUTO_MODEL,
    GeneratedImage,
    GenerationRequest,
    GenerationResult,
    ProviderResponse,
    RequestType,
    StylePreference,
    UserPreference,
)
from .routing import (
    Availability,
    ComplexityTier,
    ImageStyle,
    PromptAnalysis,
    PromptValidation,
    Rejection,
    RouteResult,
    RoutingDecision,
)
from .usage import (
    BudgetState,
    BudgetStatus,
    DailyUsage,
    GateResult,
    ModelUsage,
    RoutingInsights,
    TenantPlan,
    UsagePeriod,
    UsageRecord,
    UsageStats,
)

__all__ = [
    "AUTO_MODEL",
    "Availability",
    "BudgetState",
    "BudgetStatus",
    "ComplexityTier",
    "ConversationMessage",
    "DailyUsage",
    "GateResult",
    "GeneratedImage",
    "GenerationRequest",
    "GenerationResult",
    "ImageStyle",
    "ModelUsage",
    "PromptAnalysis",
    "PromptValidation",
    "ProviderResponse",
    "Rejection",
    "RequestType",
    "RouteResult",
    "RoutingDecision",
    "RoutingInsights",
    "StylePreference",
    "TenantPlan",
    "TurnRole",
    "UsagePeriod",
    "UsageRecord",
    "UsageStats",
    "UserPreference",
]
