"""
Matalino Router - generation routing core for text and image requests.

This package decides which backend model serves each request, enforces a
tenant's daily spend and request limits, dispatches through a uniform
provider interface with a single fallback, and records every outcome for
cost accounting.

Backends:
- OpenAI (GPT-5, DALL-E 3)
- Anthropic (Claude Sonnet 4.5)
- Google (Gemini 2.5 Flash/Pro, Gemini Nano Banana)
- Stability AI (SDXL)
- Midjourney
"""

__version__ = "0.1.0"

from .api.client import MatalinoRouterClient
from .orchestrator import RoutingOrchestrator
from .core.routing.policy import RoutingPolicy
from .core.registry import ModelProfile, ModelRegistry
from .core.analysis import analyze_prompt, enhance_prompt, validate_prompt
from .dispatch import ProviderDispatcher
from .ledger import BudgetGate, InMemoryUsageStore, SQLiteUsageStore, StaticPlanLoader, UsageLedger
from .errors import (
    BudgetExceeded,
    GenerationFailed,
    InvalidPrompt,
    ModelNotFound,
    ProviderUnavailable,
    RoutingError,
)
from .models.conversation_types import ConversationMessage
from .models.conversation_types import TurnRole as ConversationRole
from .models.generation import (
    GenerationRequest,
    GenerationResult,
    RequestType,
    StylePreference,
    UserPreference,
)
from .models.routing import RouteResult, RoutingDecision

__all__ = [
    # Main client
    "MatalinoRouterClient",

    # Components
    "RoutingOrchestrator",
    "RoutingPolicy",
    "ModelRegistry",
    "ModelProfile",
    "ProviderDispatcher",
    "UsageLedger",
    "BudgetGate",
    "InMemoryUsageStore",
    "SQLiteUsageStore",
    "StaticPlanLoader",
    "analyze_prompt",
    "enhance_prompt",
    "validate_prompt",

    # Errors
    "RoutingError",
    "InvalidPrompt",
    "ModelNotFound",
    "BudgetExceeded",
    "GenerationFailed",
    "ProviderUnavailable",

    # Models
    "GenerationRequest",
    "GenerationResult",
    "RequestType",
    "StylePreference",
    "UserPreference",
    "RouteResult",
    "RoutingDecision",
    "ConversationMessage",
    "ConversationRole",
]
