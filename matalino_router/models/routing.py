from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .generation import GenerationResult, RequestType


class ComplexityTier(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class ImageStyle(str, Enum):
    PHOTOREALISTIC = "photorealistic"
    ARTISTIC = "artistic"
    ABSTRACT = "abstract"
    ILLUSTRATION = "illustration"
    SKETCH = "sketch"
    ANIME = "anime"
    LOGO = "logo"
    TECHNICAL = "technical"


class Availability(str, Enum):
    """Health of a backend as reported by an external health signal."""
    AVAILABLE = "available"
    DEGRADED = "degraded"
    DOWN = "down"


class PromptAnalysis(BaseModel):
    """
    Structured signal derived from a raw prompt.

    Recomputed for every request and embedded in the routing decision for
    audit. ``style`` is only set for image prompts; ``task_type`` only for
    text prompts.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    request_type: RequestType
    complexity_tier: ComplexityTier
    style: Optional[ImageStyle] = None
    task_type: Optional[str] = None
    needs_speed: bool
    requires_detail: bool
    is_simple: bool
    word_count: int
    complexity_score: int
    recommended_model: str
    reasoning: str


class PromptValidation(BaseModel):
    """Outcome of pre-dispatch prompt validation."""

    valid: bool
    issues: List[str] = Field(default_factory=list)


class RoutingDecision(BaseModel):
    """
    The recorded choice of model for one request.

    Immutable after creation. When the dispatcher falls back, the caller
    receives a copy whose ``selected_model`` and ``estimated_cost_cents``
    reflect the model actually used and whose ``original_model`` names the
    first choice.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    request_type: RequestType
    selected_model: str
    analysis: PromptAnalysis
    was_auto_routed: bool
    override_reason: Optional[str] = None
    estimated_cost_cents: int = Field(..., ge=0)
    estimated_savings_cents: Optional[int] = Field(None, ge=0)
    reasoning: str
    fallback_used: bool = False
    downgraded: bool = False
    original_model: Optional[str] = None


class Rejection(BaseModel):
    """Typed rejection returned to the caller instead of a raw exception."""

    model_config = ConfigDict(frozen=True)

    code: str
    reason: str
    details: Dict[str, Any] = Field(default_factory=dict)


class RouteResult(BaseModel):
    """Response of the orchestrator: either a result with its decision, or a rejection."""

    result: Optional[GenerationResult] = None
    decision: Optional[RoutingDecision] = None
    rejection: Optional[Rejection] = None
    budget_warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None and self.result is not None
