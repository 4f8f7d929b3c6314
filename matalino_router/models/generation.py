import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.constants import IMAGE_STYLES
from .conversation_types import ConversationMessage


AUTO_MODEL = "auto"


class RequestType(str, Enum):
    """Kinds of generation the core can route."""
    TEXT = "text"
    IMAGE = "image"


class StylePreference(str, Enum):
    """Tenant-level routing bias applied on top of the analyzer's pick."""
    SPEED = "speed"
    QUALITY = "quality"
    CREATIVE = "creative"
    BALANCED = "balanced"


class UserPreference(BaseModel):
    """Routing preferences owned by the tenant's settings. Read-only to the core."""

    model_config = ConfigDict(frozen=True, use_enum_values=True, protected_namespaces=())

    model_override: str = Field(default=AUTO_MODEL, description="Model id or 'auto'")
    style_preference: StylePreference = StylePreference.BALANCED

    @property
    def is_auto(self) -> bool:
        return self.model_override == AUTO_MODEL


class GenerationRequest(BaseModel):
    """
    A single text or image generation request.

    Immutable once created. ``size_hint``, ``quality_hint`` and ``style_hint``
    only apply to image requests; ``max_tokens`` and ``history`` only to text
    requests.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    tenant_id: str = Field(..., min_length=1)
    request_type: RequestType
    prompt: str
    negative_prompt: Optional[str] = None
    size_hint: Optional[str] = Field(None, description="Image size, e.g. '1024x1792'")
    quality_hint: Optional[str] = Field(None, description="Image quality: 'standard' or 'hd'")
    style_hint: Optional[str] = Field(None, description="Image style chosen by the caller; overrides keyword detection")
    user_preference: UserPreference = Field(default_factory=UserPreference)

    count: int = Field(default=1, ge=1, le=4, description="Images to generate")
    max_tokens: int = Field(default=1024, ge=1, le=32768, description="Text output bound")
    history: List[ConversationMessage] = Field(default_factory=list)
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    @field_validator("quality_hint")
    def validate_quality_hint(cls, v):
        if v is not None and v not in ("standard", "hd"):
            raise ValueError("quality_hint must be 'standard' or 'hd'")
        return v

    @field_validator("style_hint")
    def validate_style_hint(cls, v):
        if v is not None and v not in IMAGE_STYLES:
            raise ValueError(f"style_hint must be one of: {', '.join(IMAGE_STYLES)}")
        return v


class GeneratedImage(BaseModel):
    """One image returned by an image backend."""

    model_config = ConfigDict(frozen=True)

    url: str
    width: int
    height: int
    revised_prompt: Optional[str] = None


class ProviderResponse(BaseModel):
    """Backend response normalized by an adapter, before costing."""

    content: Optional[str] = None
    images: List[GeneratedImage] = Field(default_factory=list)
    usage: Dict[str, Any] = Field(default_factory=dict)
    provider: str
    finish_reason: Optional[str] = None


class GenerationResult(BaseModel):
    """Unified result returned by the dispatcher regardless of backend."""

    model_config = ConfigDict(frozen=True, use_enum_values=True, protected_namespaces=())

    request_type: RequestType
    content: Optional[str] = None
    images: List[GeneratedImage] = Field(default_factory=list)
    model_used: str
    provider: str
    cost_cents: int
    latency_ms: int
    fallback_used: bool = False
    usage: Dict[str, Any] = Field(default_factory=dict)
    finish_reason: Optional[str] = None
