import math
import threading
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...config.constants import HISTORY_MESSAGE_LIMIT, TOKENS_PER_WORD
from ...config.models import (
    BASELINE_MODELS,
    DEFAULT_IMAGE_QUALITY,
    DEFAULT_IMAGE_SIZE,
    FALLBACK_CHAINS,
    MODEL_CONFIGS as RAW_MODEL_CONFIGS,
    SUBSTITUTION_ORDER,
)
from ...errors import ModelNotFound
from ...models.generation import GenerationRequest, RequestType
from ...models.routing import Availability
from .overrides import apply_availability_overrides, apply_pricing_overrides


class ModelProfile(BaseModel):
    """Registry entry: capability profile and pricing of one backend model."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str
    display_name: str
    provider: str
    request_type: RequestType
    backend_model: str
    description: str = ""
    capabilities: FrozenSet[str] = Field(default_factory=frozenset)
    availability: Availability = Availability.AVAILABLE
    pricing: Dict[str, float]

    @property
    def is_down(self) -> bool:
        return self.availability == Availability.DOWN

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities

    def cost_cents(self, size_hint=None, quality_hint: Optional[str] = None, count: int = 1) -> int:
        """Price one request in integer cents.

        For text models ``size_hint`` is the estimated token count; for image
        models it is the requested size (``"1024x1792"``) and the price is per
        image.
        """
        if self.request_type == RequestType.TEXT:
            tokens = int(size_hint or 0)
            raw = (tokens / 1000) * self.pricing["cents_per_1k_tokens"]
            return max(1, math.ceil(round(raw, 6)))

        size = str(size_hint or DEFAULT_IMAGE_SIZE)
        quality = quality_hint or DEFAULT_IMAGE_QUALITY
        if "1792" in size and "large" in self.pricing:
            per_image = self.pricing["large"]
        elif quality == "hd" and "hd" in self.pricing:
            per_image = self.pricing["hd"]
        else:
            per_image = self.pricing["standard"]
        return math.ceil(round(per_image, 6)) * count


def estimate_text_tokens(request: GenerationRequest) -> int:
    """Rough token estimate for a text request: prompt, recent history and output bound."""
    words = len(request.prompt.split())
    for message in request.history[-HISTORY_MESSAGE_LIMIT:]:
        words += len(message.content.split())
    return int(words * TOKENS_PER_WORD) + request.max_tokens


class ModelRegistry:
    """
    Static, versionable catalogue of backend models per request type.

    Built once at process start and passed explicitly to the policy and the
    dispatcher. Requests only read from it; ``set_availability`` exists for an
    external health signal.
    """

    def __init__(
        self,
        profiles: Iterable[ModelProfile],
        baseline_models: Optional[Mapping[str, str]] = None,
        fallback_chains: Optional[Mapping[str, List[str]]] = None,
        substitution_order: Optional[Mapping[str, List[str]]] = None,
        version: str = "1",
    ):
        self._profiles: Dict[str, ModelProfile] = {p.id: p for p in profiles}
        self._baseline_models = dict(baseline_models if baseline_models is not None else BASELINE_MODELS)
        self._fallback_chains = {k: list(v) for k, v in (fallback_chains if fallback_chains is not None else FALLBACK_CHAINS).items()}
        self._substitution_order = {k: list(v) for k, v in (substitution_order if substitution_order is not None else SUBSTITUTION_ORDER).items()}
        self._lock = threading.Lock()
        self.version = version

    @classmethod
    def from_config(
        cls,
        raw_configs: Optional[Mapping[str, Dict]] = None,
        apply_overrides: bool = True,
        **kwargs,
    ) -> "ModelRegistry":
        """Build a registry from raw model configuration dictionaries."""
        configs = {k: dict(v) for k, v in (raw_configs if raw_configs is not None else RAW_MODEL_CONFIGS).items()}
        if apply_overrides:
            apply_pricing_overrides(configs)
            apply_availability_overrides(configs)
        profiles = [ModelProfile(id=model_id, **cfg) for model_id, cfg in configs.items()]
        return cls(profiles, **kwargs)

    def is_registered(self, model_id: str, request_type: Optional[str] = None) -> bool:
        profile = self._profiles.get(model_id)
        if profile is None:
            return False
        return request_type is None or profile.request_type == request_type

    def get(self, model_id: str, request_type: Optional[str] = None) -> ModelProfile:
        """Look up a model; never invents an unknown id."""
        profile = self._profiles.get(model_id)
        if profile is None or (request_type is not None and profile.request_type != request_type):
            raise ModelNotFound(model_id, request_type)
        return profile

    def list_models(self, request_type: str) -> List[ModelProfile]:
        return [p for p in self._profiles.values() if p.request_type == request_type]

    def cost_for_request(self, model_id: str, request: GenerationRequest) -> int:
        """Price ``request`` on ``model_id`` using the request's size/quality hints."""
        profile = self.get(model_id, request.request_type)
        if profile.request_type == RequestType.TEXT:
            return profile.cost_cents(estimate_text_tokens(request))
        return profile.cost_cents(request.size_hint, request.quality_hint, request.count)

    def cheapest(self, request: GenerationRequest, candidates: Iterable[str],
                 include_down: bool = False) -> Optional[str]:
        """Return the cheapest candidate for ``request``; ties keep candidate order."""
        best_id = None
        best_cost = None
        for model_id in candidates:
            if not self.is_registered(model_id, request.request_type):
                continue
            if not include_down and self._profiles[model_id].is_down:
                continue
            cost = self.cost_for_request(model_id, request)
            if best_cost is None or cost < best_cost:
                best_id, best_cost = model_id, cost
        return best_id

    def with_capability(self, request_type: str, capability: str) -> List[str]:
        return [p.id for p in self.list_models(request_type) if p.has_capability(capability)]

    def baseline_model(self, request_type: str) -> str:
        model_id = self._baseline_models.get(request_type)
        if model_id is None:
            raise ModelNotFound(f"<baseline:{request_type}>", request_type)
        return self.get(model_id, request_type).id

    def fallback_chain(self, request_type: str) -> List[str]:
        return [m for m in self._fallback_chains.get(request_type, []) if self.is_registered(m, request_type)]

    def substitutes(self, model_id: str) -> List[str]:
        profile = self.get(model_id)
        return [m for m in self._substitution_order.get(model_id, [])
                if self.is_registered(m, profile.request_type)]

    def set_availability(self, model_id: str, availability: Availability) -> None:
        """Record an external health signal for ``model_id``."""
        with self._lock:
            profile = self.get(model_id)
            self._profiles[model_id] = profile.model_copy(update={"availability": Availability(availability)})
