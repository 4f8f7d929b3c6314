from .registry import ModelProfile, ModelRegistry, estimate_text_tokens
from .overrides import (
    apply_availability_overrides,
    apply_pricing_overrides,
    load_pricing_overrides,
    validate_pricing_override,
)

__all__ = [
    "ModelProfile",
    "ModelRegistry",
    "estimate_text_tokens",
    "apply_availability_overrides",
    "apply_pricing_overrides",
    "load_pricing_overrides",
    "validate_pricing_override",
]
