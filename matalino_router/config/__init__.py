"""Configuration module for the routing core."""

from .models import (
    MODEL_CONFIGS,
    BASELINE_MODELS,
    FALLBACK_CHAINS,
    SUBSTITUTION_ORDER,
    DEFAULT_IMAGE_SIZE,
    DEFAULT_IMAGE_QUALITY,
    DEFAULT_TEXT_MAX_TOKENS,
)

# Import all constants
from .constants import *

__all__ = [
    "MODEL_CONFIGS",
    "BASELINE_MODELS",
    "FALLBACK_CHAINS",
    "SUBSTITUTION_ORDER",
    "DEFAULT_IMAGE_SIZE",
    "DEFAULT_IMAGE_QUALITY",
    "DEFAULT_TEXT_MAX_TOKENS",
]
