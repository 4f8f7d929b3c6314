"""
Provider Adapters Layer

This layer contains all backend-specific implementations.
Each provider adapter translates between the routing core's normalized
request and the backend's specific API requirements.
"""

from typing import Dict, Optional

from .base import ProviderAdapter, ProviderError
from .openai.adapter import OpenAIProvider
from .anthropic.adapter import AnthropicProvider
from .google.adapter import GoogleProvider
from .stability.adapter import StabilityProvider
from .midjourney.adapter import MidjourneyProvider


def default_adapters(api_keys: Optional[Dict[str, str]] = None) -> Dict[str, ProviderAdapter]:
    """
    Build one adapter per provider name used in the model catalogue.

    Args:
        api_keys: Optional provider name -> API key; missing keys are read
            from the environment by each adapter
    """
    api_keys = api_keys or {}
    return {
        "openai": OpenAIProvider(api_key=api_keys.get("openai")),
        "anthropic": AnthropicProvider(api_key=api_keys.get("anthropic")),
        "google": GoogleProvider(api_key=api_keys.get("google")),
        "stability": StabilityProvider(api_key=api_keys.get("stability")),
        "midjourney": MidjourneyProvider(api_key=api_keys.get("midjourney")),
    }


__all__ = [
    "ProviderAdapter",
    "ProviderError",
    "OpenAIProvider",
    "AnthropicProvider",
    "GoogleProvider",
    "StabilityProvider",
    "MidjourneyProvider",
    "default_adapters",
]
