"""
Error mapping utilities for provider adapters.

This module provides consistent error mapping across all providers,
converting SDK and HTTP errors to standardized ProviderError instances.
"""

from typing import Any, Dict

import httpx

from .base import ProviderError
from ..reliability.error_classifier import ErrorCategory, ErrorClassifier


PROVIDER_DISPLAY_NAMES = {
    "openai": "OpenAI",
    "anthropic": "Anthropic",
    "google": "Google AI",
    "stability": "Stability AI",
    "midjourney": "Midjourney",
}


class ErrorMapper:
    """Maps provider-specific errors to standardized ProviderError."""

    @staticmethod
    def map_error(error: Exception, provider: str) -> ProviderError:
        """
        Map a backend error to ProviderError.

        Args:
            error: The SDK, HTTP or timeout exception
            provider: Provider name

        Returns:
            ProviderError with classification metadata
        """
        if isinstance(error, ProviderError):
            return error

        classification = ErrorClassifier.classify_error(error, provider)

        status_code = getattr(error, 'status_code', None)
        if status_code is None and isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code

        display_name = PROVIDER_DISPLAY_NAMES.get(provider, provider)
        detail = classification.user_message or str(error) or type(error).__name__
        provider_error = ProviderError(
            message=f"{display_name} API error: {detail}",
            provider=provider,
            status_code=status_code,
            retry_after=classification.suggested_delay
        )
        provider_error.is_retryable = classification.is_retryable
        provider_error.original_error = error
        provider_error.error_category = classification.category

        return provider_error

    @staticmethod
    def missing_credentials(provider: str, env_var: str) -> ProviderError:
        """ProviderError for a backend whose API key is not configured."""
        display_name = PROVIDER_DISPLAY_NAMES.get(provider, provider)
        provider_error = ProviderError(
            message=f"{display_name} API key not configured (set {env_var})",
            provider=provider,
            status_code=401,
        )
        provider_error.error_category = ErrorCategory.AUTHENTICATION
        return provider_error

    @staticmethod
    def get_error_classification(error: ProviderError) -> Dict[str, Any]:
        """
        Get detailed error classification for logging.

        Args:
            error: The ProviderError to classify

        Returns:
            Dict with error classification details
        """
        return {
            'provider': error.provider,
            'status_code': error.status_code,
            'is_retryable': error.is_retryable,
            'retry_after': error.retry_after,
            'charged': error.charged,
            'billed_units': error.billed_units,
            'error_type': type(error.original_error).__name__ if error.original_error else None,
            'category': error.error_category.value if error.error_category else ErrorCategory.UNKNOWN.value,
        }
