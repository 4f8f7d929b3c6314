"""
Error classification for backend failures.

This module classifies SDK and HTTP errors from every backend into standard
categories, so the dispatcher and the ledger can treat them uniformly.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

import httpx


class ErrorCategory(Enum):
    """Standard error categories across all providers."""
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    TIMEOUT = "timeout"
    CONTENT_FILTER = "content_filter"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


@dataclass
class ErrorClassification:
    """Detailed error classification."""
    category: ErrorCategory
    is_retryable: bool
    suggested_delay: Optional[float] = None
    user_message: Optional[str] = None


class ErrorClassifier:
    """
    Classifies backend errors by type name, status code and message.

    The category drives error mapping and logging. ``is_retryable`` and
    ``suggested_delay`` are informational only: the dispatcher makes exactly one
    fallback attempt whatever the classification says.
    """

    # The openai and anthropic SDKs share these exception names
    SDK_ERROR_MAPPINGS = {
        'AuthenticationError': {
            'category': ErrorCategory.AUTHENTICATION,
            'retryable': False,
            'message': 'Invalid API key or authentication failed'
        },
        'RateLimitError': {
            'category': ErrorCategory.RATE_LIMIT,
            'retryable': True,
            'message': 'Rate limit exceeded, please wait before retrying'
        },
        'BadRequestError': {
            'category': ErrorCategory.VALIDATION,
            'retryable': False,
            'message': 'Invalid request parameters'
        },
        'NotFoundError': {
            'category': ErrorCategory.NOT_FOUND,
            'retryable': False,
            'message': 'Resource not found'
        },
        'PermissionDeniedError': {
            'category': ErrorCategory.PERMISSION_DENIED,
            'retryable': False,
            'message': 'Permission denied for this operation'
        },
        'UnprocessableEntityError': {
            'category': ErrorCategory.VALIDATION,
            'retryable': False,
            'message': 'Request could not be processed'
        },
        'ConflictError': {
            'category': ErrorCategory.CONFLICT,
            'retryable': False,
            'message': 'Request conflicts with current state'
        },
        'InternalServerError': {
            'category': ErrorCategory.SERVER_ERROR,
            'retryable': True,
            'message': 'Internal server error, please retry'
        },
        'APIConnectionError': {
            'category': ErrorCategory.NETWORK,
            'retryable': True,
            'message': 'Network connection error'
        },
        'APITimeoutError': {
            'category': ErrorCategory.TIMEOUT,
            'retryable': True,
            'message': 'Request timed out'
        },
        'APIError': {
            'category': ErrorCategory.UNKNOWN,
            'retryable': True,
            'message': 'API error occurred'
        },
    }

    # Error patterns for string matching, checked in this order
    ERROR_PATTERNS = {
        'timeout': {
            'patterns': ['timeout', 'timed out'],
            'category': ErrorCategory.TIMEOUT,
            'retryable': True
        },
        'rate_limit': {
            'patterns': ['rate limit', 'too many requests', 'quota exceeded',
                         'too_many_requests', 'throttled', 'try again later'],
            'category': ErrorCategory.RATE_LIMIT,
            'retryable': True
        },
        'authentication': {
            'patterns': ['invalid api key', 'authentication failed', 'unauthorized',
                         'invalid_api_key', 'api key not configured'],
            'category': ErrorCategory.AUTHENTICATION,
            'retryable': False
        },
        'content_filter': {
            'patterns': ['content filter', 'content_filter', 'safety',
                         'content policy', 'content_policy_violation'],
            'category': ErrorCategory.CONTENT_FILTER,
            'retryable': False
        },
        'server_error': {
            'patterns': ['server error', 'internal error', 'service unavailable',
                         'overloaded'],
            'category': ErrorCategory.SERVER_ERROR,
            'retryable': True
        },
        'validation': {
            'patterns': ['invalid request', 'bad request', 'validation error',
                         'invalid_request'],
            'category': ErrorCategory.VALIDATION,
            'retryable': False
        },
        'network': {
            'patterns': ['connection error', 'network error', 'connection refused'],
            'category': ErrorCategory.NETWORK,
            'retryable': True
        },
    }

    RETRYABLE_STATUS_CODES: Set[int] = {429, 500, 502, 503, 504, 520, 521, 522, 523, 524}
    NON_RETRYABLE_STATUS_CODES: Set[int] = {400, 401, 402, 403, 404, 405, 409, 410, 422}

    @classmethod
    def classify_error(cls, error: Exception, provider: str) -> ErrorClassification:
        """
        Classify an error with detailed metadata.

        Args:
            error: The exception to classify
            provider: The provider name (openai, anthropic, google, stability, midjourney)

        Returns:
            ErrorClassification with category, retry info, and messaging
        """
        if provider in ("openai", "anthropic"):
            mapping = cls.SDK_ERROR_MAPPINGS.get(type(error).__name__)
            if mapping is not None:
                return ErrorClassification(
                    category=mapping['category'],
                    is_retryable=mapping['retryable'],
                    user_message=mapping['message'],
                    suggested_delay=cls._get_retry_delay(error)
                )

        if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
            return ErrorClassification(
                category=ErrorCategory.TIMEOUT,
                is_retryable=True,
                user_message='Request timed out',
                suggested_delay=5.0
            )
        if isinstance(error, (httpx.TransportError, ConnectionError)):
            return ErrorClassification(
                category=ErrorCategory.NETWORK,
                is_retryable=True,
                user_message='Network connection error'
            )

        return cls._classify_generic_error(error)

    @classmethod
    def _classify_generic_error(cls, error: Exception) -> ErrorClassification:
        """Generic error classification based on status code and patterns."""
        status_code = cls._status_code(error)
        if status_code:
            category = cls._categorize_by_status_code(status_code)
            if status_code in cls.RETRYABLE_STATUS_CODES:
                return ErrorClassification(
                    category=category,
                    is_retryable=True,
                    suggested_delay=cls._get_retry_delay(error)
                )
            elif status_code in cls.NON_RETRYABLE_STATUS_CODES:
                return ErrorClassification(category=category, is_retryable=False)

        error_str = str(error).lower()
        for pattern_info in cls.ERROR_PATTERNS.values():
            if any(pattern in error_str for pattern in pattern_info['patterns']):
                return ErrorClassification(
                    category=pattern_info['category'],
                    is_retryable=pattern_info['retryable'],
                    suggested_delay=cls._get_retry_delay(error)
                )

        return ErrorClassification(
            category=ErrorCategory.UNKNOWN,
            is_retryable=False,
            user_message="An unknown error occurred"
        )

    @staticmethod
    def _status_code(error: Exception) -> Optional[int]:
        status_code = getattr(error, 'status_code', None)
        if status_code is None and isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
        return status_code

    @classmethod
    def _categorize_by_status_code(cls, status_code: int) -> ErrorCategory:
        """Categorize error based on HTTP status code."""
        if status_code == 401:
            return ErrorCategory.AUTHENTICATION
        elif status_code == 403:
            return ErrorCategory.PERMISSION_DENIED
        elif status_code == 404:
            return ErrorCategory.NOT_FOUND
        elif status_code == 409:
            return ErrorCategory.CONFLICT
        elif status_code == 429:
            return ErrorCategory.RATE_LIMIT
        elif status_code >= 500:
            return ErrorCategory.SERVER_ERROR
        elif status_code >= 400:
            return ErrorCategory.VALIDATION
        else:
            return ErrorCategory.UNKNOWN

    @classmethod
    def _get_retry_delay(cls, error: Exception) -> Optional[float]:
        """Extract retry delay from error if available."""
        if getattr(error, 'retry_after', None) is not None:
            return float(error.retry_after)

        response = getattr(error, 'response', None)
        if response is not None and hasattr(response, 'headers'):
            retry_after = response.headers.get('Retry-After')
            if retry_after:
                try:
                    return float(retry_after)
                except ValueError:
                    pass

        error_type = type(error).__name__
        if 'RateLimit' in error_type:
            return 60.0
        elif 'Timeout' in error_type:
            return 5.0
        elif 'Server' in error_type:
            return 10.0

        return None
