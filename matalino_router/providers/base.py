"""
Base Provider Adapter Interface

This module defines the abstract base class for all backend adapters.
All provider implementations must inherit from this class so the dispatcher
can treat text and image backends uniformly.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from ..config.constants import HISTORY_MESSAGE_LIMIT
from ..config.models import DEFAULT_IMAGE_SIZE
from ..models.generation import GenerationRequest, ProviderResponse

if TYPE_CHECKING:
    from ..core.registry.registry import ModelProfile


class ProviderAdapter(ABC):
    """
    Abstract base class for backend adapters.

    The adapter is responsible for:
    - Translating a GenerationRequest to the backend's payload
    - Making the API call
    - Normalizing the response to ProviderResponse
    - Mapping backend errors to ProviderError

    Provider adapters should NOT contain:
    - Routing or budget logic
    - Fallback between backends (the dispatcher owns that)
    """

    # Request types this adapter can serve
    request_types: Tuple[str, ...] = ()

    @abstractmethod
    async def generate(self, model: "ModelProfile", request: GenerationRequest) -> ProviderResponse:
        """
        Generate text or images on ``model``.

        Args:
            model: Registry profile of the model to call
            request: The generation request

        Returns:
            ProviderResponse with normalized fields

        Raises:
            ProviderError: For any backend failure
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the provider is configured.

        This typically checks if API keys are present.
        """
        pass

    def supports(self, request_type: str) -> bool:
        return request_type in self.request_types

    def get_provider_name(self) -> str:
        """
        Get the name of this provider.

        By default, returns the class name without 'Provider' suffix.
        """
        class_name = self.__class__.__name__
        if class_name.endswith("Provider"):
            return class_name[:-8].lower()
        return class_name.lower()


class ProviderError(Exception):
    """
    Base exception for provider-related errors.

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable
        retry_after: Seconds to wait before retry if applicable
        is_retryable: Whether this error could succeed on retry
        error_category: ErrorCategory set by the error mapper
        charged: Whether the backend billed the failed call
        billed_units: Images billed before the failure, when fewer than requested
        original_error: The original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
        charged: bool = False,
        billed_units: Optional[int] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.charged = charged
        self.billed_units = billed_units
        self.is_retryable = False  # Default, should be set by error mapper
        self.error_category = None
        self.original_error = None


def image_dimensions(size: Optional[str]) -> Tuple[int, int]:
    """Parse a ``"1024x1792"`` size string into (width, height)."""
    width, _, height = (size or DEFAULT_IMAGE_SIZE).lower().partition("x")
    try:
        return int(width), int(height)
    except ValueError:
        return image_dimensions(DEFAULT_IMAGE_SIZE)


def build_chat_messages(request: GenerationRequest) -> List[Dict[str, str]]:
    """Recent history plus the new user prompt, in role/content form."""
    messages = [
        {"role": msg.role, "content": msg.content}
        for msg in request.history[-HISTORY_MESSAGE_LIMIT:]
    ]
    messages.append({"role": "user", "content": request.prompt})
    return messages
