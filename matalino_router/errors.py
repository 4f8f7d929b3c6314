"""Routing error taxonomy.

Every error carries a stable machine-readable ``code`` and a ``reason``
suitable for direct display to the end user.
"""

from typing import Any, Dict, List, Optional

from .models.routing import Rejection


class RoutingError(Exception):
    """Base exception for routing core errors."""

    code = "ROUTING_ERROR"

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(reason)

    def to_rejection(self) -> Rejection:
        """Convert the error into a typed rejection for the caller."""
        return Rejection(code=self.code, reason=self.reason, details=self.details)


class InvalidPrompt(RoutingError):
    """Raised when a prompt fails length or content validation."""

    code = "INVALID_PROMPT"

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        reason = f"Invalid prompt: {' '.join(self.issues)}"
        super().__init__(reason, {"issues": self.issues})


class ModelNotFound(RoutingError):
    """Raised for an unknown model id or one not registered for the request type."""

    code = "MODEL_NOT_FOUND"

    def __init__(self, model_id: str, request_type: Optional[str] = None):
        self.model_id = model_id
        self.request_type = request_type
        if request_type:
            reason = f"Model '{model_id}' is not registered for {request_type} requests"
        else:
            reason = f"Model '{model_id}' is not registered"
        super().__init__(reason, {"model_id": model_id, "request_type": request_type})


class BudgetExceeded(RoutingError):
    """Raised when a tenant plan limit would be exceeded."""

    code = "BUDGET_EXCEEDED"

    def __init__(
        self,
        reason: str,
        limit_type: str,  # "daily_spend", "daily_requests"
        current_tier: str,
        required_tier: str,
        limit: Optional[int] = None,
    ):
        self.limit_type = limit_type
        self.current_tier = current_tier
        self.required_tier = required_tier
        self.limit = limit
        super().__init__(reason, {
            "limit_type": limit_type,
            "limit": limit,
            "current_tier": current_tier,
            "required_tier": required_tier,
        })


class GenerationFailed(RoutingError):
    """Terminal generation failure wrapping the last backend error."""

    code = "GENERATION_FAILED"

    def __init__(
        self,
        reason: str,
        last_error: Optional[Exception] = None,
        cost_incurred_cents: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.last_error = last_error
        self.cost_incurred_cents = cost_incurred_cents
        super().__init__(reason, details)


class ProviderUnavailable(GenerationFailed):
    """Raised when the primary backend and its fallback both failed."""

    code = "PROVIDER_UNAVAILABLE"

    def __init__(
        self,
        reason: str,
        attempts: Optional[List[str]] = None,
        last_error: Optional[Exception] = None,
        cost_incurred_cents: int = 0,
    ):
        self.attempts = list(attempts or [])
        super().__init__(
            reason,
            last_error=last_error,
            cost_incurred_cents=cost_incurred_cents,
            details={"attempts": self.attempts},
        )
