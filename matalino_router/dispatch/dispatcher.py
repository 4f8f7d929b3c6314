"""
Provider dispatcher.

Executes a routing decision against the backend adapter for the selected
model. Every call is bounded by a timeout; on failure the dispatcher retries
exactly once on the request type's fallback model.
"""

import asyncio
import os
import time
from typing import Dict, List, Optional

from ..config.constants import DEFAULT_DISPATCH_TIMEOUT_SECONDS, DISPATCH_TIMEOUT_ENV_VAR
from ..core.registry.registry import ModelProfile, ModelRegistry
from ..errors import ProviderUnavailable
from ..models.generation import GenerationRequest, GenerationResult, RequestType
from ..models.routing import RoutingDecision
from ..observability.logging import RoutingLogger
from ..providers.base import ProviderAdapter, ProviderError
from ..providers.errors import ErrorMapper

logger = RoutingLogger("dispatcher")


def dispatch_timeout_from_env() -> float:
    """Read the per-call timeout (seconds) from the environment."""
    try:
        return float(os.getenv(DISPATCH_TIMEOUT_ENV_VAR, DEFAULT_DISPATCH_TIMEOUT_SECONDS))
    except ValueError:
        return DEFAULT_DISPATCH_TIMEOUT_SECONDS


class ProviderDispatcher:
    """Dispatches generation calls to provider adapters with a single fallback."""

    def __init__(
        self,
        registry: ModelRegistry,
        adapters: Dict[str, ProviderAdapter],
        timeout: Optional[float] = None,
    ):
        """
        Args:
            registry: Model registry used to resolve profiles, costs and fallbacks
            adapters: Provider name -> adapter
            timeout: Per-call timeout in seconds (defaults to MATALINO_DISPATCH_TIMEOUT or 60)
        """
        self.registry = registry
        self.adapters = dict(adapters)
        self.timeout = timeout if timeout is not None else dispatch_timeout_from_env()

    async def execute(self, decision: RoutingDecision, request: GenerationRequest) -> GenerationResult:
        """
        Execute ``decision`` for ``request``.

        Returns:
            GenerationResult; ``fallback_used`` is set when the fallback model served it

        Raises:
            ProviderUnavailable: If the primary failed and the fallback failed or none exists
        """
        primary = self.registry.get(decision.selected_model, request.request_type)
        attempts: List[str] = [primary.id]

        try:
            return await self._attempt(primary, request)
        except ProviderError as e:
            primary_error = e

        log = logger.for_request(request)
        incurred = self._incurred_cost(primary, request, primary_error)
        log.warning(
            "Primary model failed",
            model=primary.id,
            **ErrorMapper.get_error_classification(primary_error),
        )

        fallback = self._fallback_for(primary)
        if fallback is None:
            raise ProviderUnavailable(
                f"{primary.display_name} is unavailable and no fallback model is available. "
                "Please try again later.",
                attempts=attempts,
                last_error=primary_error,
                cost_incurred_cents=incurred,
            )

        attempts.append(fallback.id)
        log.info(f"Falling back from {primary.id} to {fallback.id}", model=fallback.id)

        try:
            return await self._attempt(fallback, request, fallback_used=True, extra_cost_cents=incurred)
        except ProviderError as e:
            incurred += self._incurred_cost(fallback, request, e)
            log.error("Fallback model failed", error=e, model=fallback.id)
            raise ProviderUnavailable(
                f"Generation failed on {primary.display_name} and fallback "
                f"{fallback.display_name}. Please try again later.",
                attempts=attempts,
                last_error=e,
                cost_incurred_cents=incurred,
            )

    async def _attempt(
        self,
        profile: ModelProfile,
        request: GenerationRequest,
        fallback_used: bool = False,
        extra_cost_cents: int = 0,
    ) -> GenerationResult:
        adapter = self._adapter_for(profile)
        start_time = time.monotonic()
        try:
            response = await asyncio.wait_for(adapter.generate(profile, request), timeout=self.timeout)
        except ProviderError:
            raise
        except Exception as e:
            raise ErrorMapper.map_error(e, profile.provider)
        latency_ms = int((time.monotonic() - start_time) * 1000)

        return GenerationResult(
            request_type=request.request_type,
            content=response.content,
            images=response.images,
            model_used=profile.id,
            provider=response.provider,
            cost_cents=self.registry.cost_for_request(profile.id, request) + extra_cost_cents,
            latency_ms=latency_ms,
            fallback_used=fallback_used,
            usage=response.usage,
            finish_reason=response.finish_reason,
        )

    def _adapter_for(self, profile: ModelProfile) -> ProviderAdapter:
        adapter = self.adapters.get(profile.provider)
        if adapter is None or not adapter.supports(profile.request_type):
            raise ProviderError(
                f"No adapter registered for {profile.provider} {profile.request_type} requests",
                provider=profile.provider,
            )
        return adapter

    def _fallback_for(self, primary: ModelProfile) -> Optional[ModelProfile]:
        for model_id in self.registry.fallback_chain(primary.request_type):
            if model_id == primary.id:
                continue
            candidate = self.registry.get(model_id)
            if not candidate.is_down:
                return candidate
        return None

    def _incurred_cost(self, profile: ModelProfile, request: GenerationRequest,
                       error: ProviderError) -> int:
        if not error.charged:
            return 0
        if error.billed_units is not None and request.request_type == RequestType.IMAGE:
            billed = request.model_copy(update={"count": min(error.billed_units, request.count)})
            return self.registry.cost_for_request(profile.id, billed)
        return self.registry.cost_for_request(profile.id, request)
