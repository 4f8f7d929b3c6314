"""
Routing orchestrator: the route-and-execute entry point.

Sequences validation, budget state, routing policy, budget gate, dispatch and
usage recording for one request, and returns a single normalized response
with the routing decision attached.
"""

import asyncio
from typing import List, Optional

from .core.analysis.validation import validate_prompt
from .core.routing.policy import RoutingPolicy
from .dispatch.dispatcher import ProviderDispatcher
from .errors import GenerationFailed, InvalidPrompt, ProviderUnavailable
from .ledger.gate import BudgetGate
from .ledger.ledger import Reservation, UsageLedger
from .models.conversation_types import ConversationMessage
from .models.generation import GenerationRequest, GenerationResult, RequestType, UserPreference
from .models.routing import RouteResult, RoutingDecision
from .models.usage import UsageRecord
from .observability.logging import RoutingLogger

logger = RoutingLogger("orchestrator")


class RoutingOrchestrator:
    """
    Public entry point of the routing core.

    ``InvalidPrompt`` and ``BudgetExceeded`` come back as typed rejections on
    the RouteResult. ``ModelNotFound``, ``ProviderUnavailable`` and
    ``GenerationFailed`` are raised; a failed dispatch is recorded first.
    """

    def __init__(
        self,
        policy: RoutingPolicy,
        dispatcher: ProviderDispatcher,
        ledger: UsageLedger,
        gate: Optional[BudgetGate] = None,
        hard_cap: bool = False,
        allow_downgrade: bool = True,
    ):
        """
        Args:
            policy: Routing policy
            dispatcher: Provider dispatcher
            ledger: Usage ledger
            gate: Budget gate (built on ``ledger`` when omitted)
            hard_cap: Reserve budget atomically with the gate check
            allow_downgrade: Let the policy downgrade auto-routed requests that do not fit the budget
        """
        self.policy = policy
        self.dispatcher = dispatcher
        self.ledger = ledger
        self.gate = gate or BudgetGate(ledger)
        self.hard_cap = hard_cap
        self.allow_downgrade = allow_downgrade

    async def route_and_execute(self, request: GenerationRequest) -> RouteResult:
        """
        Route, gate, dispatch and record one request.

        Raises:
            ModelNotFound: Override names a model not registered for the request type
            ProviderUnavailable: No usable model, or primary and fallback both failed
            GenerationFailed: Terminal generation failure
        """
        log = logger.for_request(request)
        log.transition("received", request_type=request.request_type)

        validation = validate_prompt(request.prompt, request.request_type, request.negative_prompt)
        if not validation.valid:
            log.transition("rejected", code=InvalidPrompt.code)
            return RouteResult(rejection=InvalidPrompt(validation.issues).to_rejection())
        log.transition("validated")

        state = await self.ledger.get_state(request.tenant_id, request.request_type)
        decision = self.policy.decide(request, budget=state if self.allow_downgrade else None)
        log.transition(
            "routed",
            model=decision.selected_model,
            auto=decision.was_auto_routed,
            estimated_cost_cents=decision.estimated_cost_cents,
        )

        reservation: Optional[Reservation] = None
        if self.hard_cap:
            gate_result, reservation = await self.gate.admit(
                request.tenant_id, decision.estimated_cost_cents, request.request_type
            )
        else:
            gate_result = await self.gate.check(
                request.tenant_id, decision.estimated_cost_cents, request.request_type
            )
        if not gate_result.allowed:
            error = self.gate.to_error(gate_result)
            log.transition("rejected", code=error.code, limit_type=error.limit_type)
            return RouteResult(decision=decision, rejection=error.to_rejection())
        log.transition("admitted")

        try:
            result = await self.dispatcher.execute(decision, request)
        except GenerationFailed as e:
            attempts = e.attempts if isinstance(e, ProviderUnavailable) else [decision.selected_model]
            await self._record_failure(request, decision, e, attempts, reservation)
            log.transition("failed", code=e.code, attempts=",".join(attempts))
            raise
        except asyncio.CancelledError:
            # Dispatch had started, so the primary call is assumed billed
            await asyncio.shield(self._record(
                request,
                decision,
                model_id=decision.selected_model,
                cost_cents=decision.estimated_cost_cents,
                succeeded=False,
                cancelled=True,
                reservation=reservation,
            ))
            log.transition("cancelled")
            raise
        except Exception:
            if reservation is not None:
                self.ledger.release(reservation)
            raise

        final_decision = self._decision_for_result(decision, result)
        await self._record(
            request,
            final_decision,
            model_id=result.model_used,
            cost_cents=result.cost_cents,
            succeeded=True,
            fallback_used=result.fallback_used,
            reservation=reservation,
        )
        log.transition(
            "completed",
            model=result.model_used,
            cost_cents=result.cost_cents,
            fallback_used=result.fallback_used,
            latency_ms=result.latency_ms,
        )
        return RouteResult(result=result, decision=final_decision, budget_warning=gate_result.warning)

    async def route_text(
        self,
        tenant_id: str,
        prompt: str,
        history: Optional[List[ConversationMessage]] = None,
        max_tokens: int = 1024,
        user_preference: Optional[UserPreference] = None,
        request_id: Optional[str] = None,
    ) -> RouteResult:
        """Route and execute a chat message."""
        fields = dict(
            tenant_id=tenant_id,
            request_type=RequestType.TEXT,
            prompt=prompt,
            history=history or [],
            max_tokens=max_tokens,
            user_preference=user_preference or UserPreference(),
        )
        if request_id:
            fields["request_id"] = request_id
        return await self.route_and_execute(GenerationRequest(**fields))

    async def route_image(
        self,
        tenant_id: str,
        prompt: str,
        negative_prompt: Optional[str] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
        count: int = 1,
        style: Optional[str] = None,
        user_preference: Optional[UserPreference] = None,
        request_id: Optional[str] = None,
    ) -> RouteResult:
        """Route and execute an image prompt."""
        fields = dict(
            tenant_id=tenant_id,
            request_type=RequestType.IMAGE,
            prompt=prompt,
            negative_prompt=negative_prompt,
            size_hint=size,
            quality_hint=quality,
            count=count,
            style_hint=style,
            user_preference=user_preference or UserPreference(),
        )
        if request_id:
            fields["request_id"] = request_id
        return await self.route_and_execute(GenerationRequest(**fields))

    @staticmethod
    def _decision_for_result(decision: RoutingDecision, result: GenerationResult) -> RoutingDecision:
        if not result.fallback_used:
            return decision
        return decision.model_copy(update={
            "selected_model": result.model_used,
            "estimated_cost_cents": result.cost_cents,
            "fallback_used": True,
            "original_model": decision.original_model or decision.selected_model,
            "reasoning": f"{decision.reasoning}; fell back from {decision.selected_model} to {result.model_used}",
        })

    async def _record_failure(
        self,
        request: GenerationRequest,
        decision: RoutingDecision,
        error: GenerationFailed,
        attempts: List[str],
        reservation: Optional[Reservation],
    ) -> None:
        await self._record(
            request,
            decision,
            model_id=attempts[-1] if attempts else decision.selected_model,
            cost_cents=error.cost_incurred_cents,
            succeeded=False,
            fallback_used=len(attempts) > 1,
            reservation=reservation,
        )

    async def _record(
        self,
        request: GenerationRequest,
        decision: RoutingDecision,
        model_id: str,
        cost_cents: int,
        succeeded: bool,
        fallback_used: bool = False,
        cancelled: bool = False,
        reservation: Optional[Reservation] = None,
    ) -> None:
        record = UsageRecord(
            tenant_id=request.tenant_id,
            date=self.ledger.clock(),
            request_type=request.request_type,
            model_id=model_id,
            cost_cents=cost_cents,
            succeeded=succeeded,
            fallback_used=fallback_used,
            cancelled=cancelled,
            request_id=request.request_id,
            decision=decision,
        )
        await self.ledger.record(record, reservation=reservation)
