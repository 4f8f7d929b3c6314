"""
Budget gate.

Pre-checks a request's estimated cost against the tenant's daily spend and
request limits. In the default mode the check and the later record are not
atomic, so concurrent requests can overshoot a limit by at most their own
estimates; ``admit`` closes that gap by reserving under the tenant lock.
"""

from typing import Optional, Tuple

from ..config.constants import BUDGET_WARNING_THRESHOLD, TIER_PROGRESSION
from ..errors import BudgetExceeded
from ..models.generation import RequestType
from ..models.usage import BudgetState, GateResult
from ..observability.logging import RoutingLogger
from .ledger import Reservation, UsageLedger

logger = RoutingLogger("gate")


def format_dollars(cents: int) -> str:
    return f"${cents / 100:.2f}"


class BudgetGate:
    """Admits or rejects requests against a tenant's plan limits."""

    def __init__(self, ledger: UsageLedger, warning_threshold: float = BUDGET_WARNING_THRESHOLD):
        self.ledger = ledger
        self.warning_threshold = warning_threshold

    def evaluate(self, state: BudgetState, estimated_cost_cents: int) -> GateResult:
        """
        Decide on a request against an already loaded budget state.

        Rejects iff spend plus the estimate exceeds the limit, or one more
        request exceeds the request limit.
        """
        if state.committed_cents + estimated_cost_cents > state.limit_cents:
            return GateResult(
                allowed=False,
                reason=f"Daily AI budget limit reached ({format_dollars(state.limit_cents)}). Resets tomorrow.",
                limit_type="daily_spend",
                limit=state.limit_cents,
                tier=state.tier,
            )

        if state.committed_requests + 1 > state.request_limit:
            if state.request_type == RequestType.IMAGE:
                reason = f"Daily AI image limit reached ({state.request_limit} images). Resets tomorrow."
            else:
                reason = f"Daily AI message limit reached ({state.request_limit} messages). Resets tomorrow."
            return GateResult(
                allowed=False,
                reason=reason,
                limit_type="daily_requests",
                limit=state.request_limit,
                tier=state.tier,
            )

        warning = None
        if state.limit_cents > 0:
            used = (state.committed_cents + estimated_cost_cents) / state.limit_cents
            if used >= self.warning_threshold:
                warning = f"You've used {used * 100:.0f}% of your daily AI budget."

        return GateResult(allowed=True, warning=warning, tier=state.tier)

    async def check(self, tenant_id: str, estimated_cost_cents: int,
                    request_type: Optional[str] = None) -> GateResult:
        """Check a request against today's usage without reserving anything."""
        state = await self.ledger.get_state(tenant_id, request_type)
        result = self.evaluate(state, estimated_cost_cents)
        if not result.allowed:
            logger.info(
                "Request rejected by budget gate",
                tenant=tenant_id,
                limit_type=result.limit_type,
                spent_cents=state.spent_cents,
                limit_cents=state.limit_cents,
                estimated_cost_cents=estimated_cost_cents,
            )
        return result

    async def admit(self, tenant_id: str, estimated_cost_cents: int,
                    request_type: Optional[str] = None) -> Tuple[GateResult, Optional[Reservation]]:
        """
        Check and reserve atomically (hard-cap mode).

        Returns:
            The gate result and, when allowed, the reservation to finalize on record
        """
        async with self.ledger.tenant_lock(tenant_id):
            result = await self.check(tenant_id, estimated_cost_cents, request_type)
            if not result.allowed:
                return result, None
            reservation = await self.ledger.reserve(tenant_id, estimated_cost_cents, request_type)
            return result, reservation

    @staticmethod
    def to_error(result: GateResult) -> BudgetExceeded:
        """BudgetExceeded for a rejected gate result, with the upgrade hint."""
        tier = result.tier or "free"
        return BudgetExceeded(
            reason=result.reason or "Daily AI limit reached. Resets tomorrow.",
            limit_type=result.limit_type or "daily_spend",
            current_tier=tier,
            required_tier=TIER_PROGRESSION.get(tier, "pro"),
            limit=result.limit,
        )
