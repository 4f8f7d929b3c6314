"""
Usage ledger.

Per-tenant daily spend and request counters derived from usage records, plus
the read-only usage and insight queries. The ledger is the one shared mutable
resource of the routing core.
"""

import asyncio
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from ..config.constants import BUDGET_WARNING_THRESHOLD
from ..models.generation import RequestType
from ..models.usage import (
    BudgetState,
    BudgetStatus,
    DailyUsage,
    ModelUsage,
    RoutingInsights,
    UsagePeriod,
    UsageRecord,
    UsageStats,
)
from ..observability.logging import RoutingLogger
from .plans import PlanLoader, StaticPlanLoader
from .store import InMemoryUsageStore, UsageStore

logger = RoutingLogger("ledger")


@dataclass(frozen=True)
class Reservation:
    """Provisional hold on budget taken by the gate in hard-cap mode."""
    tenant_id: str
    date: date
    request_type: Optional[str]
    cents: int
    reservation_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class _TenantDay:
    """Cached aggregate of one tenant's usage for one day."""
    date: date
    spent_cents: int = 0
    request_count: int = 0
    requests_by_type: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    reservations: Dict[str, Reservation] = field(default_factory=dict)

    def add(self, record: UsageRecord) -> None:
        self.spent_cents += record.cost_cents
        if record.succeeded:
            self.request_count += 1
            self.requests_by_type[record.request_type] += 1


class UsageLedger:
    """
    Per-tenant usage counters backed by a ``UsageStore``.

    Today's aggregate is cached per tenant and rebuilt from the store when the
    injected clock reports a new day, so counters reset at the date boundary
    without a background job. Spend covers every record; request counts cover
    successful requests only.
    """

    def __init__(
        self,
        store: Optional[UsageStore] = None,
        plan_loader: Optional[PlanLoader] = None,
        clock: Optional[Callable[[], date]] = None,
        warning_threshold: float = BUDGET_WARNING_THRESHOLD,
    ):
        """
        Args:
            store: Usage record persistence (in-memory by default)
            plan_loader: Resolves tenant plans (static free tier by default)
            clock: Returns "today"; injectable for tests
            warning_threshold: Fraction of the budget at which to warn
        """
        self.store = store or InMemoryUsageStore()
        self.plan_loader = plan_loader or StaticPlanLoader()
        self.clock = clock or date.today
        self.warning_threshold = warning_threshold
        self._days: Dict[str, _TenantDay] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._load_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def tenant_lock(self, tenant_id: str) -> asyncio.Lock:
        """Per-tenant lock used to make check-and-reserve atomic."""
        return self._locks[tenant_id]

    async def _today(self, tenant_id: str) -> _TenantDay:
        today = self.clock()
        cached = self._days.get(tenant_id)
        if cached is not None and cached.date == today:
            return cached

        # Records appended while the day is loading must land in the snapshot or in the cache
        async with self._load_locks[tenant_id]:
            cached = self._days.get(tenant_id)
            if cached is not None and cached.date == today:
                return cached
            day = _TenantDay(date=today)
            for record in await self.store.read_usage_records(tenant_id, today, today):
                day.add(record)
            self._days[tenant_id] = day
            return day

    async def get_state(self, tenant_id: str, request_type: Optional[str] = None) -> BudgetState:
        """
        Today's budget state for a tenant.

        Args:
            tenant_id: Tenant to look up
            request_type: When given, request counts and limits are for this type only
        """
        plan = await self.plan_loader.load_tenant_plan(tenant_id)
        day = await self._today(tenant_id)

        if request_type is not None:
            request_type = RequestType(request_type).value
            request_count = day.requests_by_type.get(request_type, 0)
            reservations = [r for r in day.reservations.values() if r.request_type == request_type]
        else:
            request_count = day.request_count
            reservations = list(day.reservations.values())

        return BudgetState(
            tenant_id=tenant_id,
            date=day.date,
            tier=plan.tier,
            request_type=request_type,
            spent_cents=day.spent_cents,
            limit_cents=plan.limit_cents,
            request_count=request_count,
            request_limit=plan.request_limit_for(request_type),
            reserved_cents=sum(r.cents for r in day.reservations.values()),
            reserved_requests=len(reservations),
        )

    async def reserve(self, tenant_id: str, cents: int, request_type: Optional[str] = None) -> Reservation:
        """Hold ``cents`` of today's budget until the request is recorded or released."""
        day = await self._today(tenant_id)
        reservation = Reservation(tenant_id=tenant_id, date=day.date, request_type=request_type, cents=cents)
        day.reservations[reservation.reservation_id] = reservation
        return reservation

    def release(self, reservation: Reservation) -> None:
        """Drop a reservation; a no-op once the day has rolled over."""
        day = self._days.get(reservation.tenant_id)
        if day is not None and day.date == reservation.date:
            day.reservations.pop(reservation.reservation_id, None)

    async def record(self, record: UsageRecord, reservation: Optional[Reservation] = None) -> None:
        """
        Append one usage record and update today's counters.

        Args:
            record: The completed request's record
            reservation: Reservation taken for this request, finalized here
        """
        async with self._load_locks[record.tenant_id]:
            await self.store.append_usage_record(record)
            if reservation is not None:
                self.release(reservation)
            day = self._days.get(record.tenant_id)
            if day is not None and day.date == record.date:
                day.add(record)

        logger.debug(
            "Usage recorded",
            model=record.model_id,
            request_id=record.request_id,
            tenant=record.tenant_id,
            cost_cents=record.cost_cents,
            succeeded=record.succeeded,
        )

    async def _records_since(self, tenant_id: str, days: int) -> List[UsageRecord]:
        today = self.clock()
        start = today - timedelta(days=max(days, 1) - 1)
        return await self.store.read_usage_records(tenant_id, start, today)

    async def get_usage_stats(self, tenant_id: str, period: str = UsagePeriod.DAY) -> UsageStats:
        """Usage totals for the last day, week or month (today inclusive)."""
        period = UsagePeriod(period)
        today = self.clock()
        records = await self._records_since(tenant_id, period.days)

        by_model: Dict[str, ModelUsage] = {}
        for record in records:
            usage = by_model.setdefault(record.model_id, ModelUsage(model_id=record.model_id))
            usage.request_count += 1
            usage.total_cost_cents += record.cost_cents

        total_cost = sum(r.cost_cents for r in records)
        return UsageStats(
            tenant_id=tenant_id,
            start_date=today - timedelta(days=period.days - 1),
            end_date=today,
            total_requests=len(records),
            succeeded=sum(1 for r in records if r.succeeded),
            failed=sum(1 for r in records if not r.succeeded),
            fallback_count=sum(1 for r in records if r.fallback_used),
            total_cost_cents=total_cost,
            avg_cost_cents=round(total_cost / len(records), 2) if records else 0.0,
            by_model=sorted(by_model.values(), key=lambda m: m.total_cost_cents, reverse=True),
        )

    async def get_budget_status(self, tenant_id: str) -> BudgetStatus:
        """Today's spend against the tenant's daily limit."""
        state = await self.get_state(tenant_id)
        if state.limit_cents > 0:
            percentage = round(state.spent_cents / state.limit_cents * 100, 1)
        else:
            percentage = 100.0 if state.spent_cents else 0.0

        warning = None
        if percentage >= self.warning_threshold * 100:
            warning = f"You've used {percentage:.0f}% of your daily AI budget."

        return BudgetStatus(
            tenant_id=tenant_id,
            tier=state.tier,
            spent_cents=state.spent_cents,
            limit_cents=state.limit_cents,
            remaining_cents=max(0, state.limit_cents - state.spent_cents),
            percentage_used=percentage,
            request_count=state.request_count,
            request_limit=state.request_limit,
            warning=warning,
        )

    async def get_routing_insights(self, tenant_id: str, days: int = 30) -> RoutingInsights:
        """How requests were routed over the last ``days`` days and what auto routing saved."""
        records = [r for r in await self._records_since(tenant_id, days) if r.decision is not None]
        auto_routed = [r for r in records if r.decision.was_auto_routed]

        avg_score = 0.0
        if records:
            avg_score = round(sum(r.decision.analysis.complexity_score for r in records) / len(records), 2)

        return RoutingInsights(
            tenant_id=tenant_id,
            days=days,
            total_requests=len(records),
            auto_routed_count=len(auto_routed),
            manual_override_count=len(records) - len(auto_routed),
            fallback_count=sum(1 for r in records if r.fallback_used),
            downgraded_count=sum(1 for r in records if r.decision.downgraded),
            avg_complexity_score=avg_score,
            cost_optimization_savings_cents=sum(r.decision.estimated_savings_cents or 0 for r in auto_routed),
        )

    async def get_daily_usage_history(self, tenant_id: str, days: int = 30) -> List[DailyUsage]:
        """Cost and request count per day, oldest first, including days without usage."""
        today = self.clock()
        history = {
            today - timedelta(days=offset): DailyUsage(date=today - timedelta(days=offset))
            for offset in range(max(days, 1))
        }
        for record in await self._records_since(tenant_id, days):
            entry = history[record.date]
            entry.cost_cents += record.cost_cents
            entry.requests += 1
        return [history[d] for d in sorted(history)]
