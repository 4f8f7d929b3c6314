"""Unit tests for the usage ledger and the budget gate."""

import asyncio
from datetime import date, timedelta

import pytest

from matalino_router.core.routing.policy import RoutingPolicy
from matalino_router.ledger import BudgetGate, InMemoryUsageStore, StaticPlanLoader, UsageLedger, plan_for_tier
from matalino_router.models.usage import BudgetState, TenantPlan, UsageRecord


def usage_record(tenant_id="tenant-1", cost_cents=5, succeeded=True, request_type="image",
                 model_id="sdxl", day=date(2026, 3, 14), **kwargs):
    return UsageRecord(
        tenant_id=tenant_id,
        date=day,
        request_type=request_type,
        model_id=model_id,
        cost_cents=cost_cents,
        succeeded=succeeded,
        **kwargs,
    )


class SlowReadStore(InMemoryUsageStore):
    """In-memory store whose reads wait until released."""

    def __init__(self):
        super().__init__()
        self.reads = 0
        self.reading = asyncio.Event()
        self.release = asyncio.Event()

    async def read_usage_records(self, tenant_id, start, end):
        self.reads += 1
        self.reading.set()
        await self.release.wait()
        return await super().read_usage_records(tenant_id, start, end)


def state(spent_cents, limit_cents, request_count=0, request_limit=100, request_type="image", tier="free"):
    return BudgetState(
        tenant_id="tenant-1",
        date=date(2026, 3, 14),
        tier=tier,
        request_type=request_type,
        spent_cents=spent_cents,
        limit_cents=limit_cents,
        request_count=request_count,
        request_limit=request_limit,
    )


class TestPlans:
    """Test tenant plan resolution."""

    def test_default_tier(self):
        plan = plan_for_tier("free")

        assert plan.limit_cents == 100
        assert plan.request_limit_for("image") == 20
        assert plan.request_limit_for("text") == 50
        assert plan.request_limit_for(None) == 70

    def test_unknown_tier_falls_back_to_default(self):
        assert plan_for_tier("platinum").tier == "free"

    @pytest.mark.asyncio
    async def test_static_loader(self, plan_loader):
        assert (await plan_loader.load_tenant_plan("tenant-pro")).tier == "pro"
        assert (await plan_loader.load_tenant_plan("someone-else")).tier == "free"

        plan_loader.set_tier("someone-else", "business")
        assert (await plan_loader.load_tenant_plan("someone-else")).limit_cents == 10000

    @pytest.mark.asyncio
    async def test_explicit_plan_wins(self):
        custom = TenantPlan(tier="pro", limit_cents=500, request_limit=10)
        loader = StaticPlanLoader(tenant_tiers={"t": "business"}, plans={"t": custom})

        assert await loader.load_tenant_plan("t") == custom


class TestGateEvaluate:
    """Test the gate's admission rule."""

    def test_rejects_when_estimate_exceeds_budget(self, gate):
        result = gate.evaluate(state(spent_cents=480, limit_cents=500), 50)

        assert result.allowed is False
        assert result.reason == "Daily AI budget limit reached ($5.00). Resets tomorrow."
        assert result.limit_type == "daily_spend"
        assert result.limit == 500

    def test_allows_exactly_reaching_the_limit(self, gate):
        result = gate.evaluate(state(spent_cents=480, limit_cents=500), 20)

        assert result.allowed is True
        assert result.warning == "You've used 100% of your daily AI budget."

    def test_no_warning_below_threshold(self, gate):
        result = gate.evaluate(state(spent_cents=10, limit_cents=500), 10)

        assert result.allowed is True
        assert result.warning is None

    def test_warning_at_threshold(self, gate):
        result = gate.evaluate(state(spent_cents=390, limit_cents=500), 10)
        assert result.warning == "You've used 80% of your daily AI budget."

    def test_image_request_limit(self, gate):
        result = gate.evaluate(state(spent_cents=0, limit_cents=500, request_count=20, request_limit=20), 1)

        assert result.allowed is False
        assert result.limit_type == "daily_requests"
        assert result.reason == "Daily AI image limit reached (20 images). Resets tomorrow."

    def test_text_request_limit(self, gate):
        result = gate.evaluate(
            state(spent_cents=0, limit_cents=500, request_count=50, request_limit=50, request_type="text"), 1
        )
        assert result.reason == "Daily AI message limit reached (50 messages). Resets tomorrow."

    def test_spend_checked_before_request_count(self, gate):
        result = gate.evaluate(state(spent_cents=500, limit_cents=500, request_count=20, request_limit=20), 1)
        assert result.limit_type == "daily_spend"

    @pytest.mark.parametrize("tier,required", [("free", "pro"), ("pro", "business"), ("business", "business")])
    def test_to_error_suggests_upgrade(self, gate, tier, required):
        result = gate.evaluate(state(spent_cents=480, limit_cents=500, tier=tier), 50)
        error = BudgetGate.to_error(result)

        assert error.code == "BUDGET_EXCEEDED"
        assert error.current_tier == tier
        assert error.required_tier == required
        assert error.to_rejection().details["limit_type"] == "daily_spend"


class TestLedger:
    """Test daily counters."""

    @pytest.mark.asyncio
    async def test_empty_state(self, ledger):
        budget = await ledger.get_state("tenant-1", "image")

        assert budget.spent_cents == 0
        assert budget.request_count == 0
        assert budget.limit_cents == 100
        assert budget.request_limit == 20
        assert budget.date == date(2026, 3, 14)

    @pytest.mark.asyncio
    async def test_record_updates_state(self, ledger):
        await ledger.get_state("tenant-1")
        await ledger.record(usage_record(cost_cents=5))
        await ledger.record(usage_record(cost_cents=3, succeeded=False))

        budget = await ledger.get_state("tenant-1")
        # Failed requests cost money but do not count against the request limit
        assert budget.spent_cents == 8
        assert budget.request_count == 1

    @pytest.mark.asyncio
    async def test_request_counts_per_type(self, ledger):
        await ledger.record(usage_record(request_type="image"))
        await ledger.record(usage_record(request_type="text", model_id="gpt-5", cost_cents=1))

        image_state = await ledger.get_state("tenant-1", "image")
        text_state = await ledger.get_state("tenant-1", "text")
        assert image_state.request_count == 1
        assert text_state.request_count == 1
        assert image_state.spent_cents == text_state.spent_cents == 6
        assert (await ledger.get_state("tenant-1")).request_count == 2

    @pytest.mark.asyncio
    async def test_tenants_are_isolated(self, ledger):
        await ledger.record(usage_record(tenant_id="tenant-1", cost_cents=7))

        assert (await ledger.get_state("tenant-2")).spent_cents == 0

    @pytest.mark.asyncio
    async def test_resets_at_date_boundary(self, ledger, clock):
        await ledger.record(usage_record(cost_cents=40))
        assert (await ledger.get_state("tenant-1")).spent_cents == 40

        clock.advance()
        budget = await ledger.get_state("tenant-1")
        assert budget.spent_cents == 0
        assert budget.date == date(2026, 3, 15)

    @pytest.mark.asyncio
    async def test_state_rebuilt_from_store(self, usage_store, plan_loader, clock):
        await usage_store.append_usage_record(usage_record(cost_cents=12))
        ledger = UsageLedger(store=usage_store, plan_loader=plan_loader, clock=clock)

        assert (await ledger.get_state("tenant-1")).spent_cents == 12

    @pytest.mark.asyncio
    async def test_record_during_first_load_is_counted(self, plan_loader, clock):
        store = SlowReadStore()
        ledger = UsageLedger(store=store, plan_loader=plan_loader, clock=clock)

        loading = asyncio.create_task(ledger.get_state("tenant-1"))
        await asyncio.wait_for(store.reading.wait(), timeout=1.0)
        writing = asyncio.create_task(ledger.record(usage_record(cost_cents=90)))
        await asyncio.sleep(0)
        store.release.set()
        await asyncio.gather(loading, writing)

        assert (await ledger.get_state("tenant-1")).spent_cents == 90
        stored = await store.read_usage_records("tenant-1", clock(), clock())
        assert sum(r.cost_cents for r in stored) == 90

    @pytest.mark.asyncio
    async def test_concurrent_first_loads_share_one_read(self, plan_loader, clock):
        store = SlowReadStore()
        ledger = UsageLedger(store=store, plan_loader=plan_loader, clock=clock)

        first = asyncio.create_task(ledger.get_state("tenant-1"))
        await asyncio.wait_for(store.reading.wait(), timeout=1.0)
        second = asyncio.create_task(ledger.get_state("tenant-1"))
        await asyncio.sleep(0)
        store.release.set()
        await asyncio.gather(first, second)

        assert store.reads == 1

    @pytest.mark.asyncio
    async def test_reservations(self, ledger):
        reservation = await ledger.reserve("tenant-1", 30, "image")

        budget = await ledger.get_state("tenant-1", "image")
        assert budget.reserved_cents == 30
        assert budget.reserved_requests == 1
        assert budget.committed_cents == 30
        assert budget.remaining_cents == 70

        ledger.release(reservation)
        assert (await ledger.get_state("tenant-1", "image")).committed_cents == 0

    @pytest.mark.asyncio
    async def test_record_finalizes_reservation(self, ledger):
        reservation = await ledger.reserve("tenant-1", 30, "image")
        await ledger.record(usage_record(cost_cents=25), reservation=reservation)

        budget = await ledger.get_state("tenant-1", "image")
        assert budget.reserved_cents == 0
        assert budget.spent_cents == 25


class TestGateWithLedger:
    """Test the gate against live ledger state."""

    @pytest.mark.asyncio
    async def test_check(self, gate, ledger):
        await ledger.record(usage_record(cost_cents=95))

        assert (await gate.check("tenant-1", 5, "image")).allowed is True
        assert (await gate.check("tenant-1", 6, "image")).allowed is False

    @pytest.mark.asyncio
    async def test_admit_reserves_atomically(self, ledger):
        ledger.plan_loader = StaticPlanLoader(plans={
            "tenant-1": TenantPlan(tier="free", limit_cents=15, request_limit=100),
        })
        gate = BudgetGate(ledger)

        outcomes = await asyncio.gather(
            gate.admit("tenant-1", 10, "image"),
            gate.admit("tenant-1", 10, "image"),
        )

        allowed = [result for result, _ in outcomes if result.allowed]
        rejected = [result for result, _ in outcomes if not result.allowed]
        assert len(allowed) == 1
        assert len(rejected) == 1
        assert rejected[0].limit_type == "daily_spend"
        assert [reservation for _, reservation in outcomes if reservation is not None][0].cents == 10


class TestUsageQueries:
    """Test the read-only usage queries."""

    @pytest.mark.asyncio
    async def test_usage_stats(self, ledger, clock):
        today = clock()
        await ledger.record(usage_record(cost_cents=10, model_id="midjourney", day=today))
        await ledger.record(usage_record(cost_cents=4, model_id="dalle3", day=today, fallback_used=True))
        await ledger.record(usage_record(cost_cents=0, model_id="dalle3", day=today, succeeded=False))
        await ledger.record(usage_record(cost_cents=2, model_id="sdxl", day=today - timedelta(days=3)))

        daily = await ledger.get_usage_stats("tenant-1", "day")
        assert daily.total_requests == 3
        assert daily.succeeded == 2
        assert daily.failed == 1
        assert daily.fallback_count == 1
        assert daily.total_cost_cents == 14
        assert daily.avg_cost_cents == 4.67
        assert [m.model_id for m in daily.by_model] == ["midjourney", "dalle3"]
        assert daily.by_model[1].request_count == 2

        weekly = await ledger.get_usage_stats("tenant-1", "week")
        assert weekly.total_requests == 4
        assert weekly.start_date == today - timedelta(days=6)

    @pytest.mark.asyncio
    async def test_usage_stats_empty(self, ledger):
        stats = await ledger.get_usage_stats("nobody", "month")

        assert stats.total_requests == 0
        assert stats.avg_cost_cents == 0.0
        assert stats.by_model == []

    @pytest.mark.asyncio
    async def test_budget_status(self, ledger):
        await ledger.record(usage_record(tenant_id="tenant-pro", cost_cents=850))

        status = await ledger.get_budget_status("tenant-pro")
        assert status.tier == "pro"
        assert status.spent_cents == 850
        assert status.remaining_cents == 150
        assert status.percentage_used == 85.0
        assert status.warning == "You've used 85% of your daily AI budget."

    @pytest.mark.asyncio
    async def test_budget_status_without_warning(self, ledger):
        await ledger.record(usage_record(tenant_id="tenant-pro", cost_cents=100))
        assert (await ledger.get_budget_status("tenant-pro")).warning is None

    @pytest.mark.asyncio
    async def test_routing_insights(self, ledger, registry, make_request):
        policy = RoutingPolicy(registry)
        auto = policy.decide(make_request("a quick sketch of a cat"))
        manual = policy.decide(make_request("a quick sketch of a cat", model="midjourney"))

        await ledger.record(usage_record(model_id=auto.selected_model, cost_cents=1, decision=auto))
        await ledger.record(usage_record(model_id=manual.selected_model, cost_cents=10, decision=manual))
        await ledger.record(usage_record(model_id="dalle3", cost_cents=4, fallback_used=True, decision=auto))
        # Records without a decision are not part of the insights
        await ledger.record(usage_record(model_id="sdxl"))

        insights = await ledger.get_routing_insights("tenant-1", days=30)
        assert insights.total_requests == 3
        assert insights.auto_routed_count == 2
        assert insights.manual_override_count == 1
        assert insights.fallback_count == 1
        assert insights.avg_complexity_score == 1.0
        assert insights.cost_optimization_savings_cents == 0

    @pytest.mark.asyncio
    async def test_daily_usage_history(self, ledger, clock):
        today = clock()
        await ledger.record(usage_record(cost_cents=3, day=today))
        await ledger.record(usage_record(cost_cents=2, day=today))
        await ledger.record(usage_record(cost_cents=7, day=today - timedelta(days=2)))

        history = await ledger.get_daily_usage_history("tenant-1", days=3)

        assert [entry.date for entry in history] == [
            today - timedelta(days=2), today - timedelta(days=1), today,
        ]
        assert [entry.cost_cents for entry in history] == [7, 0, 5]
        assert [entry.requests for entry in history] == [1, 0, 2]
