"""Tenant plan lookup: the subscription collaborator's view of a tenant's limits."""

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

from ..config.constants import DEFAULT_TIER, TIER_LIMITS
from ..models.usage import TenantPlan


class PlanLoader(ABC):
    """Hook that resolves a tenant's current plan."""

    @abstractmethod
    async def load_tenant_plan(self, tenant_id: str) -> TenantPlan:
        pass


def plan_for_tier(tier: str, tier_limits: Optional[Mapping[str, Dict]] = None) -> TenantPlan:
    """Build the default plan for ``tier``; unknown tiers get the default tier's limits."""
    tier_limits = tier_limits if tier_limits is not None else TIER_LIMITS
    if tier not in tier_limits:
        tier = DEFAULT_TIER
    return TenantPlan(tier=tier, **tier_limits[tier])


class StaticPlanLoader(PlanLoader):
    """Plan loader backed by a fixed tenant -> tier mapping."""

    def __init__(
        self,
        tenant_tiers: Optional[Mapping[str, str]] = None,
        default_tier: str = DEFAULT_TIER,
        plans: Optional[Mapping[str, TenantPlan]] = None,
    ):
        """
        Args:
            tenant_tiers: Tenant id -> tier name
            default_tier: Tier for tenants not in ``tenant_tiers``
            plans: Explicit per-tenant plans, taking precedence over tiers
        """
        self.tenant_tiers = dict(tenant_tiers or {})
        self.default_tier = default_tier
        self.plans = dict(plans or {})

    async def load_tenant_plan(self, tenant_id: str) -> TenantPlan:
        if tenant_id in self.plans:
            return self.plans[tenant_id]
        return plan_for_tier(self.tenant_tiers.get(tenant_id, self.default_tier))

    def set_tier(self, tenant_id: str, tier: str) -> None:
        self.tenant_tiers[tenant_id] = tier
