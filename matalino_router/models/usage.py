from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .generation import RequestType
from .routing import RoutingDecision


class UsageRecord(BaseModel):
    """
    Immutable record of one completed request for cost accounting.

    Append-only: once written, a record is never modified. Exactly one record
    exists per request that reached the dispatcher.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True, protected_namespaces=())

    tenant_id: str
    date: date
    request_type: RequestType
    model_id: str
    cost_cents: int = Field(..., ge=0)
    succeeded: bool
    fallback_used: bool = False
    cancelled: bool = False
    request_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    decision: Optional[RoutingDecision] = None


class TenantPlan(BaseModel):
    """Plan limits for a tenant, as loaded from the subscription collaborator."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    tier: str = "free"
    limit_cents: int = Field(..., ge=0)
    request_limit: int = Field(..., ge=0)
    request_limits_by_type: Dict[RequestType, int] = Field(default_factory=dict)

    def request_limit_for(self, request_type: Optional[str]) -> int:
        if request_type is not None and request_type in self.request_limits_by_type:
            return self.request_limits_by_type[request_type]
        return self.request_limit


class BudgetState(BaseModel):
    """
    Aggregate of today's usage for a tenant.

    Derived from usage records; reset at the date boundary, which is checked
    at read time. ``request_count`` counts only ``request_type`` requests when
    a request type is given, while ``spent_cents`` always covers every type.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    tenant_id: str
    date: date
    tier: str = "free"
    request_type: Optional[RequestType] = None
    spent_cents: int = 0
    limit_cents: int
    request_count: int = 0
    request_limit: int
    reserved_cents: int = 0
    reserved_requests: int = 0

    @property
    def committed_cents(self) -> int:
        return self.spent_cents + self.reserved_cents

    @property
    def committed_requests(self) -> int:
        return self.request_count + self.reserved_requests

    @property
    def remaining_cents(self) -> int:
        return max(0, self.limit_cents - self.committed_cents)


class GateResult(BaseModel):
    """Verdict of the budget gate for one request."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None
    limit_type: Optional[str] = None  # "daily_spend", "daily_requests"
    limit: Optional[int] = None
    tier: Optional[str] = None
    warning: Optional[str] = None


class UsagePeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def days(self) -> int:
        return {"day": 1, "week": 7, "month": 30}[self.value]


class ModelUsage(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    request_count: int = 0
    total_cost_cents: int = 0


class UsageStats(BaseModel):
    tenant_id: str
    start_date: date
    end_date: date
    total_requests: int = 0
    succeeded: int = 0
    failed: int = 0
    fallback_count: int = 0
    total_cost_cents: int = 0
    avg_cost_cents: float = 0.0
    by_model: List[ModelUsage] = Field(default_factory=list)


class BudgetStatus(BaseModel):
    tenant_id: str
    tier: str
    spent_cents: int
    limit_cents: int
    remaining_cents: int
    percentage_used: float
    request_count: int
    request_limit: int
    warning: Optional[str] = None


class RoutingInsights(BaseModel):
    tenant_id: str
    days: int
    total_requests: int = 0
    auto_routed_count: int = 0
    manual_override_count: int = 0
    fallback_count: int = 0
    downgraded_count: int = 0
    avg_complexity_score: float = 0.0
    cost_optimization_savings_cents: int = 0


class DailyUsage(BaseModel):
    date: date
    cost_cents: int = 0
    requests: int = 0
