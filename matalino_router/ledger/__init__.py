"""Usage accounting: records, tenant plans, the usage ledger and the budget gate."""

from .gate import BudgetGate
from .ledger import Reservation, UsageLedger
from .plans import PlanLoader, StaticPlanLoader, plan_for_tier
from .store import InMemoryUsageStore, SQLiteUsageStore, UsageStore

__all__ = [
    "BudgetGate",
    "InMemoryUsageStore",
    "PlanLoader",
    "Reservation",
    "SQLiteUsageStore",
    "StaticPlanLoader",
    "UsageLedger",
    "UsageStore",
    "plan_for_tier",
]
