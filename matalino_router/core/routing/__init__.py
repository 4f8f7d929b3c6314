"""Routing layer for model selection.

This layer handles:
- Ordered decision rules from prompt signals to candidate models
- Override, style preference, availability and budget handling
  (see ``matalino_router.core.routing.policy``)
"""

from .decision_table import DECISION_TABLES, DecisionRule, RuleCondition, match_rule

__all__ = [
    "DECISION_TABLES",
    "DecisionRule",
    "RuleCondition",
    "match_rule",
]
