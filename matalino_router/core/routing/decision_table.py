"""Ordered routing rules mapping prompt signals to candidate models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class RuleCondition:
    """Condition on one prompt signal."""

    # Signal to check, e.g. "style", "needs_speed", "complexity_tier"
    signal: str

    # "equals" or "in"
    operator: str

    value: Any

    def matches(self, signals: Dict[str, Any]) -> bool:
        """Check if condition matches the prompt signals."""
        value = signals.get(self.signal)

        if self.operator == "equals":
            return value == self.value
        elif self.operator == "in":
            return value in self.value
        else:
            raise ValueError(f"Unknown operator: {self.operator}")


@dataclass(frozen=True)
class DecisionRule:
    """A single routing rule. All conditions must match."""

    name: str

    # Models that serve this rule; the policy picks the cheapest available
    candidates: Tuple[str, ...]

    reasoning: str

    conditions: Tuple[RuleCondition, ...] = field(default_factory=tuple)

    def matches(self, signals: Dict[str, Any]) -> bool:
        return all(condition.matches(signals) for condition in self.conditions)


def _when(signal: str, value: Any, operator: str = "equals") -> RuleCondition:
    return RuleCondition(signal=signal, operator=operator, value=value)


IMAGE_RULES: List[DecisionRule] = [
    DecisionRule(
        name="simple_and_fast",
        conditions=(_when("is_simple", True), _when("needs_speed", True)),
        candidates=("gemini-nano-banana",),
        reasoning="Simple prompt that needs a fast result",
    ),
    DecisionRule(
        name="photorealistic",
        conditions=(_when("style", "photorealistic"),),
        candidates=("midjourney",),
        reasoning="Photorealistic style benefits from the highest fidelity model",
    ),
    DecisionRule(
        name="detailed",
        conditions=(_when("requires_detail", True),),
        candidates=("midjourney",),
        reasoning="Prompt asks for fine detail",
    ),
    DecisionRule(
        name="artistic",
        conditions=(_when("style", ("artistic", "abstract"), "in"),),
        candidates=("sdxl",),
        reasoning="Artistic and abstract styles suit a style-flexible model",
    ),
    DecisionRule(
        name="default",
        candidates=("gemini-nano-banana",),
        reasoning="General image prompt, fastest model is sufficient",
    ),
]

TEXT_RULES: List[DecisionRule] = [
    DecisionRule(
        name="simple_and_fast",
        conditions=(_when("is_simple", True), _when("needs_speed", True)),
        candidates=("gemini-2-5-flash",),
        reasoning="Simple request that needs a fast answer",
    ),
    DecisionRule(
        name="complex_code",
        conditions=(_when("complexity_tier", "complex"), _when("task_type", "code_generation")),
        candidates=("claude-sonnet-4-5",),
        reasoning="Complex coding task",
    ),
    DecisionRule(
        name="complex",
        conditions=(_when("complexity_tier", "complex"),),
        candidates=("gpt-5",),
        reasoning="Complex request needs strong reasoning",
    ),
    DecisionRule(
        name="creative_writing",
        conditions=(_when("task_type", "creative_writing"),),
        candidates=("claude-sonnet-4-5",),
        reasoning="Creative writing suits a style-flexible model",
    ),
    DecisionRule(
        name="data_analysis",
        conditions=(_when("task_type", "data_analysis"),),
        candidates=("gemini-2-5-pro",),
        reasoning="Data analysis benefits from a long-context analytical model",
    ),
    DecisionRule(
        name="default",
        candidates=("gemini-2-5-flash",),
        reasoning="General request, fastest model is sufficient",
    ),
]

DECISION_TABLES: Dict[str, List[DecisionRule]] = {
    "text": TEXT_RULES,
    "image": IMAGE_RULES,
}


def match_rule(request_type: str, signals: Dict[str, Any]) -> DecisionRule:
    """Return the first rule matching ``signals``; every table ends with a catch-all."""
    for rule in DECISION_TABLES[request_type]:
        if rule.matches(signals):
            return rule
    raise ValueError(f"No routing rule matched for {request_type} request")
