"""
Routing policy.

Turns a request, its prompt analysis and the registry into one immutable
RoutingDecision. Pure with respect to its inputs: the same request, budget
and registry always produce the same decision.
"""

from typing import List, Optional

from ...errors import ProviderUnavailable
from ...models.generation import GenerationRequest, StylePreference
from ...models.routing import PromptAnalysis, RoutingDecision
from ...models.usage import BudgetState
from ..analysis.analyzer import analysis_signals, analyze_prompt
from ..registry.registry import ModelRegistry
from .decision_table import match_rule


# Capability a style preference steers towards
STYLE_PREFERENCE_CAPABILITIES = {
    StylePreference.SPEED.value: "speed",
    StylePreference.QUALITY.value: "high_fidelity",
    StylePreference.CREATIVE.value: "style_flexible",
}


class RoutingPolicy:
    """Chooses the backend model for each request."""

    def __init__(self, registry: ModelRegistry):
        self.registry = registry

    def decide(self, request: GenerationRequest, budget: Optional[BudgetState] = None) -> RoutingDecision:
        """
        Decide which model serves ``request``.

        Args:
            request: The generation request
            budget: Today's budget state; enables the budget downgrade when given

        Returns:
            RoutingDecision

        Raises:
            ModelNotFound: If the user override names an unknown model
            ProviderUnavailable: If the selected model and all substitutes are down
        """
        analysis = analyze_prompt(request.prompt, request.request_type, request.style_hint)
        preference = request.user_preference

        if not preference.is_auto:
            return self._override_decision(request, analysis)

        reasons: List[str] = [analysis.reasoning]
        selected = self._table_choice(request, analysis)

        preferred = self._apply_style_preference(request, analysis, selected)
        if preferred != selected:
            reasons.append(f"{preference.style_preference} preference selects {preferred}")
            selected = preferred

        original_model = None
        profile = self.registry.get(selected, request.request_type)
        if profile.is_down:
            substitute = self._substitute(selected)
            if substitute is None:
                raise ProviderUnavailable(
                    f"No available model for {request.request_type} requests",
                    attempts=[],
                )
            reasons.append(f"{selected} is down, substituted {substitute}")
            original_model, selected = selected, substitute

        downgraded = False
        if budget is not None:
            cheaper = self._budget_downgrade(request, selected, budget)
            if cheaper is not None:
                reasons.append(
                    f"Downgraded from {selected} to {cheaper} to fit remaining budget "
                    f"({budget.remaining_cents}c)"
                )
                original_model = original_model or selected
                selected = cheaper
                downgraded = True

        return self._build_decision(
            request,
            analysis,
            selected,
            was_auto_routed=True,
            reasoning="; ".join(reasons),
            downgraded=downgraded,
            original_model=original_model,
        )

    def _override_decision(self, request: GenerationRequest, analysis: PromptAnalysis) -> RoutingDecision:
        # Raises ModelNotFound for unknown ids or ids of another request type
        profile = self.registry.get(request.user_preference.model_override, request.request_type)
        override_reason = f"User selected {profile.display_name}"
        return self._build_decision(
            request,
            analysis,
            profile.id,
            was_auto_routed=False,
            override_reason=override_reason,
            reasoning=f"{override_reason} (auto routing would pick {analysis.recommended_model})",
        )

    def _table_choice(self, request: GenerationRequest, analysis: PromptAnalysis) -> str:
        rule = match_rule(request.request_type, analysis_signals(analysis))
        return self.registry.cheapest(request, rule.candidates) or rule.candidates[0]

    def _apply_style_preference(self, request: GenerationRequest, analysis: PromptAnalysis,
                                selected: str) -> str:
        style_preference = request.user_preference.style_preference
        capability = STYLE_PREFERENCE_CAPABILITIES.get(style_preference)
        if capability is None:
            return selected
        if style_preference == StylePreference.SPEED.value and analysis.requires_detail:
            return selected

        candidates = self.registry.with_capability(request.request_type, capability)
        return self.registry.cheapest(request, candidates) or selected

    def _substitute(self, model_id: str) -> Optional[str]:
        for candidate in self.registry.substitutes(model_id):
            if not self.registry.get(candidate).is_down:
                return candidate
        return None

    def _budget_downgrade(self, request: GenerationRequest, selected: str,
                          budget: BudgetState) -> Optional[str]:
        estimate = self.registry.cost_for_request(selected, request)
        if budget.committed_cents + estimate <= budget.limit_cents:
            return None

        cheapest = self.registry.cheapest(
            request, [p.id for p in self.registry.list_models(request.request_type)]
        )
        if cheapest is None or cheapest == selected:
            return None
        if budget.committed_cents + self.registry.cost_for_request(cheapest, request) > budget.limit_cents:
            return None
        return cheapest

    def _build_decision(
        self,
        request: GenerationRequest,
        analysis: PromptAnalysis,
        selected: str,
        was_auto_routed: bool,
        reasoning: str,
        override_reason: Optional[str] = None,
        downgraded: bool = False,
        original_model: Optional[str] = None,
    ) -> RoutingDecision:
        cost = self.registry.cost_for_request(selected, request)
        baseline = self.registry.baseline_model(request.request_type)
        baseline_cost = self.registry.cost_for_request(baseline, request)

        return RoutingDecision(
            request_type=request.request_type,
            selected_model=selected,
            analysis=analysis,
            was_auto_routed=was_auto_routed,
            override_reason=override_reason,
            estimated_cost_cents=cost,
            estimated_savings_cents=max(0, baseline_cost - cost),
            reasoning=reasoning,
            downgraded=downgraded,
            original_model=original_model,
        )
