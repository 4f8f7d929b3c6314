"""Main client interface for the Matalino router."""

from typing import Dict, List, Optional

from ..core.analysis.analyzer import enhance_prompt
from ..core.registry.registry import ModelProfile, ModelRegistry
from ..core.routing.policy import RoutingPolicy
from ..dispatch.dispatcher import ProviderDispatcher
from ..ledger.gate import BudgetGate
from ..ledger.ledger import UsageLedger
from ..ledger.plans import PlanLoader
from ..ledger.store import UsageStore
from ..models.conversation_types import ConversationMessage
from ..models.generation import GenerationRequest, StylePreference, UserPreference
from ..models.routing import Availability, RouteResult
from ..models.usage import BudgetStatus, DailyUsage, RoutingInsights, UsagePeriod, UsageStats
from ..orchestrator import RoutingOrchestrator
from ..providers import default_adapters
from ..providers.base import ProviderAdapter


class MatalinoRouterClient:
    """High-level client wiring registry, adapters, ledger and orchestrator."""

    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
        stability_api_key: Optional[str] = None,
        midjourney_api_key: Optional[str] = None,
        registry: Optional[ModelRegistry] = None,
        adapters: Optional[Dict[str, ProviderAdapter]] = None,
        store: Optional[UsageStore] = None,
        plan_loader: Optional[PlanLoader] = None,
        ledger: Optional[UsageLedger] = None,
        dispatch_timeout: Optional[float] = None,
        hard_cap: bool = False,
    ):
        """
        Initialize the client.

        Args:
            openai_api_key: Optional OpenAI API key (else OPENAI_API_KEY)
            anthropic_api_key: Optional Anthropic API key (else ANTHROPIC_API_KEY)
            google_api_key: Optional Google AI API key (else GOOGLE_AI_API_KEY)
            stability_api_key: Optional Stability AI API key (else STABILITY_API_KEY)
            midjourney_api_key: Optional Midjourney API key (else MIDJOURNEY_API_KEY)
            registry: Model registry (built from config when omitted)
            adapters: Provider name -> adapter, replacing the default adapters
            store: Usage record store for the default ledger
            plan_loader: Tenant plan loader for the default ledger
            ledger: Fully built ledger, taking precedence over store/plan_loader
            dispatch_timeout: Per-call backend timeout in seconds
            hard_cap: Reserve budget atomically with the gate check
        """
        self.registry = registry or ModelRegistry.from_config()
        self.adapters = adapters or default_adapters({
            "openai": openai_api_key,
            "anthropic": anthropic_api_key,
            "google": google_api_key,
            "stability": stability_api_key,
            "midjourney": midjourney_api_key,
        })
        self.ledger = ledger or UsageLedger(store=store, plan_loader=plan_loader)
        self.policy = RoutingPolicy(self.registry)
        self.dispatcher = ProviderDispatcher(self.registry, self.adapters, timeout=dispatch_timeout)
        self.gate = BudgetGate(self.ledger)
        self.orchestrator = RoutingOrchestrator(
            self.policy,
            self.dispatcher,
            self.ledger,
            gate=self.gate,
            hard_cap=hard_cap,
        )

    async def route_and_execute(self, request: GenerationRequest) -> RouteResult:
        return await self.orchestrator.route_and_execute(request)

    async def generate_text(
        self,
        tenant_id: str,
        prompt: str,
        history: Optional[List[ConversationMessage]] = None,
        model: str = "auto",
        style_preference: str = StylePreference.BALANCED,
        max_tokens: int = 1024,
    ) -> RouteResult:
        """Send a chat message, auto-routed unless ``model`` names a text model.

        Args:
            tenant_id: Tenant the request is charged to
            prompt: The user's message
            history: Prior messages of the conversation (last 20 are sent)
            model: Model id or "auto"
            style_preference: speed, quality, creative or balanced
            max_tokens: Upper bound on the reply length
        """
        return await self.orchestrator.route_text(
            tenant_id,
            prompt,
            history=history,
            max_tokens=max_tokens,
            user_preference=UserPreference(model_override=model, style_preference=style_preference),
        )

    async def generate_image(
        self,
        tenant_id: str,
        prompt: str,
        negative_prompt: Optional[str] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
        count: int = 1,
        model: str = "auto",
        style_preference: str = StylePreference.BALANCED,
        style: Optional[str] = None,
    ) -> RouteResult:
        """Generate images, auto-routed unless ``model`` names an image model.

        ``style`` picks the image style instead of detecting it from the prompt.
        """
        return await self.orchestrator.route_image(
            tenant_id,
            prompt,
            negative_prompt=negative_prompt,
            size=size,
            quality=quality,
            count=count,
            style=style,
            user_preference=UserPreference(model_override=model, style_preference=style_preference),
        )

    def suggest_prompt_enhancement(self, prompt: str, style: Optional[str] = None) -> str:
        """Image prompt with the style's enhancement suffix appended."""
        return enhance_prompt(prompt, style)

    async def get_usage_stats(self, tenant_id: str, period: str = UsagePeriod.DAY) -> UsageStats:
        return await self.ledger.get_usage_stats(tenant_id, period)

    async def get_budget_status(self, tenant_id: str) -> BudgetStatus:
        return await self.ledger.get_budget_status(tenant_id)

    async def get_routing_insights(self, tenant_id: str, days: int = 30) -> RoutingInsights:
        return await self.ledger.get_routing_insights(tenant_id, days)

    async def get_daily_usage_history(self, tenant_id: str, days: int = 30) -> List[DailyUsage]:
        return await self.ledger.get_daily_usage_history(tenant_id, days)

    def get_available_models(self, request_type: str) -> List[ModelProfile]:
        """Registered models of a request type that are not marked down."""
        return [p for p in self.registry.list_models(request_type) if not p.is_down]

    def set_model_availability(self, model_id: str, availability: str) -> None:
        """Forward an external health signal to the registry."""
        self.registry.set_availability(model_id, Availability(availability))
