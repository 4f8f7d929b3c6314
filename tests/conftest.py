"""Shared pytest fixtures for Matalino Router tests."""

import asyncio
import httpx
import pytest
from datetime import date, timedelta
from unittest.mock import Mock, AsyncMock
from typing import Dict, List

from matalino_router.core.registry import ModelRegistry
from matalino_router.core.routing.policy import RoutingPolicy
from matalino_router.dispatch import ProviderDispatcher
from matalino_router.ledger import BudgetGate, InMemoryUsageStore, StaticPlanLoader, UsageLedger
from matalino_router.models.generation import (
    GeneratedImage,
    GenerationRequest,
    ProviderResponse,
    RequestType,
    UserPreference,
)
from matalino_router.models.conversation_types import ConversationMessage, TurnRole as ConversationRole
from matalino_router.orchestrator import RoutingOrchestrator
from matalino_router.providers.base import ProviderAdapter


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests wiring the full routing pipeline")


def pytest_collection_modifyitems(items):
    # Anything not marked integration runs with the unit selection
    for item in items:
        if "integration" not in item.keywords:
            item.add_marker(pytest.mark.unit)


class FakeAdapter(ProviderAdapter):
    """In-process adapter that records calls and fails on demand."""

    def __init__(self, name: str, request_types=(RequestType.TEXT.value, RequestType.IMAGE.value)):
        self.name = name
        self.request_types = tuple(request_types)
        self.calls: List[str] = []
        self.failures: Dict[str, Exception] = {}
        self.delay: float = 0.0

    def get_provider_name(self) -> str:
        return self.name

    def is_available(self) -> bool:
        return True

    async def generate(self, model, request: GenerationRequest) -> ProviderResponse:
        self.calls.append(model.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if model.id in self.failures:
            raise self.failures[model.id]
        if request.request_type == RequestType.IMAGE:
            return ProviderResponse(
                images=[
                    GeneratedImage(url=f"https://images.test/{model.id}/{i}.png", width=1024, height=1024)
                    for i in range(request.count)
                ],
                provider=self.name,
                finish_reason="stop",
            )
        return ProviderResponse(
            content=f"Reply from {model.id}",
            usage={"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
            provider=self.name,
            finish_reason="stop",
        )


class MutableClock:
    """Clock returning a settable "today"."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1) -> None:
        self.today = self.today + timedelta(days=days)


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    env_vars = {
        "OPENAI_API_KEY": "test-openai-key",
        "ANTHROPIC_API_KEY": "test-anthropic-key",
        "GOOGLE_AI_API_KEY": "test-google-key",
        "STABILITY_API_KEY": "test-stability-key",
        "MIDJOURNEY_API_KEY": "test-midjourney-key",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def registry():
    """Registry built from the shipped catalogue, ignoring env overrides."""
    return ModelRegistry.from_config(apply_overrides=False)


@pytest.fixture
def fake_adapters():
    """One fake adapter per catalogue provider."""
    return {
        "openai": FakeAdapter("openai"),
        "anthropic": FakeAdapter("anthropic", request_types=("text",)),
        "google": FakeAdapter("google"),
        "stability": FakeAdapter("stability", request_types=("image",)),
        "midjourney": FakeAdapter("midjourney", request_types=("image",)),
    }


@pytest.fixture
def clock():
    return MutableClock(date(2026, 3, 14))


@pytest.fixture
def usage_store():
    return InMemoryUsageStore()


@pytest.fixture
def plan_loader():
    return StaticPlanLoader(tenant_tiers={"tenant-pro": "pro", "tenant-biz": "business"})


@pytest.fixture
def ledger(usage_store, plan_loader, clock):
    return UsageLedger(store=usage_store, plan_loader=plan_loader, clock=clock)


@pytest.fixture
def gate(ledger):
    return BudgetGate(ledger)


@pytest.fixture
def policy(registry):
    return RoutingPolicy(registry)


@pytest.fixture
def dispatcher(registry, fake_adapters):
    return ProviderDispatcher(registry, fake_adapters, timeout=1.0)


@pytest.fixture
def orchestrator(policy, dispatcher, ledger, gate):
    return RoutingOrchestrator(policy, dispatcher, ledger, gate=gate)


@pytest.fixture
def make_request():
    """Factory for generation requests with sensible defaults."""
    def _make(prompt: str = "a quick sketch of a cat",
              request_type: str = "image",
              tenant_id: str = "tenant-1",
              model: str = "auto",
              style_preference: str = "balanced",
              **kwargs) -> GenerationRequest:
        return GenerationRequest(
            tenant_id=tenant_id,
            request_type=request_type,
            prompt=prompt,
            user_preference=UserPreference(model_override=model, style_preference=style_preference),
            **kwargs,
        )
    return _make


@pytest.fixture
def sample_conversation_messages():
    """Sample conversation messages."""
    return [
        ConversationMessage(
            role=ConversationRole.SYSTEM,
            content="You are a helpful assistant."
        ),
        ConversationMessage(
            role=ConversationRole.USER,
            content="What is the weather like?"
        ),
        ConversationMessage(
            role=ConversationRole.ASSISTANT,
            content="I don't have access to real-time weather data."
        )
    ]


@pytest.fixture
def mock_openai_client():
    """Mock OpenAI client."""
    client = AsyncMock()

    completion = Mock()
    completion.choices = [Mock(message=Mock(content="Test response"), finish_reason="stop")]
    usage_mock = Mock()
    usage_mock.prompt_tokens = 10
    usage_mock.completion_tokens = 5
    usage_mock.total_tokens = 15
    completion.usage = usage_mock
    client.chat.completions.create = AsyncMock(return_value=completion)

    image = Mock(url="https://images.test/dalle.png", revised_prompt="A revised prompt")
    client.images.generate = AsyncMock(return_value=Mock(data=[image]))

    return client


@pytest.fixture
def mock_anthropic_client():
    """Mock Anthropic client."""
    client = AsyncMock()

    message = Mock()
    message.content = [Mock(type="text", text="Test response")]
    message.stop_reason = "end_turn"
    usage_mock = Mock()
    usage_mock.input_tokens = 10
    usage_mock.output_tokens = 5
    message.usage = usage_mock

    client.messages.create = AsyncMock(return_value=message)
    return client


@pytest.fixture
def mock_transport():
    """Builds an httpx client whose requests are answered by ``handler`` and recorded."""
    def _make(handler, base_url: str = "https://backend.test"):
        seen: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record), base_url=base_url)
        return client, seen
    return _make
