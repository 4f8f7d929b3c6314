"""Unit tests for the provider dispatcher."""

import pytest

from matalino_router.dispatch import ProviderDispatcher, dispatch_timeout_from_env
from matalino_router.errors import ProviderUnavailable
from matalino_router.models.routing import Availability
from matalino_router.providers.base import ProviderError
from matalino_router.reliability import ErrorCategory


FISHERMAN_PROMPT = (
    "A detailed photorealistic portrait of an elderly fisherman mending his nets on a "
    "wooden pier at dawn, with soft golden light falling across his weathered face, "
    "gulls circling above the harbor, fishing boats resting in the calm water behind "
    "him, and mist rising slowly from the sea in the distance"
)


@pytest.fixture
def photoreal(policy, make_request):
    """A request and its decision, routed to midjourney."""
    request = make_request(FISHERMAN_PROMPT)
    return request, policy.decide(request)


class TestDispatch:
    """Test primary dispatch."""

    @pytest.mark.asyncio
    async def test_primary_success(self, dispatcher, fake_adapters, photoreal):
        request, decision = photoreal
        result = await dispatcher.execute(decision, request)

        assert result.model_used == "midjourney"
        assert result.provider == "midjourney"
        assert result.request_type == "image"
        assert result.cost_cents == 10
        assert result.fallback_used is False
        assert len(result.images) == 1
        assert result.latency_ms >= 0
        assert fake_adapters["midjourney"].calls == ["midjourney"]
        assert fake_adapters["openai"].calls == []

    @pytest.mark.asyncio
    async def test_text_dispatch(self, dispatcher, policy, make_request):
        request = make_request("What is the capital of Peru?", request_type="text")
        result = await dispatcher.execute(policy.decide(request), request)

        assert result.model_used == "gemini-2-5-flash"
        assert result.content == "Reply from gemini-2-5-flash"
        assert result.usage["total_tokens"] == 15
        assert result.finish_reason == "stop"


class TestFallback:
    """Test the single fallback attempt."""

    @pytest.mark.asyncio
    async def test_falls_back_on_failure(self, dispatcher, fake_adapters, photoreal):
        request, decision = photoreal
        fake_adapters["midjourney"].failures["midjourney"] = ProviderError("boom", provider="midjourney")

        result = await dispatcher.execute(decision, request)

        assert result.model_used == "dalle3"
        assert result.provider == "openai"
        assert result.fallback_used is True
        assert result.cost_cents == 4

    @pytest.mark.asyncio
    async def test_charged_failure_cost_carried_over(self, dispatcher, fake_adapters, photoreal):
        request, decision = photoreal
        fake_adapters["midjourney"].failures["midjourney"] = ProviderError(
            "job finished without an image", provider="midjourney", charged=True
        )

        result = await dispatcher.execute(decision, request)

        assert result.model_used == "dalle3"
        assert result.cost_cents == 14

    @pytest.mark.asyncio
    async def test_partially_billed_failure_charges_billed_images_only(self, dispatcher, fake_adapters,
                                                                        policy, make_request):
        request = make_request(FISHERMAN_PROMPT, count=3)
        decision = policy.decide(request)
        fake_adapters["midjourney"].failures["midjourney"] = ProviderError(
            "job finished without an image", provider="midjourney", charged=True, billed_units=1
        )

        result = await dispatcher.execute(decision, request)

        # One midjourney image at 10 cents plus three dalle3 images at 4 cents
        assert result.model_used == "dalle3"
        assert result.cost_cents == 10 + 12

    @pytest.mark.asyncio
    async def test_fallback_skips_failed_model(self, dispatcher, fake_adapters, policy, make_request):
        request = make_request("a quick sketch of a cat", model="dalle3")
        fake_adapters["openai"].failures["dalle3"] = ProviderError("boom", provider="openai")

        result = await dispatcher.execute(policy.decide(request), request)

        assert result.model_used == "gemini-nano-banana"
        assert fake_adapters["google"].calls == ["gemini-nano-banana"]

    @pytest.mark.asyncio
    async def test_fallback_skips_down_models(self, dispatcher, fake_adapters, registry, photoreal):
        request, decision = photoreal
        registry.set_availability("dalle3", Availability.DOWN)
        fake_adapters["midjourney"].failures["midjourney"] = ProviderError("boom", provider="midjourney")

        result = await dispatcher.execute(decision, request)

        assert result.model_used == "gemini-nano-banana"

    @pytest.mark.asyncio
    async def test_primary_and_fallback_fail(self, dispatcher, fake_adapters, photoreal):
        request, decision = photoreal
        fake_adapters["midjourney"].failures["midjourney"] = ProviderError(
            "boom", provider="midjourney", charged=True
        )
        fallback_error = ProviderError("also boom", provider="openai")
        fake_adapters["openai"].failures["dalle3"] = fallback_error

        with pytest.raises(ProviderUnavailable) as exc_info:
            await dispatcher.execute(decision, request)

        error = exc_info.value
        assert error.code == "PROVIDER_UNAVAILABLE"
        assert error.attempts == ["midjourney", "dalle3"]
        assert error.last_error is fallback_error
        assert error.cost_incurred_cents == 10
        assert error.reason == (
            "Generation failed on Midjourney v6 and fallback DALL-E 3. Please try again later."
        )
        # Exactly one retry
        assert fake_adapters["google"].calls == []

    @pytest.mark.asyncio
    async def test_no_fallback_available(self, dispatcher, fake_adapters, registry, photoreal):
        request, decision = photoreal
        registry.set_availability("dalle3", Availability.DOWN)
        registry.set_availability("gemini-nano-banana", Availability.DOWN)
        fake_adapters["midjourney"].failures["midjourney"] = ProviderError("boom", provider="midjourney")

        with pytest.raises(ProviderUnavailable) as exc_info:
            await dispatcher.execute(decision, request)

        assert exc_info.value.attempts == ["midjourney"]
        assert "no fallback model is available" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_timeout_triggers_fallback(self, registry, fake_adapters, photoreal):
        request, decision = photoreal
        fake_adapters["midjourney"].delay = 1.0
        dispatcher = ProviderDispatcher(registry, fake_adapters, timeout=0.05)

        result = await dispatcher.execute(decision, request)

        assert result.model_used == "dalle3"
        assert result.fallback_used is True

    @pytest.mark.asyncio
    async def test_timeout_error_is_classified(self, registry, fake_adapters, photoreal):
        request, decision = photoreal
        fake_adapters["midjourney"].delay = 1.0
        fake_adapters["openai"].delay = 1.0
        dispatcher = ProviderDispatcher(registry, fake_adapters, timeout=0.05)

        with pytest.raises(ProviderUnavailable) as exc_info:
            await dispatcher.execute(decision, request)

        last_error = exc_info.value.last_error
        assert isinstance(last_error, ProviderError)
        assert last_error.error_category == ErrorCategory.TIMEOUT
        assert last_error.is_retryable is True

    @pytest.mark.asyncio
    async def test_plain_exception_triggers_fallback(self, dispatcher, fake_adapters, photoreal):
        request, decision = photoreal
        fake_adapters["midjourney"].failures["midjourney"] = ConnectionError("connection reset")

        result = await dispatcher.execute(decision, request)

        assert result.model_used == "dalle3"
        assert result.fallback_used is True
        assert result.cost_cents == 4

    @pytest.mark.asyncio
    async def test_plain_exceptions_on_both_models_are_typed(self, dispatcher, fake_adapters, photoreal):
        request, decision = photoreal
        fake_adapters["midjourney"].failures["midjourney"] = ConnectionError("connection reset")
        parse_error = KeyError("data")
        fake_adapters["openai"].failures["dalle3"] = parse_error

        with pytest.raises(ProviderUnavailable) as exc_info:
            await dispatcher.execute(decision, request)

        error = exc_info.value
        assert error.attempts == ["midjourney", "dalle3"]
        assert error.cost_incurred_cents == 0
        assert isinstance(error.last_error, ProviderError)
        assert error.last_error.original_error is parse_error
        assert error.last_error.provider == "openai"
        assert error.last_error.error_category == ErrorCategory.UNKNOWN

    @pytest.mark.asyncio
    async def test_connection_error_is_classified_as_network(self, registry, fake_adapters, photoreal):
        request, decision = photoreal
        registry.set_availability("dalle3", Availability.DOWN)
        registry.set_availability("gemini-nano-banana", Availability.DOWN)
        fake_adapters["midjourney"].failures["midjourney"] = ConnectionError("connection reset")
        dispatcher = ProviderDispatcher(registry, fake_adapters, timeout=1.0)

        with pytest.raises(ProviderUnavailable) as exc_info:
            await dispatcher.execute(decision, request)

        assert exc_info.value.last_error.error_category == ErrorCategory.NETWORK
        assert exc_info.value.last_error.is_retryable is True

    @pytest.mark.asyncio
    async def test_missing_adapter_counts_as_failure(self, registry, fake_adapters, policy, make_request):
        adapters = {name: a for name, a in fake_adapters.items() if name != "stability"}
        dispatcher = ProviderDispatcher(registry, adapters, timeout=1.0)
        request = make_request("an abstract watercolor of a lighthouse in a storm")

        result = await dispatcher.execute(policy.decide(request), request)

        assert result.model_used == "dalle3"


class TestTimeoutConfig:
    """Test the dispatch timeout setting."""

    def test_default(self, monkeypatch):
        monkeypatch.delenv("MATALINO_DISPATCH_TIMEOUT", raising=False)
        assert dispatch_timeout_from_env() == 60.0

    def test_from_env(self, monkeypatch, registry):
        monkeypatch.setenv("MATALINO_DISPATCH_TIMEOUT", "2.5")

        assert dispatch_timeout_from_env() == 2.5
        assert ProviderDispatcher(registry, {}).timeout == 2.5

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("MATALINO_DISPATCH_TIMEOUT", "soon")
        assert dispatch_timeout_from_env() == 60.0
