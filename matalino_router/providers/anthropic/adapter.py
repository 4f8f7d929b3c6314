import os
from typing import Optional

from dotenv import load_dotenv
from anthropic import AsyncAnthropic

# Load environment variables
load_dotenv()

from ..base import ProviderAdapter, ProviderError, build_chat_messages
from ..errors import ErrorMapper
from ...models.generation import GenerationRequest, ProviderResponse, RequestType
from ...observability.logging import RoutingLogger


logger = RoutingLogger("anthropic")


class AnthropicProvider(ProviderAdapter):
    """Anthropic Claude provider for text requests."""

    request_types = (RequestType.TEXT.value,)

    def __init__(self, api_key: Optional[str] = None):
        self._client: Optional[AsyncAnthropic] = None
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")

    @property
    def client(self) -> AsyncAnthropic:
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            if not self._api_key:
                raise ErrorMapper.missing_credentials("anthropic", "ANTHROPIC_API_KEY")
            self._client = AsyncAnthropic(api_key=self._api_key)
        return self._client

    def is_available(self) -> bool:
        return self._client is not None or bool(self._api_key)

    async def generate(self, model, request: GenerationRequest) -> ProviderResponse:
        """Generate text using the Anthropic messages API."""
        with logger.track_call("generate", model.id, request):
            try:
                system_message = None
                messages = []
                for msg in build_chat_messages(request):
                    if msg["role"] == "system":
                        system_message = msg["content"]
                    else:
                        messages.append(msg)

                params = {
                    "model": model.backend_model,
                    "max_tokens": request.max_tokens,
                    "messages": messages,
                }
                if system_message:
                    params["system"] = system_message

                response = await self.client.messages.create(**params)

                text_content = "".join(
                    block.text for block in response.content
                    if getattr(block, "type", None) == "text"
                )

                usage = {}
                if getattr(response, "usage", None) is not None:
                    prompt_tokens = response.usage.input_tokens
                    completion_tokens = response.usage.output_tokens
                    usage = {
                        "prompt_tokens": prompt_tokens,
                        "completion_tokens": completion_tokens,
                        "total_tokens": prompt_tokens + completion_tokens,
                    }
                    logger.log_usage(usage, model.id, request)

                return ProviderResponse(
                    content=text_content,
                    usage=usage,
                    provider="anthropic",
                    finish_reason=getattr(response, 'stop_reason', None)
                )

            except ProviderError:
                raise
            except Exception as e:
                raise ErrorMapper.map_error(e, "anthropic")
