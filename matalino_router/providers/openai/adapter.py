import asyncio
import os
from typing import List, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI

from ..base import ProviderAdapter, ProviderError, build_chat_messages, image_dimensions
from ..errors import ErrorMapper
from ...config.models import DEFAULT_IMAGE_QUALITY, DEFAULT_IMAGE_SIZE
from ...models.generation import GeneratedImage, GenerationRequest, ProviderResponse, RequestType
from ...observability.logging import RoutingLogger

logger = RoutingLogger("openai")

# Load environment variables
load_dotenv()


class OpenAIProvider(ProviderAdapter):
    """OpenAI provider: chat completions for text, images API for DALL-E."""

    request_types = (RequestType.TEXT.value, RequestType.IMAGE.value)

    def __init__(self, api_key: Optional[str] = None):
        self._client: Optional[AsyncOpenAI] = None
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            if not self._api_key:
                raise ErrorMapper.missing_credentials("openai", "OPENAI_API_KEY")
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    def is_available(self) -> bool:
        return self._client is not None or bool(self._api_key)

    async def generate(self, model, request: GenerationRequest) -> ProviderResponse:
        """Generate text or images using the OpenAI API."""
        with logger.track_call("generate", model.id, request):
            try:
                if request.request_type == RequestType.IMAGE:
                    return await self._generate_images(model, request)
                return await self._generate_text(model, request)
            except ProviderError:
                raise
            except Exception as e:
                raise ErrorMapper.map_error(e, "openai")

    async def _generate_text(self, model, request: GenerationRequest) -> ProviderResponse:
        response = await self.client.chat.completions.create(
            model=model.backend_model,
            messages=build_chat_messages(request),
            max_completion_tokens=request.max_tokens,
        )

        choice = response.choices[0]
        usage = {}
        if getattr(response, "usage", None) is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
            logger.log_usage(usage, model.id, request)

        return ProviderResponse(
            content=choice.message.content or "",
            usage=usage,
            provider="openai",
            finish_reason=choice.finish_reason,
        )

    async def _generate_images(self, model, request: GenerationRequest) -> ProviderResponse:
        size = request.size_hint or DEFAULT_IMAGE_SIZE
        width, height = image_dimensions(size)

        # DALL-E 3 only accepts n=1, so multiple images are separate calls
        responses = await asyncio.gather(*[
            self.client.images.generate(
                model=model.backend_model,
                prompt=request.prompt,
                n=1,
                size=size,
                quality=request.quality_hint or DEFAULT_IMAGE_QUALITY,
            )
            for _ in range(request.count)
        ])

        images: List[GeneratedImage] = []
        for response in responses:
            for item in response.data:
                images.append(GeneratedImage(
                    url=item.url,
                    width=width,
                    height=height,
                    revised_prompt=getattr(item, "revised_prompt", None),
                ))

        if not images:
            raise ProviderError("OpenAI API error: no image returned", provider="openai")

        return ProviderResponse(images=images, provider="openai", finish_reason="stop")
