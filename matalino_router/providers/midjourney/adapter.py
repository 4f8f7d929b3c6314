from dotenv import load_dotenv

from ..base import ProviderError, image_dimensions
from ..errors import ErrorMapper
from ..http_base import HTTPProviderAdapter
from ...models.generation import GeneratedImage, GenerationRequest, ProviderResponse, RequestType
from ...observability.logging import RoutingLogger

logger = RoutingLogger("midjourney")

# Load environment variables
load_dotenv()


def aspect_ratio(width: int, height: int) -> str:
    """Reduce pixel dimensions to a Midjourney aspect ratio like ``"4:7"``."""
    a, b = width, height
    while b:
        a, b = b, a % b
    return f"{width // a}:{height // a}"


class MidjourneyProvider(HTTPProviderAdapter):
    """Midjourney provider via its imagine REST endpoint."""

    provider_name = "midjourney"
    api_key_env_var = "MIDJOURNEY_API_KEY"
    base_url = "https://api.midjourney.com/v1"
    request_types = (RequestType.IMAGE.value,)

    async def generate(self, model, request: GenerationRequest) -> ProviderResponse:
        """Generate images with Midjourney, one imagine job per image."""
        images = []
        with logger.track_call("generate", model.id, request):
            try:
                width, height = image_dimensions(request.size_hint)
                payload = {
                    "prompt": request.prompt,
                    "aspect_ratio": aspect_ratio(width, height),
                    "quality": 1,
                }
                if request.negative_prompt:
                    payload["no"] = request.negative_prompt

                for _ in range(request.count):
                    data = await self._post_json("/imagine", payload)
                    image_url = data.get("image_url")
                    if not image_url:
                        # The job ran and was billed even though no image came back
                        raise ProviderError(
                            "Midjourney API error: job finished without an image",
                            provider="midjourney",
                            charged=True,
                            billed_units=len(images) + 1,
                        )
                    images.append(GeneratedImage(url=image_url, width=width, height=height))

                return ProviderResponse(images=images, provider="midjourney", finish_reason="stop")

            except ProviderError:
                raise
            except Exception as e:
                error = ErrorMapper.map_error(e, "midjourney")
                if images:
                    # Jobs that already finished stay billed
                    error.charged = True
                    error.billed_units = len(images)
                raise error
