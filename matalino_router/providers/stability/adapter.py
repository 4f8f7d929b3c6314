from dotenv import load_dotenv

from ..base import ProviderError, image_dimensions
from ..errors import ErrorMapper
from ..http_base import HTTPProviderAdapter
from ...models.generation import GeneratedImage, GenerationRequest, ProviderResponse, RequestType
from ...observability.logging import RoutingLogger

logger = RoutingLogger("stability")

# Load environment variables
load_dotenv()

CFG_SCALE = 7
STEPS = 30


class StabilityProvider(HTTPProviderAdapter):
    """Stability AI provider for Stable Diffusion XL text-to-image."""

    provider_name = "stability"
    api_key_env_var = "STABILITY_API_KEY"
    base_url = "https://api.stability.ai/v1"
    request_types = (RequestType.IMAGE.value,)

    async def generate(self, model, request: GenerationRequest) -> ProviderResponse:
        """Generate images with SDXL; the negative prompt is sent with weight -1."""
        with logger.track_call("generate", model.id, request):
            try:
                width, height = image_dimensions(request.size_hint)
                text_prompts = [{"text": request.prompt, "weight": 1}]
                if request.negative_prompt:
                    text_prompts.append({"text": request.negative_prompt, "weight": -1})

                data = await self._post_json(
                    f"/generation/{model.backend_model}/text-to-image",
                    {
                        "text_prompts": text_prompts,
                        "cfg_scale": CFG_SCALE,
                        "height": height,
                        "width": width,
                        "samples": request.count,
                        "steps": STEPS,
                    },
                )

                images = [
                    GeneratedImage(
                        url=f"data:image/png;base64,{artifact['base64']}",
                        width=width,
                        height=height,
                    )
                    for artifact in data.get("artifacts") or []
                    if artifact.get("finishReason", "SUCCESS") == "SUCCESS"
                ]
                if not images:
                    raise ProviderError(
                        "Stability AI API error: no image returned (content filtered)",
                        provider="stability",
                    )

                return ProviderResponse(images=images, provider="stability", finish_reason="stop")

            except ProviderError:
                raise
            except Exception as e:
                raise ErrorMapper.map_error(e, "stability")
