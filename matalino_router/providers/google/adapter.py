import asyncio
from typing import Any, Dict, List

from dotenv import load_dotenv

from ..base import ProviderError, build_chat_messages, image_dimensions
from ..errors import ErrorMapper
from ..http_base import HTTPProviderAdapter
from ...models.generation import GeneratedImage, GenerationRequest, ProviderResponse, RequestType
from ...observability.logging import RoutingLogger

logger = RoutingLogger("google")

# Load environment variables
load_dotenv()

# Gemini names the assistant role "model"
GEMINI_ROLES = {"user": "user", "assistant": "model"}


class GoogleProvider(HTTPProviderAdapter):
    """Google AI provider: Gemini text models and Gemini image generation."""

    provider_name = "google"
    api_key_env_var = "GOOGLE_AI_API_KEY"
    base_url = "https://generativelanguage.googleapis.com/v1beta"
    request_types = (RequestType.TEXT.value, RequestType.IMAGE.value)

    def _auth_headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self._api_key}

    async def generate(self, model, request: GenerationRequest) -> ProviderResponse:
        """Generate text or images using the Gemini generateContent API."""
        with logger.track_call("generate", model.id, request):
            try:
                if request.request_type == RequestType.IMAGE:
                    return await self._generate_images(model, request)
                return await self._generate_text(model, request)
            except ProviderError:
                raise
            except Exception as e:
                raise ErrorMapper.map_error(e, "google")

    def _text_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        contents = []
        system_parts = []
        for msg in build_chat_messages(request):
            if msg["role"] == "system":
                system_parts.append({"text": msg["content"]})
                continue
            contents.append({"role": GEMINI_ROLES[msg["role"]], "parts": [{"text": msg["content"]}]})

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {"maxOutputTokens": request.max_tokens},
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return payload

    async def _generate_text(self, model, request: GenerationRequest) -> ProviderResponse:
        data = await self._post_json(
            f"/models/{model.backend_model}:generateContent", self._text_payload(request)
        )

        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise ProviderError(f"Google AI API error: response blocked ({block_reason})", provider="google")

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text_content = "".join(part.get("text", "") for part in parts)

        usage = {}
        metadata = data.get("usageMetadata")
        if metadata:
            usage = {
                "prompt_tokens": metadata.get("promptTokenCount", 0),
                "completion_tokens": metadata.get("candidatesTokenCount", 0),
                "total_tokens": metadata.get("totalTokenCount", 0),
            }
            logger.log_usage(usage, model.id, request)

        finish_reason = candidate.get("finishReason")
        return ProviderResponse(
            content=text_content,
            usage=usage,
            provider="google",
            finish_reason=finish_reason.lower() if finish_reason else None,
        )

    async def _generate_images(self, model, request: GenerationRequest) -> ProviderResponse:
        width, height = image_dimensions(request.size_hint)
        payload = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }

        responses = await asyncio.gather(*[
            self._post_json(f"/models/{model.backend_model}:generateContent", payload)
            for _ in range(request.count)
        ])

        images: List[GeneratedImage] = []
        for data in responses:
            for candidate in data.get("candidates") or []:
                for part in (candidate.get("content") or {}).get("parts") or []:
                    inline = part.get("inlineData") or part.get("inline_data")
                    if not inline:
                        continue
                    mime_type = inline.get("mimeType", "image/png")
                    images.append(GeneratedImage(
                        url=f"data:{mime_type};base64,{inline['data']}",
                        width=width,
                        height=height,
                    ))

        if not images:
            raise ProviderError("Google AI API error: no image returned", provider="google")

        return ProviderResponse(images=images, provider="google", finish_reason="stop")
