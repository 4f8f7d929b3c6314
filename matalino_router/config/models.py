# Model catalogue for the routing core.
#
# Text pricing is a blended rate in cents per 1k tokens (input + output).
# Image pricing is in cents per generated image, keyed by quality tier;
# "large" applies to the 1792px sizes.

MODEL_CONFIGS = {
    # Text models
    "gemini-2-5-flash": {
        "display_name": "Gemini 2.5 Flash",
        "provider": "google",
        "request_type": "text",
        "backend_model": "gemini-2.5-flash",
        "description": "Fastest and cheapest text model - default for quick answers",
        "capabilities": ["text", "speed", "default"],
        "availability": "available",
        "pricing": {"cents_per_1k_tokens": 0.1},
    },
    "gemini-2-5-pro": {
        "display_name": "Gemini 2.5 Pro",
        "provider": "google",
        "request_type": "text",
        "backend_model": "gemini-2.5-pro",
        "description": "Long-context model, strong at analysis and structured data",
        "capabilities": ["text", "analysis", "long_context"],
        "availability": "available",
        "pricing": {"cents_per_1k_tokens": 0.6},
    },
    "gpt-5": {
        "display_name": "GPT-5",
        "provider": "openai",
        "request_type": "text",
        "backend_model": "gpt-5",
        "description": "OpenAI's flagship model with the strongest reasoning",
        "capabilities": ["text", "high_fidelity", "reasoning"],
        "availability": "available",
        "pricing": {"cents_per_1k_tokens": 0.8},
    },
    "claude-sonnet-4-5": {
        "display_name": "Claude Sonnet 4.5",
        "provider": "anthropic",
        "request_type": "text",
        "backend_model": "claude-sonnet-4-5",
        "description": "Versatile writer and coder, most flexible in tone and style",
        "capabilities": ["text", "style_flexible", "code", "writing"],
        "availability": "available",
        "pricing": {"cents_per_1k_tokens": 1.2},
    },

    # Image models
    "gemini-nano-banana": {
        "display_name": "Gemini Nano Banana",
        "provider": "google",
        "request_type": "image",
        "backend_model": "gemini-2.5-flash-image",
        "description": "Fastest and cheapest - default for quick results",
        "capabilities": ["image", "speed", "default"],
        "availability": "available",
        "pricing": {"standard": 0.5},
    },
    "sdxl": {
        "display_name": "Stable Diffusion XL",
        "provider": "stability",
        "request_type": "image",
        "backend_model": "stable-diffusion-xl-1024-v1-0",
        "description": "Versatile and creative, excellent for artistic styles",
        "capabilities": ["image", "style_flexible", "negative_prompt"],
        "availability": "available",
        "pricing": {"standard": 2},
    },
    "dalle3": {
        "display_name": "DALL-E 3",
        "provider": "openai",
        "request_type": "image",
        "backend_model": "dall-e-3",
        "description": "Balanced quality and capability, great for general use",
        "capabilities": ["image", "prompt_understanding", "text_rendering"],
        "availability": "available",
        "pricing": {"standard": 4, "hd": 8, "large": 12},
    },
    "midjourney": {
        "display_name": "Midjourney v6",
        "provider": "midjourney",
        "request_type": "image",
        "backend_model": "midjourney-v6",
        "description": "Highest quality, best for photorealism and fine details",
        "capabilities": ["image", "high_fidelity", "photorealism"],
        "availability": "available",
        "pricing": {"standard": 10},
    },
}

# Cheapest default model per request type, used as the savings baseline
BASELINE_MODELS = {
    "text": "gemini-2-5-flash",
    "image": "gemini-nano-banana",
}

# Runtime fallback chain per request type. The dispatcher retries once, on the
# first entry that differs from the failed model and is not down.
FALLBACK_CHAINS = {
    "text": ["gemini-2-5-flash", "gpt-5"],
    "image": ["dalle3", "gemini-nano-banana"],
}

# Planning-time substitution order when a selected model is marked down
SUBSTITUTION_ORDER = {
    "gpt-5": ["claude-sonnet-4-5", "gemini-2-5-pro", "gemini-2-5-flash"],
    "claude-sonnet-4-5": ["gpt-5", "gemini-2-5-pro", "gemini-2-5-flash"],
    "gemini-2-5-pro": ["gpt-5", "gemini-2-5-flash"],
    "gemini-2-5-flash": ["gemini-2-5-pro", "gpt-5"],
    "midjourney": ["dalle3", "sdxl", "gemini-nano-banana"],
    "dalle3": ["midjourney", "sdxl", "gemini-nano-banana"],
    "sdxl": ["dalle3", "gemini-nano-banana"],
    "gemini-nano-banana": ["sdxl", "dalle3"],
}

DEFAULT_IMAGE_SIZE = "1024x1024"
DEFAULT_IMAGE_QUALITY = "standard"
DEFAULT_TEXT_MAX_TOKENS = 1024
