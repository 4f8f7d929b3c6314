"""
Routing Constants

Central location for the analyzer keyword tables, complexity thresholds,
prompt validation bounds and per-tier plan limits. Everything the analyzer
and the gate consult lives here as data, so adding a style, a keyword or a
threshold never requires a code change.
"""

# Prompt analysis: keyword groups (whole-word match, optional plural "s")
KEYWORD_GROUPS = {
    "detail": ("detailed", "intricate", "complex", "elaborate", "sophisticated"),
    "simple": ("simple", "basic", "minimal", "clean", "plain"),
    "speed": ("quick", "fast", "draft", "iteration", "test", "preview"),
}

# Image styles in priority order - first matching group wins
IMAGE_STYLE_KEYWORDS = (
    ("photorealistic", ("photorealistic", "photo", "realistic", "real", "portrait", "landscape", "photography")),
    ("artistic", ("artistic", "art", "painting", "watercolor", "oil", "acrylic")),
    ("abstract", ("abstract", "surreal", "conceptual", "experimental")),
    ("illustration", ("illustration", "cartoon", "drawing", "comic", "graphic")),
    ("sketch", ("sketch", "pencil", "charcoal", "line art")),
    ("anime", ("anime", "manga", "japanese")),
    ("logo", ("logo", "brand", "icon", "symbol")),
    ("technical", ("diagram", "technical", "blueprint", "schematic")),
)
DEFAULT_IMAGE_STYLE = "photorealistic"
IMAGE_STYLES = tuple(name for name, _ in IMAGE_STYLE_KEYWORDS)

# Suffix appended to an image prompt to steer a backend towards a style
IMAGE_STYLE_ENHANCEMENTS = {
    "photorealistic": ", professional photography, high detail, 8k resolution, realistic lighting",
    "artistic": ", artistic style, painted with attention to composition and color harmony",
    "abstract": ", abstract art, creative interpretation, bold colors and shapes",
    "illustration": ", digital illustration, clean lines, vibrant colors, professional artwork",
    "sketch": ", pencil sketch, hand-drawn style, artistic linework, detailed shading",
    "anime": ", anime style, detailed character art, vibrant colors, manga inspired",
    "logo": ", logo design, clean and professional, vector style, simple and memorable",
    "technical": ", technical diagram, precise and clear, professional schematic style",
}

# Text task detection in priority order - first matching group wins
TEXT_TASK_KEYWORDS = (
    ("code_generation", ("code", "function", "bug", "debug", "python", "javascript", "sql", "api", "script", "refactor")),
    ("creative_writing", ("story", "poem", "creative", "slogan", "tagline", "fiction", "brainstorm")),
    ("data_analysis", ("analyze", "analysis", "data", "metrics", "statistics", "trend", "report", "chart")),
    ("email_writing", ("email", "newsletter", "subject line", "reply")),
    ("summarization", ("summarize", "summary", "tldr", "recap")),
    ("translation", ("translate", "translation", "spanish", "french", "german")),
)
DEFAULT_TEXT_TASK = "general_qa"

# Complexity thresholds (word counts) per request type
COMPLEXITY_THRESHOLDS = {
    "text": {
        "simple_below": 10,      # fewer words than this counts as simple
        "detail_above": 40,      # more words than this requires detail
        "complex_above": 40,     # more words than this is complex
    },
    "image": {
        "simple_below": 10,
        "detail_above": 30,
        "complex_above": 40,
    },
}

COMPLEXITY_SCORES = {"simple": 1, "moderate": 2, "complex": 3}

# Rough token estimate for text cost planning
TOKENS_PER_WORD = 1.3
HISTORY_MESSAGE_LIMIT = 20  # Last N chat messages sent to the backend

# Prompt validation per request type
PROMPT_BOUNDS = {
    "text": {"min_chars": 1, "max_chars": 10000},
    "image": {"min_chars": 3, "max_chars": 1000},
}
NEGATIVE_PROMPT_MAX_CHARS = 500

# Disallowed-content heuristics per request type: (category, keywords)
DISALLOWED_CONTENT = {
    "text": (),
    "image": (
        ("violent", ("violence", "blood", "gore", "weapon")),
        ("adult", ("nude", "naked", "nsfw")),
        ("celebrity", ("celebrity", "famous person")),
    ),
}

# Budget management
BUDGET_WARNING_THRESHOLD = 0.8  # Warn at 80% of daily budget

# Plan limits per subscription tier (daily)
TIER_LIMITS = {
    "free": {
        "limit_cents": 100,
        "request_limit": 70,
        "request_limits_by_type": {"text": 50, "image": 20},
    },
    "pro": {
        "limit_cents": 1000,
        "request_limit": 700,
        "request_limits_by_type": {"text": 500, "image": 200},
    },
    "business": {
        "limit_cents": 10000,
        "request_limit": 7000,
        "request_limits_by_type": {"text": 5000, "image": 2000},
    },
}
DEFAULT_TIER = "free"

# Upgrade hints for rejected requests
TIER_PROGRESSION = {
    "free": "pro",
    "pro": "business",
    "business": "business",
}

# Dispatch
DEFAULT_DISPATCH_TIMEOUT_SECONDS = 60.0
DISPATCH_TIMEOUT_ENV_VAR = "MATALINO_DISPATCH_TIMEOUT"

# Environment variables for registry overrides
PRICING_OVERRIDES_ENV_VAR = "MATALINO_PRICING_OVERRIDES_JSON"
PRICING_OVERRIDES_FILE_ENV_VAR = "MATALINO_PRICING_OVERRIDES_FILE"
AVAILABILITY_OVERRIDES_ENV_VAR = "MATALINO_MODEL_AVAILABILITY_JSON"
