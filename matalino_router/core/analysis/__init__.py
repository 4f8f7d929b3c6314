"""Prompt analysis layer.

This layer handles:
- Complexity, style and task detection from raw prompts
- Style enhancement suffixes for image prompts
- Prompt length and content validation
"""

from .analyzer import (
    analysis_signals,
    analyze_image_prompt,
    analyze_prompt,
    analyze_text_prompt,
    contains_keyword,
    enhance_prompt,
)
from .validation import validate_prompt

__all__ = [
    "analysis_signals",
    "analyze_image_prompt",
    "analyze_prompt",
    "analyze_text_prompt",
    "contains_keyword",
    "enhance_prompt",
    "validate_prompt",
]
