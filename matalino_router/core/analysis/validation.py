"""Prompt validation run before any budget or backend work."""

from typing import List, Optional

from ...config.constants import (
    DISALLOWED_CONTENT,
    NEGATIVE_PROMPT_MAX_CHARS,
    PROMPT_BOUNDS,
)
from ...models.generation import RequestType
from ...models.routing import PromptValidation
from .analyzer import contains_keyword


def validate_prompt(prompt: str, request_type: str,
                    negative_prompt: Optional[str] = None) -> PromptValidation:
    """
    Validate prompt length and content for a request type.

    Args:
        prompt: Raw prompt text
        request_type: "text" or "image"
        negative_prompt: Optional negative prompt (image only)

    Returns:
        PromptValidation listing every issue found
    """
    request_type = RequestType(request_type).value
    bounds = PROMPT_BOUNDS[request_type]
    issues: List[str] = []

    length = len(prompt.strip())
    if length < bounds["min_chars"]:
        issues.append(f"Prompt must be at least {bounds['min_chars']} characters.")
    elif length > bounds["max_chars"]:
        issues.append(f"Prompt must be at most {bounds['max_chars']} characters.")

    if negative_prompt is not None and len(negative_prompt) > NEGATIVE_PROMPT_MAX_CHARS:
        issues.append(f"Negative prompt must be at most {NEGATIVE_PROMPT_MAX_CHARS} characters.")

    text = prompt.lower()
    for category, keywords in DISALLOWED_CONTENT[request_type]:
        if contains_keyword(text, keywords):
            issues.append(f"Prompt contains disallowed {category} content.")

    return PromptValidation(valid=not issues, issues=issues)
