"""
Prompt analysis.

Derives routing signals (complexity, style, task, speed and detail needs)
from a raw prompt. Pure and deterministic: the same prompt always yields the
same analysis, and every input, including the empty string, has one.
"""

import re
from functools import lru_cache
from typing import Dict, Iterable, Optional, Pattern

from ...config.constants import (
    COMPLEXITY_SCORES,
    COMPLEXITY_THRESHOLDS,
    DEFAULT_IMAGE_STYLE,
    DEFAULT_TEXT_TASK,
    IMAGE_STYLE_ENHANCEMENTS,
    IMAGE_STYLE_KEYWORDS,
    KEYWORD_GROUPS,
    TEXT_TASK_KEYWORDS,
)
from ...models.generation import RequestType
from ...models.routing import ComplexityTier, PromptAnalysis
from ..routing.decision_table import match_rule


@lru_cache(maxsize=None)
def _keyword_pattern(keywords: tuple) -> Pattern:
    # Whole words, optional plural "s"
    alternation = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b(?:{alternation})s?\b")


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Return True if lowercased ``text`` contains any of ``keywords`` as a word."""
    keywords = tuple(keywords)
    if not keywords:
        return False
    return _keyword_pattern(keywords).search(text) is not None


def _first_group(text: str, groups, default: str) -> str:
    for name, keywords in groups:
        if contains_keyword(text, keywords):
            return name
    return default


def _complexity_tier(word_count: int, is_simple: bool, requires_detail: bool,
                     thresholds: Dict[str, int]) -> ComplexityTier:
    if is_simple and not requires_detail:
        return ComplexityTier.SIMPLE
    if requires_detail or word_count > thresholds["complex_above"]:
        return ComplexityTier.COMPLEX
    return ComplexityTier.MODERATE


def analyze_prompt(prompt: str, request_type: str, style_hint: Optional[str] = None) -> PromptAnalysis:
    """
    Analyze a prompt for routing.

    Args:
        prompt: Raw prompt text
        request_type: "text" or "image"
        style_hint: Caller-chosen image style; replaces keyword detection when set

    Returns:
        PromptAnalysis with the recommended model from the decision table
    """
    request_type = RequestType(request_type).value
    thresholds = COMPLEXITY_THRESHOLDS[request_type]
    text = prompt.lower()
    word_count = len(prompt.split())

    needs_speed = contains_keyword(text, KEYWORD_GROUPS["speed"])
    is_simple = word_count < thresholds["simple_below"] or contains_keyword(text, KEYWORD_GROUPS["simple"])
    requires_detail = word_count > thresholds["detail_above"] or contains_keyword(text, KEYWORD_GROUPS["detail"])
    tier = _complexity_tier(word_count, is_simple, requires_detail, thresholds)

    style: Optional[str] = None
    task_type: Optional[str] = None
    if request_type == RequestType.IMAGE.value:
        style = style_hint or _first_group(text, IMAGE_STYLE_KEYWORDS, DEFAULT_IMAGE_STYLE)
    else:
        task_type = _first_group(text, TEXT_TASK_KEYWORDS, DEFAULT_TEXT_TASK)

    signals = {
        "complexity_tier": tier.value,
        "style": style,
        "task_type": task_type,
        "needs_speed": needs_speed,
        "requires_detail": requires_detail,
        "is_simple": is_simple,
        "word_count": word_count,
    }
    rule = match_rule(request_type, signals)

    subject = f"style: {style}" if style else f"task: {task_type}"
    if style and style_hint:
        subject += " (requested)"
    reasoning = f"{rule.reasoning} ({tier.value}, {word_count} words, {subject})"

    return PromptAnalysis(
        request_type=request_type,
        complexity_tier=tier,
        style=style,
        task_type=task_type,
        needs_speed=needs_speed,
        requires_detail=requires_detail,
        is_simple=is_simple,
        word_count=word_count,
        complexity_score=COMPLEXITY_SCORES[tier.value],
        recommended_model=rule.candidates[0],
        reasoning=reasoning,
    )


def analyze_image_prompt(prompt: str, style_hint: Optional[str] = None) -> PromptAnalysis:
    return analyze_prompt(prompt, RequestType.IMAGE, style_hint)


def analyze_text_prompt(prompt: str) -> PromptAnalysis:
    return analyze_prompt(prompt, RequestType.TEXT)


def analysis_signals(analysis: PromptAnalysis) -> Dict[str, object]:
    """Signals of an analysis in the shape the decision table consumes."""
    return {
        "complexity_tier": analysis.complexity_tier,
        "style": analysis.style,
        "task_type": analysis.task_type,
        "needs_speed": analysis.needs_speed,
        "requires_detail": analysis.requires_detail,
        "is_simple": analysis.is_simple,
        "word_count": analysis.word_count,
    }


def enhance_prompt(prompt: str, style: Optional[str] = None) -> str:
    """
    Append the style's enhancement suffix to an image prompt.

    Args:
        prompt: Raw image prompt
        style: Target style; detected from the prompt when omitted

    Raises:
        ValueError: If ``style`` is not a known image style
    """
    if style is None:
        style = analyze_image_prompt(prompt).style
    if style not in IMAGE_STYLE_ENHANCEMENTS:
        raise ValueError(f"Unknown image style: {style}")
    return prompt + IMAGE_STYLE_ENHANCEMENTS[style]
