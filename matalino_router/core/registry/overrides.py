"""Pricing and availability overrides for model configurations."""

import os
import json
import logging
from typing import Any, Dict

from ...config.constants import (
    AVAILABILITY_OVERRIDES_ENV_VAR,
    PRICING_OVERRIDES_ENV_VAR,
    PRICING_OVERRIDES_FILE_ENV_VAR,
)
from ...models.routing import Availability

logger = logging.getLogger(__name__)


def load_pricing_overrides() -> Dict[str, Dict[str, float]]:
    """
    Load pricing overrides from environment variable or file.

    Priority order:
    1. MATALINO_PRICING_OVERRIDES_JSON environment variable (JSON string)
    2. MATALINO_PRICING_OVERRIDES_FILE environment variable (path to JSON file)

    Returns:
        Dict mapping model IDs to pricing overrides
    """
    json_str = os.getenv(PRICING_OVERRIDES_ENV_VAR)
    if json_str:
        try:
            overrides = json.loads(json_str)
            logger.info(f"Loaded pricing overrides for {len(overrides)} models from environment")
            return overrides
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse {PRICING_OVERRIDES_ENV_VAR}: {e}")

    file_path = os.getenv(PRICING_OVERRIDES_FILE_ENV_VAR)
    if file_path:
        try:
            with open(file_path, 'r') as f:
                overrides = json.load(f)
            logger.info(f"Loaded pricing overrides for {len(overrides)} models from {file_path}")
            return overrides
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load pricing overrides from {file_path}: {e}")

    return {}


def validate_pricing_override(override: Dict[str, Any]) -> bool:
    """
    Validate a pricing override structure.

    Args:
        override: Single model pricing override, e.g. {"standard": 3}

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(override, dict) or not override:
        return False

    for field, value in override.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            logger.warning(f"Invalid pricing value for {field}: {value}")
            return False

    return True


def apply_pricing_overrides(model_configs: Dict[str, Dict[str, Any]]) -> None:
    """
    Apply pricing overrides to raw model configurations in-place.

    Args:
        model_configs: Dictionary of model configurations to update
    """
    overrides = load_pricing_overrides()
    if not overrides:
        return

    for model_id, pricing in overrides.items():
        if model_id not in model_configs:
            logger.warning(f"Pricing override for unknown model: {model_id}")
            continue
        if not validate_pricing_override(pricing):
            logger.warning(f"Ignoring invalid pricing override for {model_id}")
            continue

        config = model_configs[model_id]
        config["pricing"] = {**config.get("pricing", {}), **pricing}
        logger.debug(f"Applied pricing overrides for {model_id}")


def apply_availability_overrides(model_configs: Dict[str, Dict[str, Any]]) -> None:
    """
    Apply availability overrides (``{"midjourney": "down"}``) in-place.

    Args:
        model_configs: Dictionary of model configurations to update
    """
    json_str = os.getenv(AVAILABILITY_OVERRIDES_ENV_VAR)
    if not json_str:
        return

    try:
        overrides = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse {AVAILABILITY_OVERRIDES_ENV_VAR}: {e}")
        return

    valid_states = {a.value for a in Availability}
    for model_id, availability in overrides.items():
        if model_id not in model_configs:
            logger.warning(f"Availability override for unknown model: {model_id}")
            continue
        if availability not in valid_states:
            logger.warning(f"Invalid availability for {model_id}: {availability}")
            continue
        model_configs[model_id]["availability"] = availability
        logger.debug(f"Model {model_id} marked {availability}")
