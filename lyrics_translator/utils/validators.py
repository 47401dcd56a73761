"""
Validation Utilities
====================
Functions for validating reconfiguration input.
"""
import re
from typing import Any, Optional, Tuple

from lyrics_translator.config.constants import PARAM_RANGES, PROVIDERS, SETTING_MAX_COMPLETION_TOKENS


MODEL_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9][a-zA-Z0-9._:/\-]{0,127}$')


def validate_provider(provider_id: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a provider identifier.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not provider_id:
        return False, "Provider is required"
    if provider_id not in PROVIDERS:
        return False, f"Unknown provider: {provider_id}. Available: {', '.join(PROVIDERS)}"
    return True, None


def validate_model_name(model_name: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a model identifier.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not model_name:
        return False, "Model name is required"
    if not MODEL_NAME_PATTERN.match(model_name):
        return False, "Invalid model name format"
    return True, None


def validate_api_key(api_key: str) -> Tuple[bool, Optional[str]]:
    if not api_key or not api_key.strip():
        return False, "API key is required"
    if any(ch.isspace() for ch in api_key.strip()):
        return False, "API key must not contain whitespace"
    return True, None


def validate_param(setting: str, value: Any) -> Tuple[bool, Optional[str], Optional[float]]:
    """
    Validate a tunable LLM parameter against its accepted range.

    ``max_completion_tokens`` also accepts -1, meaning "omit from the request".

    Returns:
        Tuple of (is_valid, error_message, parsed_value)
    """
    if setting not in PARAM_RANGES:
        return False, f"Unknown parameter: {setting}", None

    low, high = PARAM_RANGES[setting]
    is_int = setting == SETTING_MAX_COMPLETION_TOKENS
    try:
        if isinstance(value, bool):
            raise ValueError(value)
        parsed = int(value) if is_int else float(value)
    except (TypeError, ValueError):
        return False, f"Invalid value for {setting}", None

    if is_int and parsed == -1:
        return True, None, parsed
    if parsed < low or parsed > high:
        return False, f"Invalid value. Must be between {low} and {high}", None
    return True, None, parsed
