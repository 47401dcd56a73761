"""
Lyrics Translator - Utility Functions
"""
from lyrics_translator.utils.language_detection import (
    needs_translation,
    detect_batch_language,
    is_skip_result,
    counts_as_skipped
)
from lyrics_translator.utils.text_processing import (
    KeyNormalizer,
    normalize_key,
    clean_text_for_comparison,
    attempt_repair,
    parse_translation_map
)
from lyrics_translator.utils.validators import (
    validate_provider,
    validate_model_name,
    validate_param
)
from lyrics_translator.utils.logging import (
    LogBuffer,
    AppLogger,
    get_logger,
    debug_print
)

__all__ = [
    "needs_translation",
    "detect_batch_language",
    "is_skip_result",
    "counts_as_skipped",
    "KeyNormalizer",
    "normalize_key",
    "clean_text_for_comparison",
    "attempt_repair",
    "parse_translation_map",
    "validate_provider",
    "validate_model_name",
    "validate_param",
    "LogBuffer",
    "AppLogger",
    "get_logger",
    "debug_print"
]
