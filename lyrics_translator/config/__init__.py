"""
Lyrics Translator - Configuration Module
"""
from lyrics_translator.config.settings import Config, config
from lyrics_translator.config.constants import (
    PROVIDERS,
    SKIP_SENTINEL,
    SUPPORTED_LANGUAGES,
    PipelineState,
    LogLevel
)

__all__ = [
    "Config",
    "config",
    "PROVIDERS",
    "SKIP_SENTINEL",
    "SUPPORTED_LANGUAGES",
    "PipelineState",
    "LogLevel"
]
