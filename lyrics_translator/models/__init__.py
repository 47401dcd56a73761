"""
Lyrics Translator - Data Models
"""
from lyrics_translator.models.pipeline import (
    Batch,
    BatchResult,
    CacheEntry,
    DispatchOutcome,
    DispatcherState,
    QueueItem,
    Rect,
    SkipStats,
    TextUnit
)
from lyrics_translator.models.schemas import (
    ConfigUpdateRequest,
    HealthStatus
)

__all__ = [
    "Batch",
    "BatchResult",
    "CacheEntry",
    "DispatchOutcome",
    "DispatcherState",
    "QueueItem",
    "Rect",
    "SkipStats",
    "TextUnit",
    "ConfigUpdateRequest",
    "HealthStatus"
]
