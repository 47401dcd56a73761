"""
Lyrics Translator - Services
"""
from lyrics_translator.services.cache_service import PersistentCache
from lyrics_translator.services.llm_client import LLMClient
from lyrics_translator.services.dispatcher import RateLimitedDispatcher
from lyrics_translator.services.batcher import TranslationQueue, EnqueueResult
from lyrics_translator.services.smart_skip import SmartSkipController
from lyrics_translator.services.reconciler import Reconciler
from lyrics_translator.services.tracker import UnitTracker
from lyrics_translator.services.pipeline import Clock, TranslationPipeline, PipelineWorker

__all__ = [
    "PersistentCache",
    "LLMClient",
    "RateLimitedDispatcher",
    "TranslationQueue",
    "EnqueueResult",
    "SmartSkipController",
    "Reconciler",
    "UnitTracker",
    "Clock",
    "TranslationPipeline",
    "PipelineWorker"
]
