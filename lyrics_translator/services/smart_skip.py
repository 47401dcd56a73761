"""
Smart-Skip Controller
=====================
One-way circuit breaker: once a completed batch comes back mostly skipped,
the content is presumed to already be in the target language and the rest of
the session is not translated.
"""
from typing import Tuple

from lyrics_translator.config import config
from lyrics_translator.models.pipeline import Batch, BatchResult, SkipStats
from lyrics_translator.utils.language_detection import counts_as_skipped
from lyrics_translator.utils.logging import get_logger, debug_print


class SmartSkipController:
    """Tracks skip ratios and owns the sticky ``suppressed`` flag."""

    def __init__(self, threshold: float = None, enabled: bool = True):
        self.threshold = config.pipeline.smart_skip_threshold if threshold is None else threshold
        self.enabled = enabled
        self.suppressed = False
        self.stats = SkipStats()
        self.logger = get_logger().pipeline_logger

    @property
    def should_resolve_as_skip(self) -> bool:
        """New units are resolved as skip without a network call."""
        return self.enabled and self.suppressed

    def reset(self, enabled: bool) -> bool:
        """
        Start a fresh session with the given enable flag.

        Returns:
            True when a suppressed session was released
        """
        released = self.suppressed
        self.enabled = enabled
        self.suppressed = False
        self.stats = SkipStats()
        return released

    @staticmethod
    def count(batch: Batch, result: BatchResult) -> Tuple[int, int]:
        """Return ``(skipped, total)`` over the distinct items of a batch."""
        skipped = 0
        for item_id, item in batch.id_map.items():
            if counts_as_skipped(item.text, result.translation_for(item_id)):
                skipped += 1
        return skipped, len(batch.id_map)

    def observe(self, batch: Batch, result: BatchResult) -> bool:
        """
        Record a processed batch.

        Returns:
            True exactly once, for the batch that trips suppression
        """
        skipped, total = self.count(batch, result)
        self.stats.skipped += skipped
        self.stats.total += total
        self.stats.batches += 1

        if not self.enabled or self.suppressed or total == 0:
            return False

        ratio = skipped / total
        if ratio < self.threshold:
            return False

        self.suppressed = True
        self.logger.info(
            f"Smart skip activated: {skipped}/{total} lines skipped "
            f"(ratio {ratio:.2f} >= {self.threshold:.2f})"
        )
        debug_print("[SMART SKIP] Activated for this session", 'INFO', 'SMART_SKIP')
        return True
