"""
Translation Queue & Batcher
===========================
Classifies discovered units, collapses pending work by normalized key and
drains it into bounded batches ordered by viewport proximity.
"""
import itertools
from collections import OrderedDict
from enum import Enum
from typing import Dict, List, Optional, Tuple

from lyrics_translator.config import config
from lyrics_translator.host.interfaces import NodeDiscovery
from lyrics_translator.models.pipeline import QueueItem, TextUnit
from lyrics_translator.services.cache_service import PersistentCache
from lyrics_translator.services.reconciler import Reconciler
from lyrics_translator.services.smart_skip import SmartSkipController
from lyrics_translator.utils.language_detection import needs_translation
from lyrics_translator.utils.logging import get_logger, debug_print
from lyrics_translator.utils.text_processing import preview


# Viewport priority tiers, drained in ascending order
TIER_ON_SCREEN = 1
TIER_BELOW_FOLD = 2
TIER_ABOVE_FOLD = 3
TIER_DETACHED = 4


class EnqueueResult(str, Enum):
    """How :meth:`TranslationQueue.enqueue` resolved a unit."""
    CACHED = "cached"
    SKIPPED = "skipped"
    SUPPRESSED = "suppressed"
    QUEUED = "queued"
    MERGED = "merged"


class TranslationQueue:
    """Pending translation work, keyed by normalized text."""

    def __init__(
        self,
        discovery: NodeDiscovery,
        cache: PersistentCache,
        smart_skip: SmartSkipController,
        reconciler: Reconciler,
        max_batch_size: int = None,
        collection_delay: float = None
    ):
        self.discovery = discovery
        self.cache = cache
        self.smart_skip = smart_skip
        self.reconciler = reconciler
        self.max_batch_size = max_batch_size or config.pipeline.max_batch_size
        self.collection_delay = (
            config.pipeline.batch_collection_delay if collection_delay is None else collection_delay
        )
        self.logger = get_logger().pipeline_logger

        self._pending: 'OrderedDict[str, QueueItem]' = OrderedDict()
        self._in_flight: Dict[str, QueueItem] = {}
        self._seq = itertools.count()
        # Time of the next drain attempt; None while the drain loop is idle
        self.drain_at: Optional[float] = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def get(self, key: str) -> Optional[QueueItem]:
        return self._pending.get(key) or self._in_flight.get(key)

    def pending_items(self) -> List[QueueItem]:
        return list(self._pending.values())

    # ------------------------------------------------------------------
    # Enqueue
    # ------------------------------------------------------------------

    def enqueue(self, unit: TextUnit, now: float) -> EnqueueResult:
        """
        Resolve a unit from the cache or the skip rules, or queue it.

        A key that is already pending or in flight gets the unit attached to the
        existing item, so at most one item per key ever reaches the dispatcher.
        """
        if unit.key in self.cache:
            self.reconciler.ensure_rendered(unit)
            return EnqueueResult.CACHED

        if not needs_translation(unit.text):
            return EnqueueResult.SKIPPED

        if self.smart_skip.should_resolve_as_skip:
            return EnqueueResult.SUPPRESSED

        existing = self.get(unit.key)
        if existing is not None:
            existing.add_unit(unit.node)
            return EnqueueResult.MERGED

        item = QueueItem(unit.key, unit.text, now, next(self._seq))
        item.add_unit(unit.node)
        self._pending[unit.key] = item
        debug_print(f"[QUEUE] + {preview(unit.text)} ({len(self._pending)} pending)", 'DEBUG', 'QUEUE')

        if self.drain_at is None:
            self.drain_at = now + self.collection_delay
        return EnqueueResult.QUEUED

    # ------------------------------------------------------------------
    # Draining
    # ------------------------------------------------------------------

    def priority(self, item: QueueItem) -> Tuple[int, float, int]:
        """Sort key ``(tier, top, seq)``; the best-placed live unit decides."""
        viewport_height = self.discovery.viewport_height()
        best = (TIER_DETACHED, float('inf'))
        for node in item.units:
            if not self.discovery.is_attached(node):
                continue
            rect = self.discovery.bounding_rect(node)
            if rect.height == 0:
                tier = TIER_DETACHED
            elif rect.bottom > 0 and rect.top < viewport_height:
                tier = TIER_ON_SCREEN
            elif rect.top >= viewport_height:
                tier = TIER_BELOW_FOLD
            else:
                tier = TIER_ABOVE_FOLD
            best = min(best, (tier, rect.top))
        return best[0], best[1], item.seq

    def drain(self, now: float) -> List[QueueItem]:
        """
        Take at most ``max_batch_size`` items from a snapshot of the queue.

        Items left behind, and items enqueued meanwhile, wait for the next drain.
        """
        self.drain_at = None
        snapshot = list(self._pending.values())
        if not snapshot:
            return []

        snapshot.sort(key=self.priority)
        taken = []
        for item in snapshot[:self.max_batch_size]:
            if item.key in self.cache:
                # Resolved by another path while waiting
                del self._pending[item.key]
                for node in item.units:
                    self.reconciler.ensure_rendered(TextUnit(node, item.text, item.key))
                continue
            del self._pending[item.key]
            self._in_flight[item.key] = item
            taken.append(item)
        return taken

    def requeue_front(self, items: List[QueueItem]) -> None:
        """
        Return dispatched items to the queue for retry.

        Items keep their original sequence numbers, so within a tier they drain
        ahead of anything that arrived after them.
        """
        for item in reversed(items):
            self._in_flight.pop(item.key, None)
            item.attempts += 1
            self._pending[item.key] = item
            self._pending.move_to_end(item.key, last=False)
        if items:
            debug_print(f"[QUEUE] Requeued {len(items)} items", 'DEBUG', 'QUEUE')

    def complete(self, items: List[QueueItem]) -> None:
        for item in items:
            self._in_flight.pop(item.key, None)

    def resolve_all_pending(self) -> List[QueueItem]:
        """Drop every pending item as resolved; returns the dropped items."""
        items = list(self._pending.values())
        self._pending.clear()
        self.drain_at = None
        return items

    def schedule(self, at: Optional[float]) -> None:
        self.drain_at = at

    def clear(self) -> None:
        self._pending.clear()
        self._in_flight.clear()
        self.drain_at = None
