"""
Translation Cache Service
=========================
Capacity-bounded translation cache persisted in the key-value store.

Entries keep insertion order; when the cache is full the oldest entry is
evicted. Re-translating a key moves it to the newest position.
"""
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional

from lyrics_translator.config import config
from lyrics_translator.config.constants import SETTING_CACHE, SKIP_SENTINEL
from lyrics_translator.database.repositories import KeyValueRepository
from lyrics_translator.models.pipeline import CacheEntry
from lyrics_translator.utils.logging import get_logger, debug_print
from lyrics_translator.utils.text_processing import preview


class PersistentCache:
    """Cache for storing and retrieving translations across sessions."""

    def __init__(
        self,
        store: KeyValueRepository = None,
        max_entries: int = None,
        save_interval: float = None,
        wall_clock: Callable[[], float] = time.time
    ):
        self.store = store
        self.max_entries = max_entries or config.cache.max_entries
        self.save_interval = config.cache.save_interval if save_interval is None else save_interval
        self.wall_clock = wall_clock
        self.logger = get_logger().cache_logger

        self._entries: 'OrderedDict[str, CacheEntry]' = OrderedDict()
        self._lock = threading.RLock()
        self._dirty = False
        self._last_saved_at = float('-inf')
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def load(self) -> int:
        """
        Load persisted entries from the store.

        Returns:
            Number of entries loaded
        """
        if self.store is None:
            return 0
        data = self.store.get(SETTING_CACHE) or {}
        if not isinstance(data, dict):
            self.logger.warning("Ignoring persisted cache with unexpected format")
            data = {}

        entries = OrderedDict()
        for key, raw in data.items():
            if isinstance(raw, dict) and isinstance(raw.get('value'), str):
                entries[key] = CacheEntry(key, raw['value'], float(raw.get('inserted_at', 0.0)))
            elif isinstance(raw, str):
                entries[key] = CacheEntry(key, raw, 0.0)

        while len(entries) > self.max_entries:
            entries.popitem(last=False)

        with self._lock:
            self._entries = entries
            self._dirty = False
        self.logger.info(f"Loaded {len(entries)} cached translations")
        return len(entries)

    def get(self, key: str) -> Optional[str]:
        """
        Get a cached value.

        Returns:
            The translation, ``SKIP_SENTINEL`` for known skips, or None when unknown
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            self.hits += 1
            return entry.value

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def is_skip(self, key: str) -> bool:
        return self.get(key) == SKIP_SENTINEL

    def set(self, key: str, value: str) -> Optional[str]:
        """
        Store a value, evicting the oldest entry when a new key overflows capacity.

        Returns:
            The evicted key, if any
        """
        evicted = None
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
            self._entries[key] = CacheEntry(key, value, self.wall_clock())
            self._dirty = True

        if value == SKIP_SENTINEL:
            debug_print(f"[CACHE STORE] skip {preview(key)}", 'DEBUG', 'CACHE')
        else:
            debug_print(f"[CACHE STORE] {preview(key)} -> {preview(value)}", 'DEBUG', 'CACHE')
        if evicted is not None:
            debug_print(f"[CACHE EVICT] {preview(evicted)}", 'DEBUG', 'CACHE')
        return evicted

    def delete(self, key: str) -> bool:
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._dirty = True
            return True

    def oldest_key(self) -> Optional[str]:
        with self._lock:
            return next(iter(self._entries), None)

    def flush(self, now: float, force: bool = False) -> bool:
        """
        Persist the cache if it changed, at most once per save interval.

        Args:
            now: Current pipeline time
            force: Save regardless of the interval

        Returns:
            True when the cache was written
        """
        if self.store is None:
            return False
        with self._lock:
            if not self._dirty:
                return False
            if not force and now - self._last_saved_at < self.save_interval:
                return False
            snapshot = {key: entry.to_dict() for key, entry in self._entries.items()}
            self._dirty = False
            self._last_saved_at = now

        try:
            self.store.set(SETTING_CACHE, snapshot)
        except Exception as e:
            with self._lock:
                self._dirty = True
            self.logger.error(f"Cache save error: {e}")
            return False
        debug_print(f"[CACHE SAVE] {len(snapshot)} entries", 'DEBUG', 'CACHE')
        return True

    def clear(self) -> None:
        """Clear all cached translations, in memory and in the store."""
        with self._lock:
            self._entries.clear()
            self._dirty = False
        if self.store is not None:
            self.store.delete(SETTING_CACHE)
        self.logger.info("Translation cache cleared")

    def get_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        with self._lock:
            skips = sum(1 for entry in self._entries.values() if entry.value == SKIP_SENTINEL)
            return {
                'total_entries': len(self._entries),
                'translations': len(self._entries) - skips,
                'skips': skips,
                'max_entries': self.max_entries,
                'hits': self.hits,
                'misses': self.misses,
                'evictions': self.evictions,
            }
