"""
Translation Pipeline
====================
The single owned context of a translation session.

``TranslationPipeline`` wires tracker, queue, dispatcher, smart-skip
controller, reconciler and cache together and holds every piece of mutable
session state. Producers (mutation delivery, reconfiguration) and the one
consumer (``tick``) share a re-entrant lock; the network call runs outside it.
"""
import threading
import time
from typing import Any, Dict, List, Optional, Sequence

from lyrics_translator.config import config
from lyrics_translator.config.constants import PipelineState
from lyrics_translator.database.repositories import SettingsRepository
from lyrics_translator.host.interfaces import MutationRecord
from lyrics_translator.host.memory import MemoryDocument
from lyrics_translator.models.pipeline import Batch, BatchResult, DispatchOutcome, TextUnit
from lyrics_translator.models.schemas import ConfigUpdateRequest
from lyrics_translator.services.batcher import EnqueueResult, TranslationQueue
from lyrics_translator.services.cache_service import PersistentCache
from lyrics_translator.services.dispatcher import RateLimitedDispatcher
from lyrics_translator.services.llm_client import LLMClient
from lyrics_translator.services.prompts import format_song_context
from lyrics_translator.services.reconciler import Reconciler
from lyrics_translator.services.smart_skip import SmartSkipController
from lyrics_translator.services.tracker import UnitTracker
from lyrics_translator.utils.logging import get_logger, debug_print
from lyrics_translator.utils.text_processing import KeyNormalizer


class Clock:
    """Monotonic time source; replaced by a fake clock in tests."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class TranslationPipeline:
    """Owns one translation session."""

    def __init__(
        self,
        host: MemoryDocument = None,
        settings: SettingsRepository = None,
        client: LLMClient = None,
        clock: Clock = None,
        cache: PersistentCache = None
    ):
        self.host = host or MemoryDocument()
        self.settings = settings or SettingsRepository()
        self.clock = clock or Clock()
        self.logger = get_logger().pipeline_logger

        self.lock = threading.RLock()
        self.wakeup = threading.Event()

        self.normalizer = KeyNormalizer()
        self.cache = cache or PersistentCache(self.settings.store)
        self.cache.load()
        self.smart_skip = SmartSkipController(enabled=self.settings.smart_skip_enabled)
        self.tracker = UnitTracker(
            self.host,
            on_unit=self._on_unit,
            on_unchanged=self._on_unchanged,
            normalize=self.normalizer,
            injector=self.host
        )
        self.reconciler = Reconciler(
            self.cache,
            self.host,
            self.host,
            normalize=self.normalizer,
            find_live_unit=self.tracker.find_live_unit,
            rendering_enabled=lambda: not self.smart_skip.should_resolve_as_skip
        )
        self.queue = TranslationQueue(self.host, self.cache, self.smart_skip, self.reconciler)
        self.dispatcher = RateLimitedDispatcher(client or LLMClient(), self.settings, self.clock)

        self.state = PipelineState.IDLE
        self.message = "Idle"
        self.fatal_error: Optional[str] = None
        self.song_context: Optional[str] = None
        self._in_flight: Optional[Batch] = None

        self.host.observe(self.handle_mutations)

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    def attach(self, root: Any) -> None:
        """Watch a content container."""
        with self.lock:
            self.tracker.attach(root)
        self.wakeup.set()

    def load_song(
        self,
        lines: Sequence[str],
        title: str = None,
        artists: Sequence[str] = (),
        viewport_height: float = None
    ) -> Any:
        """Replace the document with a new song and start watching it."""
        with self.lock:
            if viewport_height is not None:
                self.host.set_viewport_height(viewport_height)
            self.song_context = format_song_context(title, artists)
            container = self.host.load_lines(list(lines))
            self.host.take_records()
            self.tracker.attach(container)
            self.logger.info(f"Loaded song with {len(lines)} lines")
        self.wakeup.set()
        return container

    def handle_mutations(self, records: List[MutationRecord]) -> None:
        with self.lock:
            self.tracker.handle_mutations(records, self.clock.now())
        self.wakeup.set()

    def enqueue(self, unit: TextUnit) -> EnqueueResult:
        with self.lock:
            result = self._on_unit(unit)
        self.wakeup.set()
        return result

    def _on_unit(self, unit: TextUnit) -> EnqueueResult:
        return self.queue.enqueue(unit, self.clock.now())

    def _on_unchanged(self, unit: TextUnit) -> None:
        self.reconciler.ensure_rendered(unit)

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    def tick(self) -> float:
        """
        Advance the pipeline by at most one dispatch.

        Never raises.

        Returns:
            Seconds until the pipeline next needs to run
        """
        with self.lock:
            self.host.flush()
            now = self.clock.now()
            self.tracker.sync_visibility()
            self.tracker.run_due_rescan(now)
            self.tracker.refresh_viewport()
            batch = self._prepare_batch(now)
            if batch is None:
                self.cache.flush(now, force=len(self.queue) == 0)
                return self._next_delay(now)
            song_context = self.song_context

        try:
            result = self.dispatcher.dispatch(batch, song_context)
        except Exception as e:
            self.logger.exception(f"Unexpected dispatch failure: {e}")
            result = BatchResult(DispatchOutcome.TOTAL_FAILURE, error="Unexpected error")

        with self.lock:
            now = self.clock.now()
            self._handle_result(batch, result, now)
            self.cache.flush(now, force=len(self.queue) == 0)
            return self._next_delay(now)

    def _prepare_batch(self, now: float) -> Optional[Batch]:
        if self.fatal_error:
            return None

        if self.queue.drain_at is None:
            if len(self.queue) == 0:
                if self.state not in (PipelineState.SUPPRESSED, PipelineState.IDLE):
                    self._set_idle("Idle")
                return None
            self.queue.schedule(now)

        if now < self.queue.drain_at:
            if self.state == PipelineState.IDLE:
                self._set_state(PipelineState.COLLECTING, f"Collecting {len(self.queue)}...")
            return None

        wait = self.dispatcher.wait_time(now)
        if wait > 0:
            self.queue.schedule(now + wait)
            remaining = self.dispatcher.backoff_remaining(now)
            if remaining > 0 and self.state != PipelineState.BACKOFF:
                self._set_state(PipelineState.BACKOFF, f"Backing off ({remaining:.0f}s)")
            return None

        items = self.queue.drain(now)
        if not items:
            self._set_idle("Idle")
            return None

        batch = self.dispatcher.build_batch(items)
        self._in_flight = batch
        self._set_state(PipelineState.TRANSLATING, f"Translating {len(batch)}...")
        return batch

    def _handle_result(self, batch: Batch, result: BatchResult, now: float) -> None:
        self._in_flight = None
        outcome = result.outcome

        if outcome == DispatchOutcome.SUCCESS:
            self.queue.complete(batch.items)
            if self.smart_skip.observe(batch, result):
                self._suppress(batch, result)
            else:
                rendered = 0
                for item_id, item in batch.id_map.items():
                    rendered += self.reconciler.apply(item, result.translation_for(item_id))
                debug_print(f"[PIPELINE] Batch done, rendered {rendered}", 'INFO', 'PIPELINE')
                self.tracker.scan()
                self._set_idle("Done")
            if len(self.queue):
                self.queue.schedule(now + config.pipeline.post_batch_delay)
            return

        self.queue.requeue_front(batch.items)

        if outcome == DispatchOutcome.FATAL:
            self.fatal_error = result.error or "Configuration error"
            self.queue.schedule(None)
            self._set_state(PipelineState.FATAL, f"Config Error: {self.fatal_error}")
            self.logger.error(f"Pipeline halted: {self.fatal_error}")
        elif outcome == DispatchOutcome.RECOVERABLE:
            self.queue.schedule(self.dispatcher.state.backoff_until)
            self._set_state(PipelineState.BACKOFF, result.error or "Backing off")
        else:
            self.queue.schedule(now + config.pipeline.post_batch_delay)
            self._set_state(PipelineState.COLLECTING, result.error or "Network Error, Retrying...")

    def _suppress(self, batch: Batch, result: BatchResult) -> None:
        """Stop translating for the rest of the session."""
        removed = self.reconciler.clear_all()
        for item_id, item in batch.id_map.items():
            self.reconciler.apply(item, result.translation_for(item_id), render=False)
        dropped = self.queue.resolve_all_pending()
        self.logger.info(
            f"Smart skip: removed {removed} rendered results, resolved {len(dropped)} pending lines"
        )
        self._set_state(PipelineState.SUPPRESSED, "Smart Skip Activated")

    def _next_delay(self, now: float) -> float:
        candidates = [config.pipeline.idle_poll_interval]
        if not self.fatal_error and self.queue.drain_at is not None:
            candidates.append(self.queue.drain_at - now)
        if self.tracker.rescan_at is not None:
            candidates.append(self.tracker.rescan_at - now)
        return max(0.0, min(candidates))

    def _set_idle(self, message: str) -> None:
        if self.smart_skip.should_resolve_as_skip:
            self._set_state(PipelineState.SUPPRESSED, "Smart Skip Active")
        else:
            self._set_state(PipelineState.IDLE, message)

    def _set_state(self, state: PipelineState, message: str) -> None:
        if state != self.state:
            debug_print(f"[PIPELINE] {self.state.value} -> {state.value}: {message}", 'DEBUG', 'PIPELINE')
        self.state = state
        self.message = message

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def is_idle(self) -> bool:
        with self.lock:
            return (
                len(self.queue) == 0
                and self.queue.in_flight_count == 0
                and self.tracker.rescan_at is None
            )

    def run_until_idle(self, max_ticks: int = 10000) -> bool:
        """
        Tick until no work is left or the pipeline halts.

        Returns:
            True when all work finished, False on a fatal error or tick limit
        """
        for _ in range(max_ticks):
            delay = self.tick()
            if self.fatal_error:
                return False
            if self.is_idle():
                self.cache.flush(self.clock.now(), force=True)
                return True
            self.clock.sleep(delay)
        return False

    def reconfigure(self, update: ConfigUpdateRequest) -> Dict[str, Any]:
        """
        Apply a validated configuration update.

        Any update is the reconfiguration event: it clears the fatal flag and
        resumes draining.
        """
        with self.lock:
            provider_changed = False
            if update.provider is not None:
                provider_changed = self.settings.switch_provider(update.provider)
            if update.model is not None:
                self.settings.set_model(update.model)
            if update.api_key is not None:
                self.settings.set_api_key(update.api_key)
            for setting, value in update.params.items():
                self.settings.set_param(setting, value)
            if update.smart_skip is not None:
                self.settings.set_smart_skip(update.smart_skip)
                if update.smart_skip != self.smart_skip.enabled:
                    # Toggling starts a fresh session; released lines are re-queued
                    if self.smart_skip.reset(update.smart_skip):
                        self.tracker.reset_markers()
                        self.tracker.scan()

            if provider_changed:
                self.clear_cache()

            if self.fatal_error:
                self.logger.info(f"Configuration changed, clearing fatal error: {self.fatal_error}")
            self.fatal_error = None
            if len(self.queue):
                self.queue.schedule(self.clock.now())
            self._set_idle("Configuration updated")
            settings = self.settings.to_dict()
        self.wakeup.set()
        return settings

    def clear_cache(self) -> None:
        """Clear the translation cache and re-queue everything on screen."""
        with self.lock:
            self.cache.clear()
            self.normalizer.clear()
            self.tracker.reset_markers()
            self.tracker.scan()
        self.wakeup.set()

    def status(self) -> Dict[str, Any]:
        with self.lock:
            now = self.clock.now()
            return {
                'state': self.state.value,
                'message': self.message,
                'queue_length': len(self.queue),
                'in_flight': len(self._in_flight) if self._in_flight else 0,
                'backoff_remaining': round(self.dispatcher.backoff_remaining(now), 1),
                'fatal_error': self.fatal_error,
                'suppressed': self.smart_skip.suppressed,
                'smart_skip_enabled': self.smart_skip.enabled,
                'skip_stats': self.smart_skip.stats.to_dict(),
                'cache_size': len(self.cache),
                'provider': self.settings.provider_id,
                'model': self.settings.model,
            }

    def rendered_lines(self) -> List[Dict[str, Optional[str]]]:
        """Every unit of the watched container with its rendered translation."""
        with self.lock:
            if self.tracker.root is None:
                return []
            return [
                {
                    'original': self.host.extract_text(node),
                    'translation': self.host.rendered_text(node),
                }
                for node in self.host.find_units(self.tracker.root)
            ]

    def close(self) -> None:
        with self.lock:
            self.cache.flush(self.clock.now(), force=True)
        self.host.disconnect(self.handle_mutations)
        self.dispatcher.client.close()


class PipelineWorker(threading.Thread):
    """The single consumer thread driving ``TranslationPipeline.tick``."""

    def __init__(self, pipeline: TranslationPipeline):
        super().__init__(name='pipeline-worker', daemon=True)
        self.pipeline = pipeline
        self._stop_event = threading.Event()
        self.logger = get_logger().pipeline_logger

    @property
    def running(self) -> bool:
        return self.is_alive() and not self._stop_event.is_set()

    def run(self):
        self.logger.info("Pipeline worker started")
        while not self._stop_event.is_set():
            delay = self.pipeline.tick()
            self.pipeline.wakeup.wait(timeout=delay)
            self.pipeline.wakeup.clear()
        self.logger.info("Pipeline worker stopped")

    def stop(self, timeout: float = 5.0):
        self._stop_event.set()
        self.pipeline.wakeup.set()
        self.join(timeout=timeout)
