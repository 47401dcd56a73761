"""
Reconciler
==========
Maps results back onto live units. The identity of a logical line is its
normalized text, never the node: the host may have replaced the node by the
time a result arrives.
"""
from typing import Any, Callable, Optional

from lyrics_translator.config.constants import SKIP_SENTINEL
from lyrics_translator.host.interfaces import ContentInjector, NodeDiscovery
from lyrics_translator.models.pipeline import QueueItem, TextUnit
from lyrics_translator.services.cache_service import PersistentCache
from lyrics_translator.utils.language_detection import is_skip_result
from lyrics_translator.utils.logging import debug_print
from lyrics_translator.utils.text_processing import clean_text_for_comparison, preview


class Reconciler:
    """Writes results to the cache and renders them idempotently."""

    def __init__(
        self,
        cache: PersistentCache,
        discovery: NodeDiscovery,
        injector: ContentInjector,
        normalize: Callable[[str], str],
        find_live_unit: Callable[[str], Optional[Any]],
        rendering_enabled: Callable[[], bool] = None
    ):
        self.cache = cache
        self.discovery = discovery
        self.injector = injector
        self.normalize = normalize
        self.find_live_unit = find_live_unit
        self.rendering_enabled = rendering_enabled or (lambda: True)

    def apply(self, item: QueueItem, translation: Optional[str], render: bool = True) -> int:
        """
        Cache a result for ``item`` and render it onto its units.

        Skip answers are cached as ``SKIP_SENTINEL`` and never rendered.

        Returns:
            Number of units newly rendered
        """
        if is_skip_result(translation):
            self.cache.set(item.key, SKIP_SENTINEL)
            return 0

        translation = translation.strip()
        self.cache.set(item.key, translation)
        if not render or not self.rendering_enabled():
            return 0

        rendered = 0
        units = item.units
        for node in units:
            target = self._live_target(node, item.key)
            if target is not None and self.render(target, item.text, translation):
                rendered += 1
        if not units:
            target = self.find_live_unit(item.key)
            if target is not None and self.render(target, item.text, translation):
                rendered += 1

        if rendered == 0 and units:
            debug_print(f"[RECONCILE] No live unit for {preview(item.text)}; cached only", 'DEBUG', 'RECONCILE')
        return rendered

    def _live_target(self, node: Any, key: str) -> Optional[Any]:
        """The node itself while attached and still showing ``key``, else a live match."""
        if self.discovery.is_attached(node) and self.normalize(self.discovery.extract_text(node)) == key:
            return node
        return self.find_live_unit(key)

    def render(self, node: Any, source: str, translation: str) -> bool:
        """Render unless the unit already shows it or it only repeats the source."""
        if clean_text_for_comparison(source) == clean_text_for_comparison(translation):
            return False
        if self.injector.rendered_text(node) == translation:
            return False
        self.injector.render_result(node, translation)
        return True

    def ensure_rendered(self, unit: TextUnit) -> bool:
        """Re-render a cached translation that is missing from a unit."""
        if not self.rendering_enabled():
            return False
        value = self.cache.get(unit.key)
        if not value or value == SKIP_SENTINEL:
            return False
        return self.render(unit.node, unit.text, value)

    def clear_all(self) -> int:
        return self.injector.clear_all_rendered()
