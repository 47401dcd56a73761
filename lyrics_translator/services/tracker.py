"""
Unit Tracker
============
Watches the host content tree and reports units that appear or change.

Work is scoped to the nodes named in each mutation record; a throttled full
rescan of the watched container catches whatever the incremental path misses.
Units outside the margin-expanded viewport are only registered until they
scroll into range.
"""
import weakref
from typing import Any, Callable, Iterable, Optional

from lyrics_translator.config import config
from lyrics_translator.host.interfaces import (
    ATTRIBUTES,
    CHILD_LIST,
    RENDER_MARKER,
    ContentInjector,
    MutationRecord,
    NodeDiscovery,
)
from lyrics_translator.models.pipeline import TextUnit
from lyrics_translator.utils.logging import get_logger, debug_print
from lyrics_translator.utils.text_processing import content_hash


class UnitTracker:
    """Turns host mutations into unit events for the queue."""

    def __init__(
        self,
        discovery: NodeDiscovery,
        on_unit: Callable[[TextUnit], Any],
        on_unchanged: Callable[[TextUnit], Any],
        normalize: Callable[[str], str],
        throttle: float = None,
        margin: float = None,
        injector: ContentInjector = None
    ):
        self.discovery = discovery
        self.injector = injector
        self.on_unit = on_unit
        self.on_unchanged = on_unchanged
        self.normalize = normalize
        self.throttle = config.pipeline.rescan_throttle if throttle is None else throttle
        self.margin = config.pipeline.viewport_margin if margin is None else margin
        self.logger = get_logger().pipeline_logger

        self.root: Optional[Any] = None
        self.hidden = False
        self.rescan_at: Optional[float] = None
        # node -> content hash of the text last handed to the queue
        self._processed: 'weakref.WeakKeyDictionary[Any, str]' = weakref.WeakKeyDictionary()
        self._passive: 'weakref.WeakSet[Any]' = weakref.WeakSet()

    # ------------------------------------------------------------------
    # Container and visibility
    # ------------------------------------------------------------------

    def attach(self, root: Any) -> bool:
        """Watch ``root``; a new container is scanned immediately."""
        if root is self.root:
            return False
        self.root = root
        self.rescan_at = None
        self.logger.info("Watching new content container")
        if not self.hidden:
            self.scan()
        return True

    def detach(self) -> None:
        self.root = None
        self.rescan_at = None
        self._passive = weakref.WeakSet()

    def set_hidden(self, hidden: bool) -> None:
        """Suspend all watching while hidden; becoming visible forces a rescan."""
        if hidden == self.hidden:
            return
        self.hidden = hidden
        if hidden:
            self.rescan_at = None
            debug_print("[TRACKER] Suspended while hidden", 'DEBUG', 'TRACKER')
        else:
            self.scan()

    def sync_visibility(self) -> None:
        self.set_hidden(self.discovery.is_hidden())

    # ------------------------------------------------------------------
    # Incremental path
    # ------------------------------------------------------------------

    def handle_mutations(self, records: Iterable[MutationRecord], now: float) -> int:
        """
        Process a batch of mutation records.

        Returns:
            Number of units examined
        """
        if self.hidden or self.root is None:
            return 0

        affected = []
        seen = set()

        def add(node):
            if node is not None and id(node) not in seen:
                seen.add(id(node))
                affected.append(node)

        relevant = False
        for record in records:
            if record.kind == ATTRIBUTES and record.attribute_name == RENDER_MARKER:
                continue
            relevant = True
            add(self.discovery.closest_unit(record.target))
            if record.kind == CHILD_LIST:
                for node in record.added_nodes:
                    for unit in self.discovery.find_units(node):
                        add(unit)

        for node in affected:
            if self.discovery.is_attached(node):
                self.process(node)

        if relevant and self.rescan_at is None:
            self.rescan_at = now + self.throttle
        return len(affected)

    def run_due_rescan(self, now: float) -> bool:
        """Run the throttled safety-net rescan once its time has come."""
        if self.rescan_at is None or now < self.rescan_at:
            return False
        self.rescan_at = None
        self.scan()
        return True

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def scan(self) -> int:
        """Full scan of the watched container."""
        if self.hidden or self.root is None:
            return 0
        units = list(self.discovery.find_units(self.root))
        for node in units:
            self.process(node)
        return len(units)

    def in_window(self, node: Any) -> bool:
        rect = self.discovery.bounding_rect(node)
        return rect.bottom >= -self.margin and rect.top <= self.discovery.viewport_height() + self.margin

    def process(self, node: Any) -> bool:
        """
        Hand a unit to the queue if its text is new for this node.

        Returns:
            True when the unit was emitted
        """
        text = self.discovery.extract_text(node)
        if not text:
            if self._processed.pop(node, None) is not None:
                self._clear(node)
            return False

        if not self.in_window(node):
            self._passive.add(node)
            return False
        self._passive.discard(node)

        unit = TextUnit(node, text, self.normalize(text))
        marker = content_hash(unit.key)
        previous = self._processed.get(node)
        if previous == marker:
            self.on_unchanged(unit)
            return False
        # A result rendered for the old text no longer applies
        if previous is not None:
            self._clear(node)
        self._processed[node] = marker
        self.on_unit(unit)
        return True

    def _clear(self, node: Any) -> None:
        if self.injector is not None:
            self.injector.clear_rendered(node)

    def refresh_viewport(self) -> int:
        """Promote passively registered units that have entered the window."""
        if self.hidden:
            return 0
        promoted = 0
        for node in list(self._passive):
            if self.discovery.is_attached(node) and self.in_window(node):
                if self.process(node):
                    promoted += 1
            elif not self.discovery.is_attached(node):
                self._passive.discard(node)
        return promoted

    @property
    def passive_count(self) -> int:
        return len(self._passive)

    def reset_markers(self) -> None:
        """Forget which nodes were processed so the next scan re-queues them."""
        self._processed = weakref.WeakKeyDictionary()

    # ------------------------------------------------------------------
    # Content-addressed lookup
    # ------------------------------------------------------------------

    def find_live_unit(self, key: str) -> Optional[Any]:
        """
        Find an attached unit currently showing text that normalizes to ``key``.

        This is the fallback for results whose originating node was replaced.
        """
        if self.root is None or not key:
            return None
        for node in self.discovery.find_units(self.root):
            if self.discovery.is_attached(node) and self.normalize(self.discovery.extract_text(node)) == key:
                return node
        return None
