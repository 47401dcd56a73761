"""
In-Memory Content Tree
======================
A small host tree implementing both collaborator interfaces. Used by the CLI
to translate a plain lyrics file and by the test suite.

Mutations are buffered and delivered to observers in one batch on
:meth:`MemoryDocument.flush`, the way a browser delivers mutation records
after the current task.
"""
import threading
import weakref
from typing import Any, Callable, Dict, Iterator, List, Optional

from lyrics_translator.host.interfaces import (
    ATTRIBUTES,
    CHARACTER_DATA,
    CHILD_LIST,
    RENDER_MARKER,
    ContentInjector,
    MutationRecord,
    NodeDiscovery,
)
from lyrics_translator.models.pipeline import Rect


DEFAULT_LINE_HEIGHT = 32.0


class MemoryNode:
    """A node of the in-memory tree. Units are nodes created with ``unit=True``."""

    def __init__(
        self,
        text: str = "",
        unit: bool = False,
        top: float = 0.0,
        height: float = 0.0,
        attributes: Dict[str, str] = None
    ):
        self.text = text
        self.unit = unit
        self.top = top
        self.height = height
        self.attributes = dict(attributes or {})
        self.parent: Optional['MemoryNode'] = None
        self.children: List['MemoryNode'] = []

    def iter_tree(self) -> Iterator['MemoryNode']:
        """This node and all of its descendants, document order."""
        yield self
        for child in list(self.children):
            yield from child.iter_tree()

    def __repr__(self) -> str:
        kind = 'unit' if self.unit else 'node'
        return f"MemoryNode({kind}, text={self.text!r}, top={self.top})"


class MemoryDocument(NodeDiscovery, ContentInjector):
    """In-memory host: tree, viewport, visibility and rendered results."""

    def __init__(self, viewport_height: float = 800.0):
        self.root = MemoryNode()
        self.scroll_top = 0.0
        self._viewport_height = viewport_height
        self._hidden = False
        self._rendered: 'weakref.WeakKeyDictionary[MemoryNode, str]' = weakref.WeakKeyDictionary()
        self._observers: List[Callable[[List[MutationRecord]], None]] = []
        self._pending: List[MutationRecord] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def observe(self, callback: Callable[[List[MutationRecord]], None]) -> None:
        self._observers.append(callback)

    def disconnect(self, callback: Callable[[List[MutationRecord]], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def take_records(self) -> List[MutationRecord]:
        with self._lock:
            records, self._pending = self._pending, []
        return records

    def flush(self) -> int:
        """Deliver buffered mutation records; returns how many were delivered."""
        records = self.take_records()
        if records:
            for callback in list(self._observers):
                callback(records)
        return len(records)

    def _record(self, record: MutationRecord) -> None:
        with self._lock:
            self._pending.append(record)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append(self, parent: MemoryNode, node: MemoryNode) -> MemoryNode:
        if node.parent is not None:
            node.parent.children.remove(node)
        node.parent = parent
        parent.children.append(node)
        self._record(MutationRecord(CHILD_LIST, parent, added_nodes=[node]))
        return node

    def add_line(self, text: str, parent: MemoryNode = None, height: float = DEFAULT_LINE_HEIGHT) -> MemoryNode:
        """Append a unit below the last unit of the document."""
        units = [n for n in self.root.iter_tree() if n.unit]
        top = max((n.top + n.height for n in units), default=0.0)
        return self.append(parent or self.root, MemoryNode(text, unit=True, top=top, height=height))

    def load_lines(self, lines: List[str], height: float = DEFAULT_LINE_HEIGHT) -> MemoryNode:
        """Replace the document content with a fresh container of one unit per line."""
        for child in list(self.root.children):
            self.remove(child)
        container = self.append(self.root, MemoryNode())
        top = 0.0
        for text in lines:
            self.append(container, MemoryNode(text, unit=True, top=top, height=height))
            top += height
        self.scroll_top = 0.0
        return container

    def remove(self, node: MemoryNode) -> None:
        parent = node.parent
        if parent is None:
            return
        parent.children.remove(node)
        node.parent = None
        self._record(MutationRecord(CHILD_LIST, parent, removed_nodes=[node]))

    def replace(self, old: MemoryNode, new: MemoryNode) -> MemoryNode:
        """Swap ``old`` for ``new`` in place, as a host re-render does."""
        parent = old.parent
        if parent is None:
            raise ValueError("Cannot replace a detached node")
        index = parent.children.index(old)
        parent.children[index] = new
        new.parent = parent
        old.parent = None
        self._record(MutationRecord(CHILD_LIST, parent, added_nodes=[new], removed_nodes=[old]))
        return new

    def set_text(self, node: MemoryNode, text: str) -> None:
        node.text = text
        self._record(MutationRecord(CHARACTER_DATA, node))

    def set_attribute(self, node: MemoryNode, name: str, value: str) -> None:
        node.attributes[name] = value
        self._record(MutationRecord(ATTRIBUTES, node, attribute_name=name))

    def remove_attribute(self, node: MemoryNode, name: str) -> None:
        if node.attributes.pop(name, None) is not None:
            self._record(MutationRecord(ATTRIBUTES, node, attribute_name=name))

    def scroll_to(self, top: float) -> None:
        self.scroll_top = top

    def set_hidden(self, hidden: bool) -> None:
        self._hidden = hidden

    def set_viewport_height(self, height: float) -> None:
        self._viewport_height = height

    # ------------------------------------------------------------------
    # NodeDiscovery
    # ------------------------------------------------------------------

    def find_units(self, root: Any) -> List[MemoryNode]:
        if root is None:
            return []
        return [node for node in root.iter_tree() if node.unit]

    def closest_unit(self, node: Any) -> Optional[MemoryNode]:
        while node is not None:
            if node.unit:
                return node
            node = node.parent
        return None

    def is_unit(self, node: Any) -> bool:
        return bool(getattr(node, 'unit', False))

    def extract_text(self, node: Any) -> str:
        return (node.text or "").strip()

    def is_attached(self, node: Any) -> bool:
        while node is not None:
            if node is self.root:
                return True
            node = node.parent
        return False

    def bounding_rect(self, node: Any) -> Rect:
        if not self.is_attached(node):
            return Rect(0.0, 0.0)
        top = node.top - self.scroll_top
        return Rect(top, top + node.height)

    def viewport_height(self) -> float:
        return self._viewport_height

    def is_hidden(self) -> bool:
        return self._hidden

    # ------------------------------------------------------------------
    # ContentInjector
    # ------------------------------------------------------------------

    def render_result(self, node: Any, text: str) -> None:
        self._rendered[node] = text
        self.set_attribute(node, RENDER_MARKER, '1')

    def has_rendered(self, node: Any) -> bool:
        return node in self._rendered

    def rendered_text(self, node: Any) -> Optional[str]:
        return self._rendered.get(node)

    def clear_rendered(self, node: Any) -> None:
        if self._rendered.pop(node, None) is not None:
            self.remove_attribute(node, RENDER_MARKER)

    def clear_all_rendered(self) -> int:
        nodes = list(self._rendered.keys())
        for node in nodes:
            self.clear_rendered(node)
        return len(nodes)

    def rendered_items(self) -> Dict[MemoryNode, str]:
        return dict(self._rendered.items())
