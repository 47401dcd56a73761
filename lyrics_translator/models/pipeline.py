"""
Pipeline Data Models
====================
Core data structures flowing between tracker, batcher, dispatcher and reconciler.
"""
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Rect:
    """Vertical geometry of a unit relative to the viewport."""
    top: float
    bottom: float

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass
class TextUnit:
    """A live content node plus the text extracted from it at observation time."""
    node: Any
    text: str
    key: str


@dataclass
class CacheEntry:
    """A persisted translation (or skip sentinel) for one normalized key."""
    key: str
    value: str
    inserted_at: float

    def to_dict(self) -> dict:
        return {'value': self.value, 'inserted_at': self.inserted_at}


class QueueItem:
    """
    One pending translation, shared by every unit whose text normalizes to ``key``.

    Units are held weakly; a node discarded by the host disappears from the item.
    """

    def __init__(self, key: str, text: str, enqueued_at: float, seq: int):
        self.key = key
        self.text = text
        self.enqueued_at = enqueued_at
        self.seq = seq
        self.attempts = 0
        self._units: List[weakref.ref] = []

    def add_unit(self, node: Any) -> bool:
        """Attach an originating node; returns False when it is already attached."""
        for ref in self._units:
            if ref() is node:
                return False
        self._units.append(weakref.ref(node))
        return True

    @property
    def units(self) -> List[Any]:
        """Originating nodes that are still alive."""
        alive = [ref() for ref in self._units]
        return [node for node in alive if node is not None]

    def __repr__(self) -> str:
        return f"QueueItem(key={self.key!r}, units={len(self._units)}, attempts={self.attempts})"


@dataclass
class Batch:
    """
    Up to N distinct queue items sent in one request.

    ``id_map`` maps the opaque identifier sent to the model to its item.
    """
    items: List[QueueItem]
    id_map: Dict[str, QueueItem] = field(default_factory=dict)

    @property
    def payload(self) -> Dict[str, str]:
        """The ``{id: text}`` object sent to the model."""
        return {item_id: item.text for item_id, item in self.id_map.items()}

    def __len__(self) -> int:
        return len(self.items)


class DispatchOutcome(str, Enum):
    """Classification of one dispatch attempt."""
    SUCCESS = "success"
    TOTAL_FAILURE = "total_failure"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


@dataclass
class BatchResult:
    """Outcome of dispatching one batch."""
    outcome: DispatchOutcome
    translations: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    status_code: Optional[int] = None
    backoff: Optional[float] = None
    repaired: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == DispatchOutcome.SUCCESS

    def translation_for(self, item_id: str) -> Optional[str]:
        return self.translations.get(item_id)


@dataclass
class DispatcherState:
    """Pacing state mutated only by the dispatcher."""
    last_request_at: float = float('-inf')
    backoff_until: float = float('-inf')

    def ready_at(self, min_interval: float) -> float:
        """Earliest time the next request may be sent."""
        return max(self.last_request_at + min_interval, self.backoff_until)

    def wait_time(self, now: float, min_interval: float) -> float:
        return max(0.0, self.ready_at(min_interval) - now)

    def backoff_remaining(self, now: float) -> float:
        return max(0.0, self.backoff_until - now)


@dataclass
class SkipStats:
    """Session counters of skipped versus processed items."""
    skipped: int = 0
    total: int = 0
    batches: int = 0

    @property
    def ratio(self) -> float:
        return self.skipped / self.total if self.total else 0.0

    def to_dict(self) -> dict:
        return {
            'skipped': self.skipped,
            'total': self.total,
            'batches': self.batches,
            'ratio': round(self.ratio, 3),
        }
