"""
Host Collaborator Interfaces
============================
The pipeline never walks the host content tree itself. It relies on two
primitives: node discovery (finding units and reading their text and
geometry) and content injection (showing a result next to a unit).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from lyrics_translator.models.pipeline import Rect


# Mutation record kinds
CHILD_LIST = 'child_list'
CHARACTER_DATA = 'character_data'
ATTRIBUTES = 'attributes'

# Attribute set by the injector on rendered units; changes to it are not content changes
RENDER_MARKER = 'data-llm-translated'


@dataclass
class MutationRecord:
    """One observed change in the host content tree."""
    kind: str
    target: Any
    added_nodes: List[Any] = field(default_factory=list)
    removed_nodes: List[Any] = field(default_factory=list)
    attribute_name: Optional[str] = None


class NodeDiscovery(ABC):
    """Finds text units in the host tree and reports on their state."""

    @abstractmethod
    def find_units(self, root: Any) -> Iterable[Any]:
        """All unit nodes within ``root``, including ``root`` itself."""

    @abstractmethod
    def closest_unit(self, node: Any) -> Optional[Any]:
        """The unit containing ``node`` (or ``node`` itself), if any."""

    @abstractmethod
    def is_unit(self, node: Any) -> bool:
        pass

    @abstractmethod
    def extract_text(self, node: Any) -> str:
        """Plain-text payload of a unit; stable while its content is unchanged."""

    @abstractmethod
    def is_attached(self, node: Any) -> bool:
        pass

    @abstractmethod
    def bounding_rect(self, node: Any) -> Rect:
        """Geometry relative to the top of the viewport."""

    @abstractmethod
    def viewport_height(self) -> float:
        pass

    @abstractmethod
    def is_hidden(self) -> bool:
        pass


class ContentInjector(ABC):
    """Renders results next to units without touching their primary content."""

    @abstractmethod
    def render_result(self, node: Any, text: str) -> None:
        pass

    @abstractmethod
    def has_rendered(self, node: Any) -> bool:
        pass

    @abstractmethod
    def rendered_text(self, node: Any) -> Optional[str]:
        pass

    @abstractmethod
    def clear_rendered(self, node: Any) -> None:
        pass

    @abstractmethod
    def clear_all_rendered(self) -> int:
        """Remove every rendered result; returns how many were removed."""
