"""
Lyrics Translator - Host Collaborators
"""
from lyrics_translator.host.interfaces import (
    ATTRIBUTES,
    CHARACTER_DATA,
    CHILD_LIST,
    RENDER_MARKER,
    ContentInjector,
    MutationRecord,
    NodeDiscovery
)
from lyrics_translator.host.memory import MemoryDocument, MemoryNode

__all__ = [
    "ATTRIBUTES",
    "CHARACTER_DATA",
    "CHILD_LIST",
    "RENDER_MARKER",
    "ContentInjector",
    "MutationRecord",
    "NodeDiscovery",
    "MemoryDocument",
    "MemoryNode"
]
