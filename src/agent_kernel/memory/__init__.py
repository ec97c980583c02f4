"""Agent memory: durable entries with hybrid vector/keyword retrieval."""

from agent_kernel.memory.similarity import cosine_similarity
from agent_kernel.memory.store import DEFAULT_SIMILARITY_THRESHOLD, MemoryStore
from agent_kernel.memory.types import MemoryEntry, MemoryKind

__all__ = [
    "MemoryStore",
    "MemoryEntry",
    "MemoryKind",
    "cosine_similarity",
    "DEFAULT_SIMILARITY_THRESHOLD",
]
