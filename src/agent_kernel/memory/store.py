"""Hybrid vector/keyword memory store.

Entries are embedded on write when the embedding service is available.
Search tries vector similarity first and falls back to keyword matching when
the embedding service is down or nothing clears the similarity threshold, so
retrieval degrades instead of failing.
"""

import logging
from collections.abc import Iterable
from typing import Protocol

from agent_kernel.memory.similarity import cosine_similarity
from agent_kernel.memory.types import MemoryEntry, MemoryKind
from agent_kernel.security.types import AgentRole
from agent_kernel.storage import MEMORIES, JsonRecordStore

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.65


class Embedder(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class MemoryStore:
    """Durable memory with hybrid retrieval.

    Attributes:
        store: Record store holding the ``memories`` collection
        embedder: Anything with an async ``embed(text)`` method
        similarity_threshold: Minimum cosine similarity for a vector hit
    """

    def __init__(
        self,
        store: JsonRecordStore,
        embedder: Embedder,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ):
        self.store = store
        self.embedder = embedder
        self.similarity_threshold = similarity_threshold

    def _load_all(self) -> list[MemoryEntry]:
        entries: list[MemoryEntry] = []
        for record in self.store.scan(MEMORIES):
            try:
                entries.append(MemoryEntry.from_dict(record))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed memory record: {e}")
        return entries

    async def add(
        self,
        content: str,
        kind: MemoryKind,
        origin_role: AgentRole,
        tags: Iterable[str] = (),
    ) -> MemoryEntry:
        """Store a new memory entry.

        The embedding is best-effort: if the embedding service fails the
        entry is still written, just without a vector.

        Args:
            content: Text to remember
            kind: Semantic, episodic or procedural
            origin_role: Role that produced the memory
            tags: Free-form tags for keyword retrieval

        Returns:
            MemoryEntry: The persisted entry
        """
        embedding: list[float] = []
        try:
            embedding = await self.embedder.embed(content)
        except Exception as e:
            logger.warning(f"Failed to generate embedding for memory: {e}")

        entry = MemoryEntry(
            content=content,
            kind=MemoryKind(kind),
            origin_role=AgentRole(origin_role),
            tags=tuple(tags),
            embedding=tuple(embedding),
        )
        self.store.put(MEMORIES, entry.id, entry.to_dict())
        logger.debug(f"Stored {entry.kind.value} memory {entry.id}")
        return entry

    def vector_search(self, query_vector: list[float]) -> list[MemoryEntry]:
        """Rank embedded entries by cosine similarity to a query vector.

        Entries below the threshold are dropped. Ties keep storage order.
        """
        scored: list[tuple[float, MemoryEntry]] = []
        for entry in self._load_all():
            if not entry.has_embedding:
                continue
            score = cosine_similarity(query_vector, entry.embedding)
            if score >= self.similarity_threshold:
                scored.append((score, entry))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [entry for _, entry in scored]

    def keyword_search(self, query: str) -> list[MemoryEntry]:
        """Case-insensitive substring match on content or tags, newest first."""
        needle = query.lower()
        matches = [
            entry
            for entry in self._load_all()
            if needle in entry.content.lower()
            or any(needle in tag.lower() for tag in entry.tags)
        ]
        matches.sort(key=lambda entry: entry.timestamp, reverse=True)
        return matches

    async def search(self, query: str) -> list[MemoryEntry]:
        """Retrieve memories relevant to a query.

        Args:
            query: Free text

        Returns:
            list[MemoryEntry]: Vector hits if there are any, else keyword hits
        """
        try:
            query_vector = await self.embedder.embed(query)
            results = self.vector_search(query_vector)
            if results:
                logger.debug(f"Vector search returned {len(results)} memories")
                return results
        except Exception as e:
            logger.warning(f"Vector search failed, falling back to keyword: {e}")

        results = self.keyword_search(query)
        logger.debug(f"Keyword search returned {len(results)} memories")
        return results

    def get_all(self) -> list[MemoryEntry]:
        """Get every memory entry, newest first."""
        entries = self._load_all()
        entries.sort(key=lambda entry: entry.timestamp, reverse=True)
        return entries

    def count(self) -> int:
        return self.store.count(MEMORIES)

    def clear(self) -> int:
        """Irreversibly delete every memory entry.

        Returns:
            int: Number of entries removed
        """
        removed = self.store.clear(MEMORIES)
        logger.warning(f"Memory wiped: {removed} entries removed")
        return removed
