"""Pydantic models for memory API requests and responses."""

from pydantic import BaseModel, Field

from agent_kernel.memory.types import MemoryEntry, MemoryKind
from agent_kernel.security.types import AgentRole


class CreateMemoryRequest(BaseModel):
    """Request body for storing a memory entry."""

    content: str = Field(..., min_length=1, description="Text to remember")
    kind: MemoryKind = Field(MemoryKind.SEMANTIC, description="Kind of memory")
    origin_role: AgentRole = Field(
        AgentRole.MEMORY, description="Role credited with the memory"
    )
    tags: list[str] = Field(default_factory=list, description="Keyword tags")


class MemoryEntryResponse(BaseModel):
    """A memory entry without its embedding vector."""

    id: str
    content: str
    kind: MemoryKind
    origin_role: AgentRole
    tags: list[str]
    timestamp: str
    has_embedding: bool

    @classmethod
    def from_entry(cls, entry: MemoryEntry) -> "MemoryEntryResponse":
        return cls(
            id=entry.id,
            content=entry.content,
            kind=entry.kind,
            origin_role=entry.origin_role,
            tags=list(entry.tags),
            timestamp=entry.timestamp,
            has_embedding=entry.has_embedding,
        )


class MemoryListResponse(BaseModel):
    memories: list[MemoryEntryResponse]


class MemoryWipeResponse(BaseModel):
    """Result of a memory wipe."""

    removed: int = Field(..., description="Number of entries deleted")
