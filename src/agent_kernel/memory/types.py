"""Data types for the memory store."""

import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from agent_kernel.security.types import AgentRole
from agent_kernel.timestamps import now_iso


class MemoryKind(str, Enum):
    """Kind of knowledge a memory entry records."""

    SEMANTIC = "SEMANTIC"
    EPISODIC = "EPISODIC"
    PROCEDURAL = "PROCEDURAL"


@dataclass(frozen=True)
class MemoryEntry:
    """An immutable memory record.

    An empty embedding means the entry was stored without a vector and is
    only reachable through keyword search.
    """

    content: str
    kind: MemoryKind
    origin_role: AgentRole
    tags: tuple[str, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=now_iso)
    embedding: tuple[float, ...] = ()

    @property
    def has_embedding(self) -> bool:
        return len(self.embedding) > 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["origin_role"] = self.origin_role.value
        data["tags"] = list(self.tags)
        data["embedding"] = list(self.embedding)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemoryEntry":
        return cls(
            id=data["id"],
            content=data.get("content", ""),
            kind=MemoryKind(data.get("kind", MemoryKind.SEMANTIC.value)),
            origin_role=AgentRole(data.get("origin_role", AgentRole.MEMORY.value)),
            tags=tuple(data.get("tags") or ()),
            timestamp=data.get("timestamp", ""),
            embedding=tuple(float(v) for v in data.get("embedding") or ()),
        )
