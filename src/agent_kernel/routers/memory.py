"""Memory router.

This module provides REST API endpoints for:
- Listing memories, or searching them with the hybrid retrieval
- Storing a memory entry
- Wiping all memories (requires explicit confirmation)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from agent_kernel.dependencies import get_kernel, get_memory_store
from agent_kernel.kernel import AgentKernel, LogSeverity
from agent_kernel.memory import MemoryStore
from agent_kernel.models.memory import (
    CreateMemoryRequest,
    MemoryEntryResponse,
    MemoryListResponse,
    MemoryWipeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/memory", tags=["memory"])


@router.get("", response_model=MemoryListResponse, summary="List or search memories")
async def list_memories(
    memory: Annotated[MemoryStore, Depends(get_memory_store)],
    query: Annotated[str | None, Query(min_length=1)] = None,
) -> MemoryListResponse:
    """List every memory newest first, or search when ``query`` is given."""
    if query:
        entries = await memory.search(query)
    else:
        entries = memory.get_all()
    return MemoryListResponse(
        memories=[MemoryEntryResponse.from_entry(e) for e in entries]
    )


@router.post(
    "",
    response_model=MemoryEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store a memory",
)
async def create_memory(
    request: CreateMemoryRequest,
    memory: Annotated[MemoryStore, Depends(get_memory_store)],
) -> MemoryEntryResponse:
    entry = await memory.add(
        request.content, request.kind, request.origin_role, request.tags
    )
    return MemoryEntryResponse.from_entry(entry)


@router.delete("", response_model=MemoryWipeResponse, summary="Wipe all memories")
async def wipe_memories(
    memory: Annotated[MemoryStore, Depends(get_memory_store)],
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
    confirm: bool = False,
) -> MemoryWipeResponse:
    """Irreversibly delete every memory entry.

    Raises:
        HTTPException: 400 unless ``confirm=true`` is passed
    """
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": {
                    "code": "confirmation_required",
                    "message": "Memory wipe is irreversible; pass confirm=true",
                    "details": {},
                }
            },
        )

    removed = memory.clear()
    kernel.log("OPERATOR", f"Memory wiped ({removed} entries)", LogSeverity.WARNING)
    return MemoryWipeResponse(removed=removed)
