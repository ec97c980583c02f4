"""Durable storage for kernel state.

This package provides the record store that checkpoints tasks, memories,
system logs and agent status to disk.
"""

from agent_kernel.storage.json_store import (
    AGENTS,
    LOGS,
    MEMORIES,
    TASKS,
    JsonRecordStore,
)

__all__ = ["JsonRecordStore", "TASKS", "MEMORIES", "LOGS", "AGENTS"]
