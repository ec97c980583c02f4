"""Pydantic models for kernel state responses."""

from pydantic import BaseModel, Field

from agent_kernel.kernel.types import SecurityLevel


class KernelStateResponse(BaseModel):
    """Kernel-wide counters."""

    boot_time: str
    uptime: float = Field(..., description="Seconds since the kernel started")
    active_processes: int
    queued_tasks: int
    memory_entries: int
    security_level: SecurityLevel
    max_concurrent_processes: int
    scheduler_running: bool
    running_task_ids: list[str] = Field(default_factory=list)


class ChangeEvent(BaseModel):
    """Payload of an SSE ``change`` event."""

    version: int


class ErrorEvent(BaseModel):
    code: str
    message: str
    details: dict = Field(default_factory=dict)
