"""Pydantic models for system log requests and responses."""

from pydantic import BaseModel, Field

from agent_kernel.kernel.types import LogSeverity


class LogEntryResponse(BaseModel):
    id: str
    timestamp: str
    role: str
    message: str
    severity: LogSeverity
    task_id: str | None = None
    encrypted: bool = True


class LogListResponse(BaseModel):
    """Recent log entries, newest first."""

    logs: list[LogEntryResponse]


class CreateLogRequest(BaseModel):
    """Request body for appending an operator log entry."""

    message: str = Field(..., min_length=1, description="Log message")
    severity: LogSeverity = Field(LogSeverity.INFO, description="Log severity")
    role: str = Field("OPERATOR", description="Who wrote the entry")
