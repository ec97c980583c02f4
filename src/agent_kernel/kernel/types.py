"""Data types for the kernel: tasks, agent status, system log and state."""

import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from agent_kernel.security.types import AgentRole
from agent_kernel.timestamps import now_iso


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    @property
    def is_waiting(self) -> bool:
        return self in (TaskStatus.PENDING, TaskStatus.QUEUED)


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """Higher rank is admitted first when priority admission is on."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TaskPriority.LOW: 0,
    TaskPriority.MEDIUM: 1,
    TaskPriority.HIGH: 2,
    TaskPriority.CRITICAL: 3,
}


class AgentActivity(str, Enum):
    """What an agent role is doing right now."""

    IDLE = "IDLE"
    THINKING = "THINKING"
    EXECUTING = "EXECUTING"
    AWAITING_TOOL = "AWAITING_TOOL"
    ERROR = "ERROR"
    OFFLINE = "OFFLINE"


class LogSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SecurityLevel(str, Enum):
    STANDARD = "STANDARD"
    ELEVATED = "ELEVATED"
    LOCKDOWN = "LOCKDOWN"


@dataclass
class TaskDraft:
    """Fields a submitter provides; the kernel fills in the rest."""

    title: str = "Untitled"
    description: str = ""
    assigned_role: AgentRole = AgentRole.PLANNER
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.QUEUED
    parent_id: str | None = None
    dependencies: list[str] = field(default_factory=list)


@dataclass
class Task:
    """A unit of work assigned to one agent role.

    ``result`` is only set once the task is COMPLETED.
    """

    title: str
    description: str
    assigned_role: AgentRole
    status: TaskStatus = TaskStatus.QUEUED
    priority: TaskPriority = TaskPriority.MEDIUM
    progress: int = 0
    result: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=now_iso)
    parent_id: str | None = None
    dependencies: list[str] = field(default_factory=list)

    @classmethod
    def from_draft(cls, draft: TaskDraft) -> "Task":
        return cls(
            title=draft.title or "Untitled",
            description=draft.description,
            assigned_role=AgentRole(draft.assigned_role),
            status=TaskStatus(draft.status),
            priority=TaskPriority(draft.priority),
            parent_id=draft.parent_id,
            dependencies=list(draft.dependencies),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["assigned_role"] = self.assigned_role.value
        data["status"] = self.status.value
        data["priority"] = self.priority.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(
            id=data["id"],
            title=data.get("title", "Untitled"),
            description=data.get("description", ""),
            assigned_role=AgentRole(data.get("assigned_role", AgentRole.PLANNER.value)),
            status=TaskStatus(data.get("status", TaskStatus.QUEUED.value)),
            priority=TaskPriority(data.get("priority", TaskPriority.MEDIUM.value)),
            progress=int(data.get("progress", 0)),
            result=data.get("result"),
            created_at=data.get("created_at", ""),
            parent_id=data.get("parent_id"),
            dependencies=list(data.get("dependencies") or []),
        )


@dataclass
class AgentRuntimeStatus:
    """Live status of one agent role.

    A role can run several tasks at once; ``active_task_ids`` holds every one
    of them and the role only goes back to IDLE when it is empty.
    """

    role: AgentRole
    display_name: str
    status: AgentActivity = AgentActivity.IDLE
    confidence: float = 1.0
    last_activity: str = field(default_factory=now_iso)
    current_task: str | None = None
    active_task_ids: list[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.role.value.lower()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["id"] = self.id
        data["role"] = self.role.value
        data["status"] = self.status.value
        return data


@dataclass
class SystemLogEntry:
    """One line of the system activity log."""

    role: str
    message: str
    severity: LogSeverity = LogSeverity.INFO
    task_id: str | None = None
    encrypted: bool = True
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SystemLogEntry":
        return cls(
            id=data["id"],
            role=data.get("role", "SYSTEM"),
            message=data.get("message", ""),
            severity=LogSeverity(data.get("severity", LogSeverity.INFO.value)),
            task_id=data.get("task_id"),
            encrypted=bool(data.get("encrypted", True)),
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class KernelState:
    """Kernel-wide counters refreshed on every tick."""

    boot_time: str = field(default_factory=now_iso)
    uptime: float = 0.0
    active_processes: int = 0
    queued_tasks: int = 0
    memory_entries: int = 0
    security_level: SecurityLevel = SecurityLevel.STANDARD

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["security_level"] = self.security_level.value
        return data
