"""Scheduler kernel: task intake, admission, execution and system log.

This package provides the kernel that owns task state, the change notifier
observers subscribe to, and the kernel data types.
"""

from agent_kernel.kernel.events import ChangeNotifier
from agent_kernel.kernel.scheduler import SYSTEM_ROLE, AgentKernel
from agent_kernel.kernel.types import (
    AgentActivity,
    AgentRuntimeStatus,
    KernelState,
    LogSeverity,
    SecurityLevel,
    SystemLogEntry,
    Task,
    TaskDraft,
    TaskPriority,
    TaskStatus,
)

__all__ = [
    "AgentKernel",
    "ChangeNotifier",
    "SYSTEM_ROLE",
    "AgentActivity",
    "AgentRuntimeStatus",
    "KernelState",
    "LogSeverity",
    "SecurityLevel",
    "SystemLogEntry",
    "Task",
    "TaskDraft",
    "TaskPriority",
    "TaskStatus",
]
