"""Exception hierarchy for agent-kernel.

Configuration errors are fatal at startup. Inference overload errors are
retried once against the fallback model. Everything raised while a task runs
is caught at the kernel boundary and turns the task FAILED.
"""

from typing import Any


class AgentKernelError(Exception):
    """Base exception for all agent-kernel errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the API error body shape."""
        return {
            "code": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(AgentKernelError):
    """Settings are missing or inconsistent; not retried."""


class InferenceError(AgentKernelError):
    """The inference service failed to produce a response."""


class InferenceOverloadedError(InferenceError):
    """The inference service signalled rate limiting or overload."""


class SafetyRejectedError(AgentKernelError):
    """A task directive was rejected by the pre-flight safety scan."""

    def __init__(self, reason: str):
        super().__init__(f"Security Violation: {reason}", {"reason": reason})
        self.reason = reason


class AgentExecutionError(AgentKernelError):
    """The agent execution loop could not complete a task."""

    def __init__(
        self,
        role: str,
        message: str,
        original_error: Exception | None = None,
    ):
        details: dict[str, Any] = {"role": role}
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(message, details)
        self.role = role
        self.original_error = original_error


class TaskNotFoundError(AgentKernelError):
    """No task with the requested id exists."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found", {"task_id": task_id})
        self.task_id = task_id
