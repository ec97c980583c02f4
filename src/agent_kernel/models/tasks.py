"""Pydantic models for task API requests and responses."""

from pydantic import BaseModel, Field

from agent_kernel.kernel.types import Task, TaskPriority, TaskStatus
from agent_kernel.security.types import AgentRole


class DispatchTaskRequest(BaseModel):
    """Request body for dispatching a new task."""

    title: str = Field("Untitled", min_length=1, description="Short task title")
    description: str = Field("", description="What the agent should do")
    assigned_role: AgentRole = Field(
        AgentRole.PLANNER, description="Role that will execute the task"
    )
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    parent_id: str | None = Field(None, description="Id of the parent task, if any")
    dependencies: list[str] = Field(
        default_factory=list,
        description="Ids of tasks that must complete before this one is admitted",
    )


class PlanRequest(BaseModel):
    """Request body for planner-driven task creation."""

    prompt: str = Field(..., min_length=1, description="Request to break into tasks")


class TaskResponse(BaseModel):
    """A task as returned by the API."""

    id: str
    title: str
    description: str
    assigned_role: AgentRole
    status: TaskStatus
    priority: TaskPriority
    progress: int = Field(..., ge=0, le=100)
    result: str | None = None
    created_at: str
    parent_id: str | None = None
    dependencies: list[str] = Field(default_factory=list)

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(**task.to_dict())


class TaskListResponse(BaseModel):
    """Response for listing tasks."""

    tasks: list[TaskResponse]


class PlanResponse(BaseModel):
    """Tasks dispatched from a plan."""

    tasks: list[TaskResponse]
