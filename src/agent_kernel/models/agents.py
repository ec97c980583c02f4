"""Pydantic models for agent status responses."""

from pydantic import BaseModel, Field

from agent_kernel.kernel.types import AgentActivity, AgentRuntimeStatus
from agent_kernel.security.types import AgentRole, Permission, ToolName


class AgentStatusResponse(BaseModel):
    """Live status of one agent role."""

    id: str
    role: AgentRole
    display_name: str
    status: AgentActivity
    confidence: float = Field(..., ge=0.0, le=1.0)
    last_activity: str
    current_task: str | None = None
    active_task_ids: list[str] = Field(default_factory=list)
    permissions: list[Permission] = Field(default_factory=list)
    allowed_tools: list[ToolName] = Field(default_factory=list)

    @classmethod
    def from_status(
        cls,
        status: AgentRuntimeStatus,
        permissions: list[Permission],
        allowed_tools: list[ToolName],
    ) -> "AgentStatusResponse":
        return cls(
            **status.to_dict(),
            permissions=permissions,
            allowed_tools=allowed_tools,
        )


class AgentListResponse(BaseModel):
    """Response for listing agent roles."""

    agents: list[AgentStatusResponse]
