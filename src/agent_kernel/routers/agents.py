"""Agents router: live status of every agent role."""

from typing import Annotated

from fastapi import APIRouter, Depends

from agent_kernel.agents import get_profile
from agent_kernel.dependencies import get_kernel
from agent_kernel.kernel import AgentKernel
from agent_kernel.models.agents import AgentListResponse, AgentStatusResponse

router = APIRouter(prefix="/api/v1/agents", tags=["agents"])


@router.get("", response_model=AgentListResponse, summary="List agent roles")
async def list_agents(
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
) -> AgentListResponse:
    """List every role with its current activity, permissions and tools."""
    agents = []
    for status in kernel.agents:
        profile = get_profile(status.role)
        agents.append(
            AgentStatusResponse.from_status(
                status,
                permissions=sorted(profile.permissions, key=lambda p: p.value),
                allowed_tools=list(profile.allowed_tools),
            )
        )
    return AgentListResponse(agents=agents)
