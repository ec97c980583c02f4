"""Kernel state router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from agent_kernel.dependencies import get_kernel
from agent_kernel.kernel import AgentKernel
from agent_kernel.models.kernel import KernelStateResponse

router = APIRouter(prefix="/api/v1/kernel", tags=["kernel"])


@router.get("/state", response_model=KernelStateResponse, summary="Kernel state")
async def get_kernel_state(
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
) -> KernelStateResponse:
    """Uptime, process counters and security level."""
    state = kernel.state
    return KernelStateResponse(
        **state.to_dict(),
        max_concurrent_processes=kernel.settings.max_concurrent_processes,
        scheduler_running=kernel.is_started,
        running_task_ids=sorted(kernel.running),
    )
