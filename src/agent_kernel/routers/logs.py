"""System log router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from agent_kernel.dependencies import get_kernel
from agent_kernel.kernel import AgentKernel
from agent_kernel.models.logs import CreateLogRequest, LogEntryResponse, LogListResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/logs", tags=["logs"])


@router.get("", response_model=LogListResponse, summary="Recent system log")
async def list_logs(
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> LogListResponse:
    """Return the most recent log entries, newest first."""
    entries = kernel.logs[:limit]
    return LogListResponse(logs=[LogEntryResponse(**e.to_dict()) for e in entries])


@router.post(
    "",
    response_model=LogEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append a log entry",
)
async def create_log(
    request: CreateLogRequest,
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
) -> LogEntryResponse:
    entry = kernel.log(request.role, request.message, request.severity)
    return LogEntryResponse(**entry.to_dict())
