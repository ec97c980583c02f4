"""Tasks router.

This module provides REST API endpoints for:
- Dispatching tasks to the kernel
- Listing tasks and retrieving one task
- Breaking a free-form request into tasks with the planner model
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from agent_kernel.dependencies import get_kernel
from agent_kernel.exceptions import InferenceError, TaskNotFoundError
from agent_kernel.kernel import AgentKernel, TaskDraft, TaskStatus
from agent_kernel.models.tasks import (
    DispatchTaskRequest,
    PlanRequest,
    PlanResponse,
    TaskListResponse,
    TaskResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Dispatch a task",
)
async def dispatch_task(
    request: DispatchTaskRequest,
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
) -> TaskResponse:
    """Queue a task for the role it is assigned to."""
    task = kernel.dispatch(
        TaskDraft(
            title=request.title,
            description=request.description,
            assigned_role=request.assigned_role,
            priority=request.priority,
            parent_id=request.parent_id,
            dependencies=request.dependencies,
        )
    )
    logger.info(f"Dispatched task {task.id} to {task.assigned_role.value}")
    return TaskResponse.from_task(task)


@router.get("", response_model=TaskListResponse, summary="List tasks")
async def list_tasks(
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
    status_filter: Annotated[TaskStatus | None, Query(alias="status")] = None,
) -> TaskListResponse:
    """List tasks in submission order, optionally filtered by status."""
    tasks = kernel.tasks
    if status_filter is not None:
        tasks = [t for t in tasks if t.status == status_filter]
    return TaskListResponse(tasks=[TaskResponse.from_task(t) for t in tasks])


@router.post(
    "/plan",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Plan and dispatch tasks",
)
async def plan_tasks(
    request: PlanRequest,
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
) -> PlanResponse:
    """Ask the planner model to break a request into tasks and dispatch them.

    Raises:
        HTTPException: 502 if the planner call fails
    """
    try:
        tasks = await kernel.plan(request.prompt)
    except InferenceError as e:
        logger.error(f"Planning failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": e.to_dict()},
        )
    return PlanResponse(tasks=[TaskResponse.from_task(t) for t in tasks])


@router.get("/{task_id}", response_model=TaskResponse, summary="Get a task")
async def get_task(
    task_id: str,
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
) -> TaskResponse:
    """Get one task by id.

    Raises:
        HTTPException: 404 if the task does not exist
    """
    try:
        task = kernel.get_task(task_id)
    except TaskNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": e.to_dict()},
        )
    return TaskResponse.from_task(task)
