"""Pydantic models for API request and response schemas.

This package contains all Pydantic models used for validating and
serializing API requests and responses across all endpoints.
"""

from agent_kernel.models.tasks import (
    DispatchTaskRequest,
    PlanRequest,
    PlanResponse,
    TaskListResponse,
    TaskResponse,
)

__all__ = [
    "DispatchTaskRequest",
    "PlanRequest",
    "PlanResponse",
    "TaskListResponse",
    "TaskResponse",
]
