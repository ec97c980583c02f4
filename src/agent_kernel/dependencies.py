"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject common dependencies like settings and the kernel.
"""

from functools import lru_cache

from fastapi import HTTPException, Request

from agent_kernel.config import AgentKernelSettings
from agent_kernel.inference import InferenceClient
from agent_kernel.kernel import AgentKernel
from agent_kernel.memory import MemoryStore


@lru_cache
def get_settings() -> AgentKernelSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the AGENT_KERNEL_ prefix.

    Returns:
        AgentKernelSettings: The application configuration settings.
    """
    return AgentKernelSettings()


def _not_ready(component: str) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={
            "error": {
                "code": "service_unavailable",
                "message": f"{component} not initialized",
                "details": {},
            }
        },
    )


def get_kernel(request: Request) -> AgentKernel:
    """Get the kernel created during application startup.

    Raises:
        HTTPException: 503 if the kernel is not initialized.
    """
    if not hasattr(request.app.state, "kernel"):
        raise _not_ready("Kernel")
    return request.app.state.kernel


def get_memory_store(request: Request) -> MemoryStore:
    """Get the memory store from app state.

    Raises:
        HTTPException: 503 if the memory store is not initialized.
    """
    if not hasattr(request.app.state, "memory_store"):
        raise _not_ready("Memory store")
    return request.app.state.memory_store


def get_inference_client(request: Request) -> InferenceClient:
    """Get the inference client from app state.

    Raises:
        HTTPException: 503 if the inference client is not initialized.
    """
    if not hasattr(request.app.state, "inference_client"):
        raise _not_ready("Inference client")
    return request.app.state.inference_client
