"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Request

from agent_kernel.inference import InferenceClient
from agent_kernel.models.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns the current health status and version of agent-kernel, whether
    the scheduler is running, and whether the inference service answers.
    """
    from agent_kernel import __version__

    ollama_connected = None
    ollama_host = None
    scheduler_running = False

    if hasattr(request.app.state, "inference_client"):
        client: InferenceClient = request.app.state.inference_client
        ollama_host = client.host
        try:
            ollama_connected = await client.check_connection()
            logger.debug(f"Ollama connectivity check: {ollama_connected}")
        except Exception as e:
            logger.warning(f"Ollama connectivity check failed: {e}")
            ollama_connected = False

    if hasattr(request.app.state, "kernel"):
        scheduler_running = request.app.state.kernel.is_started

    return HealthResponse(
        status="ok",
        version=__version__,
        ollama_connected=ollama_connected,
        ollama_host=ollama_host,
        scheduler_running=scheduler_running,
    )
