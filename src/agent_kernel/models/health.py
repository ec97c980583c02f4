"""Health check response model."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health check endpoint.

    Attributes:
        status: Health status indicator ("ok" or "error").
        version: The version of agent-kernel.
        ollama_connected: Whether the inference service answered.
        ollama_host: The inference service URL.
        scheduler_running: Whether the kernel tick loop is active.
    """

    status: str = Field(..., description="Health status of the service")
    version: str = Field(..., description="Version of agent-kernel")
    ollama_connected: bool | None = Field(
        default=None,
        description="Whether Ollama is connected",
    )
    ollama_host: str | None = Field(default=None, description="Ollama host URL")
    scheduler_running: bool = Field(
        default=False, description="Whether the scheduler tick loop is active"
    )
