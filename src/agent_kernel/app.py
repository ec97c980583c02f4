"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and
configures the FastAPI application instance, including lifespan management
for startup/shutdown and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agent_kernel.config import AgentKernelSettings
from agent_kernel.inference import InferenceClient
from agent_kernel.kernel import AgentKernel
from agent_kernel.memory import MemoryStore
from agent_kernel.routers import agents, events, health, kernel, logs, memory, tasks
from agent_kernel.storage import JsonRecordStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    Builds the inference client, the record store, the memory store and the
    kernel once at startup and stores them in app.state. The kernel tick loop
    is started unless scheduler_autostart is off.

    Raises:
        ConfigurationError: If the settings are not usable.
    """
    settings: AgentKernelSettings = app.state.settings
    settings.validate_runtime()

    client = InferenceClient(
        host=settings.ollama_host,
        primary_model=settings.primary_model,
        fallback_model=settings.fallback_model,
        embedding_model=settings.embedding_model,
        safety_model=settings.safety_model,
        embedding_fallback_model=settings.embedding_fallback_model,
        api_key=settings.ollama_api_key,
        temperature=settings.temperature,
        max_grounding_rounds=settings.max_grounding_rounds,
    )
    app.state.inference_client = client
    logger.info(f"Initialized inference client with host: {settings.ollama_host}")

    store = JsonRecordStore(settings.resolved_store_dir)
    app.state.record_store = store
    app.state.memory_store = MemoryStore(
        store, client, similarity_threshold=settings.memory_similarity_threshold
    )
    app.state.kernel = AgentKernel(settings, store, app.state.memory_store, client)

    connected = await client.check_connection()
    if connected:
        logger.info("Successfully connected to Ollama")
    else:
        logger.warning("Could not connect to Ollama - check if server is running")

    if settings.scheduler_autostart:
        await app.state.kernel.start()

    yield

    await app.state.kernel.stop()
    await client.close()
    logger.info("Inference client closed")


def create_app(settings: AgentKernelSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional AgentKernelSettings instance. If not provided,
                  settings will be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from agent_kernel.dependencies import get_settings

        settings = get_settings()

    from agent_kernel import __version__

    app = FastAPI(
        title="agent-kernel",
        description="Agent orchestration runtime: task scheduler, tool dispatch and memory",
        version=__version__,
        lifespan=lifespan,
    )

    # Store settings in app.state for lifespan access
    app.state.settings = settings

    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(tasks.router)
    app.include_router(agents.router)
    app.include_router(memory.router)
    app.include_router(logs.router)
    app.include_router(kernel.router)
    app.include_router(events.router)

    return app
