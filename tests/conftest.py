"""Pytest configuration and shared fixtures for agent-kernel tests.

This module provides common fixtures used across all test modules,
including isolated settings, a mocked inference client, the kernel and its
stores, and an async HTTP client for the app.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from agent_kernel import create_app
from agent_kernel.config import AgentKernelSettings
from agent_kernel.inference import GenerationResult, SafetyVerdict
from agent_kernel.kernel import AgentKernel
from agent_kernel.memory import MemoryStore
from agent_kernel.storage import JsonRecordStore


@pytest.fixture
def test_settings(tmp_path):
    """Create test settings with an isolated temporary data directory.

    The scheduler is not started automatically; tests drive it with tick().
    """
    return AgentKernelSettings(
        host="127.0.0.1",
        port=8000,
        ollama_host="http://localhost:11434",
        data_dir=str(tmp_path),
        store_dir="kernel_store",
        scheduler_autostart=False,
        safety_scan_enabled=False,
        grounding_enabled=False,
        tick_interval_seconds=0.01,
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def mock_inference():
    """An InferenceClient stand-in that answers every turn with "done"."""
    client = AsyncMock()
    client.host = "http://localhost:11434"
    client.check_connection.return_value = True
    client.embed.return_value = [1.0, 0.0, 0.0]
    client.safety_scan.return_value = SafetyVerdict(safe=True, reason="ok")
    client.generate.return_value = GenerationResult(text="done")
    client.generate_plan.return_value = []
    return client


@pytest.fixture
def record_store(test_settings):
    return JsonRecordStore(test_settings.resolved_store_dir)


@pytest.fixture
def memory_store(record_store, mock_inference):
    return MemoryStore(record_store, mock_inference)


@pytest.fixture
def kernel(test_settings, record_store, memory_store, mock_inference):
    return AgentKernel(test_settings, record_store, memory_store, mock_inference)


@pytest.fixture
def test_app(test_settings):
    """Create a FastAPI test application instance."""
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
