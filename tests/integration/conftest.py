"""Pytest configuration for integration tests.

This module patches the inference client used by the app lifespan so API
tests never talk to a real Ollama server.
"""

from unittest.mock import AsyncMock, patch

import pytest

from agent_kernel.inference import GenerationResult, PlannedTask, SafetyVerdict
from agent_kernel.security import AgentRole


@pytest.fixture(autouse=True)
def mock_inference_client():
    """Mock InferenceClient for all integration tests.

    This fixture patches the InferenceClient class before the app is created,
    ensuring the lifespan uses our mock instead of creating a real client.
    """
    with patch("agent_kernel.app.InferenceClient") as mock_client_class:
        mock_instance = AsyncMock()
        mock_instance.host = "http://localhost:11434"
        mock_instance.check_connection.return_value = True
        mock_instance.embed.return_value = [0.5, 0.5, 0.0]
        mock_instance.safety_scan.return_value = SafetyVerdict(safe=True)
        mock_instance.generate.return_value = GenerationResult(text="done")
        mock_instance.generate_plan.return_value = [
            PlannedTask(
                title="Research",
                description="Collect current data",
                assigned_role=AgentRole.AUTOMATION,
                priority="HIGH",
            ),
            PlannedTask(
                title="Summarize",
                description="Write the summary",
                assigned_role=AgentRole.REASONING,
            ),
        ]

        mock_client_class.return_value = mock_instance

        yield mock_instance
