"""Unit tests for settings."""

from pathlib import Path

import pytest

from agent_kernel.config import AgentKernelSettings
from agent_kernel.exceptions import ConfigurationError


def test_defaults():
    settings = AgentKernelSettings()

    assert settings.max_concurrent_processes == 5
    assert settings.tick_interval_seconds == 0.5
    assert settings.max_agent_turns == 10
    assert settings.memory_similarity_threshold == 0.65
    assert settings.log_buffer_size == 200
    assert settings.priority_admission is False


def test_default_settings_validate():
    AgentKernelSettings().validate_runtime()


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("AGENT_KERNEL_MAX_CONCURRENT_PROCESSES", "2")
    monkeypatch.setenv("AGENT_KERNEL_PRIMARY_MODEL", "llama3.2")

    settings = AgentKernelSettings()

    assert settings.max_concurrent_processes == 2
    assert settings.primary_model == "llama3.2"


def test_resolved_store_dir(tmp_path):
    settings = AgentKernelSettings(data_dir=str(tmp_path), store_dir="state")

    assert settings.resolved_store_dir == Path(tmp_path) / "state"


def test_empty_primary_model_is_rejected():
    with pytest.raises(ConfigurationError):
        AgentKernelSettings(primary_model="  ").validate_runtime()


def test_grounding_requires_api_key():
    with pytest.raises(ConfigurationError, match="ollama_api_key"):
        AgentKernelSettings(grounding_enabled=True).validate_runtime()

    AgentKernelSettings(
        grounding_enabled=True, ollama_api_key="secret"
    ).validate_runtime()


def test_concurrency_limit_must_be_positive():
    with pytest.raises(ConfigurationError):
        AgentKernelSettings(max_concurrent_processes=0).validate_runtime()
