"""Configuration module for agent-kernel using pydantic-settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_kernel.exceptions import ConfigurationError


class AgentKernelSettings(BaseSettings):
    """Main configuration settings for agent-kernel.

    All settings can be overridden via environment variables with the
    AGENT_KERNEL_ prefix. For example, AGENT_KERNEL_OLLAMA_HOST will override
    the ollama_host setting.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Ollama
    ollama_host: str = "http://localhost:11434"
    ollama_api_key: str | None = None

    # Model tiers
    primary_model: str = "qwen3:14b"
    fallback_model: str = "qwen3:4b"
    safety_model: str = "qwen3:4b"
    embedding_model: str = "nomic-embed-text"
    embedding_fallback_model: str | None = None

    # Data directories (relative to data_dir)
    data_dir: str = "."
    store_dir: str = "kernel_store"

    # Scheduler
    max_concurrent_processes: int = 5
    tick_interval_seconds: float = 0.5
    priority_admission: bool = False
    scheduler_autostart: bool = True
    safety_scan_enabled: bool = True

    # Agent execution
    max_agent_turns: int = 10
    grounding_enabled: bool = False
    max_grounding_rounds: int = 2
    temperature: float = 0.2

    # Memory
    memory_similarity_threshold: float = 0.65

    # System log
    log_buffer_size: int = 200
    restored_log_count: int = 50

    # Tools
    fetch_timeout_seconds: float = 15.0
    fetch_max_chars: int = 2000
    sandbox_timeout_seconds: float = 10.0
    sandbox_memory_limit_mb: int = 256

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="AGENT_KERNEL_")

    @property
    def resolved_store_dir(self) -> Path:
        """Get the full path to the durable store directory."""
        return Path(self.data_dir) / self.store_dir

    def validate_runtime(self) -> None:
        """Check settings that are fatal if wrong at startup.

        Raises:
            ConfigurationError: If a required model is missing or grounding is
                enabled without credentials for the hosted search API.
        """
        if not self.primary_model.strip():
            raise ConfigurationError("primary_model must not be empty")
        if not self.embedding_model.strip():
            raise ConfigurationError("embedding_model must not be empty")
        if self.max_concurrent_processes < 1:
            raise ConfigurationError("max_concurrent_processes must be at least 1")
        if self.grounding_enabled and not self.ollama_api_key:
            raise ConfigurationError(
                "grounding_enabled requires ollama_api_key "
                "(set AGENT_KERNEL_OLLAMA_API_KEY or disable grounding)"
            )
