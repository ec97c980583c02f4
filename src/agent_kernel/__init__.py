"""agent-kernel: orchestration runtime for permissioned LLM agents.

This package provides a task scheduler that runs role-based agents against an
Ollama inference service, a capability-gated tool dispatcher, a hybrid
vector/keyword memory store, and a headless REST/SSE API over all of it.
"""

from agent_kernel.app import create_app

__version__ = "0.1.0"

__all__ = ["create_app", "__version__"]
