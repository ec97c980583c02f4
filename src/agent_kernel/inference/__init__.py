"""Inference service integration layer.

This package wraps the Ollama API for agent turns, embeddings, safety scans
and planning, with single-retry fallback to a smaller model on overload.
"""

from agent_kernel.inference.client import InferenceClient, is_overload_error
from agent_kernel.inference.types import (
    GenerationResult,
    GroundingCitation,
    PlannedTask,
    SafetyVerdict,
    ToolCall,
)

__all__ = [
    "InferenceClient",
    "is_overload_error",
    "GenerationResult",
    "GroundingCitation",
    "PlannedTask",
    "SafetyVerdict",
    "ToolCall",
]
