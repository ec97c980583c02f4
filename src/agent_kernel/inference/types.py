"""Type definitions for the inference service integration.

Dataclasses describe what a model turn produced; the pydantic models are
structured-output schemas passed to Ollama's ``format`` parameter.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from agent_kernel.security.types import AgentRole


@dataclass
class ToolCall:
    """A function call requested by the model.

    Attributes:
        name: Requested tool name (not yet validated against the registry)
        arguments: Decoded argument object
    """

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_ollama(raw: Any) -> "ToolCall":
        """Build a ToolCall from an Ollama tool_calls item (dict or object)."""

        def get_value(obj: Any, key: str, default: Any = None) -> Any:
            if isinstance(obj, dict):
                return obj.get(key, default)
            return getattr(obj, key, default)

        function = get_value(raw, "function", {}) or {}
        arguments = get_value(function, "arguments", {}) or {}
        if not isinstance(arguments, dict):
            arguments = dict(arguments)
        return ToolCall(name=get_value(function, "name", "") or "", arguments=arguments)

    def to_message(self) -> dict[str, Any]:
        """Convert to the tool_calls entry of an assistant message."""
        return {"function": {"name": self.name, "arguments": self.arguments}}


@dataclass
class GroundingCitation:
    """A web source that grounded a model response."""

    title: str
    uri: str


@dataclass
class GenerationResult:
    """Outcome of one model turn.

    Attributes:
        text: Text produced by the model (may be empty)
        tool_calls: Function calls the model wants executed
        citations: Web sources used for grounding, in retrieval order
        model: The model that actually answered (primary or fallback)
    """

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    citations: list[GroundingCitation] = field(default_factory=list)
    model: str = ""


class SafetyVerdict(BaseModel):
    """Structured result of the pre-flight safety scan."""

    safe: bool = Field(description="Whether the directive may be executed")
    reason: str = Field(default="", description="Short justification")


class PlannedTask(BaseModel):
    """One task proposed by the planner."""

    title: str
    description: str
    assigned_role: AgentRole
    priority: str = Field(default="MEDIUM", pattern="^(LOW|MEDIUM|HIGH|CRITICAL)$")


class TaskPlan(BaseModel):
    """Structured planner output."""

    tasks: list[PlannedTask] = Field(default_factory=list)
