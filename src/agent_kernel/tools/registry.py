"""Tool dispatch table.

Tools are keyed by the closed ToolName enum. Each definition carries a
pydantic parameter model (the typed contract and the JSON schema sent to the
model) and an async handler. The dispatcher checks capabilities before a
handler is reached and converts every failure into a text result, so the
agent loop always gets a string back.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from pydantic import BaseModel

from agent_kernel.security.capabilities import TOOL_REQUIREMENTS, is_authorized
from agent_kernel.security.types import AgentRole, Permission, ToolName

logger = logging.getLogger(__name__)

SECURITY_BLOCK_PREFIX = "SECURITY BLOCK"
ERROR_PREFIX = "Error:"


@dataclass(frozen=True)
class CallerContext:
    """Who is calling a tool.

    Attributes:
        role: Role of the calling agent
        task_id: Task the agent is working on, if any
    """

    role: AgentRole
    task_id: str | None = None


ToolHandler = Callable[[Any, CallerContext], Awaitable[str]]


class AuditHook(Protocol):
    def __call__(
        self,
        role: AgentRole,
        message: str,
        severity: str,
        task_id: str | None = None,
    ) -> None: ...


@dataclass(frozen=True)
class ToolDefinition:
    """A named tool with its parameter contract and handler."""

    name: ToolName
    description: str
    parameters: type[BaseModel]
    handler: ToolHandler

    @property
    def required_permissions(self) -> frozenset[Permission]:
        return TOOL_REQUIREMENTS[self.name]

    def declaration(self) -> dict[str, Any]:
        """Build the Ollama function-tool declaration for this tool."""
        schema = self.parameters.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": schema,
            },
        }


def security_block(tool_name: str) -> str:
    """The fixed result returned for an unauthorized tool call."""
    return f"{SECURITY_BLOCK_PREFIX}: Access denied to {tool_name}"


class ToolDispatcher:
    """Capability-checked tool invocation.

    Attributes:
        audit: Optional hook that records denials in the system log
    """

    def __init__(
        self,
        tools: Iterable[ToolDefinition],
        audit: AuditHook | None = None,
    ):
        self._tools: dict[ToolName, ToolDefinition] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool registration: {tool.name.value}")
            self._tools[tool.name] = tool
        self.audit = audit

    @property
    def names(self) -> list[ToolName]:
        return list(self._tools)

    def get(self, name: ToolName | str) -> ToolDefinition | None:
        tool_name = ToolName.lookup(name) if isinstance(name, str) else name
        if tool_name is None:
            return None
        return self._tools.get(tool_name)

    def declarations(self, allowed: Iterable[ToolName | str]) -> list[dict[str, Any]]:
        """Function declarations for the allowed tools that are registered."""
        declarations = []
        for name in allowed:
            tool = self.get(name)
            if tool is not None:
                declarations.append(tool.declaration())
        return declarations

    async def dispatch(
        self,
        name: str,
        arguments: dict[str, Any] | None,
        caller: CallerContext,
    ) -> str:
        """Invoke a tool on behalf of an agent.

        Never raises. Unauthorized or unknown tools get the security block
        string without reaching a handler; invalid arguments and handler
        failures come back prefixed with "Error:".

        Args:
            name: Tool name as requested by the model
            arguments: Raw argument object from the model
            caller: Calling role and task

        Returns:
            str: Tool result text
        """
        tool = self.get(name)
        if tool is None or not is_authorized(caller.role, name):
            if self.audit is not None:
                self.audit(
                    caller.role,
                    f"Tool access denied: {caller.role.value} -> {name}",
                    "WARNING",
                    caller.task_id,
                )
            return security_block(name)

        try:
            args = tool.parameters.model_validate(arguments or {})
            result = await tool.handler(args, caller)
        except Exception as e:
            logger.warning(f"Tool {name} failed for {caller.role.value}: {e}")
            return f"{ERROR_PREFIX} {e}"

        logger.debug(f"Tool {name} executed for {caller.role.value}")
        return result if isinstance(result, str) else str(result)
