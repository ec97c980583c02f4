"""Capability-based access control for agent tool calls.

This package maps agent roles to granted permissions and tools to required
permissions, and answers whether a role may invoke a tool.
"""

from agent_kernel.security.capabilities import (
    ROLE_PERMISSIONS,
    TOOL_REQUIREMENTS,
    is_authorized,
    permissions_for,
    required_permissions,
)
from agent_kernel.security.types import AgentRole, Permission, ToolName

__all__ = [
    "AgentRole",
    "Permission",
    "ToolName",
    "ROLE_PERMISSIONS",
    "TOOL_REQUIREMENTS",
    "is_authorized",
    "permissions_for",
    "required_permissions",
]
