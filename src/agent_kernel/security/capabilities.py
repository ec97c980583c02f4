"""Capability registry: which role may call which tool.

Both tables are static. Lookups are pure apart from a warning on the module
logger when access is denied.
"""

import logging
from enum import Enum

from agent_kernel.security.types import AgentRole, Permission, ToolName

logger = logging.getLogger(__name__)

ROLE_PERMISSIONS: dict[AgentRole, frozenset[Permission]] = {
    AgentRole.PLANNER: frozenset(
        {
            Permission.READ_MEMORY,
            Permission.WRITE_MEMORY,
            Permission.SYSTEM_CONTROL,
            Permission.EXECUTE_CODE,
            Permission.SEARCH_ACCESS,
        }
    ),
    AgentRole.REASONING: frozenset(
        {
            Permission.READ_MEMORY,
            Permission.WRITE_MEMORY,
            Permission.EXECUTE_CODE,
            Permission.SEARCH_ACCESS,
        }
    ),
    AgentRole.CODING: frozenset(
        {
            Permission.READ_MEMORY,
            Permission.EXECUTE_CODE,
            Permission.WRITE_MEMORY,
        }
    ),
    AgentRole.AUTOMATION: frozenset(
        {
            Permission.READ_MEMORY,
            Permission.WRITE_MEMORY,
            Permission.NETWORK_ACCESS,
            Permission.EXECUTE_CODE,
            Permission.SEARCH_ACCESS,
        }
    ),
    AgentRole.SECURITY: frozenset(
        {
            Permission.READ_MEMORY,
            Permission.WRITE_MEMORY,
            Permission.SYSTEM_CONTROL,
            Permission.NETWORK_ACCESS,
            Permission.EXECUTE_CODE,
        }
    ),
    AgentRole.VOICE: frozenset({Permission.AUDIO_IO, Permission.READ_MEMORY}),
    AgentRole.VISION: frozenset({Permission.READ_MEMORY}),
    AgentRole.MEMORY: frozenset({Permission.READ_MEMORY, Permission.WRITE_MEMORY}),
    AgentRole.MONITORING: frozenset(
        {Permission.READ_MEMORY, Permission.SYSTEM_CONTROL}
    ),
}

TOOL_REQUIREMENTS: dict[ToolName, frozenset[Permission]] = {
    ToolName.SEARCH_MEMORY: frozenset({Permission.READ_MEMORY}),
    ToolName.SAVE_MEMORY: frozenset({Permission.WRITE_MEMORY}),
    ToolName.DELEGATE_TASK: frozenset({Permission.SYSTEM_CONTROL}),
    ToolName.SYSTEM_STATUS: frozenset({Permission.SYSTEM_CONTROL}),
    ToolName.FETCH_URL: frozenset({Permission.NETWORK_ACCESS}),
    ToolName.BROADCAST_ALERT: frozenset({Permission.SYSTEM_CONTROL}),
    ToolName.ANALYZE_CODE: frozenset({Permission.EXECUTE_CODE}),
    ToolName.EXECUTE_PYTHON: frozenset({Permission.EXECUTE_CODE}),
}


def permissions_for(role: AgentRole | str) -> frozenset[Permission]:
    """Get the permissions granted to a role.

    Args:
        role: The agent role (enum member or its string value)

    Returns:
        frozenset[Permission]: Granted permissions, empty for unknown roles
    """
    try:
        resolved = AgentRole(role)
    except ValueError:
        return frozenset()
    return ROLE_PERMISSIONS.get(resolved, frozenset())


def required_permissions(tool_name: ToolName | str) -> frozenset[Permission] | None:
    """Get the permissions a tool requires, or None if the tool is unknown."""
    tool = ToolName.lookup(tool_name) if isinstance(tool_name, str) else tool_name
    if tool is None:
        return None
    return TOOL_REQUIREMENTS.get(tool)


def _label(value: Enum | str) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def is_authorized(role: AgentRole | str, tool_name: ToolName | str) -> bool:
    """Check whether a role may invoke a tool.

    Fails closed: a tool name that is not registered is never authorized,
    regardless of what the role holds.

    Args:
        role: The calling agent's role
        tool_name: The tool being requested

    Returns:
        bool: True iff the role holds every permission the tool requires
    """
    required = required_permissions(tool_name)
    if required is None:
        logger.warning(
            f"Access denied: role {_label(role)} requested unknown tool "
            f"{_label(tool_name)}"
        )
        return False

    granted = permissions_for(role)
    if not required <= granted:
        missing = sorted(p.value for p in required - granted)
        logger.warning(
            f"SECURITY VIOLATION: role {_label(role)} attempted to access "
            f"{_label(tool_name)} without permissions {missing}"
        )
        return False

    return True
