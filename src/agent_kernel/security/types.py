"""Closed vocabularies shared by the capability layer.

Roles, permissions and tool names are enums so that every lookup table keyed
by them can be checked for completeness.
"""

from enum import Enum


class AgentRole(str, Enum):
    """Behavioral specialization of an agent."""

    PLANNER = "PLANNER"
    REASONING = "REASONING"
    CODING = "CODING"
    AUTOMATION = "AUTOMATION"
    SECURITY = "SECURITY"
    VOICE = "VOICE"
    VISION = "VISION"
    MEMORY = "MEMORY"
    MONITORING = "MONITORING"


class Permission(str, Enum):
    """A named grant required to invoke a tool."""

    READ_MEMORY = "READ_MEMORY"
    WRITE_MEMORY = "WRITE_MEMORY"
    EXECUTE_CODE = "EXECUTE_CODE"
    NETWORK_ACCESS = "NETWORK_ACCESS"
    SYSTEM_CONTROL = "SYSTEM_CONTROL"
    AUDIO_IO = "AUDIO_IO"
    SEARCH_ACCESS = "SEARCH_ACCESS"


class ToolName(str, Enum):
    """Every tool the dispatch table knows about."""

    SEARCH_MEMORY = "search_memory"
    SAVE_MEMORY = "save_memory"
    DELEGATE_TASK = "delegate_task"
    SYSTEM_STATUS = "system_status"
    FETCH_URL = "fetch_url"
    BROADCAST_ALERT = "broadcast_alert"
    ANALYZE_CODE = "analyze_code"
    EXECUTE_PYTHON = "execute_python"

    @classmethod
    def lookup(cls, name: str) -> "ToolName | None":
        """Resolve a tool name requested by a model, or None if unknown."""
        try:
            return cls(name)
        except ValueError:
            return None
