"""Agent profiles and the per-task execution loop.

This package provides the role profiles (instructions and tool sets) and the
bounded reasoning/tool cycle that executes one task for one role.
"""

from agent_kernel.agents.profiles import AgentProfile, all_profiles, get_profile
from agent_kernel.agents.runtime import (
    MAX_TURNS,
    TRUNCATION_NOTICE,
    AgentRuntime,
    format_citations,
)

__all__ = [
    "AgentProfile",
    "AgentRuntime",
    "all_profiles",
    "get_profile",
    "format_citations",
    "MAX_TURNS",
    "TRUNCATION_NOTICE",
]
