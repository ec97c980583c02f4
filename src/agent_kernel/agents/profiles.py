"""Agent profiles: display name, instructions and tool set per role."""

from dataclasses import dataclass

from agent_kernel.security.capabilities import permissions_for
from agent_kernel.security.types import AgentRole, Permission, ToolName


@dataclass(frozen=True)
class AgentProfile:
    """Static configuration for one agent role."""

    role: AgentRole
    display_name: str
    instruction: str
    allowed_tools: tuple[ToolName, ...]

    @property
    def permissions(self) -> frozenset[Permission]:
        return permissions_for(self.role)

    @property
    def can_search(self) -> bool:
        return Permission.SEARCH_ACCESS in self.permissions


_MEMORY_TOOLS = (ToolName.SEARCH_MEMORY, ToolName.SAVE_MEMORY)

_PROFILES: dict[AgentRole, AgentProfile] = {
    AgentRole.PLANNER: AgentProfile(
        role=AgentRole.PLANNER,
        display_name="Executive Planner",
        instruction=(
            "You are the Master Orchestrator. Verify the feasibility of plans "
            "with web search when available. Delegate sub-tasks."
        ),
        allowed_tools=_MEMORY_TOOLS
        + (
            ToolName.SYSTEM_STATUS,
            ToolName.BROADCAST_ALERT,
            ToolName.DELEGATE_TASK,
            ToolName.EXECUTE_PYTHON,
        ),
    ),
    AgentRole.CODING: AgentProfile(
        role=AgentRole.CODING,
        display_name="DevOps Module",
        instruction="You are a Senior Software Engineer. You can execute Python code.",
        allowed_tools=_MEMORY_TOOLS
        + (ToolName.ANALYZE_CODE, ToolName.DELEGATE_TASK, ToolName.EXECUTE_PYTHON),
    ),
    AgentRole.SECURITY: AgentProfile(
        role=AgentRole.SECURITY,
        display_name="Sentinel",
        instruction="You are the Security Core. Audit actions.",
        allowed_tools=_MEMORY_TOOLS
        + (ToolName.SYSTEM_STATUS, ToolName.ANALYZE_CODE, ToolName.BROADCAST_ALERT),
    ),
    AgentRole.AUTOMATION: AgentProfile(
        role=AgentRole.AUTOMATION,
        display_name="Workflow Engine",
        instruction=(
            "You are the Automation Executor. Use live web search to find "
            "real-time data."
        ),
        allowed_tools=_MEMORY_TOOLS
        + (ToolName.BROADCAST_ALERT, ToolName.FETCH_URL, ToolName.EXECUTE_PYTHON),
    ),
    AgentRole.REASONING: AgentProfile(
        role=AgentRole.REASONING,
        display_name="Deep Thought",
        instruction=(
            "You are the Reasoning Engine. Use web search to ground your logic "
            "in facts."
        ),
        allowed_tools=_MEMORY_TOOLS + (ToolName.EXECUTE_PYTHON,),
    ),
    AgentRole.VOICE: AgentProfile(
        role=AgentRole.VOICE,
        display_name="Interface",
        instruction="You are the Voice Interface.",
        allowed_tools=_MEMORY_TOOLS,
    ),
}


def get_profile(role: AgentRole | str) -> AgentProfile:
    """Get the profile for a role.

    Roles without a dedicated profile get a generic specialist profile with
    the memory tools.

    Raises:
        ValueError: If ``role`` is not a known AgentRole
    """
    resolved = AgentRole(role)
    profile = _PROFILES.get(resolved)
    if profile is not None:
        return profile
    return AgentProfile(
        role=resolved,
        display_name=f"{resolved.value.title()} Unit",
        instruction=f"You are the {resolved.value} specialist.",
        allowed_tools=_MEMORY_TOOLS,
    )


def all_profiles() -> list[AgentProfile]:
    """Profiles for every role, in enum order."""
    return [get_profile(role) for role in AgentRole]
