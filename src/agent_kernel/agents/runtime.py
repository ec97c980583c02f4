"""Per-task agent execution loop.

One invocation alternates between asking the model for the next step and
dispatching the tool calls it requests, until the model answers without tool
calls or the turn budget runs out:

    AWAITING_MODEL -> HAS_TOOL_CALLS -> DISPATCH_TOOLS -> AWAITING_MODEL
    AWAITING_MODEL -> NO_TOOL_CALLS -> DONE
    DISPATCH_TOOLS (turn budget spent) -> DONE with a truncation notice

Tool failures come back as text and never stop the loop. A failed model call
stops the loop with AgentExecutionError, which fails the whole task.
"""

import logging
from typing import Any, Callable, Protocol

from agent_kernel.agents.profiles import AgentProfile
from agent_kernel.exceptions import AgentExecutionError
from agent_kernel.inference.types import GenerationResult, GroundingCitation
from agent_kernel.tools.registry import CallerContext, ToolDispatcher

logger = logging.getLogger(__name__)

MAX_TURNS = 10
TRUNCATION_NOTICE = "[SYSTEM NOTE: Maximum execution turns reached.]"

PROTOCOL = """PROTOCOL:
1. THOUGHT: Internal monologue.
2. PLAN: Formulate steps.
3. CRITIQUE: Verify safety.
4. ACTION: Use tools or search.
5. OBSERVE: Analyze output.
6. REFINE: Adjust plan.
7. FINAL ANSWER: Summary."""

SEARCH_PREFERENCE = (
    "YOU HAVE LIVE WEB SEARCH ACCESS. USE IT FOR REAL-TIME DATA. "
    "Do NOT use fetch_url for general queries."
)


class TaskDirective(Protocol):
    id: str
    title: str
    description: str


class Generator(Protocol):
    async def generate(
        self,
        role: str,
        history: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        enable_grounding: bool = False,
    ) -> GenerationResult: ...


def format_citations(citations: list[GroundingCitation]) -> str:
    """Render grounding citations as a numbered source list."""
    if not citations:
        return ""
    lines = [f"[{i}] {c.title} ({c.uri})" for i, c in enumerate(citations, start=1)]
    return "\n\nSOURCES:\n" + "\n".join(lines)


class AgentRuntime:
    """Runs tasks for one agent role.

    Attributes:
        profile: Role configuration (instructions and allowed tools)
        inference: Service that produces model turns
        dispatcher: Capability-checked tool dispatcher
        max_turns: Number of tool turns before the loop is cut off
        grounding_enabled: Whether web grounding may be requested at all
        status_hook: Called with THINKING / AWAITING_TOOL as the loop moves
    """

    def __init__(
        self,
        profile: AgentProfile,
        inference: Generator,
        dispatcher: ToolDispatcher,
        max_turns: int = MAX_TURNS,
        grounding_enabled: bool = True,
        status_hook: Callable[[str], None] | None = None,
    ):
        self.profile = profile
        self.inference = inference
        self.dispatcher = dispatcher
        self.max_turns = max_turns
        self.grounding_enabled = grounding_enabled
        self.status_hook = status_hook

    @property
    def uses_grounding(self) -> bool:
        return self.grounding_enabled and self.profile.can_search

    def _set_status(self, status: str) -> None:
        if self.status_hook is not None:
            self.status_hook(status)

    def build_instructions(self, task: TaskDirective, context: str) -> list[dict[str, Any]]:
        """Build the initial instruction frame for a task."""
        tool_names = ", ".join(t.value for t in self.profile.allowed_tools) or "none"
        system_parts = [
            self.profile.instruction,
            f"You are an autonomous agent ({self.profile.display_name}).",
            f"You have access to tools: {tool_names}.",
        ]
        if self.uses_grounding:
            system_parts.append(SEARCH_PREFERENCE)
        system_parts.append(PROTOCOL)

        user_prompt = (
            f"CURRENT TASK: {task.title}\n"
            f"DETAILS: {task.description}\n"
            f"MEMORY CONTEXT: {context or '(none)'}"
        )
        return [
            {"role": "system", "content": "\n\n".join(system_parts)},
            {"role": "user", "content": user_prompt},
        ]

    async def execute(self, task: TaskDirective, context: str) -> str:
        """Run the reasoning/tool cycle for a task.

        Args:
            task: The task being executed
            context: Retrieved memory (and parent result) text

        Returns:
            str: Final output, with sources and a truncation notice if any

        Raises:
            AgentExecutionError: If a model call fails
        """
        role = self.profile.role
        declarations = self.dispatcher.declarations(self.profile.allowed_tools)
        history = self.build_instructions(task, context)
        caller = CallerContext(role=role, task_id=task.id)

        final_output = ""
        turn_count = 0

        while turn_count < self.max_turns:
            self._set_status("THINKING")
            try:
                step = await self.inference.generate(
                    role.value, history, declarations, self.uses_grounding
                )
            except Exception as e:
                raise AgentExecutionError(
                    role.value, f"Inference failed for {role.value}: {e}", e
                ) from e

            if step.text:
                final_output = step.text + format_citations(step.citations)

            if not step.tool_calls:
                break

            history.append(
                {
                    "role": "assistant",
                    "content": step.text,
                    "tool_calls": [call.to_message() for call in step.tool_calls],
                }
            )

            self._set_status("AWAITING_TOOL")
            for call in step.tool_calls:
                result = await self.dispatcher.dispatch(call.name, call.arguments, caller)
                logger.debug(f"[{role.value}] {call.name} -> {result[:120]!r}")
                history.append({"role": "tool", "tool_name": call.name, "content": result})

            turn_count += 1

        if turn_count >= self.max_turns:
            logger.warning(f"[{role.value}] Task {task.id} hit the turn limit")
            final_output += f"\n{TRUNCATION_NOTICE}"

        return final_output
