"""Built-in tools available to agents.

Handlers reach the kernel only through the small KernelHandle protocol so
that this module does not depend on the scheduler.
"""

import ast
import json
import logging
from typing import Any, Literal, Protocol

import httpx
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field

from agent_kernel.memory import MemoryKind, MemoryStore
from agent_kernel.security.types import AgentRole, ToolName
from agent_kernel.timestamps import parse_iso
from agent_kernel.tools.registry import CallerContext, ToolDefinition
from agent_kernel.tools.sandbox import run_python

logger = logging.getLogger(__name__)

RISKY_CALLS = {"eval", "exec", "compile", "__import__", "system", "popen", "Popen"}


class KernelHandle(Protocol):
    """The part of the kernel that tools are allowed to touch."""

    def submit(
        self,
        *,
        title: str,
        description: str,
        assigned_role: AgentRole,
        priority: str,
        parent_id: str | None,
    ) -> str: ...

    def log(
        self,
        role: AgentRole,
        message: str,
        severity: str,
        task_id: str | None = None,
    ) -> None: ...

    def status_report(self) -> dict[str, Any]: ...


class SearchMemoryArgs(BaseModel):
    query: str = Field(description="The search query to find relevant memories.")


class SaveMemoryArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(description="The information to save.")
    kind: MemoryKind = Field(alias="type", description="Type of memory.")
    tags: list[str] = Field(default_factory=list, description="Tags for categorization.")


class DelegateTaskArgs(BaseModel):
    title: str
    description: str
    agent: AgentRole = Field(description="Role that should handle the sub-task.")
    priority: Literal["LOW", "MEDIUM", "HIGH"] = "MEDIUM"


class SystemStatusArgs(BaseModel):
    pass


class FetchUrlArgs(BaseModel):
    url: AnyHttpUrl = Field(description="The URL to fetch.")


class BroadcastAlertArgs(BaseModel):
    message: str
    severity: Literal["INFO", "WARNING", "CRITICAL"]


class AnalyzeCodeArgs(BaseModel):
    code: str = Field(description="The code snippet.")
    language: str = Field(description="Programming language.")


class ExecutePythonArgs(BaseModel):
    code: str = Field(
        description="Python source to run. Print the values you need; stdout is returned."
    )


def analyze_source(code: str, language: str) -> str:
    """Produce a short static report for a code snippet.

    Python sources are parsed for structure, a rough cyclomatic estimate and
    calls that usually deserve review. Other languages get line counts only.
    """
    lines = code.splitlines()
    non_blank = [line for line in lines if line.strip()]
    report = [
        f"Static Analysis ({language}):",
        f"- LOC: {len(lines)} ({len(non_blank)} non-blank)",
    ]

    if language.strip().lower() not in {"python", "py", "python3"}:
        report.append("- Structural analysis: not available for this language")
        return "\n".join(report)

    try:
        tree = ast.parse(code)
    except SyntaxError as e:
        report.append(f"- Syntax error at line {e.lineno}: {e.msg}")
        return "\n".join(report)

    functions = classes = branches = 0
    risky: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            functions += 1
        elif isinstance(node, ast.ClassDef):
            classes += 1
        elif isinstance(
            node, (ast.If, ast.For, ast.While, ast.Try, ast.BoolOp, ast.IfExp)
        ):
            branches += 1
        elif isinstance(node, ast.Call):
            func = node.func
            name = func.id if isinstance(func, ast.Name) else getattr(func, "attr", "")
            if name in RISKY_CALLS:
                risky.add(name)

    report.append(f"- Functions: {functions}, classes: {classes}")
    report.append(f"- Cyclomatic estimate: {branches + 1}")
    if risky:
        report.append(f"- Security risk: HIGH (calls {', '.join(sorted(risky))})")
    else:
        report.append("- Security risk: LOW")
    report.append("- Syntax: valid")
    return "\n".join(report)


class BuiltinTools:
    """Handlers for the built-in tool set.

    Attributes:
        kernel: Handle for dispatching tasks, logging and status
        memory: Memory store used by the memory tools
    """

    def __init__(
        self,
        kernel: KernelHandle,
        memory: MemoryStore,
        fetch_timeout_seconds: float = 15.0,
        fetch_max_chars: int = 2000,
        sandbox_timeout_seconds: float = 10.0,
        sandbox_memory_limit_mb: int = 256,
    ):
        self.kernel = kernel
        self.memory = memory
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self.fetch_max_chars = fetch_max_chars
        self.sandbox_timeout_seconds = sandbox_timeout_seconds
        self.sandbox_memory_limit_mb = sandbox_memory_limit_mb

    async def search_memory(self, args: SearchMemoryArgs, caller: CallerContext) -> str:
        results = await self.memory.search(args.query)
        if not results:
            return "No relevant memories found."
        lines = []
        for entry in results:
            time_label = parse_iso(entry.timestamp).strftime("%H:%M:%S")
            lines.append(f"[ID:{entry.id[:4]} Time:{time_label}] {entry.content}")
        return "\n".join(lines)

    async def save_memory(self, args: SaveMemoryArgs, caller: CallerContext) -> str:
        entry = await self.memory.add(args.content, args.kind, caller.role, args.tags)
        return f"Memory persisted successfully. ID: {entry.id}"

    async def delegate_task(self, args: DelegateTaskArgs, caller: CallerContext) -> str:
        self.kernel.submit(
            title=f"[SUB] {args.title}",
            description=f"Delegated by {caller.role.value}: {args.description}",
            assigned_role=args.agent,
            priority=args.priority,
            parent_id=caller.task_id,
        )
        return f"Sub-process dispatched to {args.agent.value}. It will run in parallel."

    async def system_status(self, args: SystemStatusArgs, caller: CallerContext) -> str:
        return json.dumps(self.kernel.status_report())

    async def fetch_url(self, args: FetchUrlArgs, caller: CallerContext) -> str:
        url = str(args.url)
        try:
            async with httpx.AsyncClient(
                timeout=self.fetch_timeout_seconds, follow_redirects=True
            ) as client:
                response = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            return f"Network Error: {e}"

        if response.status_code >= 400:
            return f"Network Error: HTTP {response.status_code} from {url}"
        return response.text[: self.fetch_max_chars]

    async def broadcast_alert(
        self, args: BroadcastAlertArgs, caller: CallerContext
    ) -> str:
        self.kernel.log(
            caller.role, f"BROADCAST: {args.message}", args.severity, caller.task_id
        )
        return "Alert broadcasted to the system log."

    async def analyze_code(self, args: AnalyzeCodeArgs, caller: CallerContext) -> str:
        return analyze_source(args.code, args.language)

    async def execute_python(
        self, args: ExecutePythonArgs, caller: CallerContext
    ) -> str:
        result = await run_python(
            args.code,
            timeout_seconds=self.sandbox_timeout_seconds,
            memory_limit_mb=self.sandbox_memory_limit_mb,
        )
        return result.to_text(self.sandbox_timeout_seconds)

    def definitions(self) -> list[ToolDefinition]:
        """All built-in tools as dispatch table entries."""
        return [
            ToolDefinition(
                name=ToolName.SEARCH_MEMORY,
                description="Search the system's persistent memory for information.",
                parameters=SearchMemoryArgs,
                handler=self.search_memory,
            ),
            ToolDefinition(
                name=ToolName.SAVE_MEMORY,
                description="Save a new finding, fact, or result to long-term memory.",
                parameters=SaveMemoryArgs,
                handler=self.save_memory,
            ),
            ToolDefinition(
                name=ToolName.DELEGATE_TASK,
                description=(
                    "Spawn a sub-process to handle a specific part of the request. "
                    "Use this for parallel processing."
                ),
                parameters=DelegateTaskArgs,
                handler=self.delegate_task,
            ),
            ToolDefinition(
                name=ToolName.SYSTEM_STATUS,
                description="Check the kernel status, active processes, and security level.",
                parameters=SystemStatusArgs,
                handler=self.system_status,
            ),
            ToolDefinition(
                name=ToolName.FETCH_URL,
                description="Retrieve content from an external URL (GET request).",
                parameters=FetchUrlArgs,
                handler=self.fetch_url,
            ),
            ToolDefinition(
                name=ToolName.BROADCAST_ALERT,
                description="Send a visible alert to the system log.",
                parameters=BroadcastAlertArgs,
                handler=self.broadcast_alert,
            ),
            ToolDefinition(
                name=ToolName.ANALYZE_CODE,
                description="Analyze a code snippet for complexity and risky calls.",
                parameters=AnalyzeCodeArgs,
                handler=self.analyze_code,
            ),
            ToolDefinition(
                name=ToolName.EXECUTE_PYTHON,
                description=(
                    "Execute Python code in an isolated sandbox process for "
                    "calculations or data processing."
                ),
                parameters=ExecutePythonArgs,
                handler=self.execute_python,
            ),
        ]
