"""Tool dispatch table and built-in tools.

This package provides the capability-checked dispatcher that agents use to
invoke tools, the built-in tool set, and the isolated code sandbox.
"""

from agent_kernel.tools.builtin import BuiltinTools, KernelHandle, analyze_source
from agent_kernel.tools.registry import (
    ERROR_PREFIX,
    SECURITY_BLOCK_PREFIX,
    CallerContext,
    ToolDefinition,
    ToolDispatcher,
    security_block,
)
from agent_kernel.tools.sandbox import SandboxResult, run_python

__all__ = [
    "BuiltinTools",
    "KernelHandle",
    "analyze_source",
    "CallerContext",
    "ToolDefinition",
    "ToolDispatcher",
    "security_block",
    "SECURITY_BLOCK_PREFIX",
    "ERROR_PREFIX",
    "SandboxResult",
    "run_python",
]
