"""Isolated Python execution for the execute_python tool.

Code runs in a separate interpreter process started in isolated mode, inside
a throwaway working directory, with an empty environment, CPU/memory/file
size limits (POSIX) and a wall-clock timeout.
"""

import asyncio
import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_OUTPUT_CHARS = 4000
MAX_FILE_BYTES = 1024 * 1024


@dataclass
class SandboxResult:
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 1
    timed_out: bool = False

    def to_text(self, timeout_seconds: float) -> str:
        if self.timed_out:
            return f"Execution timed out after {timeout_seconds:g}s"
        parts = [f"exit_code: {self.exit_code}"]
        if self.stdout:
            parts.append(f"stdout:\n{self.stdout}")
        if self.stderr:
            parts.append(f"stderr:\n{self.stderr}")
        return "\n".join(parts)


def _limit_resources(cpu_seconds: int, memory_bytes: int) -> None:
    import resource

    resource.setrlimit(resource.RLIMIT_CPU, (cpu_seconds, cpu_seconds))
    resource.setrlimit(resource.RLIMIT_AS, (memory_bytes, memory_bytes))
    resource.setrlimit(resource.RLIMIT_FSIZE, (MAX_FILE_BYTES, MAX_FILE_BYTES))
    os.setsid()


def _truncate(text: str) -> str:
    if len(text) <= MAX_OUTPUT_CHARS:
        return text
    return text[: MAX_OUTPUT_CHARS - 3] + "..."


async def run_python(
    code: str,
    timeout_seconds: float = 10.0,
    memory_limit_mb: int = 256,
) -> SandboxResult:
    """Run a Python snippet in a separate, resource-limited process.

    Args:
        code: Python source to execute
        timeout_seconds: Wall-clock limit; the process is killed when exceeded
        memory_limit_mb: Address-space limit for the child process

    Returns:
        SandboxResult: Captured output and exit status
    """
    preexec_fn = None
    if sys.platform != "win32":
        cpu_seconds = max(1, int(timeout_seconds) + 1)
        memory_bytes = memory_limit_mb * 1024 * 1024

        def preexec_fn() -> None:
            _limit_resources(cpu_seconds, memory_bytes)

    with tempfile.TemporaryDirectory(prefix="agent-sandbox-") as tmp:
        script_path = Path(tmp) / "snippet.py"
        script_path.write_text(code, encoding="utf-8")

        process = await asyncio.create_subprocess_exec(
            sys.executable,
            "-I",
            str(script_path),
            cwd=tmp,
            env={"PYTHONIOENCODING": "utf-8"},
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            preexec_fn=preexec_fn,
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout_seconds
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning(f"Sandboxed snippet killed after {timeout_seconds}s")
            return SandboxResult(timed_out=True, exit_code=124)

    return SandboxResult(
        stdout=_truncate(stdout.decode("utf-8", errors="replace")),
        stderr=_truncate(stderr.decode("utf-8", errors="replace")),
        exit_code=process.returncode if process.returncode is not None else 1,
    )
