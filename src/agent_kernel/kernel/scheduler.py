"""Task scheduler and kernel state.

The kernel owns the task list, the running set, the per-role status table and
the system log. Nothing else mutates them. A tick loop admits at most one
eligible task per tick while a process slot is free; each admitted task runs
as its own asyncio task and the tick loop never waits for it.

Task lifecycle:

    QUEUED/PENDING -> IN_PROGRESS -> COMPLETED
                                  -> FAILED

Terminal tasks are never admitted again.
"""

import asyncio
import logging
import time
from collections import deque
from functools import partial
from typing import Any

from agent_kernel.agents import AgentRuntime, all_profiles, get_profile
from agent_kernel.config import AgentKernelSettings
from agent_kernel.exceptions import SafetyRejectedError, TaskNotFoundError
from agent_kernel.inference import InferenceClient
from agent_kernel.kernel.events import ChangeNotifier
from agent_kernel.kernel.types import (
    AgentActivity,
    AgentRuntimeStatus,
    KernelState,
    LogSeverity,
    SystemLogEntry,
    Task,
    TaskDraft,
    TaskPriority,
    TaskStatus,
)
from agent_kernel.memory import MemoryKind, MemoryStore
from agent_kernel.security.types import AgentRole
from agent_kernel.storage import AGENTS, LOGS, TASKS, JsonRecordStore
from agent_kernel.timestamps import now_iso
from agent_kernel.tools import BuiltinTools, ToolDispatcher

logger = logging.getLogger(__name__)

SYSTEM_ROLE = "SYSTEM"

_LOG_LEVELS = {
    LogSeverity.INFO: logging.INFO,
    LogSeverity.WARNING: logging.WARNING,
    LogSeverity.ERROR: logging.ERROR,
    LogSeverity.CRITICAL: logging.CRITICAL,
}


class AgentKernel:
    """Schedules tasks onto agent runtimes under a concurrency limit.

    Attributes:
        settings: Runtime settings
        store: Durable record store for tasks, logs and agent status
        memory: Memory store used for context retrieval and task output
        inference: Inference client (safety scan, planning, agent turns)
        notifier: Change signal for observers
        dispatcher: Capability-checked tool dispatcher shared by all roles
        runtimes: One agent runtime per role
    """

    def __init__(
        self,
        settings: AgentKernelSettings,
        store: JsonRecordStore,
        memory: MemoryStore,
        inference: InferenceClient,
        notifier: ChangeNotifier | None = None,
    ):
        self.settings = settings
        self.store = store
        self.memory = memory
        self.inference = inference
        self.notifier = notifier or ChangeNotifier()

        self._tasks: list[Task] = []
        self._running: set[str] = set()
        self._processes: set[asyncio.Task[None]] = set()
        self._logs: deque[SystemLogEntry] = deque(maxlen=settings.log_buffer_size)
        self._state = KernelState()
        self._boot_clock = time.monotonic()
        self._tick_task: asyncio.Task[None] | None = None

        tools = BuiltinTools(
            self,
            memory,
            fetch_timeout_seconds=settings.fetch_timeout_seconds,
            fetch_max_chars=settings.fetch_max_chars,
            sandbox_timeout_seconds=settings.sandbox_timeout_seconds,
            sandbox_memory_limit_mb=settings.sandbox_memory_limit_mb,
        )
        self.dispatcher = ToolDispatcher(tools.definitions(), audit=self.log)

        self._agents: dict[AgentRole, AgentRuntimeStatus] = {}
        self.runtimes: dict[AgentRole, AgentRuntime] = {}
        for profile in all_profiles():
            self._agents[profile.role] = AgentRuntimeStatus(
                role=profile.role, display_name=profile.display_name
            )
            self.runtimes[profile.role] = AgentRuntime(
                profile,
                inference,
                self.dispatcher,
                max_turns=settings.max_agent_turns,
                grounding_enabled=settings.grounding_enabled,
                status_hook=partial(self._set_agent_activity, profile.role),
            )

    # --- Read access ---

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def agents(self) -> list[AgentRuntimeStatus]:
        return list(self._agents.values())

    @property
    def logs(self) -> list[SystemLogEntry]:
        """Recent system log entries, newest first."""
        return list(self._logs)

    @property
    def state(self) -> KernelState:
        self._refresh_state()
        return self._state

    @property
    def running(self) -> frozenset[str]:
        return frozenset(self._running)

    @property
    def is_started(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def get_task(self, task_id: str) -> Task:
        """Get a task by id.

        Raises:
            TaskNotFoundError: If no task has this id
        """
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def _find_task(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks if t.id == task_id), None)

    # --- Lifecycle ---

    async def start(self) -> None:
        """Restore persisted state and start the tick loop."""
        if self.is_started:
            return

        self.log(SYSTEM_ROLE, "Kernel boot sequence initiated", LogSeverity.INFO)
        self.restore()
        self._boot_clock = time.monotonic()
        self._state.boot_time = now_iso()
        self._tick_task = asyncio.create_task(self._tick_loop(), name="kernel-tick")
        logger.info(
            f"Kernel started (limit={self.settings.max_concurrent_processes}, "
            f"tick={self.settings.tick_interval_seconds}s)"
        )
        self.notifier.emit()

    async def stop(self) -> None:
        """Stop the tick loop and wait for in-flight processes to finish."""
        if self._tick_task is not None:
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass
            self._tick_task = None

        if self._processes:
            logger.info(f"Waiting for {len(self._processes)} running processes")
            await asyncio.gather(*self._processes, return_exceptions=True)
        logger.info("Kernel stopped")

    def restore(self) -> None:
        """Load persisted tasks and the most recent log entries.

        Tasks that were IN_PROGRESS when the previous process stopped have
        lost their slot and are marked FAILED.
        """
        restored: list[Task] = []
        for record in self.store.scan(TASKS):
            try:
                restored.append(Task.from_dict(record))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed task record: {e}")
        restored.sort(key=lambda t: t.created_at)

        known = {t.id for t in self._tasks}
        self._tasks.extend(t for t in restored if t.id not in known)

        # Entries written during this boot are already buffered and persisted.
        buffered = {entry.id for entry in self._logs}
        recent_logs = self.store.list_recent(LOGS, limit=self.settings.restored_log_count)
        for record in recent_logs:
            if len(self._logs) == self._logs.maxlen:
                break
            try:
                entry = SystemLogEntry.from_dict(record)
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed log record: {e}")
                continue
            if entry.id not in buffered:
                self._logs.append(entry)

        for task in self._tasks:
            if task.status == TaskStatus.IN_PROGRESS and task.id not in self._running:
                self._update_task(task, TaskStatus.FAILED, 0, None)
                self.log(
                    SYSTEM_ROLE,
                    f"Interrupted task marked failed: {task.title}",
                    LogSeverity.WARNING,
                    task.id,
                )

        if restored:
            self.log(
                SYSTEM_ROLE,
                f"State restored: {len(restored)} tasks, {len(recent_logs)} log entries",
                LogSeverity.INFO,
            )
        else:
            self.log(SYSTEM_ROLE, "Cold boot: no previous state found", LogSeverity.INFO)

    async def _tick_loop(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception("Scheduler tick failed")
            await asyncio.sleep(self.settings.tick_interval_seconds)

    # --- Task intake ---

    def dispatch(self, draft: TaskDraft) -> Task:
        """Accept a new task.

        Args:
            draft: Submitter-provided fields

        Returns:
            Task: The stored task, QUEUED unless the draft says otherwise
        """
        task = Task.from_draft(draft)
        self._tasks.append(task)
        self.store.put(TASKS, task.id, task.to_dict())
        self.log(AgentRole.PLANNER, f"Task Dispatched: {task.title}", LogSeverity.INFO, task.id)
        self.notifier.emit()
        return task

    def submit(
        self,
        *,
        title: str,
        description: str,
        assigned_role: AgentRole,
        priority: str,
        parent_id: str | None,
    ) -> str:
        """Dispatch a task on behalf of a tool and return its id."""
        task = self.dispatch(
            TaskDraft(
                title=title,
                description=description,
                assigned_role=assigned_role,
                priority=TaskPriority(priority),
                parent_id=parent_id,
            )
        )
        return task.id

    async def plan(self, prompt: str) -> list[Task]:
        """Break a request into tasks with the planner model and dispatch them.

        Raises:
            InferenceError: If the planner fails or returns a malformed plan
        """
        planned = await self.inference.generate_plan(prompt)
        tasks = [
            self.dispatch(
                TaskDraft(
                    title=item.title,
                    description=item.description,
                    assigned_role=item.assigned_role,
                    priority=TaskPriority(item.priority),
                )
            )
            for item in planned
        ]
        self.log(
            AgentRole.PLANNER,
            f"Plan created with {len(tasks)} tasks",
            LogSeverity.INFO,
        )
        return tasks

    # --- System log ---

    def log(
        self,
        role: AgentRole | str,
        message: str,
        severity: LogSeverity | str = LogSeverity.INFO,
        task_id: str | None = None,
    ) -> SystemLogEntry:
        """Append a system log entry.

        The entry goes to the in-memory ring buffer, the durable store and the
        Python logger, and observers are notified.
        """
        role_label = role.value if isinstance(role, AgentRole) else str(role)
        entry = SystemLogEntry(
            role=role_label,
            message=message,
            severity=LogSeverity(severity),
            task_id=task_id,
        )
        self._logs.appendleft(entry)
        self.store.put(LOGS, entry.id, entry.to_dict())
        logger.log(_LOG_LEVELS[entry.severity], f"[{role_label}] {message}")
        self.notifier.emit()
        return entry

    def status_report(self) -> dict[str, Any]:
        state = self.state
        return {
            "status": "ONLINE",
            "uptime": int(state.uptime),
            "active_processes": state.active_processes,
            "queued_tasks": state.queued_tasks,
            "memory_entries": state.memory_entries,
            "security_level": state.security_level.value,
            "storage_driver": "json-records/vector",
        }

    # --- Scheduling ---

    def _dependencies_met(self, task: Task) -> bool:
        for dependency_id in task.dependencies:
            dependency = self._find_task(dependency_id)
            if dependency is None or dependency.status != TaskStatus.COMPLETED:
                return False
        return True

    def eligible_tasks(self) -> list[Task]:
        """Tasks that may be admitted now, in admission order."""
        eligible = [
            task
            for task in self._tasks
            if task.status.is_waiting
            and task.id not in self._running
            and self._dependencies_met(task)
        ]
        if self.settings.priority_admission:
            # sort is stable, so FIFO order holds within a priority tier
            eligible.sort(key=lambda t: t.priority.rank, reverse=True)
        return eligible

    def _refresh_state(self) -> None:
        self._state.uptime = time.monotonic() - self._boot_clock
        self._state.active_processes = len(self._running)
        self._state.queued_tasks = sum(1 for t in self._tasks if t.status.is_waiting)
        self._state.memory_entries = self.memory.count()

    def tick(self) -> asyncio.Task[None] | None:
        """Run one scheduler step.

        Refreshes kernel state and admits at most one eligible task if a slot
        is free.

        Returns:
            asyncio.Task | None: The spawned process, or None if nothing ran
        """
        self._refresh_state()
        self.notifier.emit()

        if len(self._running) >= self.settings.max_concurrent_processes:
            return None

        eligible = self.eligible_tasks()
        if not eligible:
            return None

        task = eligible[0]
        # Claim the slot before the process is scheduled.
        self._running.add(task.id)
        process = asyncio.create_task(self.run_process(task), name=f"task-{task.id}")
        self._processes.add(process)
        process.add_done_callback(self._processes.discard)
        return process

    async def run_process(self, task: Task) -> None:
        """Execute one task end to end.

        Every task error is caught here: the task ends FAILED and an ERROR log
        is written. The slot and role entry are released even when the store
        itself fails.
        """
        role = task.assigned_role
        self._running.add(task.id)

        try:
            self._update_task(task, TaskStatus.IN_PROGRESS, 0, None)
            self._agent_started(role, task)

            if self.settings.safety_scan_enabled:
                verdict = await self.inference.safety_scan(task.description)
                if not verdict.safe:
                    raise SafetyRejectedError(verdict.reason or "unspecified")

            context = await self._build_context(task)

            runtime = self.runtimes.get(role)
            if runtime is None:
                runtime = AgentRuntime(
                    get_profile(role),
                    self.inference,
                    self.dispatcher,
                    max_turns=self.settings.max_agent_turns,
                    grounding_enabled=self.settings.grounding_enabled,
                )
            result = await runtime.execute(task, context)

            await self.memory.add(
                f"Output for [{task.title}]:\n{result}",
                MemoryKind.EPISODIC,
                role,
                ["task_output", task.id, task.parent_id or "root"],
            )

            self._update_task(task, TaskStatus.COMPLETED, 100, result)
            self.log(role, f"Task Completed: {task.title}", LogSeverity.INFO, task.id)
        except Exception as e:
            logger.debug(f"Task {task.id} failed", exc_info=True)
            self._update_task(task, TaskStatus.FAILED, 0, None)
            self.log(role, f"Execution Exception: {e}", LogSeverity.ERROR, task.id)
        finally:
            self._running.discard(task.id)
            self._agent_finished(role, task)
            self.notifier.emit()

    async def _build_context(self, task: Task) -> str:
        memories = await self.memory.search(task.description)
        context = "\n---\n".join(entry.content for entry in memories)
        if task.parent_id:
            parent = self._find_task(task.parent_id)
            if parent is not None and parent.result:
                context += f"\nPARENT TASK CONTEXT:\n{parent.result}"
        return context

    # --- State helpers ---

    def _update_task(
        self,
        task: Task,
        status: TaskStatus,
        progress: int,
        result: str | None,
    ) -> None:
        task.status = status
        task.progress = progress
        task.result = result
        self.store.put(TASKS, task.id, task.to_dict())
        self.notifier.emit()

    def _persist_agent(self, status: AgentRuntimeStatus) -> None:
        status.last_activity = now_iso()
        self.store.put(AGENTS, status.id, status.to_dict())
        self.notifier.emit()

    def _set_agent_activity(self, role: AgentRole, activity: str) -> None:
        status = self._agents.get(role)
        if status is None:
            return
        status.status = AgentActivity(activity)
        self._persist_agent(status)

    def _agent_started(self, role: AgentRole, task: Task) -> None:
        status = self._agents.setdefault(
            role,
            AgentRuntimeStatus(role=role, display_name=get_profile(role).display_name),
        )
        if task.id not in status.active_task_ids:
            status.active_task_ids.append(task.id)
        status.status = AgentActivity.EXECUTING
        status.current_task = task.title
        self._persist_agent(status)

    def _agent_finished(self, role: AgentRole, task: Task) -> None:
        status = self._agents.get(role)
        if status is None:
            return
        if task.id in status.active_task_ids:
            status.active_task_ids.remove(task.id)

        if status.active_task_ids:
            remaining = self._find_task(status.active_task_ids[-1])
            status.current_task = remaining.title if remaining else None
            status.status = AgentActivity.EXECUTING
        else:
            status.current_task = None
            status.status = AgentActivity.IDLE
        self._persist_agent(status)
