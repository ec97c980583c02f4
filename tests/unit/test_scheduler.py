"""Unit tests for the kernel scheduler."""

import asyncio
from unittest.mock import patch

import pytest

from agent_kernel.exceptions import InferenceError, TaskNotFoundError
from agent_kernel.inference import (
    GenerationResult,
    PlannedTask,
    SafetyVerdict,
    ToolCall,
)
from agent_kernel.kernel import (
    AgentActivity,
    AgentKernel,
    LogSeverity,
    TaskDraft,
    TaskPriority,
    TaskStatus,
)
from agent_kernel.memory import MemoryKind
from agent_kernel.security import AgentRole
from agent_kernel.storage import LOGS, TASKS


def draft(title="Task", role=AgentRole.CODING, **kwargs):
    return TaskDraft(
        title=title, description=f"{title} description", assigned_role=role, **kwargs
    )


class Gate:
    """Blocks agent turns until released, to hold tasks IN_PROGRESS."""

    def __init__(self):
        self.event = asyncio.Event()
        self.started = 0

    async def generate(self, *args, **kwargs):
        self.started += 1
        await self.event.wait()
        return GenerationResult(text="released")


def test_dispatch_applies_defaults(kernel, record_store):
    task = kernel.dispatch(TaskDraft())

    assert task.title == "Untitled"
    assert task.status == TaskStatus.QUEUED
    assert task.priority == TaskPriority.MEDIUM
    assert task.assigned_role == AgentRole.PLANNER
    assert task.progress == 0
    assert task.result is None
    assert record_store.get(TASKS, task.id)["status"] == "QUEUED"
    assert kernel.logs[0].message == "Task Dispatched: Untitled"


def test_dispatch_notifies(kernel):
    before = kernel.notifier.version

    kernel.dispatch(draft())

    assert kernel.notifier.version > before


@pytest.mark.asyncio
async def test_end_to_end_coding_task(kernel, memory_store):
    """Test that one tick runs a CODING task to completion."""
    task = kernel.dispatch(draft("write a function", AgentRole.CODING))

    process = kernel.tick()
    assert process is not None
    await process

    assert task.status == TaskStatus.COMPLETED
    assert task.result == "done"
    assert task.progress == 100
    assert kernel.running == frozenset()

    memories = memory_store.get_all()
    assert len(memories) == 1
    assert memories[0].kind == MemoryKind.EPISODIC
    assert memories[0].tags == ("task_output", task.id, "root")
    assert memories[0].content == "Output for [write a function]:\ndone"
    assert kernel.logs[0].message == "Task Completed: write a function"


@pytest.mark.asyncio
async def test_tick_admits_one_task_at_a_time(kernel):
    kernel.dispatch(draft("a"))
    kernel.dispatch(draft("b"))

    first = kernel.tick()
    second = kernel.tick()
    await asyncio.gather(first, second)

    assert first is not second
    assert all(t.status == TaskStatus.COMPLETED for t in kernel.tasks)


@pytest.mark.asyncio
async def test_concurrency_limit_is_respected(kernel, mock_inference, test_settings):
    gate = Gate()
    mock_inference.generate.side_effect = gate.generate
    for i in range(test_settings.max_concurrent_processes + 3):
        kernel.dispatch(draft(f"task {i}"))

    processes = [kernel.tick() for _ in range(10)]
    await asyncio.sleep(0.01)

    started = [p for p in processes if p is not None]
    in_progress = [t for t in kernel.tasks if t.status == TaskStatus.IN_PROGRESS]
    assert len(started) == test_settings.max_concurrent_processes
    assert gate.started == test_settings.max_concurrent_processes
    assert len(kernel.running) == test_settings.max_concurrent_processes
    assert len(in_progress) <= test_settings.max_concurrent_processes

    gate.event.set()
    await asyncio.gather(*started)
    assert kernel.running == frozenset()


@pytest.mark.asyncio
async def test_terminal_tasks_are_never_readmitted(kernel):
    task = kernel.dispatch(draft())
    await kernel.tick()

    assert task.status == TaskStatus.COMPLETED
    assert kernel.tick() is None
    assert kernel.eligible_tasks() == []


@pytest.mark.asyncio
async def test_safety_rejection_fails_task(kernel, mock_inference, test_settings):
    test_settings.safety_scan_enabled = True
    mock_inference.safety_scan.return_value = SafetyVerdict(
        safe=False, reason="destructive intent"
    )
    task = kernel.dispatch(draft("wipe disks"))

    await kernel.tick()

    assert task.status == TaskStatus.FAILED
    assert task.progress == 0
    assert task.result is None
    mock_inference.generate.assert_not_awaited()
    error = kernel.logs[0]
    assert error.severity == LogSeverity.ERROR
    assert error.message == "Execution Exception: Security Violation: destructive intent"
    assert error.task_id == task.id


@pytest.mark.asyncio
async def test_inference_failure_fails_task_and_releases_slot(kernel, mock_inference):
    mock_inference.generate.side_effect = InferenceError("model crashed")
    task = kernel.dispatch(draft())

    await kernel.tick()

    assert task.status == TaskStatus.FAILED
    assert kernel.running == frozenset()
    status = next(a for a in kernel.agents if a.role == AgentRole.CODING)
    assert status.status == AgentActivity.IDLE
    assert status.active_task_ids == []


@pytest.mark.asyncio
async def test_store_failure_still_releases_slot(kernel, record_store):
    task = kernel.dispatch(draft())

    with patch.object(record_store, "put", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            await kernel.run_process(task)

    assert task.status == TaskStatus.FAILED
    assert kernel.running == frozenset()
    status = next(a for a in kernel.agents if a.role == AgentRole.CODING)
    assert status.active_task_ids == []


@pytest.mark.asyncio
async def test_parent_result_is_passed_as_context(kernel, mock_inference):
    parent = kernel.dispatch(draft("parent"))
    await kernel.tick()
    child = kernel.dispatch(draft("child", parent_id=parent.id))

    await kernel.tick()

    history = mock_inference.generate.await_args.args[1]
    assert "PARENT TASK CONTEXT:\ndone" in history[1]["content"]
    assert child.status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_dependencies_gate_admission(kernel):
    first = kernel.dispatch(draft("first"))
    second = kernel.dispatch(draft("second", dependencies=[first.id]))
    blocked = kernel.dispatch(draft("blocked", dependencies=["missing"]))

    assert [t.id for t in kernel.eligible_tasks()] == [first.id]
    await kernel.tick()

    assert [t.id for t in kernel.eligible_tasks()] == [second.id]
    await kernel.tick()

    assert second.status == TaskStatus.COMPLETED
    assert blocked.status == TaskStatus.QUEUED
    assert kernel.tick() is None


def test_fifo_admission_by_default(kernel):
    low = kernel.dispatch(draft("low", priority=TaskPriority.LOW))
    kernel.dispatch(draft("critical", priority=TaskPriority.CRITICAL))

    assert kernel.eligible_tasks()[0].id == low.id


def test_priority_admission_when_enabled(kernel, test_settings):
    test_settings.priority_admission = True
    kernel.dispatch(draft("low", priority=TaskPriority.LOW))
    high_1 = kernel.dispatch(draft("high 1", priority=TaskPriority.HIGH))
    high_2 = kernel.dispatch(draft("high 2", priority=TaskPriority.HIGH))
    critical = kernel.dispatch(draft("critical", priority=TaskPriority.CRITICAL))

    order = [t.id for t in kernel.eligible_tasks()]

    assert order[:3] == [critical.id, high_1.id, high_2.id]


@pytest.mark.asyncio
async def test_role_status_tracks_every_active_task(kernel, mock_inference):
    gate = Gate()
    mock_inference.generate.side_effect = gate.generate
    kernel.dispatch(draft("one"))
    kernel.dispatch(draft("two"))

    processes = [kernel.tick(), kernel.tick()]
    await asyncio.sleep(0.01)

    status = next(a for a in kernel.agents if a.role == AgentRole.CODING)
    assert len(status.active_task_ids) == 2
    assert status.status != AgentActivity.IDLE

    gate.event.set()
    await asyncio.gather(*processes)

    assert status.active_task_ids == []
    assert status.status == AgentActivity.IDLE
    assert status.current_task is None


@pytest.mark.asyncio
async def test_delegation_creates_linked_subtask(kernel, mock_inference):
    mock_inference.generate.side_effect = [
        GenerationResult(
            tool_calls=[
                ToolCall(
                    name="delegate_task",
                    arguments={
                        "title": "Scrape",
                        "description": "Collect prices",
                        "agent": "AUTOMATION",
                    },
                )
            ]
        ),
        GenerationResult(text="delegated"),
    ]
    parent = kernel.dispatch(draft("coordinate", AgentRole.PLANNER))

    await kernel.tick()

    child = kernel.tasks[-1]
    assert child.title == "[SUB] Scrape"
    assert child.parent_id == parent.id
    assert child.assigned_role == AgentRole.AUTOMATION
    assert child.status == TaskStatus.QUEUED


def test_restore_fails_interrupted_tasks(
    test_settings, record_store, memory_store, mock_inference
):
    first = AgentKernel(test_settings, record_store, memory_store, mock_inference)
    queued = first.dispatch(draft("queued"))
    interrupted = first.dispatch(draft("interrupted"))
    interrupted.status = TaskStatus.IN_PROGRESS
    record_store.put(TASKS, interrupted.id, interrupted.to_dict())

    second = AgentKernel(test_settings, record_store, memory_store, mock_inference)
    second.restore()

    restored = {t.id: t for t in second.tasks}
    assert restored[queued.id].status == TaskStatus.QUEUED
    assert restored[interrupted.id].status == TaskStatus.FAILED
    assert any("Interrupted task" in entry.message for entry in second.logs)
    assert any(entry.message == "Task Dispatched: queued" for entry in second.logs)


@pytest.mark.asyncio
async def test_start_runs_tick_loop_and_stop_drains(kernel):
    task = kernel.dispatch(draft())

    await kernel.start()
    assert kernel.is_started
    for _ in range(100):
        if task.status == TaskStatus.COMPLETED:
            break
        await asyncio.sleep(0.01)
    await kernel.stop()

    assert task.status == TaskStatus.COMPLETED
    assert kernel.is_started is False


@pytest.mark.asyncio
async def test_start_buffers_each_log_entry_once(
    kernel, test_settings, record_store, memory_store, mock_inference
):
    await kernel.start()
    await kernel.stop()

    ids = [entry.id for entry in kernel.logs]
    assert len(ids) == len(set(ids))
    messages = [entry.message for entry in kernel.logs]
    assert messages.count("Kernel boot sequence initiated") == 1

    rebooted = AgentKernel(test_settings, record_store, memory_store, mock_inference)
    await rebooted.start()
    await rebooted.stop()

    ids = [entry.id for entry in rebooted.logs]
    assert len(ids) == len(set(ids))
    assert len(ids) == record_store.count(LOGS)
    messages = [entry.message for entry in rebooted.logs]
    assert messages.count("Kernel boot sequence initiated") == 2


def test_log_ring_buffer_is_bounded(kernel, test_settings):
    for i in range(test_settings.log_buffer_size + 25):
        kernel.log(AgentRole.MONITORING, f"entry {i}")

    assert len(kernel.logs) == test_settings.log_buffer_size
    assert kernel.logs[0].message == f"entry {test_settings.log_buffer_size + 24}"


def test_get_task_unknown_raises(kernel):
    with pytest.raises(TaskNotFoundError):
        kernel.get_task("nope")


@pytest.mark.asyncio
async def test_plan_dispatches_each_item(kernel, mock_inference):
    mock_inference.generate_plan.return_value = [
        PlannedTask(
            title="Research",
            description="Find sources",
            assigned_role=AgentRole.REASONING,
            priority="HIGH",
        ),
        PlannedTask(
            title="Build", description="Write code", assigned_role=AgentRole.CODING
        ),
    ]

    tasks = await kernel.plan("Build a price tracker")

    assert [t.title for t in tasks] == ["Research", "Build"]
    assert tasks[0].priority == TaskPriority.HIGH
    assert all(t.status == TaskStatus.QUEUED for t in kernel.tasks)


def test_status_report(kernel):
    kernel.dispatch(draft())

    report = kernel.status_report()

    assert report["status"] == "ONLINE"
    assert report["queued_tasks"] == 1
    assert report["active_processes"] == 0
    assert report["security_level"] == "STANDARD"
