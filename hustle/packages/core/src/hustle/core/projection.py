"""进度日志一致性校验

tasks.phase 应等于 task_progress 中该任务最后一条记录的 phase，
tasks.status 应与 phase 的派生值一致。
按 task_seq 重放进度日志，找出与 tasks 表不一致的任务。
"""

import time
from dataclasses import dataclass

import structlog

from .models.enums import TaskPhase, TaskStatus
from .models.progress import ProgressEvent
from .models.task import Task
from .models.workflow import derive_status, workflow_for
from .store.protocols import ProgressStore, TaskStore

log = structlog.get_logger()


@dataclass(frozen=True)
class ProjectionMismatch:
    """一条不一致记录"""

    task_id: str
    detail: str


def replay_phase(events: list[ProgressEvent]) -> tuple[TaskPhase, list[str]]:
    """按顺序重放单个任务的进度记录

    Returns:
        (重放后的 phase, 断链描述列表)
    """
    phase = TaskPhase.NONE
    problems: list[str] = []
    for event in events:
        if event.from_phase != phase:
            problems.append(
                f"seq {event.task_seq}: from_phase {event.from_phase} "
                f"does not follow {phase}"
            )
        phase = event.phase
    return phase, problems


def check_task(task: Task, events: list[ProgressEvent]) -> list[ProjectionMismatch]:
    """校验单个任务与其进度记录"""
    mismatches = []
    expected_phase, problems = replay_phase(events)
    for problem in problems:
        mismatches.append(ProjectionMismatch(task.task_id, problem))

    if task.phase != expected_phase:
        mismatches.append(
            ProjectionMismatch(
                task.task_id,
                f"phase is {task.phase}, progress log ends at {expected_phase}",
            )
        )

    if task.status == TaskStatus.CANCELLED:
        return mismatches

    workflow = workflow_for(task.category)
    if task.phase == TaskPhase.NONE:
        allowed = {TaskStatus.POSTED, TaskStatus.ACCEPTED}
    else:
        allowed = {derive_status(task.phase, workflow)}
    if task.status not in allowed:
        mismatches.append(
            ProjectionMismatch(
                task.task_id,
                f"status {task.status} does not match phase {task.phase}",
            )
        )
    return mismatches


async def verify_all(
    task_store: TaskStore,
    progress_store: ProgressStore,
    limit: int = 1_000_000,
) -> list[ProjectionMismatch]:
    """校验全部任务

    Args:
        task_store: TaskStore 实例
        progress_store: ProgressStore 实例
        limit: 最多校验的任务数

    Returns:
        不一致记录列表，空列表表示全部一致
    """
    start_time = time.monotonic()

    events = await progress_store.get_all_events()
    by_task: dict[str, list[ProgressEvent]] = {}
    for event in events:
        by_task.setdefault(event.task_id, []).append(event)

    await log.ainfo("progress_verify_started", event_count=len(events))

    mismatches: list[ProjectionMismatch] = []
    tasks = await task_store.list_tasks(limit=limit)
    for task in tasks:
        mismatches.extend(check_task(task, by_task.pop(task.task_id, [])))

    for orphan_id in by_task:
        mismatches.append(ProjectionMismatch(orphan_id, "progress events without task"))

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "progress_verify_completed",
        event_count=len(events),
        task_count=len(tasks),
        mismatch_count=len(mismatches),
        elapsed_ms=elapsed_ms,
    )
    return mismatches
