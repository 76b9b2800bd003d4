"""TaskLifecycleService -- 接单 / 阶段推进 / 取消 / 查询

所有写操作都在 StoreGroup.locked_task() 内完成：
进程内任务锁 + BEGIN IMMEDIATE 写事务，读-校验-写期间其他写方只能等待。
校验失败直接抛出 TaskError 子类，事务回滚，无任何字段被修改。
"""

from datetime import UTC, datetime

import structlog
from hustle.core.config import assignee_can_cancel, get_task_list_limit
from hustle.core.errors import (
    CannotAcceptOwnTaskError,
    InvalidPhaseTransitionError,
    NotAuthorizedError,
    TaskAlreadyFinalError,
    TaskError,
    TaskNotAvailableError,
    TaskNotFoundError,
    UnauthenticatedError,
)
from hustle.core.models import (
    Identity,
    ModerationStatus,
    ProgressEvent,
    Task,
    TaskPhase,
    TaskStatus,
    derive_status,
    validate_transition,
    workflow_for,
)
from hustle.core.store import StoreGroup, apply_phase_transition
from ulid import ULID

log = structlog.get_logger()


def _require_identity(identity: Identity | None) -> str:
    if identity is None:
        raise UnauthenticatedError()
    return identity.user_id


class TaskLifecycleService:
    """任务生命周期业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        allow_assignee_cancel: bool | None = None,
    ) -> None:
        self._stores = store_group
        self._allow_assignee_cancel = (
            assignee_can_cancel() if allow_assignee_cancel is None else allow_assignee_cancel
        )

    async def accept_task(self, identity: Identity | None, task_id: str) -> Task:
        """接单 -- 同一任务的并发接单只有一个成功

        校验顺序：身份 -> 任务存在 -> 非本人任务 -> 非终态 -> posted 且审核通过

        Raises:
            UnauthenticatedError / TaskNotFoundError / CannotAcceptOwnTaskError /
            TaskAlreadyFinalError / TaskNotAvailableError
        """
        user_id = _require_identity(identity)
        try:
            async with self._stores.locked_task(task_id) as (uow, task):
                if task is None:
                    raise TaskNotFoundError(task_id)
                if task.created_by == user_id:
                    raise CannotAcceptOwnTaskError(task_id)
                if task.is_terminal:
                    raise TaskAlreadyFinalError(task_id, task.status.value)
                if (
                    task.status != TaskStatus.POSTED
                    or task.assignee_id is not None
                    or task.moderation_status != ModerationStatus.APPROVED
                ):
                    raise TaskNotAvailableError(task_id)

                now = datetime.now(UTC)
                updated = task.model_copy(
                    update={
                        "assignee_id": user_id,
                        "status": TaskStatus.ACCEPTED,
                        "accepted_at": now,
                        "updated_at": now,
                    }
                )
                await uow.tasks.update_task(updated)
        except TaskError as e:
            await log.ainfo(
                "task_accept_rejected",
                task_id=task_id,
                user_id=user_id,
                code=e.code,
            )
            raise

        await log.ainfo(
            "task_accepted",
            task_id=task_id,
            owner_id=updated.created_by,
            assignee_id=user_id,
        )
        return updated

    async def update_task_phase(
        self,
        identity: Identity | None,
        task_id: str,
        new_phase: TaskPhase | str,
        note: str = "",
    ) -> Task:
        """推进任务阶段，并在同一事务内追加进度记录

        校验顺序：身份 -> 任务存在 -> 发布者或接单者 -> 非终态 -> 合法的下一阶段

        Raises:
            UnauthenticatedError / TaskNotFoundError / NotAuthorizedError /
            TaskAlreadyFinalError / InvalidPhaseTransitionError
        """
        user_id = _require_identity(identity)
        try:
            async with self._stores.locked_task(task_id) as (uow, task):
                if task is None:
                    raise TaskNotFoundError(task_id)
                if not task.is_participant(user_id):
                    raise NotAuthorizedError(task_id)
                if task.is_terminal:
                    raise TaskAlreadyFinalError(task_id, task.status.value)

                try:
                    target = TaskPhase(new_phase)
                except ValueError:
                    raise InvalidPhaseTransitionError(
                        task_id, task.phase.value, str(new_phase)
                    ) from None

                workflow = workflow_for(task.category)
                # 未接单的任务没有可推进的阶段
                if task.assignee_id is None or not workflow.can_transition(
                    task.phase, target
                ):
                    raise InvalidPhaseTransitionError(
                        task_id, task.phase.value, target.value
                    )

                now = datetime.now(UTC)
                updated = task.model_copy(
                    update={
                        "phase": target,
                        "status": derive_status(target, workflow),
                        "updated_at": now,
                    }
                )
                event = ProgressEvent(
                    event_id=str(ULID()),
                    task_id=task_id,
                    task_seq=await uow.progress.get_next_task_seq(task_id),
                    from_phase=task.phase,
                    phase=target,
                    actor_id=user_id,
                    note=note,
                    created_at=now,
                )
                await apply_phase_transition(uow, updated, event)
        except TaskError as e:
            await log.ainfo(
                "task_phase_rejected",
                task_id=task_id,
                user_id=user_id,
                requested_phase=str(new_phase),
                code=e.code,
            )
            raise

        await log.ainfo(
            "task_phase_updated",
            task_id=task_id,
            user_id=user_id,
            from_phase=event.from_phase.value,
            phase=target.value,
            status=updated.status.value,
            workflow=workflow.name,
        )
        return updated

    async def cancel_task(self, identity: Identity | None, task_id: str) -> Task:
        """取消任务（发布者；开启 HUSTLE_ASSIGNEE_CAN_CANCEL 时接单者也可以）

        取消不是阶段推进，不写进度日志。

        Raises:
            UnauthenticatedError / TaskNotFoundError / NotAuthorizedError /
            TaskAlreadyFinalError
        """
        user_id = _require_identity(identity)
        try:
            async with self._stores.locked_task(task_id) as (uow, task):
                if task is None:
                    raise TaskNotFoundError(task_id)
                is_owner = task.created_by == user_id
                is_assignee = task.assignee_id is not None and task.assignee_id == user_id
                if not (is_owner or (is_assignee and self._allow_assignee_cancel)):
                    raise NotAuthorizedError(
                        task_id, "Only the task owner can cancel this task"
                    )
                if task.is_terminal or not validate_transition(
                    task.status, TaskStatus.CANCELLED
                ):
                    raise TaskAlreadyFinalError(task_id, task.status.value)

                updated = task.model_copy(
                    update={
                        "status": TaskStatus.CANCELLED,
                        "updated_at": datetime.now(UTC),
                    }
                )
                await uow.tasks.update_task(updated)
        except TaskError as e:
            await log.ainfo(
                "task_cancel_rejected",
                task_id=task_id,
                user_id=user_id,
                code=e.code,
            )
            raise

        await log.ainfo(
            "task_cancelled",
            task_id=task_id,
            user_id=user_id,
            from_status=task.status.value,
        )
        return updated

    async def get_progress_history(
        self,
        identity: Identity | None,
        task_id: str,
    ) -> list[ProgressEvent]:
        """查询进度记录（仅发布者和接单者）"""
        user_id = _require_identity(identity)
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if not task.is_participant(user_id):
            raise NotAuthorizedError(task_id)
        return await self._stores.progress_store.get_events_for_task(task_id)

    async def get_task(self, identity: Identity | None, task_id: str) -> Task:
        """查询任务详情；对调用方不可见的任务按不存在处理"""
        user_id = identity.user_id if identity is not None else None
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if not task.is_visible_to(user_id) and not (
            user_id is not None and task.is_participant(user_id)
        ):
            raise TaskNotFoundError(task_id)
        return task

    async def list_tasks(
        self,
        identity: Identity | None,
        status: TaskStatus | str | None = None,
        scope: str = "all",
    ) -> list[Task]:
        """查询任务列表

        scope:
            - "all": 所有对调用方可见的任务
            - "mine": 调用方发布的任务
            - "assigned": 调用方接下的任务
        """
        limit = get_task_list_limit()
        status_value = TaskStatus(status).value if status else None
        if scope == "all":
            user_id = identity.user_id if identity is not None else None
            return await self._stores.task_store.list_visible_tasks(
                user_id, status_value, limit
            )

        user_id = _require_identity(identity)
        if scope == "mine":
            return await self._stores.task_store.list_owned_tasks(
                user_id, status_value, limit
            )
        if scope == "assigned":
            return await self._stores.task_store.list_assigned_tasks(
                user_id, status_value, limit
            )
        raise ValueError(f"unknown scope: {scope}")
