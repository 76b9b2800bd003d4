"""TaskSubmissionService -- 任务发布 / 编辑

流程：
1. 校验调用方身份
2. 内容审核（在任何写入之前）；blocked 直接拒绝，不落库
3. 新建：生成 ULID，status=posted，phase=none
   编辑：持有任务锁读取，校验归属后覆盖内容字段并重新审核
4. moderated_at / moderated_by 仅在审核结果非 approved 时设置

提交不是生命周期流转，不写进度日志。
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from hustle.core.errors import (
    ContentBlockedError,
    InvalidPhaseTransitionError,
    TaskAlreadyFinalError,
    TaskNotFoundError,
    UnauthenticatedError,
)
from hustle.core.models import (
    Identity,
    ModerationStatus,
    Task,
    TaskFields,
    TaskPhase,
    TaskStatus,
    workflow_for,
)
from hustle.core.moderation import ContentModerator, ModerationVerdict
from hustle.core.store import StoreGroup
from ulid import ULID

log = structlog.get_logger()


def moderation_columns(
    verdict: ModerationVerdict,
    user_id: str,
    now: datetime,
) -> dict[str, Any]:
    """审核结论对应的任务字段"""
    if verdict.is_approved:
        return {
            "moderation_status": ModerationStatus.APPROVED,
            "moderation_reason": None,
            "moderated_at": None,
            "moderated_by": None,
        }
    return {
        "moderation_status": verdict.status,
        "moderation_reason": verdict.reason,
        "moderated_at": now,
        "moderated_by": user_id,
    }


class TaskSubmissionService:
    """任务提交服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        moderator: ContentModerator | None = None,
    ) -> None:
        self._stores = store_group
        self._moderator = moderator or ContentModerator()

    async def submit(
        self,
        identity: Identity | None,
        task_id: str | None,
        fields: TaskFields,
    ) -> Task:
        """发布新任务（task_id 为 None）或编辑已有任务

        Raises:
            UnauthenticatedError: 未提供身份
            ContentBlockedError: 审核结果为 blocked
            TaskNotFoundError: 编辑的任务不存在或不属于调用方
            TaskAlreadyFinalError: 编辑的任务已在终态
        """
        if identity is None:
            raise UnauthenticatedError()

        verdict = self._moderator.moderate(fields.moderation_text())
        if verdict.is_blocked:
            await log.ainfo(
                "task_content_blocked",
                user_id=identity.user_id,
                task_id=task_id,
                category=verdict.category,
                matched_term=verdict.matched_term,
            )
            raise ContentBlockedError(verdict.reason or "Content blocked", verdict.category)

        if task_id is None:
            return await self._create(identity, fields, verdict)
        return await self._edit(identity, task_id, fields, verdict)

    async def _create(
        self,
        identity: Identity,
        fields: TaskFields,
        verdict: ModerationVerdict,
    ) -> Task:
        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            **fields.model_dump(),
            created_by=identity.user_id,
            status=TaskStatus.POSTED,
            phase=TaskPhase.NONE,
            **moderation_columns(verdict, identity.user_id, now),
            created_at=now,
            updated_at=now,
        )

        async with self._stores.transaction() as uow:
            await uow.tasks.create_task(task)

        await log.ainfo(
            "task_posted",
            task_id=task.task_id,
            user_id=identity.user_id,
            category=task.category.value,
            moderation_status=task.moderation_status.value,
        )
        return task

    async def _edit(
        self,
        identity: Identity,
        task_id: str,
        fields: TaskFields,
        verdict: ModerationVerdict,
    ) -> Task:
        async with self._stores.locked_task(task_id) as (uow, task):
            # 不属于调用方的任务按不存在处理，避免暴露他人任务
            if task is None or task.created_by != identity.user_id:
                raise TaskNotFoundError(task_id)
            if task.is_terminal:
                raise TaskAlreadyFinalError(task_id, task.status.value)

            # 已开始推进的任务不能换到不包含当前阶段的流程
            new_workflow = workflow_for(fields.category)
            if task.phase != TaskPhase.NONE and task.phase not in new_workflow.phases:
                raise InvalidPhaseTransitionError(
                    task_id,
                    task.phase.value,
                    task.phase.value,
                    f"Cannot change category to {fields.category.value}: "
                    f"the {new_workflow.name} workflow has no phase {task.phase.value}",
                )

            now = datetime.now(UTC)
            updated = task.model_copy(
                update={
                    **fields.model_dump(),
                    **moderation_columns(verdict, identity.user_id, now),
                    "updated_at": now,
                }
            )
            await uow.tasks.update_task(updated)

        await log.ainfo(
            "task_edited",
            task_id=task_id,
            user_id=identity.user_id,
            moderation_status=updated.moderation_status.value,
        )
        return updated
