"""Task Domain Model

tasks 表保存任务当前状态；phase 的每次推进同时写入 task_progress 追加日志。
created_by / created_at 创建后不可变，assignee_id 仅由接单操作设置一次。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import (
    TERMINAL_STATES,
    ModerationStatus,
    TaskCategory,
    TaskPhase,
    TaskStatus,
    Urgency,
)


class Task(BaseModel):
    """Task 数据模型

    status 是 phase 的派生值（见 workflow.derive_status），不单独设置。
    moderation_status 非 approved 时任务只对发布者可见。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    category: TaskCategory = Field(default=TaskCategory.FOOD, description="任务分类")
    store: str = Field(default="", description="取货店铺")
    dropoff_address: str = Field(default="", description="送达地址")
    dropoff_instructions: str = Field(default="", description="送达说明")
    urgency: Urgency = Field(default=Urgency.MEDIUM, description="紧急程度")
    estimated_minutes: int = Field(default=30, description="预计耗时（分钟）")
    reward_cents: int = Field(default=200, description="报酬（分）")
    created_by: str = Field(description="发布者 ID，创建后不可变")
    assignee_id: str | None = Field(default=None, description="接单者 ID")
    status: TaskStatus = Field(default=TaskStatus.POSTED, description="当前状态")
    phase: TaskPhase = Field(default=TaskPhase.NONE, description="当前阶段")
    moderation_status: ModerationStatus = Field(
        default=ModerationStatus.APPROVED,
        description="审核结果",
    )
    moderation_reason: str | None = Field(default=None, description="审核原因")
    moderated_at: datetime | None = Field(
        default=None,
        description="审核时间，仅在结果非 approved 时设置",
    )
    moderated_by: str | None = Field(
        default=None,
        description="触发审核的用户，仅在结果非 approved 时设置",
    )
    accepted_at: datetime | None = Field(default=None, description="接单时间")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def is_visible_to(self, user_id: str | None) -> bool:
        """approved 任务对所有人可见；其余只对发布者可见"""
        if self.moderation_status == ModerationStatus.APPROVED:
            return True
        return user_id is not None and user_id == self.created_by

    def is_participant(self, user_id: str) -> bool:
        """发布者或接单者"""
        return user_id == self.created_by or (
            self.assignee_id is not None and user_id == self.assignee_id
        )
