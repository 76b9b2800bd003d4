"""ProgressEvent Domain Model

task_progress 表 append-only，不允许更新或删除。
event_id 使用 ULID 格式，时间有序。
task_seq 同一 task 内严格单调递增。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import TaskPhase


class ProgressEvent(BaseModel):
    """阶段推进记录 -- 每次成功的阶段推进恰好写入一条"""

    event_id: str = Field(description="唯一标识，ULID 格式，时间有序")
    task_id: str = Field(description="关联的 Task ID")
    task_seq: int = Field(description="任务内序号，严格单调递增")
    from_phase: TaskPhase = Field(description="推进前阶段")
    phase: TaskPhase = Field(description="推进后阶段")
    actor_id: str = Field(description="触发推进的用户 ID")
    note: str = Field(default="", description="备注")
    created_at: datetime = Field(description="记录时间")
