"""任务生命周期路由

POST /api/tasks/{task_id}/accept: 接单，返回发布者 / 接单者 ID 供聊天服务建立会话。
POST /api/tasks/{task_id}/phase: 推进阶段。
POST /api/tasks/{task_id}/cancel: 取消任务。
GET /api/tasks/{task_id}/progress: 进度记录（仅发布者和接单者）。

错误统一由 task_error_handler 映射：
- 401: 未认证
- 403: 无权限 / 接自己的单
- 404: 任务不存在
- 409: 不可接单 / 已在终态 / 非法阶段推进
"""

from fastapi import APIRouter, Depends
from hustle.core.models import ProgressEvent, Task, TaskPhase
from pydantic import BaseModel, Field

from ..deps import get_current_identity, get_store_group
from ..services.lifecycle_service import TaskLifecycleService
from .tasks import TaskResponse

router = APIRouter()


class AcceptResponse(BaseModel):
    """接单成功响应"""

    task: Task
    owner_id: str
    assignee_id: str


class PhaseRequest(BaseModel):
    """阶段推进请求体"""

    phase: TaskPhase = Field(description="目标阶段")
    note: str = Field(default="", max_length=500, description="备注")


class ProgressResponse(BaseModel):
    """进度记录响应"""

    task_id: str
    events: list[ProgressEvent]


@router.post("/api/tasks/{task_id}/accept", response_model=AcceptResponse)
async def accept_task(
    task_id: str,
    store_group=Depends(get_store_group),
    identity=Depends(get_current_identity),
):
    """接单 -- 并发请求中只有一个成功，其余返回 409 TASK_NOT_AVAILABLE"""
    service = TaskLifecycleService(store_group)
    task = await service.accept_task(identity, task_id)
    return AcceptResponse(
        task=task,
        owner_id=task.created_by,
        assignee_id=task.assignee_id or "",
    )


@router.post("/api/tasks/{task_id}/phase", response_model=TaskResponse)
async def update_task_phase(
    task_id: str,
    body: PhaseRequest,
    store_group=Depends(get_store_group),
    identity=Depends(get_current_identity),
):
    """推进任务阶段"""
    service = TaskLifecycleService(store_group)
    task = await service.update_task_phase(identity, task_id, body.phase, body.note)
    return TaskResponse(task=task)


@router.post("/api/tasks/{task_id}/cancel", response_model=TaskResponse)
async def cancel_task(
    task_id: str,
    store_group=Depends(get_store_group),
    identity=Depends(get_current_identity),
):
    """取消非终态的任务"""
    service = TaskLifecycleService(store_group)
    task = await service.cancel_task(identity, task_id)
    return TaskResponse(task=task)


@router.get("/api/tasks/{task_id}/progress", response_model=ProgressResponse)
async def get_progress_history(
    task_id: str,
    store_group=Depends(get_store_group),
    identity=Depends(get_current_identity),
):
    """查询任务进度记录，按 task_seq 正序"""
    service = TaskLifecycleService(store_group)
    events = await service.get_progress_history(identity, task_id)
    return ProgressResponse(task_id=task_id, events=events)
