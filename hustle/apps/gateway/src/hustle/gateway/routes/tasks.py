"""任务发布与查询路由

POST /api/tasks: 发布任务（内容审核 blocked 时 422）。
PUT /api/tasks/{task_id}: 编辑自己发布的任务，重新审核。
GET /api/tasks: 任务列表，支持 status / scope 筛选。
GET /api/tasks/{task_id}: 任务详情，对调用方不可见的任务返回 404。
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from hustle.core.models import Task, TaskFields, TaskStatus
from pydantic import BaseModel
from starlette.responses import JSONResponse

from ..deps import get_current_identity, get_store_group
from ..services.lifecycle_service import TaskLifecycleService
from ..services.submission_service import TaskSubmissionService

router = APIRouter()


class TaskResponse(BaseModel):
    """单个任务响应"""

    task: Task


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[Task]


@router.post("/api/tasks", status_code=201, response_model=TaskResponse)
async def create_task(
    body: TaskFields,
    store_group=Depends(get_store_group),
    identity=Depends(get_current_identity),
):
    """发布任务

    - 审核通过或待审核返回 201
    - 审核拒绝返回 422 CONTENT_BLOCKED，不落库
    """
    service = TaskSubmissionService(store_group)
    task = await service.submit(identity, None, body)
    return JSONResponse(
        status_code=201,
        content=TaskResponse(task=task).model_dump(mode="json"),
    )


@router.put("/api/tasks/{task_id}", response_model=TaskResponse)
async def edit_task(
    task_id: str,
    body: TaskFields,
    store_group=Depends(get_store_group),
    identity=Depends(get_current_identity),
):
    """编辑自己发布的任务（终态任务返回 409）"""
    service = TaskSubmissionService(store_group)
    task = await service.submit(identity, task_id, body)
    return TaskResponse(task=task)


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    scope: Literal["all", "mine", "assigned"] = Query(
        default="all",
        description="all: 所有可见任务；mine: 我发布的；assigned: 我接下的",
    ),
    store_group=Depends(get_store_group),
    identity=Depends(get_current_identity),
):
    """查询任务列表，按 created_at 倒序"""
    service = TaskLifecycleService(store_group)
    tasks = await service.list_tasks(identity, status, scope)
    return TaskListResponse(tasks=tasks)


@router.get("/api/tasks/{task_id}", response_model=TaskResponse)
async def get_task_detail(
    task_id: str,
    store_group=Depends(get_store_group),
    identity=Depends(get_current_identity),
):
    """查询任务详情"""
    service = TaskLifecycleService(store_group)
    task = await service.get_task(identity, task_id)
    return TaskResponse(task=task)
