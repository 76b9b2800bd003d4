"""TraceMiddleware

为任务操作绑定 trace_id，贯穿同一任务的发布、接单、推进、取消日志。
trace_id 由路径中的 task_id 生成：/api/tasks/{task_id}[/accept|/phase|/cancel|/progress]。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 字符串长度
_TASK_ID_LENGTH = 26


def extract_task_id(path: str) -> str | None:
    """从 /api/tasks/{task_id}/... 中提取 task_id，不是任务路径时返回 None"""
    parts = [p for p in path.split("/") if p]
    for i, part in enumerate(parts[:-1]):
        if part == "tasks" and len(parts[i + 1]) == _TASK_ID_LENGTH:
            return parts[i + 1]
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为任务操作绑定 trace_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(
                trace_id=f"trace-{task_id}",
                task_id=task_id,
            )

        return await call_next(request)
