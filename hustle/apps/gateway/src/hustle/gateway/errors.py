"""TaskError -> HTTP 错误响应映射

错误体统一为 {"error": {"code": ..., "message": ...}}。
"""

from fastapi import Request
from hustle.core.errors import ContentBlockedError, TaskError
from starlette.responses import JSONResponse

ERROR_STATUS: dict[str, int] = {
    "UNAUTHENTICATED": 401,
    "NOT_AUTHORIZED": 403,
    "CANNOT_ACCEPT_OWN_TASK": 403,
    "TASK_NOT_FOUND": 404,
    "TASK_NOT_AVAILABLE": 409,
    "TASK_ALREADY_FINAL": 409,
    "INVALID_PHASE_TRANSITION": 409,
    "CONTENT_BLOCKED": 422,
}


def error_response(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, **extra}},
    )


async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    """将 TaskError 子类映射为对应的 HTTP 状态码"""
    status_code = ERROR_STATUS.get(exc.code, 400)
    if isinstance(exc, ContentBlockedError):
        return error_response(
            status_code,
            exc.code,
            exc.message,
            reason=exc.reason,
            category=exc.category,
        )
    return error_response(status_code, exc.code, exc.message)
