"""LoggingMiddleware

每个请求一个 request_id（上游已带合法 ULID 的 X-Request-ID 时沿用），
连同调用方 user_id 绑定到 structlog contextvars，并写回响应头。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

from ..identity import get_identity_header

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    try:
        return str(ULID.from_str(incoming))
    except ValueError:
        return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = _request_id(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        user_id = request.headers.get(get_identity_header(), "").strip()
        if user_id:
            structlog.contextvars.bind_contextvars(user_id=user_id)

        log = structlog.get_logger()
        started = time.monotonic()
        response = await call_next(request)
        duration_ms = int((time.monotonic() - started) * 1000)

        if response.status_code >= 500:
            await log.aerror(
                "request_failed", status_code=response.status_code, duration_ms=duration_ms
            )
        else:
            await log.ainfo(
                "request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
